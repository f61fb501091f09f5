"""Domain exceptions for the Whistle service and client tooling."""


class WhistleError(Exception):
    """Base class for all Whistle errors"""


class ValidationError(WhistleError, ValueError):
    """Submitted data is missing or malformed (user-correctable)"""


class Unauthorized(WhistleError):
    """Missing, invalid or expired admin credential"""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ReportNotFoundError(WhistleError, LookupError):
    """No report exists with the requested id"""


class DecryptionError(WhistleError):
    """Envelope cannot be decrypted with the given key"""


class ConfigurationError(WhistleError):
    """A required secret or setting is absent or invalid"""
