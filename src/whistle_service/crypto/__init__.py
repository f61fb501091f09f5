"""Report payload encryption"""

from .codec import decrypt, encrypt, generate_key, load_key, require_key

__all__ = ["decrypt", "encrypt", "generate_key", "load_key", "require_key"]
