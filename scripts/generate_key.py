#!/usr/bin/env python3
"""Generate a report encryption key.

Prints a fresh 256-bit key as hex. Distribute it to submitter clients and
admin viewers as WHISTLE_ENCRYPTION_KEY; the server never needs it.
"""

import argparse
import base64

from whistle_service.crypto.codec import generate_key, load_key


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--format",
        choices=["hex", "base64"],
        default="hex",
        help="Output encoding (default: hex)"
    )
    args = parser.parse_args()

    key = generate_key()
    if args.format == "base64":
        key = base64.urlsafe_b64encode(load_key(key)).decode("ascii")

    print(key)


if __name__ == "__main__":
    main()
