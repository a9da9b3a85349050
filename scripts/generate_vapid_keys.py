#!/usr/bin/env python3
"""Generates a VAPID key pair for Web Push. From the project root: python3 scripts/generate_vapid_keys.py
   Paste the output into .env; the public key also goes to the frontend (applicationServerKey)."""
from cryptography.hazmat.primitives import serialization
from py_vapid import Vapid01
from py_vapid.utils import b64urlencode


def generate_keys() -> tuple[str, str]:
    """(public, private) as unpadded base64url, the format web-push clients and pywebpush accept."""
    vapid = Vapid01()
    vapid.generate_keys()
    public_raw = vapid.public_key.public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.UncompressedPoint,
    )
    private_raw = vapid.private_key.private_numbers().private_value.to_bytes(32, "big")
    return b64urlencode(public_raw), b64urlencode(private_raw)


def main():
    public_key, private_key = generate_keys()
    print(f"VAPID_PUBLIC_KEY={public_key}")
    print(f"VAPID_PRIVATE_KEY={private_key}")
    print("Keep the private key secret. Changing keys invalidates every stored subscription.")


if __name__ == "__main__":
    main()
