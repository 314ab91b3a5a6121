"""
Authenticated encryption of single field values.

A ciphertext blob is the standard base64 encoding of a 24 byte random nonce
followed by the XSalsa20-Poly1305 secret box (ciphertext with its 16 byte tag).
The empty string is reserved for "no value" in both directions.
"""

import binascii
from base64 import b64decode, b64encode

from nacl.exceptions import CryptoError as NaclCryptoError
from nacl.secret import SecretBox
from nacl.utils import random

from praktijk.crypto.errors import DecryptionError

__all__ = ["KEY_SIZE", "MAC_SIZE", "NONCE_SIZE", "check_key", "decrypt", "encrypt"]

KEY_SIZE: int = SecretBox.KEY_SIZE
NONCE_SIZE: int = SecretBox.NONCE_SIZE
MAC_SIZE: int = SecretBox.MACBYTES


def check_key(key: bytes | bytearray) -> None:
    if len(key) != KEY_SIZE:
        raise ValueError(f"Encryption keys must be {KEY_SIZE} bytes, got {len(key)}")


def _secret_box(key: bytes | bytearray) -> SecretBox:
    check_key(key)
    return SecretBox(bytes(key))


def encrypt(plaintext: str, key: bytes | bytearray) -> str:
    if not plaintext:
        return ""

    box = _secret_box(key)
    # a fresh nonce for every message, never reused under the same key
    nonce = random(NONCE_SIZE)
    encrypted = box.encrypt(plaintext.encode("utf-8"), nonce)
    return b64encode(encrypted.nonce + encrypted.ciphertext).decode("ascii")


def decrypt(blob: str, key: bytes | bytearray) -> str:
    """
    Decrypt a blob produced by `encrypt`. Raises `DecryptionError` if the blob is malformed or
    fails authentication, which covers a wrong key, corruption and tampering alike.
    """
    if not blob:
        return ""

    box = _secret_box(key)
    try:
        combined = b64decode(blob, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecryptionError("Ciphertext is not valid base64") from e

    if len(combined) < NONCE_SIZE + MAC_SIZE:
        raise DecryptionError("Ciphertext is too short")

    nonce, ciphertext = combined[:NONCE_SIZE], combined[NONCE_SIZE:]
    try:
        plaintext = box.decrypt(ciphertext, nonce)
    except NaclCryptoError as e:
        raise DecryptionError("Ciphertext failed authentication") from e

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecryptionError("Decrypted value is not valid UTF-8") from e
