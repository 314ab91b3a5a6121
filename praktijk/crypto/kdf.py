"""
Derivation of per-user field encryption keys.

Both derivations run PBKDF2-HMAC-SHA256 with the same iteration count so that the password path
and the server path share one security posture.
"""

import os

from cryptography.hazmat.primitives.hashes import SHA256
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from praktijk.crypto.cipher import KEY_SIZE

__all__ = [
    "PBKDF2_ITERATIONS",
    "SALT_SIZE",
    "derive_password_key",
    "derive_server_key",
    "generate_salt",
]

PBKDF2_ITERATIONS: int = 100_000
SALT_SIZE: int = 16

# mutable so the test suite can lower the cost, see `tests/conftest.py`
_PBKDF2_PARAMS: dict[str, int] = {"iterations": PBKDF2_ITERATIONS}

_LEGACY_SALT_LENGTH = 32


def generate_salt() -> str:
    """
    Generate a random salt for use in encryption key derivation.
    """
    return os.urandom(SALT_SIZE).hex()


def _pbkdf2(secret: bytes, salt: bytes, iterations: int | None) -> bytearray:
    kdf = PBKDF2HMAC(
        algorithm=SHA256(),
        length=KEY_SIZE,
        salt=salt,
        iterations=_PBKDF2_PARAMS["iterations"] if iterations is None else iterations,
    )
    return bytearray(kdf.derive(secret))


def derive_password_key(password: str, salt: str, *, iterations: int | None = None) -> bytearray:
    """
    Derive a key from a user's password and their hex encoded salt.
    """
    return _pbkdf2(password.encode("utf-8"), bytes.fromhex(salt), iterations)


def _server_salt_bytes(salt: str) -> bytes:
    try:
        salt_bytes = bytes.fromhex(salt)
    except ValueError:
        salt_bytes = b""

    if len(salt_bytes) >= SALT_SIZE:
        return salt_bytes

    # Salts that are not proper hex are still accepted so that data encrypted under them stays
    # readable. The raw string is padded instead.
    return salt.ljust(_LEGACY_SALT_LENGTH, "0").encode("utf-8")[:_LEGACY_SALT_LENGTH]


def derive_server_key(
    user_id: str, salt: str, server_secret: str, *, iterations: int | None = None
) -> bytearray:
    """
    Derive a user's key from the server secret, their id and their salt. The same inputs always
    yield the same key across requests and process restarts.
    """
    key_material = f"{server_secret}:{user_id}:{salt}".encode("utf-8")
    return _pbkdf2(key_material, _server_salt_bytes(salt), iterations)
