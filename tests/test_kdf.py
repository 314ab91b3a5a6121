from hashlib import pbkdf2_hmac

import pytest
from conftest import TEST_SALT, TEST_SERVER_SECRET

from praktijk.crypto import (
    decrypt,
    derive_password_key,
    derive_server_key,
    encrypt,
    generate_salt,
)
from praktijk.crypto.kdf import _PBKDF2_PARAMS, PBKDF2_ITERATIONS, SALT_SIZE


def _expected(secret: str, salt: bytes, iterations: int | None = None) -> bytes:
    if iterations is None:
        iterations = _PBKDF2_PARAMS["iterations"]
    return pbkdf2_hmac("sha256", secret.encode(), salt, iterations, dklen=32)


def test_default_iteration_count() -> None:
    assert PBKDF2_ITERATIONS == 100_000


def test_server_key_is_deterministic_and_usable() -> None:
    key = derive_server_key("user-123", TEST_SALT, TEST_SERVER_SECRET)
    key_again = derive_server_key("user-123", TEST_SALT, TEST_SERVER_SECRET)

    assert len(key) == 32
    assert isinstance(key, bytearray)
    assert key == key_again

    blob = encrypt("Jan Janssens", key)
    assert decrypt(blob, key_again) == "Jan Janssens"


def test_server_key_construction() -> None:
    key = derive_server_key("user-123", TEST_SALT, TEST_SERVER_SECRET)
    assert key == _expected(f"{TEST_SERVER_SECRET}:user-123:{TEST_SALT}", bytes.fromhex(TEST_SALT))


def test_server_key_with_full_iteration_count() -> None:
    key = derive_server_key("user-123", TEST_SALT, TEST_SERVER_SECRET, iterations=PBKDF2_ITERATIONS)
    assert key == _expected(
        f"{TEST_SERVER_SECRET}:user-123:{TEST_SALT}", bytes.fromhex(TEST_SALT), PBKDF2_ITERATIONS
    )
    assert key != derive_server_key("user-123", TEST_SALT, TEST_SERVER_SECRET)


@pytest.mark.parametrize(
    ("user_id", "salt", "secret"),
    [
        ("user-124", TEST_SALT, TEST_SERVER_SECRET),
        ("user-123", "f" * 32, TEST_SERVER_SECRET),
        ("user-123", TEST_SALT, "other-secret"),
    ],
)
def test_server_key_differs_per_input(user_id: str, salt: str, secret: str) -> None:
    key = derive_server_key("user-123", TEST_SALT, TEST_SERVER_SECRET)
    assert derive_server_key(user_id, salt, secret) != key


@pytest.mark.parametrize("salt", ["legacy-salt", "abcd", "zz" * 16, ""])
def test_malformed_salts_fall_back_to_padding(salt: str) -> None:
    key = derive_server_key("user-123", salt, TEST_SERVER_SECRET)
    padded = salt.ljust(32, "0").encode()
    assert key == _expected(f"{TEST_SERVER_SECRET}:user-123:{salt}", padded)


def test_overlong_malformed_salts_are_truncated() -> None:
    salt = "not-hex-" * 8
    key = derive_server_key("user-123", salt, TEST_SERVER_SECRET)
    assert key == _expected(f"{TEST_SERVER_SECRET}:user-123:{salt}", salt.encode()[:32])


def test_password_key() -> None:
    key = derive_password_key("correct horse battery staple", TEST_SALT)
    assert len(key) == 32
    assert key == _expected("correct horse battery staple", bytes.fromhex(TEST_SALT))
    assert key == derive_password_key("correct horse battery staple", TEST_SALT)
    assert key != derive_password_key("correct horse battery stapler", TEST_SALT)


def test_password_key_requires_hex_salt() -> None:
    with pytest.raises(ValueError):
        derive_password_key("password", "not hex")


def test_generate_salt() -> None:
    salts = {generate_salt() for _ in range(10)}
    assert len(salts) == 10
    for salt in salts:
        assert len(bytes.fromhex(salt)) == SALT_SIZE
