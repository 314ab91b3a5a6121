from base64 import b64decode, b64encode
from secrets import token_bytes

import pytest
from nacl.secret import SecretBox

from praktijk.crypto import CryptoError, DecryptionError, decrypt, encrypt
from praktijk.crypto.cipher import MAC_SIZE, NONCE_SIZE


@pytest.mark.parametrize(
    "plaintext",
    [
        "Jan Janssens",
        "a",
        "Ëlise Dumoulin-Vandenbroucke",
        "notes 🥦 with emoji",
        "line one\nline two\ttabbed",
        "x" * 10_000,
    ],
)
def test_encryption_roundtrip(plaintext: str, key: bytes) -> None:
    blob = encrypt(plaintext, key)
    assert decrypt(blob, key) == plaintext


def test_ciphertext_does_not_contain_plaintext(key: bytes) -> None:
    plaintext = "Voedingsanamnese: lactose-intolerant"
    blob = encrypt(plaintext, key)

    assert plaintext not in blob
    assert plaintext.encode() not in b64decode(blob)


def test_empty_string_is_a_sentinel(key: bytes) -> None:
    assert encrypt("", key) == ""
    assert decrypt("", key) == ""


def test_fresh_nonce_per_encryption(key: bytes) -> None:
    blobs = {encrypt("Jan Janssens", key) for _ in range(20)}
    assert len(blobs) == 20

    nonces = {b64decode(blob)[:NONCE_SIZE] for blob in blobs}
    assert len(nonces) == 20


def test_blob_is_nonce_followed_by_secret_box(key: bytes) -> None:
    plaintext = "Jan Janssens"
    raw = b64decode(encrypt(plaintext, key))

    assert len(raw) == NONCE_SIZE + MAC_SIZE + len(plaintext.encode())
    # the combined format is what NaCl itself produces and consumes
    assert SecretBox(key).decrypt(raw).decode() == plaintext


def test_flipping_any_byte_is_detected(key: bytes) -> None:
    raw = bytearray(b64decode(encrypt("hello", key)))

    for i in range(len(raw)):
        tampered = bytearray(raw)
        tampered[i] ^= 0x01
        with pytest.raises(DecryptionError):
            decrypt(b64encode(tampered).decode(), key)


def test_wrong_key_is_rejected(key: bytes) -> None:
    blob = encrypt("Jan Janssens", key)
    with pytest.raises(DecryptionError):
        decrypt(blob, token_bytes(32))


@pytest.mark.parametrize(
    "blob",
    [
        "not base64 at all!",
        b64encode(b"too short").decode(),
        b64encode(token_bytes(NONCE_SIZE + MAC_SIZE - 1)).decode(),
        b64encode(token_bytes(NONCE_SIZE + MAC_SIZE + 8)).decode(),
    ],
)
def test_malformed_blobs_raise_decryption_error(blob: str, key: bytes) -> None:
    with pytest.raises(DecryptionError):
        decrypt(blob, key)


def test_decryption_error_is_a_crypto_error(key: bytes) -> None:
    with pytest.raises(CryptoError):
        decrypt("garbage", key)


def test_non_utf8_plaintext_raises_decryption_error(key: bytes) -> None:
    box = SecretBox(key)
    blob = b64encode(bytes(box.encrypt(b"\xff\xfe\xfd"))).decode()
    with pytest.raises(DecryptionError):
        decrypt(blob, key)


@pytest.mark.parametrize("size", [0, 16, 31, 33, 64])
def test_keys_must_be_32_bytes(size: int) -> None:
    with pytest.raises(ValueError, match="32 bytes"):
        encrypt("hello", token_bytes(size))


def test_bytearray_keys_are_accepted(key: bytes) -> None:
    blob = encrypt("hello", bytearray(key))
    assert decrypt(blob, bytearray(key)) == "hello"
