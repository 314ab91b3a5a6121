import logging
from secrets import token_bytes

import pytest

from praktijk.crypto import DecryptedFields, decrypt_fields, encrypt, encrypt_fields
from praktijk.crypto.db_field_encryption import decrypt_field, encrypt_field

CORRUPTED_BLOB = "bm90IGEgcmVhbCBibG9iIGJ1dCBsb25nIGVub3VnaCB0byBwYXNzIHRoZSBsZW5ndGggY2hlY2s="


def test_absent_fields_are_omitted(key: bytes) -> None:
    encrypted = encrypt_fields({"name": "Ann", "email": None, "notes": ""}, key)

    assert set(encrypted) == {"name", "notes"}
    assert encrypted["name"] != "Ann"
    # the empty string is present, it encrypts to the empty sentinel
    assert encrypted["notes"] == ""


def test_bundle_roundtrip(key: bytes) -> None:
    fields = {
        "name_encrypted": "Jan Janssens",
        "email_encrypted": "jan@example.be",
        "phone_encrypted": "+32 470 12 34 56",
        "notes_encrypted": "Lactose-intolerant, volgt een FODMAP-dieet.",
    }
    decrypted = decrypt_fields(encrypt_fields(fields, key), key)

    assert decrypted == fields
    assert not decrypted.failed


def test_corrupted_field_is_isolated(key: bytes, caplog: pytest.LogCaptureFixture) -> None:
    bundle = {"name": encrypt("Ann", key), "notes": CORRUPTED_BLOB}

    with caplog.at_level(logging.WARNING):
        decrypted = decrypt_fields(bundle, key)

    assert decrypted == {"name": "Ann", "notes": ""}
    assert decrypted.failed == {"notes"}
    assert "'notes'" in caplog.text
    assert CORRUPTED_BLOB not in caplog.text


def test_empty_and_missing_ciphertexts_are_skipped(key: bytes) -> None:
    decrypted = decrypt_fields({"name": encrypt("Ann", key), "email": None, "notes": ""}, key)
    assert decrypted == {"name": "Ann"}
    assert not decrypted.failed


def test_wrong_key_blanks_every_field_without_raising(key: bytes) -> None:
    bundle = encrypt_fields({"name": "Ann", "notes": "some notes"}, key)
    decrypted = decrypt_fields(bundle, token_bytes(32))

    assert decrypted == {"name": "", "notes": ""}
    assert decrypted.failed == {"name", "notes"}


def test_failed_fields_are_distinguishable_from_empty_ones() -> None:
    empty = DecryptedFields({"notes": ""})
    failed = DecryptedFields({"notes": ""}, failed=["notes"])

    assert empty == failed
    assert "notes" not in empty.failed
    assert "notes" in failed.failed


def test_single_field_helpers(key: bytes) -> None:
    assert encrypt_field(None, key) is None
    assert decrypt_field(None, key) is None

    ciphertext = encrypt_field("Ann", key)
    assert ciphertext is not None
    assert decrypt_field(ciphertext, key) == "Ann"


@pytest.mark.parametrize("size", [0, 16, 64])
def test_key_size_is_checked_before_any_field(key: bytes, size: int) -> None:
    bundle = {"name": encrypt("Ann", key), "email": None}

    with pytest.raises(ValueError, match="32 bytes"):
        decrypt_fields(bundle, token_bytes(size))
    with pytest.raises(ValueError, match="32 bytes"):
        decrypt_fields({}, token_bytes(size))
    with pytest.raises(ValueError, match="32 bytes"):
        encrypt_fields({"notes": ""}, token_bytes(size))
