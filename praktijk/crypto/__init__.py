"""
A subpackage to organize the field-level encryption of client and appointment data.
"""

from .cipher import decrypt, encrypt
from .db_field_encryption import DecryptedFields, decrypt_fields, encrypt_fields
from .errors import CryptoError, DecryptionError, SaltNotFoundError
from .kdf import derive_password_key, derive_server_key, generate_salt
from .user_keys import resolve_user_key, user_key

__all__ = [
    "CryptoError",
    "DecryptedFields",
    "DecryptionError",
    "SaltNotFoundError",
    "decrypt",
    "decrypt_fields",
    "derive_password_key",
    "derive_server_key",
    "encrypt",
    "encrypt_fields",
    "generate_salt",
    "resolve_user_key",
    "user_key",
]
