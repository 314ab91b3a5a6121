import json
import os
from dataclasses import dataclass
from json import JSONDecodeError
from typing import Any, Mapping, Optional

from praktijk.crypto.kdf import PBKDF2_ITERATIONS
from praktijk.utils import if_not_none, parse_bool

_STRING_CFG_PREFIX = "PRAKTIJK_CFG_"
_JSON_CFG_PREFIX = "PRAKTIJK_CFG_JSON_"

ENCRYPTION_SECRET_ENV = "PRAKTIJK_ENCRYPTION_SECRET"
FALLBACK_SECRET_ENV = "SECRET_KEY"

# Only for local development. Every deployment must set one of the variables above.
DEV_SERVER_SECRET = "praktijk-dev-encryption-secret-change-me"


class ConfigParseError(Exception):
    pass


@dataclass(frozen=True)
class EncryptionSettings:
    server_secret: str
    # None means the library default, see `praktijk.crypto.kdf`
    kdf_iterations: Optional[int] = None
    uses_dev_secret: bool = False

    def __repr__(self) -> str:
        # keep the secret out of logs and tracebacks
        return (
            f"EncryptionSettings(server_secret='***', kdf_iterations={self.kdf_iterations!r}, "
            f"uses_dev_secret={self.uses_dev_secret!r})"
        )


def load_config(env: Optional[Mapping[str, str]] = None) -> Mapping[str, Any]:
    if env is None:
        env = os.environ

    config: dict[str, Any] = {}
    for func in [
        _load_flask,
        _load_sqlalchemy,
        _load_encryption,
        # load strings and JSON last as overrides
        _load_strings,
        _load_json,
    ]:
        config |= func(env)

    return config


def _load_flask(env: Mapping[str, str]) -> Mapping[str, Any]:
    data: dict[str, Any] = {}

    for key in ["FLASK_ENV", "SECRET_KEY", "SERVER_NAME"]:
        if val := env.get(key):
            data[key] = val

    return data


def _load_sqlalchemy(env: Mapping[str, str]) -> Mapping[str, Any]:
    data: dict[str, Any] = {}

    if db_uri := env.get("SQLALCHEMY_DATABASE_URI"):
        # if it's a Postgres URI, replace the scheme with `postgresql+psycopg`
        # because we're using the psycopg driver
        if db_uri.startswith("postgresql://"):
            db_uri = db_uri.replace("postgresql://", "postgresql+psycopg://", 1)
        data["SQLALCHEMY_DATABASE_URI"] = db_uri

    data["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    return data


def _parse_iterations(value: str) -> int:
    try:
        iterations = int(value)
    except ValueError:
        raise ConfigParseError(f"PRAKTIJK_KDF_ITERATIONS must be an integer, got {value!r}")

    if iterations < PBKDF2_ITERATIONS:
        raise ConfigParseError(
            f"PRAKTIJK_KDF_ITERATIONS must be at least {PBKDF2_ITERATIONS}, got {iterations}"
        )
    return iterations


def _load_encryption(env: Mapping[str, str]) -> Mapping[str, Any]:
    secret = env.get(ENCRYPTION_SECRET_ENV) or env.get(FALLBACK_SECRET_ENV)
    uses_dev_secret = not secret
    if not secret:
        secret = DEV_SERVER_SECRET

    secret_required = env.get("FLASK_ENV") == "production"
    if value := env.get("PRAKTIJK_ENCRYPTION_SECRET_REQUIRED"):
        secret_required = parse_bool(value)

    if uses_dev_secret and secret_required:
        raise ConfigParseError(
            f"{ENCRYPTION_SECRET_ENV} or {FALLBACK_SECRET_ENV} must be set in production"
        )

    return {
        "ENCRYPTION": EncryptionSettings(
            server_secret=secret,
            kdf_iterations=if_not_none(
                env.get("PRAKTIJK_KDF_ITERATIONS"), _parse_iterations, allow_falsey=False
            ),
            uses_dev_secret=uses_dev_secret,
        )
    }


def _load_strings(env: Mapping[str, str]) -> Mapping[str, Any]:
    return {
        k[len(_STRING_CFG_PREFIX) :]: v
        for k, v in env.items()
        if k.startswith(_STRING_CFG_PREFIX) and not k.startswith(_JSON_CFG_PREFIX)
    }


def _load_json(env: Mapping[str, str]) -> Mapping[str, Any]:
    data = {}

    for k, v in env.items():
        if not k.startswith(_JSON_CFG_PREFIX):
            continue

        try:
            data[k[len(_JSON_CFG_PREFIX) :]] = json.loads(v)
        except JSONDecodeError:
            raise ConfigParseError(f"Env var {k!r} could not be parsed as JSON")

    return data
