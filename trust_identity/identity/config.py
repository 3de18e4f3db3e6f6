from __future__ import annotations

import binascii
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from trust_identity.crypto_utils import b64_decode, b64_encode, generate_signature_keypair, generichash
from trust_identity.errors import DecodeError, SizeError

logger = logging.getLogger(__name__)

APP_ID_SIZE = 32
APP_SECRET_SIZE = 64

ENV_PREFIX = "TRUST_IDENTITY_"

# The app ID is the hash of the tenant's root block:
#   nature(1) || author(32 zero bytes) || tenant public signature key(32)
_APP_CREATION_NATURE = 1
_AUTHOR_SIZE = 32
_APP_PUBLIC_KEY_SIZE = 32


def derive_app_id(app_secret: bytes) -> bytes:
    """Compute the public app ID that corresponds to a raw 64-byte app secret."""
    if len(app_secret) != APP_SECRET_SIZE:
        raise SizeError("app_secret", expected=APP_SECRET_SIZE, actual=len(app_secret))
    public_key = app_secret[APP_SECRET_SIZE - _APP_PUBLIC_KEY_SIZE:]
    return generichash(bytes([_APP_CREATION_NATURE]), bytes(_AUTHOR_SIZE), public_key)


@dataclass(frozen=True)
class RawTenantConfig:
    """Decoded tenant credentials."""
    app_id: bytes
    app_secret: bytes


class TenantConfig(BaseModel):
    """
    Tenant credentials as handed over by the caller: two base64 strings.

    Resolution order for from_env():
      1) optional .env file (python-dotenv)
      2) os.environ
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    app_id: str
    app_secret: str

    def decode(self) -> RawTenantConfig:
        """
        Decode both credentials and check their sizes.

        Raises DecodeError (bad base64) or SizeError (wrong length), both
        naming the offending field.
        """
        app_id = _decode_field("app_id", self.app_id, APP_ID_SIZE)
        app_secret = _decode_field("app_secret", self.app_secret, APP_SECRET_SIZE)
        return RawTenantConfig(app_id=app_id, app_secret=app_secret)

    @classmethod
    def from_env(
        cls,
        *,
        prefix: str = ENV_PREFIX,
        auto_dotenv: bool = True,
        dotenv_path: Optional[str] = None,
        dotenv_override: bool = False,
    ) -> "TenantConfig":
        if auto_dotenv:
            load_dotenv(dotenv_path=dotenv_path, override=dotenv_override)

        values = {}
        for field in ("app_id", "app_secret"):
            name = f"{prefix}{field.upper()}"
            v = os.environ.get(name)
            if v is None:
                raise KeyError(f"Missing required tenant setting: {name}")
            values[field] = v
        return cls(**values)


def _decode_field(field: str, value: str, expected: int) -> bytes:
    try:
        raw = b64_decode(value)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(
            f"unable to decode {field} '{value}', should be a valid base64 string",
            field=field,
        ) from exc
    if len(raw) != expected:
        raise SizeError(field, expected=expected, actual=len(raw))
    return raw


def validate_config(cfg: TenantConfig) -> RawTenantConfig:
    return cfg.decode()


def new_tenant_config() -> TenantConfig:
    """Create credentials for a brand new tenant (local development and tests)."""
    _, app_secret = generate_signature_keypair()
    app_id = derive_app_id(app_secret)
    logger.debug("created tenant %s", b64_encode(app_id))
    return TenantConfig(app_id=b64_encode(app_id), app_secret=b64_encode(app_secret))
