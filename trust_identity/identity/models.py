"""
Identity records.

Shared fields are composed rather than inherited: every record holds its
public part as a named field, and to_dict() flattens that part onto the same
JSON level as the record's own fields, public fields first.

Byte fields are raw bytes in memory and base64 strings on the wire.
"""

from __future__ import annotations

import binascii
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union

from trust_identity.crypto_utils import b64_decode, b64_encode
from trust_identity.errors import DecodeError, InvalidIdentityError


class Target(str, Enum):
    USER = "user"
    EMAIL = "email"
    PHONE_NUMBER = "phone_number"
    HASHED_EMAIL = "hashed_email"
    HASHED_PHONE_NUMBER = "hashed_phone_number"


TargetLike = Union[Target, str]


def target_name(target: TargetLike) -> str:
    return target.value if isinstance(target, Target) else str(target)


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def _require(doc: Mapping[str, Any], name: str) -> Any:
    if name not in doc:
        raise InvalidIdentityError(f"invalid identity (missing {name} field)", field=name)
    return doc[name]


def _str_field(doc: Mapping[str, Any], name: str) -> str:
    v = _require(doc, name)
    if not isinstance(v, str):
        raise InvalidIdentityError(f"invalid identity ({name} must be a string)", field=name)
    return v


def _bytes_field(doc: Mapping[str, Any], name: str) -> bytes:
    v = _str_field(doc, name)
    try:
        return b64_decode(v)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"unable to decode {name}, should be a valid base64 string", field=name) from exc


def _optional_bytes_field(doc: Mapping[str, Any], name: str) -> Optional[bytes]:
    if doc.get(name) is None:
        return None
    return _bytes_field(doc, name)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PublicIdentity:
    """
    Fields present in every identity.

    - trustchain_id: the tenant app ID
    - target: what value designates (see Target)
    - value: base64 user ID, raw email / phone number, or base64 hash
    """
    trustchain_id: bytes
    target: TargetLike
    value: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "trustchain_id": b64_encode(self.trustchain_id),
            "target": target_name(self.target),
            "value": self.value,
        }

    @classmethod
    def from_dict(cls, doc: Mapping[str, Any]) -> "PublicIdentity":
        return cls(
            trustchain_id=_bytes_field(doc, "trustchain_id"),
            target=_str_field(doc, "target"),
            value=_str_field(doc, "value"),
        )


@dataclass(frozen=True)
class Identity:
    """A registered user's private identity."""
    public: PublicIdentity
    delegation_signature: bytes
    ephemeral_public_signature_key: bytes
    ephemeral_private_signature_key: bytes
    user_secret: bytes

    @property
    def trustchain_id(self) -> bytes:
        return self.public.trustchain_id

    @property
    def target(self) -> str:
        return target_name(self.public.target)

    @property
    def value(self) -> str:
        return self.public.value

    def to_dict(self) -> dict[str, Any]:
        d = self.public.to_dict()
        d["delegation_signature"] = b64_encode(self.delegation_signature)
        d["ephemeral_public_signature_key"] = b64_encode(self.ephemeral_public_signature_key)
        d["ephemeral_private_signature_key"] = b64_encode(self.ephemeral_private_signature_key)
        d["user_secret"] = b64_encode(self.user_secret)
        return d

    @classmethod
    def from_dict(cls, doc: Mapping[str, Any]) -> "Identity":
        return cls(
            public=PublicIdentity.from_dict(doc),
            delegation_signature=_bytes_field(doc, "delegation_signature"),
            ephemeral_public_signature_key=_bytes_field(doc, "ephemeral_public_signature_key"),
            ephemeral_private_signature_key=_bytes_field(doc, "ephemeral_private_signature_key"),
            user_secret=_bytes_field(doc, "user_secret"),
        )


@dataclass(frozen=True)
class PublicProvisionalIdentity:
    public: PublicIdentity
    public_signature_key: bytes
    public_encryption_key: bytes

    @property
    def trustchain_id(self) -> bytes:
        return self.public.trustchain_id

    @property
    def target(self) -> str:
        return target_name(self.public.target)

    @property
    def value(self) -> str:
        return self.public.value

    def to_dict(self) -> dict[str, Any]:
        d = self.public.to_dict()
        d["public_signature_key"] = b64_encode(self.public_signature_key)
        d["public_encryption_key"] = b64_encode(self.public_encryption_key)
        return d

    @classmethod
    def from_dict(cls, doc: Mapping[str, Any]) -> "PublicProvisionalIdentity":
        return cls(
            public=PublicIdentity.from_dict(doc),
            public_signature_key=_bytes_field(doc, "public_signature_key"),
            public_encryption_key=_bytes_field(doc, "public_encryption_key"),
        )


@dataclass(frozen=True)
class ProvisionalIdentity:
    """A not-yet-registered subject's private identity."""
    provisional: PublicProvisionalIdentity
    private_signature_key: bytes
    private_encryption_key: bytes

    @property
    def trustchain_id(self) -> bytes:
        return self.provisional.trustchain_id

    @property
    def target(self) -> str:
        return self.provisional.target

    @property
    def value(self) -> str:
        return self.provisional.value

    def to_dict(self) -> dict[str, Any]:
        d = self.provisional.to_dict()
        d["private_signature_key"] = b64_encode(self.private_signature_key)
        d["private_encryption_key"] = b64_encode(self.private_encryption_key)
        return d

    @classmethod
    def from_dict(cls, doc: Mapping[str, Any]) -> "ProvisionalIdentity":
        return cls(
            provisional=PublicProvisionalIdentity.from_dict(doc),
            private_signature_key=_bytes_field(doc, "private_signature_key"),
            private_encryption_key=_bytes_field(doc, "private_encryption_key"),
        )


@dataclass(frozen=True)
class AnyPublicIdentity:
    """
    Superset view used by public derivation: the public fields plus the
    provisional public keys when the input carries them.
    """
    public: PublicIdentity
    public_signature_key: Optional[bytes] = None
    public_encryption_key: Optional[bytes] = None

    def to_dict(self) -> dict[str, Any]:
        d = self.public.to_dict()
        if self.public_signature_key is not None:
            d["public_signature_key"] = b64_encode(self.public_signature_key)
        if self.public_encryption_key is not None:
            d["public_encryption_key"] = b64_encode(self.public_encryption_key)
        return d

    @classmethod
    def from_dict(cls, doc: Mapping[str, Any]) -> "AnyPublicIdentity":
        return cls(
            public=PublicIdentity.from_dict(doc),
            public_signature_key=_optional_bytes_field(doc, "public_signature_key"),
            public_encryption_key=_optional_bytes_field(doc, "public_encryption_key"),
        )
