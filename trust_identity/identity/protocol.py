# =============================================================================
# Identity protocol
# =============================================================================
"""
Construction, public derivation and upgrade of identity tokens.

What you get
1) User identities:
   - user ID = hash(user_id || app_id), so the same name under two tenants
     gives unrelated IDs
   - fresh ephemeral Ed25519 key pair per token
   - delegation signature by the app secret over
     ephemeral_public_signature_key || user_id
   - user secret: 31 random bytes + 1 check byte bound to the user ID

2) Provisional identities (email, phone number):
   - fresh Ed25519 + X25519 key pairs, no delegation

3) Public identities:
   - private keys and secrets stripped
   - email values hashed (unsalted, comparable server-side)
   - phone numbers hashed with a salt derived from the private signature key,
     so only a holder of the private identity can compute the public value

4) Upgrade:
   - hashes the value of a public email provisional identity in place,
     leaves every other shape (and every unknown field) untouched

All functions are pure apart from key generation randomness. Errors are
terminal: nothing is returned on failure.
"""

from __future__ import annotations

import binascii
import hmac
import logging
import secrets
from typing import Iterable, Union

from trust_identity.crypto_utils import (
    b64_decode,
    b64_encode,
    generate_encryption_keypair,
    generate_signature_keypair,
    generichash,
    sign,
)
from trust_identity.envelope import b64_json_decode, b64_json_encode
from trust_identity.errors import (
    DecodeError,
    InvalidIdentityError,
    KeygenError,
    MismatchError,
    UnsupportedTargetError,
)

from .config import RawTenantConfig, TenantConfig, derive_app_id
from .models import (
    AnyPublicIdentity,
    Identity,
    ProvisionalIdentity,
    PublicIdentity,
    PublicProvisionalIdentity,
    Target,
    TargetLike,
    target_name,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

USER_ID_SIZE = 32
USER_SECRET_SIZE = 32

# The user secret check byte is the first byte of a 16-byte hash
_USER_SECRET_CHECK_HASH_SIZE = 16

# Accepted provisional targets. The earlier release only knew about email;
# pass LEGACY_PROVISIONAL_TARGETS to reproduce it.
PROVISIONAL_TARGETS = (Target.EMAIL.value, Target.PHONE_NUMBER.value)
LEGACY_PROVISIONAL_TARGETS = (Target.EMAIL.value,)

# Targets get_public_identity() accepts as input
_PUBLIC_INPUT_TARGETS = (Target.USER.value, Target.EMAIL.value, Target.PHONE_NUMBER.value)

_HASHED_PREFIX = "hashed_"


# =============================================================================
# Derivations
# =============================================================================

def hash_user_id(app_id: bytes, user_id: str) -> bytes:
    """Tenant-salted user ID: hash(utf8(user_id) || app_id)."""
    return generichash(user_id.encode("utf-8"), app_id)


def _user_secret_check_byte(random_part: bytes, user_id: bytes) -> bytes:
    return generichash(random_part, user_id, size=_USER_SECRET_CHECK_HASH_SIZE)[:1]


def create_user_secret(user_id: bytes) -> bytes:
    """
    Secret the client uses to protect local data without a server round-trip.

    Layout: random(31) || check(1), where check is the first byte of
    hash16(random || user_id). The check byte lets a client detect a secret
    that was corrupted or paired with the wrong user.
    """
    if len(user_id) != USER_ID_SIZE:
        raise ValueError(f"user ID must be {USER_ID_SIZE} bytes, got {len(user_id)}")
    try:
        random_part = secrets.token_bytes(USER_SECRET_SIZE - 1)
    except OSError as exc:
        raise KeygenError(f"unable to generate user secret: {exc}") from exc
    return random_part + _user_secret_check_byte(random_part, user_id)


def check_user_secret(user_id: bytes, user_secret: bytes) -> None:
    """Raise InvalidIdentityError unless user_secret belongs to user_id."""
    if len(user_id) != USER_ID_SIZE:
        raise InvalidIdentityError(
            f"invalid user ID size: {len(user_id)}, should be {USER_ID_SIZE}", field="value"
        )
    if len(user_secret) != USER_SECRET_SIZE:
        raise InvalidIdentityError(
            f"invalid user secret size: {len(user_secret)}, should be {USER_SECRET_SIZE}",
            field="user_secret",
        )
    random_part, check = user_secret[:-1], user_secret[-1:]
    if not hmac.compare_digest(check, _user_secret_check_byte(random_part, user_id)):
        raise InvalidIdentityError("user secret does not match user ID", field="user_secret")


def hash_provisional_email(email: str) -> str:
    return b64_encode(generichash(email.encode("utf-8")))


def hash_provisional_value(value: str, private_signature_key: bytes) -> str:
    """Salted hash: hash(hash(private_signature_key) || utf8(value))."""
    salt = generichash(private_signature_key)
    return b64_encode(generichash(salt, value.encode("utf-8")))


# =============================================================================
# Record construction
# =============================================================================

def build_identity(config: RawTenantConfig, user_id: str) -> Identity:
    """
    Build a private user identity.

    Checks:
      - app_id matches the ID derived from app_secret (MismatchError)
      - app_secret seed matches its public half (MismatchError)
    """
    if derive_app_id(config.app_secret) != config.app_id:
        logger.warning("app secret does not match app ID %s", b64_encode(config.app_id))
        raise MismatchError("app secret and app ID mismatch", field="app_secret")

    user_id_bytes = hash_user_id(config.app_id, user_id)
    user_secret = create_user_secret(user_id_bytes)

    e_pub, e_priv = generate_signature_keypair()
    try:
        delegation_signature = sign(config.app_secret, e_pub + user_id_bytes)
    except ValueError as exc:
        logger.warning("app secret seed is inconsistent for app ID %s", b64_encode(config.app_id))
        raise MismatchError("app secret seed and public key mismatch", field="app_secret") from exc

    identity = Identity(
        public=PublicIdentity(
            trustchain_id=config.app_id,
            target=Target.USER.value,
            value=b64_encode(user_id_bytes),
        ),
        delegation_signature=delegation_signature,
        ephemeral_public_signature_key=e_pub,
        ephemeral_private_signature_key=e_priv,
        user_secret=user_secret,
    )
    logger.debug("built user identity for tenant %s", b64_encode(config.app_id))
    return identity


def build_provisional_identity(
    config: RawTenantConfig,
    target: TargetLike,
    value: str,
    *,
    allowed_targets: Iterable[str] = PROVISIONAL_TARGETS,
) -> ProvisionalIdentity:
    """Build a private provisional identity for an unregistered subject."""
    name = target_name(target)
    if name not in tuple(allowed_targets):
        logger.warning("rejected provisional identity target %r", name)
        raise UnsupportedTargetError(name, f"unsupported provisional identity target: {name!r}")

    sig_pub, sig_priv = generate_signature_keypair()
    enc_pub, enc_priv = generate_encryption_keypair()

    identity = ProvisionalIdentity(
        provisional=PublicProvisionalIdentity(
            public=PublicIdentity(trustchain_id=config.app_id, target=name, value=value),
            public_signature_key=sig_pub,
            public_encryption_key=enc_pub,
        ),
        private_signature_key=sig_priv,
        private_encryption_key=enc_priv,
    )
    logger.debug("built %s provisional identity for tenant %s", name, b64_encode(config.app_id))
    return identity


# =============================================================================
# Public derivation
# =============================================================================

def derive_public(envelope: str) -> AnyPublicIdentity:
    """
    Public view of an identity envelope.

    - user: unchanged
    - email: value hashed, target hashed_email
    - phone_number: value hashed with a salt derived from the private
      signature key, which must be present in the same envelope
    """
    doc = b64_json_decode(envelope)

    target = doc.get("target")
    if target is None:
        raise InvalidIdentityError("invalid identity (missing target field)", field="target")
    if target not in _PUBLIC_INPUT_TARGETS:
        logger.warning("rejected public derivation for target %r", target)
        raise UnsupportedTargetError(target)

    public = AnyPublicIdentity.from_dict(doc)
    if target == Target.USER.value:
        return public

    if target == Target.EMAIL.value:
        hashed = hash_provisional_email(public.public.value)
    else:
        raw_key = doc.get("private_signature_key")
        if raw_key is None:
            raise InvalidIdentityError(
                f"invalid identity ({target} public identity requires private_signature_key)",
                field="private_signature_key",
            )
        if not isinstance(raw_key, str):
            raise InvalidIdentityError(
                "invalid identity (private_signature_key must be a string)",
                field="private_signature_key",
            )
        try:
            private_signature_key = b64_decode(raw_key)
        except (binascii.Error, ValueError) as exc:
            raise DecodeError(
                "unable to decode private_signature_key, should be a valid base64 string",
                field="private_signature_key",
            ) from exc
        hashed = hash_provisional_value(public.public.value, private_signature_key)

    return AnyPublicIdentity(
        public=PublicIdentity(
            trustchain_id=public.public.trustchain_id,
            target=_HASHED_PREFIX + target,
            value=hashed,
        ),
        public_signature_key=public.public_signature_key,
        public_encryption_key=public.public_encryption_key,
    )


# =============================================================================
# Upgrade
# =============================================================================

def upgrade(doc: dict) -> dict:
    """
    Hash the value of a public email provisional identity, in place.

    Private identities, already hashed identities and other targets come back
    unchanged, which makes the transform idempotent.
    """
    if "target" not in doc:
        raise InvalidIdentityError("invalid provisional identity (missing target field)", field="target")

    is_private = "private_encryption_key" in doc
    if doc["target"] == Target.EMAIL.value and not is_private:
        value = doc.get("value")
        if value is None:
            raise InvalidIdentityError("unsupported identity without value", field="value")
        if not isinstance(value, str):
            raise InvalidIdentityError("invalid identity (value must be a string)", field="value")
        # Assigning existing keys keeps their position in the map
        doc["target"] = Target.HASHED_EMAIL.value
        doc["value"] = hash_provisional_email(value)
        logger.debug("upgraded public email provisional identity")
    return doc


# =============================================================================
# Caller operations
# =============================================================================

ConfigLike = Union[TenantConfig, RawTenantConfig]


def _raw(config: ConfigLike) -> RawTenantConfig:
    if isinstance(config, RawTenantConfig):
        return config
    return config.decode()


def create_identity(config: ConfigLike, user_id: str) -> str:
    """Envelope of a new private user identity."""
    return b64_json_encode(build_identity(_raw(config), user_id))


def create_provisional_identity(
    config: ConfigLike,
    target: TargetLike,
    value: str,
    *,
    allowed_targets: Iterable[str] = PROVISIONAL_TARGETS,
) -> str:
    """Envelope of a new private provisional identity."""
    raw = _raw(config)
    return b64_json_encode(build_provisional_identity(raw, target, value, allowed_targets=allowed_targets))


def get_public_identity(envelope: str) -> str:
    """Envelope of the public identity that is safe to hand to third parties."""
    return b64_json_encode(derive_public(envelope))


def upgrade_identity(envelope: str) -> str:
    """Envelope with a public email provisional identity's value hashed."""
    return b64_json_encode(upgrade(b64_json_decode(envelope)))


# Names used by earlier releases
new_identity = create_identity
new_provisional_identity = create_provisional_identity
get_public = get_public_identity
