import base64
import hashlib

import pytest

import sys, os
target_path = os.path.abspath(os.path.join(os.path.dirname(os.path.abspath(__file__)), "../.."))
if target_path not in sys.path:
    sys.path.insert(0, target_path)

from trust_identity.envelope import b64_json_decode, b64_json_encode
from trust_identity.identity import (
    DecodeError,
    InvalidIdentityError,
    create_identity,
    create_provisional_identity,
    get_public_identity,
    upgrade_identity,
)


def _hashed_email(email: str) -> str:
    return base64.b64encode(hashlib.blake2b(email.encode("utf-8"), digest_size=32).digest()).decode("utf-8")


def _old_public_email_identity(tenant) -> dict:
    # Public provisional identities issued before emails were hashed
    doc = b64_json_decode(create_provisional_identity(tenant, "email", "a@b.com"))
    del doc["private_signature_key"]
    del doc["private_encryption_key"]
    return doc


def test_upgrade_hashes_public_email_identity(tenant):
    old = _old_public_email_identity(tenant)
    upgraded = b64_json_decode(upgrade_identity(b64_json_encode(old)))
    assert upgraded["target"] == "hashed_email"
    assert upgraded["value"] == _hashed_email("a@b.com")
    assert upgraded["public_signature_key"] == old["public_signature_key"]
    assert list(upgraded) == list(old)


def test_upgrade_matches_public_derivation(tenant):
    private = create_provisional_identity(tenant, "email", "a@b.com")
    doc = b64_json_decode(private)
    del doc["private_signature_key"]
    del doc["private_encryption_key"]
    assert upgrade_identity(b64_json_encode(doc)) == get_public_identity(private)


def test_upgrade_preserves_unknown_fields_in_place(tenant):
    old = _old_public_email_identity(tenant)
    env = b64_json_encode({"version": 3, **old, "extra": {"nested": [1, "two"]}})
    upgraded = b64_json_decode(upgrade_identity(env))
    assert list(upgraded)[0] == "version"
    assert list(upgraded)[-1] == "extra"
    assert upgraded["extra"] == {"nested": [1, "two"]}
    assert upgraded["version"] == 3


def test_upgrade_is_idempotent(tenant):
    env = b64_json_encode(_old_public_email_identity(tenant))
    once = upgrade_identity(env)
    assert upgrade_identity(once) == once


def test_upgrade_leaves_private_provisional_identity_untouched(tenant):
    private = create_provisional_identity(tenant, "email", "a@b.com")
    upgraded = b64_json_decode(upgrade_identity(private))
    assert upgraded == b64_json_decode(private)
    assert upgraded["target"] == "email"
    assert upgraded["value"] == "a@b.com"


@pytest.mark.parametrize("maker", ["user", "phone_number"])
def test_upgrade_passes_other_shapes_through(tenant, maker):
    if maker == "user":
        env = create_identity(tenant, "alice")
    else:
        env = create_provisional_identity(tenant, "phone_number", "+33611223344")
    assert b64_json_decode(upgrade_identity(env)) == b64_json_decode(env)

    public = get_public_identity(env)
    assert upgrade_identity(public) == public


def test_upgrade_requires_target():
    with pytest.raises(InvalidIdentityError) as ei:
        upgrade_identity(b64_json_encode({"value": "a@b.com"}))
    assert ei.value.field == "target"


def test_upgrade_requires_value_for_email():
    with pytest.raises(InvalidIdentityError) as ei:
        upgrade_identity(b64_json_encode({"target": "email"}))
    assert ei.value.field == "value"


@pytest.mark.parametrize(
    "text",
    [
        '{"target":"user","x":NaN}',
        '{"target":"user","x":"\\ud800"}',
        '{"target":"email","value":"\\ud800@x"}',
    ],
)
def test_upgrade_rejects_envelopes_that_cannot_round_trip(text):
    env = base64.b64encode(text.encode("utf-8")).decode("utf-8")
    with pytest.raises(DecodeError):
        upgrade_identity(env)
