import hashlib

import pytest

from cryptography.hazmat.primitives.asymmetric import ed25519

import sys, os
target_path = os.path.abspath(os.path.join(os.path.dirname(os.path.abspath(__file__)), "../.."))
if target_path not in sys.path:
    sys.path.insert(0, target_path)

from trust_identity.crypto_utils import (
    b64_decode,
    b64_encode,
    encryption_public_key,
    generate_encryption_keypair,
    generate_signature_keypair,
    generichash,
    sign,
    signature_public_key,
    verify,
)
from trust_identity.crypto_utils import keys
from trust_identity.errors import KeygenError


def test_signature_keypair_sizes_and_layout():
    pub, priv = generate_signature_keypair()
    assert len(pub) == 32
    assert len(priv) == 64
    # seed || public
    assert priv[32:] == pub
    assert signature_public_key(priv) == pub


def test_encryption_keypair_sizes_and_public_derivation():
    pub, priv = generate_encryption_keypair()
    assert len(pub) == 32 and len(priv) == 32
    assert pub != bytes(32)
    assert encryption_public_key(priv) == pub


def test_keypairs_differ_each_time():
    pub1, priv1 = generate_signature_keypair()
    pub2, priv2 = generate_signature_keypair()
    assert pub1 != pub2 and priv1 != priv2

    epub1, epriv1 = generate_encryption_keypair()
    epub2, epriv2 = generate_encryption_keypair()
    assert epub1 != epub2 and epriv1 != epriv2


def test_sign_and_verify():
    pub, priv = generate_signature_keypair()
    sig = sign(priv, b"payload")
    assert len(sig) == 64
    # Ed25519 is deterministic
    assert sign(priv, b"payload") == sig
    assert verify(pub, b"payload", sig)
    assert not verify(pub, b"payloaD", sig)

    other_pub, _ = generate_signature_keypair()
    assert not verify(other_pub, b"payload", sig)


def test_signature_matches_cryptography_seed_key():
    pub, priv = generate_signature_keypair()
    ref = ed25519.Ed25519PrivateKey.from_private_bytes(priv[:32])
    assert sign(priv, b"abc") == ref.sign(b"abc")


def test_sign_rejects_wrong_key_length():
    with pytest.raises(ValueError):
        sign(b"\x00" * 32, b"payload")


def test_keygen_failure_is_reported(monkeypatch):
    def boom():
        raise OSError("no entropy")

    monkeypatch.setattr(keys.ed25519.Ed25519PrivateKey, "generate", boom)
    with pytest.raises(KeygenError):
        generate_signature_keypair()


def test_generichash_is_blake2b():
    assert generichash(b"a", b"bc") == hashlib.blake2b(b"abc", digest_size=32).digest()
    assert generichash(b"abc", size=16) == hashlib.blake2b(b"abc", digest_size=16).digest()
    assert len(generichash(b"")) == 32


def test_generichash_rejects_out_of_range_size():
    with pytest.raises(ValueError):
        generichash(b"abc", size=8)
    with pytest.raises(ValueError):
        generichash(b"abc", size=65)


def test_b64_helpers_use_standard_padded_alphabet():
    data = bytes(range(250, 256))
    s = b64_encode(data)
    assert s == "+vv8/f7/"
    assert b64_decode(s) == data
    with pytest.raises(ValueError):
        b64_decode("not base64!")


def test_sign_rejects_seed_not_matching_public_half():
    _, priv = generate_signature_keypair()
    _, other_priv = generate_signature_keypair()
    with pytest.raises(ValueError):
        sign(other_priv[:32] + priv[32:], b"payload")
