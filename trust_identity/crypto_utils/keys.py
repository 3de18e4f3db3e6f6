# =============================================================================
# Key primitives for identity tokens
# =============================================================================
"""
Raw-bytes wrappers around the two key schemes identity tokens carry.

1) Signature keys (Ed25519):
   - public key: 32 bytes
   - private key: 64 bytes, laid out as seed(32) || public(32)
   - signatures: 64 bytes, deterministic

2) Encryption keys (X25519):
   - public key: 32 bytes
   - private key: 32 bytes

Keys travel as plain bytes because tokens serialize them field by field.
The 64-byte private signature layout is the one libsodium and Go use, so
tokens produced here stay interchangeable with tokens produced elsewhere.
"""

from __future__ import annotations

import base64
from typing import Tuple, Union

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, x25519

from trust_identity.errors import KeygenError


# =============================================================================
# Constants
# =============================================================================

SIGNATURE_PUBLIC_KEY_SIZE = 32
SIGNATURE_PRIVATE_KEY_SIZE = 64
SIGNATURE_SIZE = 64
ENCRYPTION_PUBLIC_KEY_SIZE = 32
ENCRYPTION_PRIVATE_KEY_SIZE = 32

_SEED_SIZE = 32


# =============================================================================
# Encoding
# =============================================================================

def b64_encode(data: bytes) -> str:
    return base64.b64encode(data).decode("utf-8")


def b64_decode(data: str) -> bytes:
    # validate=True rejects characters outside the standard alphabet
    return base64.b64decode(data.encode("utf-8"), validate=True)


def _raw_public(key: Union[ed25519.Ed25519PublicKey, x25519.X25519PublicKey]) -> bytes:
    return key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def _raw_private(key: Union[ed25519.Ed25519PrivateKey, x25519.X25519PrivateKey]) -> bytes:
    return key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )


# =============================================================================
# Key generation
# =============================================================================

def generate_signature_keypair() -> Tuple[bytes, bytes]:
    """
    Generate a fresh Ed25519 key pair.

    Returns (public_key[32], private_key[64]). Raises KeygenError if the
    backend cannot produce a key.
    """
    try:
        priv = ed25519.Ed25519PrivateKey.generate()
    except (UnsupportedAlgorithm, OSError, ValueError) as exc:
        raise KeygenError(f"unable to generate signature key pair: {exc}") from exc
    pub = _raw_public(priv.public_key())
    return pub, _raw_private(priv) + pub


def generate_encryption_keypair() -> Tuple[bytes, bytes]:
    """
    Generate a fresh X25519 key pair.

    Returns (public_key[32], private_key[32]).
    """
    try:
        priv = x25519.X25519PrivateKey.generate()
    except (UnsupportedAlgorithm, OSError, ValueError) as exc:
        raise KeygenError(f"unable to generate encryption key pair: {exc}") from exc
    return _raw_public(priv.public_key()), _raw_private(priv)


def signature_public_key(private_key: bytes) -> bytes:
    """Public half of a 64-byte private signature key (its trailing 32 bytes)."""
    if len(private_key) != SIGNATURE_PRIVATE_KEY_SIZE:
        raise ValueError("invalid Ed25519 private key length")
    return bytes(private_key[_SEED_SIZE:])


def encryption_public_key(private_key: bytes) -> bytes:
    if len(private_key) != ENCRYPTION_PRIVATE_KEY_SIZE:
        raise ValueError("invalid X25519 private key length")
    return _raw_public(x25519.X25519PrivateKey.from_private_bytes(bytes(private_key)).public_key())


# =============================================================================
# Signatures
# =============================================================================

def sign(private_key: bytes, message: bytes) -> bytes:
    """Ed25519 signature of message with a 64-byte private key."""
    if len(private_key) != SIGNATURE_PRIVATE_KEY_SIZE:
        raise ValueError("invalid Ed25519 private key length")
    priv = ed25519.Ed25519PrivateKey.from_private_bytes(bytes(private_key[:_SEED_SIZE]))
    if _raw_public(priv.public_key()) != bytes(private_key[_SEED_SIZE:]):
        raise ValueError("Ed25519 private key seed does not match its public half")
    return priv.sign(message)


def verify(public_key: bytes, message: bytes, signature: bytes) -> bool:
    if len(public_key) != SIGNATURE_PUBLIC_KEY_SIZE:
        raise ValueError("invalid Ed25519 public key length")
    if len(signature) != SIGNATURE_SIZE:
        raise ValueError("invalid Ed25519 signature length")
    pub = ed25519.Ed25519PublicKey.from_public_bytes(bytes(public_key))
    try:
        pub.verify(signature, message)
    except InvalidSignature:
        return False
    return True
