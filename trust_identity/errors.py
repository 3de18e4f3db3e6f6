"""
Error kinds raised while building or transforming identities.

Every error is terminal for the call that raised it: no partial token is ever
returned. All kinds derive from ValueError so callers that only guard against
bad input keep working.
"""

from __future__ import annotations

from typing import Any, Optional


class IdentityError(ValueError):
    """Base class for every identity error."""

    def __init__(self, message: str, *, field: Optional[str] = None, details: Optional[dict] = None):
        self.message = message
        self.field = field
        self.details = dict(details or {})
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"error": self.__class__.__name__, "message": self.message}
        if self.field is not None:
            out["field"] = self.field
        if self.details:
            out["details"] = self.details
        return out


class DecodeError(IdentityError):
    """Malformed base64 or JSON at any boundary."""


class SizeError(IdentityError):
    """A tenant credential decoded to the wrong number of bytes."""

    def __init__(self, field: str, *, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"wrong size for {field}: {actual}, should be {expected}",
            field=field,
            details={"expected": expected, "actual": actual},
        )


class MismatchError(IdentityError):
    """The app secret does not correspond to the stated app ID."""


class UnsupportedTargetError(IdentityError):
    """The identity target is not accepted by the requested operation."""

    def __init__(self, target: Any, message: Optional[str] = None):
        self.target = target
        super().__init__(
            message or f"unsupported identity target: {target!r}",
            field="target",
            details={"target": target},
        )


class InvalidIdentityError(IdentityError):
    """A well-formed envelope lacks a field the requested transform needs."""


class KeygenError(IdentityError):
    """The randomness source or key generation primitive failed."""
