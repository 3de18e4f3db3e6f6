# =============================================================================
# Base64-of-JSON envelopes
# =============================================================================
"""
Wire form shared by every identity token.

    envelope = base64( utf8( json(object) ) )

Byte-valued fields are already base64 strings inside the JSON object, so a
key on the wire is base64 inside JSON inside base64. The codec only deals
with the outer two layers.

Decoded envelopes are plain dicts. json keeps the key order of the document
and keeps keys it knows nothing about, so a decode/encode pair round-trips
unknown fields verbatim and in place.

Only strict JSON is accepted: NaN and Infinity literals, lone surrogate
escapes and nesting deeper than the parser can handle are rejected at
decode time, so anything decoded can be written back out.

The encoder does not HTML-escape <, >, & or U+2028/U+2029 the way Go's
json.Marshal does. Envelopes holding such characters therefore differ
byte-wise from Go-issued ones while decoding to the same fields.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Mapping, Protocol, Union, runtime_checkable

from trust_identity.errors import DecodeError


@runtime_checkable
class Record(Protocol):
    # Anything that knows its own flattened wire mapping
    def to_dict(self) -> dict: ...


def _json_bytes(obj: Mapping[str, Any]) -> bytes:
    # Compact and in declaration order: field order is part of the format
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def b64_json_encode(obj: Union[Record, Mapping[str, Any]]) -> str:
    """
    Serialize a record or mapping into an envelope string.

    Records are flattened through their to_dict(); mappings are written as-is.
    """
    if isinstance(obj, Record):
        doc = obj.to_dict()
    elif isinstance(obj, Mapping):
        doc = dict(obj)
    else:
        raise TypeError(f"cannot encode {type(obj).__name__} as an envelope")
    return base64.b64encode(_json_bytes(doc)).decode("utf-8")


def b64_json_decode(envelope: str) -> dict[str, Any]:
    """
    Decode an envelope string into its ordered field map.

    Raises DecodeError when any layer (base64, utf-8, json, top-level object)
    is malformed.
    """
    if not isinstance(envelope, str):
        raise DecodeError("envelope must be a string", field="envelope")
    try:
        raw = base64.b64decode(envelope.encode("utf-8"), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"envelope is not valid base64: {exc}", field="envelope") from exc

    try:
        doc = json.loads(raw.decode("utf-8"), parse_constant=_reject_constant)
    except UnicodeDecodeError as exc:
        raise DecodeError("envelope payload is not valid utf-8", field="envelope") from exc
    except json.JSONDecodeError as exc:
        raise DecodeError(f"envelope payload is not valid JSON: {exc.msg}", field="envelope") from exc
    except RecursionError as exc:
        raise DecodeError("envelope payload is nested too deeply", field="envelope") from exc

    if not isinstance(doc, dict):
        raise DecodeError("envelope payload must be a JSON object", field="envelope")

    # Lone surrogates parse fine but cannot be written back as utf-8
    try:
        _json_bytes(doc)
    except UnicodeEncodeError as exc:
        raise DecodeError("envelope payload contains an invalid unicode escape", field="envelope") from exc
    return doc


def _reject_constant(name: str) -> Any:
    raise DecodeError(f"envelope payload is not valid JSON: {name} is not allowed", field="envelope")
