"""
Request document codec (``workrequest_kernel.documents``).

Responsibility
--------------
Lossless conversion between ``WorkRequest`` aggregates and JSON-compatible
documents.  The codec is driven by the dataclass type hints, so every field
of every variant (including the nested dispute records) round-trips without
a per-variant mapping.

Invariants enforced
-------------------
* ``request_from_document(request_to_document(r)) == r`` for every
  variant.  Decimals are stored as strings, datetimes as ISO-8601 and
  enums by value, so nothing is lost to float or naive-time conversion.
* The payload type is chosen from the stored ``request_type`` tag, never
  guessed from the payload's keys.

Failure modes
-------------
* ``UnsupportedDocumentVersionError`` on an unknown ``schema_version``.
* ``InternalConsistencyError`` when ``request_type`` names no known variant.
"""

from __future__ import annotations

import types
from dataclasses import fields, is_dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from functools import cache
from typing import Any, Union, get_args, get_origin, get_type_hints
from uuid import UUID

from workrequest_kernel.domain.payloads import PAYLOAD_BY_REQUEST_TYPE, RequestType
from workrequest_kernel.domain.work_request import WorkRequest
from workrequest_kernel.exceptions import InternalConsistencyError, WorkRequestError
from workrequest_kernel.utils.hashing import hash_payload

DOCUMENT_SCHEMA_VERSION = 1


class UnsupportedDocumentVersionError(WorkRequestError):
    """Stored document was written by an incompatible codec version."""

    code: str = "UNSUPPORTED_DOCUMENT_VERSION"

    def __init__(self, schema_version: Any):
        self.schema_version = schema_version
        super().__init__(
            f"Unsupported request document version {schema_version}; "
            f"expected {DOCUMENT_SCHEMA_VERSION}"
        )


# =========================================================================
# Encoding
# =========================================================================


def to_document(value: Any) -> Any:
    """Convert a domain value to JSON-compatible primitives."""
    if value is None:
        return None
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_document(getattr(value, f.name)) for f in fields(value)}
    # Enum before str: request enums are str subclasses
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (tuple, list)):
        return [to_document(v) for v in value]
    return value


def request_to_document(request: WorkRequest) -> dict[str, Any]:
    """Encode a request; the variant tag is stored beside the payload."""
    doc = to_document(request)
    doc["request_type"] = request.request_type.value
    doc["schema_version"] = DOCUMENT_SCHEMA_VERSION
    return doc


def document_hash(doc: dict[str, Any]) -> str:
    """Fingerprint of a stored document."""
    return hash_payload(doc)


# =========================================================================
# Decoding
# =========================================================================


@cache
def _hints(cls: type) -> dict[str, Any]:
    return get_type_hints(cls)


def from_document(tp: Any, value: Any) -> Any:
    """Rebuild a value of type ``tp`` from its document form."""
    if value is None:
        return None

    origin = get_origin(tp)
    if origin in (Union, types.UnionType):
        options = [a for a in get_args(tp) if a is not type(None)]
        if len(options) != 1:
            raise TypeError(f"Cannot decode ambiguous union {tp}")
        return from_document(options[0], value)
    if origin is tuple:
        item_type = get_args(tp)[0]
        return tuple(from_document(item_type, v) for v in value)
    if isinstance(tp, type):
        if is_dataclass(tp):
            hints = _hints(tp)
            kwargs = {
                f.name: from_document(hints[f.name], value[f.name])
                for f in fields(tp)
                if f.name in value
            }
            return tp(**kwargs)
        if issubclass(tp, Enum):
            return tp(value)
        if tp is Decimal:
            return Decimal(value)
        if tp is datetime:
            return datetime.fromisoformat(value)
        if tp is UUID:
            return UUID(value)
        if tp is float:
            return float(value)
    return value


def request_from_document(doc: dict[str, Any]) -> WorkRequest:
    """Decode a stored request document."""
    version = doc.get("schema_version")
    if version != DOCUMENT_SCHEMA_VERSION:
        raise UnsupportedDocumentVersionError(version)

    try:
        request_type = RequestType(doc["request_type"])
    except (KeyError, ValueError) as exc:
        raise InternalConsistencyError(
            doc.get("request_id"), f"unknown request_type {doc.get('request_type')!r}"
        ) from exc
    payload_cls = PAYLOAD_BY_REQUEST_TYPE[request_type]

    hints = _hints(WorkRequest)
    kwargs: dict[str, Any] = {}
    for f in fields(WorkRequest):
        if f.name not in doc:
            continue
        if f.name == "payload":
            kwargs["payload"] = from_document(payload_cls, doc["payload"])
        else:
            kwargs[f.name] = from_document(hints[f.name], doc[f.name])
    return WorkRequest(**kwargs)
