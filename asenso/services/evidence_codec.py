# -*- coding: utf-8 -*-
"""
Evidence travels as self-describing data URIs:

    data:<media-type>;base64,<payload>

`decode` is the left inverse of `encode`. Nothing here looks at the content
itself; size and media-type admission happens before encoding.
"""
from __future__ import annotations
import base64
import binascii
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, NamedTuple, Tuple

from asenso.errors import ValidationError

_PREFIX = "data:"
_MARKER = ";base64,"


class DecodedEvidence(NamedTuple):
    media_type: str
    data: bytes


def encode(raw: bytes, media_type: str) -> str:
    payload = base64.b64encode(raw).decode("ascii")
    return f"{_PREFIX}{media_type};base64,{payload}"

def _split(uri: str) -> Tuple[str, str]:
    if not isinstance(uri, str) or not uri.startswith(_PREFIX) or _MARKER not in uri:
        raise ValidationError("Evidence must be a base64 data URI (data:<mimetype>;base64,<data>)")
    header, payload = uri[len(_PREFIX):].split(_MARKER, 1)
    if not header:
        raise ValidationError("Evidence data URI is missing its media type")
    return header, payload

def media_type(uri: str) -> str:
    return _split(uri)[0]

def decode(uri: str) -> DecodedEvidence:
    header, payload = _split(uri)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Evidence payload is not valid base64: {e}") from e
    return DecodedEvidence(header, data)

def encode_many(items: Iterable[Tuple[bytes, str]], max_workers: int = 4) -> List[str]:
    """Encode (raw, media_type) pairs concurrently; results keep input order."""
    items = list(items)
    if len(items) <= 1:
        return [encode(raw, mt) for raw, mt in items]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(lambda it: encode(*it), items))
