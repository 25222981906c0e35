from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl

from fastapi import Request
from starlette.requests import ClientDisconnect

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def parse_body(raw: bytes, content_type: str | None) -> dict[str, Any]:
    """
    Turn a raw request body into a flat mapping.

    - JSON bodies: the decoded object (anything that is not a JSON object,
      or does not parse, becomes {}).
    - URL-encoded forms: key -> value, last value wins for repeated keys.
    - Anything else: {}.
    """
    ctype = (content_type or "").lower()
    text = raw.decode("utf-8", errors="replace")

    if JSON_CONTENT_TYPE in ctype:
        try:
            data = json.loads(text or "{}")
        except (ValueError, RecursionError):
            # RecursionError: pathologically nested arrays/objects.
            return {}
        return data if isinstance(data, dict) else {}

    if FORM_CONTENT_TYPE in ctype:
        return dict(parse_qsl(text, keep_blank_values=True))

    return {}


async def read_body(request: Request) -> dict[str, Any]:
    """
    Normalise the inbound body regardless of how it was sent.

    A host that has already parsed the body can put the mapping on
    `request.state.parsed_body`; it is used as-is and the stream is not read.
    """
    pre_parsed = getattr(request.state, "parsed_body", None)
    if isinstance(pre_parsed, Mapping):
        return dict(pre_parsed)

    try:
        raw = await request.body()
    except ClientDisconnect:
        return {}

    return parse_body(raw, request.headers.get("content-type"))
