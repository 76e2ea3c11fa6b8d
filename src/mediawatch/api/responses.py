"""
HTTP caching headers for read endpoints.

Read routes return a :class:`CachedResult` from the content service; this
module turns it into a JSON response carrying:

- ``X-Cache``: ``HIT`` / ``MISS`` / ``BYPASS``
- ``Cache-Control``: ``public, max-age=<ttl>``
- ``ETag``: hash of the canonical JSON payload

A request whose ``If-None-Match`` matches the ETag gets an empty 304.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from mediawatch.content.service import CachedResult


def compute_etag(payload: Any) -> str:
    """Strong ETag over the canonical JSON form of ``payload``."""
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return '"' + hashlib.sha1(canonical.encode("utf-8")).hexdigest()[:32] + '"'


def _etag_matches(header: str | None, etag: str) -> bool:
    if not header:
        return False
    if header.strip() == "*":
        return True
    candidates = {tag.strip().removeprefix("W/") for tag in header.split(",")}
    return etag in candidates


def cached_response(request: Request, result: CachedResult) -> Response:
    etag = compute_etag(result.payload)
    headers = {
        "X-Cache": result.cache_status.value,
        "Cache-Control": f"public, max-age={int(result.ttl)}",
        "ETag": etag,
    }
    if _etag_matches(request.headers.get("If-None-Match"), etag):
        return Response(status_code=304, headers=headers)
    return JSONResponse(content=result.payload, headers=headers)
