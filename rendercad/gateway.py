from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping
from urllib.parse import urlencode

from .errors import ERRORS_BY_STATUS, BadRequestError, RenderCADError, UnauthorizedError

logger = logging.getLogger("rendercad.gateway")

RENDER_PATH = "/backend/render.php"
AUTH_PATH = "/backend/auth.php"

JSON_CONTENT_TYPE = "application/json"
ACCEPT_ALL = "*/*"


@dataclass(frozen=True)
class ApiRequest:
    method: str
    url: str
    headers: Dict[str, str]
    content: bytes | None = None


def build_url(base_url: str, path: str, params: Mapping[str, Any] | None = None) -> str:
    query = urlencode(list((params or {}).items()))
    if not query:
        return f"{base_url}{path}"
    return f"{base_url}{path}?{query}"


def build_headers(token: str | None, user_agent: str, *, has_body: bool) -> Dict[str, str]:
    headers = {
        "Content-Type": JSON_CONTENT_TYPE,
        "Accept": ACCEPT_ALL,
        "User-Agent": user_agent,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    # Some servers reject a content type on bodyless requests.
    if not has_body:
        del headers["Content-Type"]
    return headers


def prepare_request(
    method: str,
    base_url: str,
    path: str,
    params: Mapping[str, Any] | None = None,
    *,
    token: str | None,
    user_agent: str,
    body: Any = None,
) -> ApiRequest:
    method = method.upper()
    content = json.dumps(body).encode("utf-8") if body is not None else None
    has_body = method != "GET" and bool(content)
    return ApiRequest(
        method=method,
        url=build_url(base_url, path, params),
        headers=build_headers(token, user_agent, has_body=has_body),
        content=content if has_body else None,
    )


def transport_error(exc: BaseException) -> RenderCADError:
    reason = str(exc) or type(exc).__name__
    return RenderCADError(f"Request failed: {reason}")


def parse_body(content: bytes | str | None) -> Any:
    if not content or not content.strip():
        return {}
    try:
        return json.loads(content)
    except ValueError as exc:
        raise transport_error(exc) from exc


def _message_from(payload: Any, fallback: str | None) -> str | None:
    if isinstance(payload, dict):
        for key in ("message", "error"):
            value = payload.get(key)
            if value:
                return str(value)
    return fallback


def classify_response(status_code: int, payload: Any) -> Any:
    """Return ``payload`` for a successful call or raise the matching error.

    A body reporting ``success: false`` wins over the HTTP status, so a 200
    carrying an invalid-token flag still raises ``UnauthorizedError``.
    """
    if isinstance(payload, dict) and payload.get("success") is False:
        if payload.get("token_valid") is False or payload.get("authenticated") is False:
            raise UnauthorizedError(_message_from(payload, None), response=payload)
        raise BadRequestError(_message_from(payload, "Request failed"), response=payload)

    if not 200 <= status_code < 300:
        error_cls = ERRORS_BY_STATUS.get(status_code)
        if error_cls is not None:
            raise error_cls(_message_from(payload, None), response=payload)
        raise RenderCADError(
            _message_from(payload, f"HTTP {status_code}"),
            status_code=status_code,
            response=payload,
        )

    return payload


def interpret_response(status_code: int, content: bytes | str | None) -> Any:
    try:
        return classify_response(status_code, parse_body(content))
    except RenderCADError as exc:
        logger.warning("API call rejected: %s (status=%s, code=%s)", exc.message, exc.status_code, exc.code)
        raise
