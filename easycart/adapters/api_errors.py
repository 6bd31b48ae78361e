"""Typed transport errors raised by the REST adapters.

Adapters raise these; ``easycart.usecases.error_mapping`` turns them into
cart errors. Nothing above the adapter layer inspects HTTP statuses directly.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Type

# Engine replies put the human-readable text under one of these keys.
_MESSAGE_KEYS = ("message", "detail", "error", "title")
_CODE_KEYS = ("code", "error_code", "errorCode")


class ApiError(RuntimeError):
    """Base class for pricing API failures.

    Attributes:
        status: HTTP status, when a response was received.
        code: Machine-readable code from the error body, if any.
        payload: Decoded error body (JSON value or a text snippet).
        context: Short label of the request, e.g. ``"cart"``.
    """

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.payload = payload
        self.context = context


class ApiClientError(ApiError):
    """HTTP 4xx from the pricing API."""


class ApiServerError(ApiError):
    """HTTP 5xx from the pricing API."""


class ApiTimeoutError(ApiError):
    """Timeout or connection failure before any response arrived."""


def parse_error_payload(resp: Any) -> Any:
    """Decode an error body without raising; falls back to a text snippet."""
    try:
        return resp.json()
    except ValueError:
        return (getattr(resp, "text", "") or "")[:400] or None


def _error_class(status: int) -> Type[ApiError]:
    if 400 <= status < 500:
        return ApiClientError
    if status >= 500:
        return ApiServerError
    return ApiError


def raise_for_status(resp: Any, ctx: str) -> None:
    """Raise the ``ApiError`` subtype matching a non-2xx response."""
    status = int(getattr(resp, "status_code", 0) or 0)
    if 200 <= status < 300:
        return
    payload = parse_error_payload(resp)
    raise _error_class(status)(
        build_error_message(ctx, status, payload),
        status=status,
        code=extract_error_code(payload),
        payload=payload,
        context=ctx,
    )


def build_error_message(ctx: str, status: int, payload: Any) -> str:
    detail = first_string(payload)
    suffix = f"HTTP {status}"
    return f"{ctx}: {detail} ({suffix})" if detail else f"{ctx}: {suffix}"


def extract_error_code(payload: Any) -> Optional[str]:
    if not isinstance(payload, Mapping):
        return None
    for key in _CODE_KEYS:
        value = payload.get(key)
        if value is not None:
            return value if isinstance(value, str) else str(value)
    return None


def first_string(payload: Any) -> Optional[str]:
    """Return the first non-blank message found in ``payload``, depth first."""
    if isinstance(payload, str):
        return payload.strip() or None
    if isinstance(payload, Mapping):
        candidates = [payload.get(key) for key in _MESSAGE_KEYS]
    elif isinstance(payload, list):
        candidates = list(payload)
    else:
        return None
    for value in candidates:
        if isinstance(value, (str, list, Mapping)):
            text = first_string(value)
            if text:
                return text
    return None


__all__ = [
    "ApiClientError",
    "ApiError",
    "ApiServerError",
    "ApiTimeoutError",
    "build_error_message",
    "extract_error_code",
    "first_string",
    "parse_error_payload",
    "raise_for_status",
]
