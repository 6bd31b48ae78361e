"""Translate adapter errors into the cart error taxonomy."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from easycart.adapters.api_errors import (
    ApiClientError,
    ApiError,
    ApiServerError,
    ApiTimeoutError,
    extract_error_code,
    first_string,
)
from easycart.domain.errors import (
    EMPTY_CART_CODE,
    EMPTY_CART_MESSAGE,
    CartError,
    EmptyCartError,
    PricingError,
    PricingTimeoutError,
)


def is_empty_cart_reply(payload: Any) -> bool:
    """Return True for the engine's deliberate "nothing to price" reply.

    The engine signals it either with the exact message text or, where it
    supports one, the explicit ``CART_EMPTY`` code. Near-miss messages do not
    count.
    """
    if not isinstance(payload, Mapping):
        return False
    if extract_error_code(payload) == EMPTY_CART_CODE:
        return True
    message = payload.get("message")
    return isinstance(message, str) and message.strip() == EMPTY_CART_MESSAGE


def map_pricing_error(
    exc: Exception,
    *,
    default_message: Optional[str] = None,
) -> CartError:
    """Map adapter exceptions to EmptyCartError or a PricingError subtype.

    Args:
        exc: Exception raised by a pricing adapter.
        default_message: Message used when the exception carries none.

    Returns:
        CartError: ``EmptyCartError`` for the empty-cart reply, otherwise a
        ``PricingError`` (``PricingTimeoutError`` for transport timeouts).
    """
    if isinstance(exc, CartError):
        return exc
    if isinstance(exc, ApiTimeoutError):
        return PricingTimeoutError("Request timed out. Check connection.")
    if isinstance(exc, ApiClientError):
        payload = getattr(exc, "payload", None)
        if is_empty_cart_reply(payload):
            return EmptyCartError(EMPTY_CART_MESSAGE)
        status = exc.status or 0
        if status in (401, 403):
            return PricingError("Session expired. Please sign in again.", code="AUTH_FAILED")
        detail = first_string(payload)
        if detail:
            return PricingError(detail, code="REQUEST_FAILED")
        label = f"Request failed (HTTP {status})." if status else "Request failed."
        return PricingError(label, code="REQUEST_FAILED")
    if isinstance(exc, ApiServerError):
        return PricingError("Pricing service error, try again.", code="SERVER_ERROR")
    if isinstance(exc, ApiError):
        return PricingError(str(exc), code="API_ERROR")

    message = default_message or str(exc) or "Unexpected error."
    return PricingError(message)


__all__ = ["is_empty_cart_reply", "map_pricing_error"]
