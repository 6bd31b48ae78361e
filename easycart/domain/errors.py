"""Domain-level error types for cart pricing.

Adapters raise transport errors (``easycart.adapters.api_errors``); the
pricing gateway maps them into the types below so the store and the views
never see transport details.
"""

from __future__ import annotations

# Exact business reply of the pricing engine for a cart with nothing to price.
EMPTY_CART_MESSAGE = "No items found in the cart."
EMPTY_CART_CODE = "CART_EMPTY"


class CartError(Exception):
    """Base class for cart errors (user-presentable)."""

    default_code = "CART_ERROR"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code or self.default_code
        self.message = message


class ValidationError(CartError):
    """Local input rejected before any network call."""

    default_code = "INVALID_INPUT"


class EmptyCartError(CartError):
    """Pricing engine reported that there is nothing to price.

    Deliberately not a ``PricingError``: callers route it to the EMPTY status.
    """

    default_code = EMPTY_CART_CODE


class PricingError(CartError):
    """Remote pricing failure or malformed pricing response."""

    default_code = "PRICING_FAILED"


class PricingTimeoutError(PricingError):
    default_code = "REQUEST_TIMEOUT"


__all__ = [
    "EMPTY_CART_CODE",
    "EMPTY_CART_MESSAGE",
    "CartError",
    "EmptyCartError",
    "PricingError",
    "PricingTimeoutError",
    "ValidationError",
]
