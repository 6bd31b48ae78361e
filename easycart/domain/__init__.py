"""Domain package exports for value objects and normalization."""

from .cart_normalizer import normalize_cart
from .entities import (
    AppliedCoupon,
    CartLine,
    CartSelection,
    CartSnapshot,
    CartState,
    CartStatus,
    GroupedItems,
    ItemCounts,
    PaymentMode,
    VipPlan,
)
from .errors import (
    CartError,
    EmptyCartError,
    PricingError,
    PricingTimeoutError,
    ValidationError,
)

__all__ = [
    "AppliedCoupon",
    "CartError",
    "CartLine",
    "CartSelection",
    "CartSnapshot",
    "CartState",
    "CartStatus",
    "EmptyCartError",
    "GroupedItems",
    "ItemCounts",
    "PaymentMode",
    "PricingError",
    "PricingTimeoutError",
    "ValidationError",
    "VipPlan",
    "normalize_cart",
]
