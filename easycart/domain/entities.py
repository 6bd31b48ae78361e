"""Domain value objects shared by the pricing gateway, the cart store and view models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

ZERO = Decimal("0")


class PaymentMode(str, Enum):
    """Payment type understood by the pricing engine."""

    FULL_AMOUNT = "fullamount"
    VIP = "vip"

    @classmethod
    def parse(cls, value: "PaymentMode | str") -> "PaymentMode":
        if isinstance(value, PaymentMode):
            return value
        token = str(value or "").strip().lower().replace("_", "")
        for member in cls:
            if token in (member.value, member.name.lower().replace("_", "")):
                return member
        raise ValueError(f"Unknown payment mode: {value!r}")


class CartStatus(str, Enum):
    """Lifecycle status of the cart store. Exactly one holds at a time."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    EMPTY = "empty"
    FAILURE = "failure"


def _non_negative(name: str, value: Decimal) -> None:
    if not isinstance(value, Decimal):
        raise TypeError(f"{name} must be a Decimal.")
    if value < ZERO:
        raise ValueError(f"{name} must be non-negative.")


@dataclass(frozen=True)
class CartSelection:
    """User-chosen pricing inputs sent to the pricing engine."""

    payment_mode: PaymentMode = PaymentMode.FULL_AMOUNT
    wallet_enabled: bool = False
    vip_plan_id: Optional[str] = None
    coupon_code: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.payment_mode, PaymentMode):
            raise TypeError("CartSelection.payment_mode must be a PaymentMode.")
        if self.vip_plan_id is not None and self.payment_mode is not PaymentMode.VIP:
            raise ValueError("vip_plan_id is only allowed in VIP payment mode.")

    # Each transition returns a new selection with dependent fields cleared.
    def with_payment_mode(self, mode: PaymentMode) -> "CartSelection":
        plan_id = self.vip_plan_id if mode is PaymentMode.VIP else None
        return replace(self, payment_mode=mode, vip_plan_id=plan_id, coupon_code=None)

    def with_wallet_toggled(self) -> "CartSelection":
        return replace(self, wallet_enabled=not self.wallet_enabled, coupon_code=None)

    def with_vip_plan(self, plan_id: Optional[str]) -> "CartSelection":
        if plan_id:
            return replace(
                self, payment_mode=PaymentMode.VIP, vip_plan_id=plan_id, coupon_code=None
            )
        return replace(
            self, payment_mode=PaymentMode.FULL_AMOUNT, vip_plan_id=None, coupon_code=None
        )

    def with_coupon(self, code: Optional[str]) -> "CartSelection":
        return replace(self, coupon_code=code or None)


@dataclass(frozen=True)
class CartLine:
    """One priced entry of the grouped cart (a service category or a package)."""

    id: str
    name: str
    subtotal: Decimal
    quantity: int = 1

    def __post_init__(self) -> None:
        _non_negative("CartLine.subtotal", self.subtotal)
        if self.quantity < 0:
            raise ValueError("CartLine.quantity must be non-negative.")


@dataclass(frozen=True)
class GroupedItems:
    """Ordered cart contents as grouped by the pricing engine."""

    categories: Tuple[CartLine, ...] = ()
    packages: Tuple[CartLine, ...] = ()

    @property
    def subtotal(self) -> Decimal:
        return sum((line.subtotal for line in self.lines()), ZERO)

    def lines(self) -> Tuple[CartLine, ...]:
        return self.categories + self.packages

    def is_empty(self) -> bool:
        return not self.categories and not self.packages


@dataclass(frozen=True)
class ItemCounts:
    services: int = 0
    packages: int = 0

    @property
    def total(self) -> int:
        return self.services + self.packages

    @classmethod
    def from_grouped(cls, grouped: GroupedItems) -> "ItemCounts":
        return cls(services=len(grouped.categories), packages=len(grouped.packages))


@dataclass(frozen=True)
class AppliedCoupon:
    """Coupon accepted by the pricing engine for the current selection."""

    code: str
    discount_value: Decimal = ZERO
    is_free: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.code, str) or not self.code.strip():
            raise ValueError("AppliedCoupon.code must be a non-empty string.")
        _non_negative("AppliedCoupon.discount_value", self.discount_value)


@dataclass(frozen=True)
class CartSnapshot:
    """Priced cart accepted by the store.

    ``total_price`` always equals the sum of line subtotals minus
    ``savings_amount`` plus ``convenience_charge``. ``convenience_charge`` is
    every charge on top of the items: the convenience fee itself plus
    ``tax_amount`` and, for VIP pricing, ``subscription_fee``.
    """

    grouped_items: GroupedItems
    total_price: Decimal
    savings_amount: Decimal = ZERO
    convenience_charge: Decimal = ZERO
    applied_coupon: Optional[AppliedCoupon] = None
    generation: int = 0
    wallet_balance: Decimal = ZERO
    wallet_deduction: Decimal = ZERO
    item_full_amount: Decimal = ZERO
    vip_full_amount: Decimal = ZERO
    vip_plan_price: Decimal = ZERO
    tax_amount: Decimal = ZERO
    subscription_fee: Decimal = ZERO
    item_counts: ItemCounts = field(init=False)

    def __post_init__(self) -> None:
        for name in (
            "total_price",
            "savings_amount",
            "convenience_charge",
            "wallet_balance",
            "wallet_deduction",
            "item_full_amount",
            "vip_full_amount",
            "vip_plan_price",
            "tax_amount",
            "subscription_fee",
        ):
            _non_negative(f"CartSnapshot.{name}", getattr(self, name))
        if self.tax_amount + self.subscription_fee > self.convenience_charge:
            raise ValueError("CartSnapshot tax and subscription fee exceed convenience_charge.")
        expected = self.grouped_items.subtotal - self.savings_amount + self.convenience_charge
        if expected != self.total_price:
            raise ValueError(
                f"CartSnapshot total {self.total_price} does not match "
                f"subtotal - savings + convenience ({expected})."
            )
        if self.generation < 0:
            raise ValueError("CartSnapshot.generation must be non-negative.")
        object.__setattr__(self, "item_counts", ItemCounts.from_grouped(self.grouped_items))

    def with_generation(self, generation: int) -> "CartSnapshot":
        return replace(self, generation=generation)


@dataclass(frozen=True)
class VipPlan:
    """Purchasable VIP plan. The store refers to a plan only by ``id``."""

    id: str
    plan_name: str
    price: Decimal
    discount_price: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise ValueError("VipPlan.id must be a non-empty string.")


@dataclass(frozen=True)
class CartState:
    """Read-only view of the store handed to observers."""

    status: CartStatus
    selection: CartSelection
    snapshot: Optional[CartSnapshot]
    error_message: Optional[str]
    generation: int

    @property
    def applied_coupon(self) -> Optional[AppliedCoupon]:
        """Coupon to display; hidden once the selection no longer carries it."""
        if self.snapshot is None or self.snapshot.applied_coupon is None:
            return None
        if self.selection.coupon_code != self.snapshot.applied_coupon.code:
            return None
        return self.snapshot.applied_coupon

    @property
    def is_initial_load(self) -> bool:
        return self.status is CartStatus.LOADING and self.snapshot is None


__all__ = [
    "AppliedCoupon",
    "CartLine",
    "CartSelection",
    "CartSnapshot",
    "CartState",
    "CartStatus",
    "GroupedItems",
    "ItemCounts",
    "PaymentMode",
    "VipPlan",
    "ZERO",
]
