"""Derived cart figures for the views.

Call context:
    ``CartVM`` and the NiceGUI page call these helpers on every render. They
    read a ``CartSnapshot`` (or ``None``) and never touch the network or the
    store, so nothing derived here is ever stored next to the snapshot.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..domain.entities import ZERO, CartSelection, CartSnapshot, ItemCounts, PaymentMode

CURRENCY_SYMBOL = "₹"


def item_counts(snapshot: Optional[CartSnapshot]) -> ItemCounts:
    if snapshot is None:
        return ItemCounts()
    return ItemCounts.from_grouped(snapshot.grouped_items)


def has_items(snapshot: Optional[CartSnapshot]) -> bool:
    return item_counts(snapshot).total > 0


def items_subtotal(snapshot: Optional[CartSnapshot]) -> Decimal:
    if snapshot is None:
        return ZERO
    return snapshot.grouped_items.subtotal


def format_currency(amount: Decimal | int | float | str | None, symbol: str = CURRENCY_SYMBOL) -> str:
    """Format an amount with Indian digit grouping, e.g. ``₹1,23,456.5``."""
    try:
        value = Decimal(str(amount if amount is not None else 0))
    except ArithmeticError:
        value = ZERO
    if not value.is_finite():
        value = ZERO
    value = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, _, frac = f"{abs(value):f}".partition(".")
    frac = frac.rstrip("0")

    head, tail = whole[:-3], whole[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    grouped = ",".join(groups + [tail])
    return f"{sign}{symbol}{grouped}" + (f".{frac}" if frac else "")


def convenience_fee(snapshot: Optional[CartSnapshot]) -> Decimal:
    """Convenience fee alone, without the tax and subscription fee folded into the charges."""
    if snapshot is None:
        return ZERO
    return snapshot.convenience_charge - snapshot.tax_amount - snapshot.subscription_fee


def formatted_total(snapshot: Optional[CartSnapshot], symbol: str = CURRENCY_SYMBOL) -> str:
    return format_currency(snapshot.total_price if snapshot else ZERO, symbol)


def _percent(part: Decimal, whole: Decimal) -> int:
    if whole <= ZERO or part <= ZERO:
        return 0
    ratio = (part / whole * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(min(ratio, Decimal(100)))


def discount_percentage(snapshot: Optional[CartSnapshot]) -> int:
    """Savings as a whole percentage of the items subtotal."""
    if snapshot is None:
        return 0
    return _percent(snapshot.savings_amount, snapshot.grouped_items.subtotal)


def plan_discount_percentage(price: Decimal, discount_price: Optional[Decimal]) -> int:
    """Badge value for a VIP plan card: how much cheaper the discounted price is."""
    if discount_price is None or discount_price >= price:
        return 0
    return _percent(price - discount_price, price)


def vip_savings(snapshot: Optional[CartSnapshot]) -> Decimal:
    if snapshot is None or snapshot.vip_full_amount <= ZERO:
        return ZERO
    return max(ZERO, snapshot.item_full_amount - snapshot.vip_full_amount)


def payable_after_wallet(snapshot: Optional[CartSnapshot]) -> Decimal:
    if snapshot is None:
        return ZERO
    return max(ZERO, snapshot.total_price - snapshot.wallet_deduction)


def coupons_applicable(selection: CartSelection, snapshot: Optional[CartSnapshot]) -> bool:
    """Coupons are offered only for plain full-amount carts without packages."""
    return (
        not selection.wallet_enabled
        and selection.payment_mode is PaymentMode.FULL_AMOUNT
        and selection.vip_plan_id is None
        and item_counts(snapshot).packages == 0
    )


__all__ = [
    "CURRENCY_SYMBOL",
    "convenience_fee",
    "coupons_applicable",
    "discount_percentage",
    "format_currency",
    "formatted_total",
    "has_items",
    "item_counts",
    "items_subtotal",
    "payable_after_wallet",
    "plan_discount_percentage",
    "vip_savings",
]
