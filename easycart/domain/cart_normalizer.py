"""Normalize pricing-engine cart payloads into the domain CartSnapshot."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional, Sequence

from .entities import (
    ZERO,
    AppliedCoupon,
    CartLine,
    CartSelection,
    CartSnapshot,
    GroupedItems,
    PaymentMode,
)

# The engine mixes camelCase, snake_case and its own spellings.
_GROUPED_KEYS = ("groupedCart", "grouped_cart", "groupedItems", "grouped_items")
_TOTAL_KEYS = ("totalPrice", "total_price")
_CONVENIENCE_KEYS = (
    "convinencecharge",
    "convenienceCharge",
    "convenience_charge",
    "convinence_charge",
)
_SAVINGS_KEYS = ("totalDiscount", "total_discount", "savingsAmount", "savings_amount")
_SUBTOTAL_KEYS = ("subtotal", "subTotal", "sub_total", "totalPrice", "total_price")
_CHILD_KEYS = ("services", "items", "cart_items", "cartItems")
_TAX_KEYS = ("totalTax", "total_tax")
_VIP_FEE_KEYS = ("vipPlanPrice", "vip_plan", "vip_price")
_COUPON_OBJECT_KEYS = ("coupon", "appliedCoupon", "applied_coupon")
_COUPON_CODE_KEYS = ("couponCode", "coupon_code")
_COUPON_VALUE_KEYS = ("couponValue", "coupon_value")


def _pick(raw: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None and raw[key] != "":
            return raw[key]
    return None


def _coerce_money(value: Any, *, name: str) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"{name}: expected a number, got {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"{name}: expected a number, got {value!r}") from None
    if not amount.is_finite():
        raise ValueError(f"{name}: expected a finite number, got {value!r}")
    return amount


def _lenient_money(value: Any) -> Decimal:
    """Coerce informational amounts; malformed or negative values read as zero."""
    try:
        amount = _coerce_money(value, name="amount")
    except ValueError:
        return ZERO
    return amount if amount > ZERO else ZERO


def _coerce_quantity(value: Any) -> int:
    if value is None:
        return 1
    try:
        quantity = int(float(str(value).strip()))
    except (TypeError, ValueError):
        return 1
    return max(quantity, 0)


def _normalize_identifier(value: Any) -> Optional[str]:
    if value is None:
        return None
    token = value.strip() if isinstance(value, str) else str(value).strip()
    return token or None


def _line_name(raw: Mapping[str, Any]) -> str:
    for key in ("name", "title", "package_name", "packageName", "category_name"):
        text = _normalize_identifier(raw.get(key))
        if text:
            return text
    ratecard = raw.get("ratecard") or raw.get("rateCard")
    if isinstance(ratecard, Mapping):
        for key in ("subcategory", "category"):
            nested = ratecard.get(key)
            if isinstance(nested, Mapping):
                text = _normalize_identifier(nested.get("name"))
                if text:
                    return text
    category = raw.get("category")
    if isinstance(category, Mapping):
        text = _normalize_identifier(category.get("name"))
        if text:
            return text
    return ""


def _line_unit_price(raw: Mapping[str, Any]) -> Any:
    price = raw.get("price")
    if price is not None:
        return price
    ratecard = raw.get("ratecard") or raw.get("rateCard")
    if isinstance(ratecard, Mapping):
        return ratecard.get("price")
    return None


def _normalize_line(raw: Any, *, index: int, kind: str) -> CartLine:
    if not isinstance(raw, Mapping):
        raise ValueError(f"{kind}[{index}]: expected an object")
    line_id = _normalize_identifier(
        raw.get("id") if raw.get("id") is not None else raw.get("_id")
    ) or f"{kind}-{index}"
    quantity = _coerce_quantity(raw.get("quantity", raw.get("qty")))

    explicit = _pick(raw, _SUBTOTAL_KEYS)
    if explicit is not None:
        subtotal = _coerce_money(explicit, name=f"{kind}[{index}].subtotal")
    else:
        children = _pick(raw, _CHILD_KEYS)
        if isinstance(children, list) and children:
            subtotal = sum(
                (
                    _normalize_line(child, index=pos, kind=f"{kind}[{index}]").subtotal
                    for pos, child in enumerate(children)
                ),
                ZERO,
            )
        else:
            unit = _coerce_money(_line_unit_price(raw), name=f"{kind}[{index}].price")
            subtotal = unit * quantity
    if subtotal < ZERO:
        raise ValueError(f"{kind}[{index}]: negative subtotal {subtotal}")
    return CartLine(id=line_id, name=_line_name(raw), subtotal=subtotal, quantity=quantity)


def _normalize_lines(raw: Any, *, kind: str) -> List[CartLine]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError(f"{kind}: expected a list")
    return [_normalize_line(item, index=idx, kind=kind) for idx, item in enumerate(raw)]


def normalize_grouped(raw: Any) -> GroupedItems:
    if raw is None:
        return GroupedItems()
    if not isinstance(raw, Mapping):
        raise ValueError("groupedCart: expected an object")
    return GroupedItems(
        categories=tuple(_normalize_lines(raw.get("categories"), kind="categories")),
        packages=tuple(_normalize_lines(raw.get("packages"), kind="packages")),
    )


def _normalize_coupon(
    data: Mapping[str, Any], selection: CartSelection
) -> Optional[AppliedCoupon]:
    # Only a coupon the engine acknowledged is reported, and only for the
    # selection that requested one.
    if not selection.coupon_code:
        return None
    coupon = _pick(data, _COUPON_OBJECT_KEYS)
    if isinstance(coupon, Mapping):
        source: Mapping[str, Any] = coupon
    elif _pick(data, _COUPON_CODE_KEYS + _COUPON_VALUE_KEYS) is not None:
        source = data
    else:
        return None
    code = _normalize_identifier(_pick(source, _COUPON_CODE_KEYS + ("code",)))
    value = _pick(source, _COUPON_VALUE_KEYS + ("discountValue", "discount_value"))
    is_free = _pick(source, ("isFree", "is_free"))
    return AppliedCoupon(
        code=(code or selection.coupon_code).upper(),
        discount_value=_lenient_money(value),
        is_free=bool(is_free) and str(is_free).strip().lower() not in ("0", "false", "no"),
    )


def normalize_cart(
    data: Mapping[str, Any] | None,
    selection: CartSelection,
    *,
    generation: int = 0,
) -> CartSnapshot:
    """
    Convert one pricing-engine ``data`` object into a CartSnapshot.

    Charges on top of the items (convenience fee, ``total_tax`` and, for a
    VIP selection with a plan, the ``vip_plan`` subscription fee) are folded
    into ``convenience_charge``. The engine's total is authoritative; savings
    are derived so that ``total = subtotal - savings + convenience`` holds. A
    total above subtotal plus all charges cannot be reconciled and is
    rejected.

    Raises:
        ValueError: When the payload is malformed or inconsistent.
    """
    if not isinstance(data, Mapping):
        raise ValueError("cart data: expected an object")

    grouped = normalize_grouped(_pick(data, _GROUPED_KEYS))
    subtotal = grouped.subtotal
    convenience = _coerce_money(_pick(data, _CONVENIENCE_KEYS), name="convenience_charge")
    if convenience < ZERO:
        raise ValueError(f"convenience_charge: negative value {convenience}")
    tax = _lenient_money(_pick(data, _TAX_KEYS))
    plan_price = _lenient_money(_pick(data, _VIP_FEE_KEYS))
    vip_priced = selection.payment_mode is PaymentMode.VIP and bool(selection.vip_plan_id)
    subscription_fee = plan_price if vip_priced else ZERO
    charges = convenience + tax + subscription_fee
    gross = subtotal + charges

    raw_total = _pick(data, _TOTAL_KEYS)
    if raw_total is not None:
        total = _coerce_money(raw_total, name="total_price")
        if total < ZERO:
            raise ValueError(f"total_price: negative value {total}")
        if total > gross:
            raise ValueError(
                f"total_price {total} exceeds subtotal {subtotal} plus charges {charges}"
            )
        savings = gross - total
    else:
        savings = min(_lenient_money(_pick(data, _SAVINGS_KEYS)), gross)
        total = gross - savings

    return CartSnapshot(
        grouped_items=grouped,
        total_price=total,
        savings_amount=savings,
        convenience_charge=charges,
        applied_coupon=_normalize_coupon(data, selection),
        generation=generation,
        wallet_balance=_lenient_money(
            _pick(data, ("userWalletAmount", "user_wallet_amount", "walletBalance"))
        ),
        wallet_deduction=_lenient_money(
            _pick(data, ("walletDeduction", "wallet_deduction", "wallet_amount_used"))
        ),
        item_full_amount=_lenient_money(_pick(data, ("itemFullAmount", "item_full_amount"))),
        vip_full_amount=_lenient_money(_pick(data, ("vipFullAmount", "vip_full_amount"))),
        vip_plan_price=plan_price,
        tax_amount=tax,
        subscription_fee=subscription_fee,
    )


__all__ = ["normalize_cart", "normalize_grouped"]
