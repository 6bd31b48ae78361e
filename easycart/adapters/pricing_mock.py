from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from easycart.domain.entities import CartSelection, PaymentMode, VipPlan
from easycart.domain.errors import EMPTY_CART_MESSAGE
from easycart.domain.ports import AddressId, PricingPort, VipPlanPort


def _default_categories() -> List[Dict[str, Any]]:
    return [
        {"id": "svc-1", "name": "Bathroom Cleaning", "price": "499", "quantity": 1},
        {"id": "svc-2", "name": "AC Service", "price": "350", "quantity": 2},
    ]


def _default_plans() -> List[VipPlan]:
    return [
        VipPlan(id="vip-3m", plan_name="VIP 3 Months", price=Decimal("299"), discount_price=Decimal("199")),
        VipPlan(id="vip-12m", plan_name="VIP 12 Months", price=Decimal("999"), discount_price=Decimal("599")),
    ]


@dataclass
class PricingMock(PricingPort, VipPlanPort):
    """Offline substitute for the pricing engine with deterministic responses."""

    categories: List[Dict[str, Any]] = field(default_factory=_default_categories)
    packages: List[Dict[str, Any]] = field(default_factory=list)
    convenience_charge: Decimal = Decimal("49")
    wallet_balance: Decimal = Decimal("150")
    vip_discount_pct: Dict[str, int] = field(
        default_factory=lambda: {"vip-3m": 10, "vip-12m": 20}
    )
    coupons: Dict[str, Decimal] = field(
        default_factory=lambda: {"SAVE50": Decimal("50"), "FIRST100": Decimal("100")}
    )
    plans: List[VipPlan] = field(default_factory=_default_plans)

    def __post_init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []

    # ---------- VipPlanPort ----------

    def list_plans(self) -> List[VipPlan]:
        return list(self.plans)

    # ---------- PricingPort ----------

    def fetch_cart(
        self,
        selection: CartSelection,
        *,
        address_id: Optional[AddressId] = None,
        timeout_s: Optional[float] = None,
    ) -> Dict[str, Any]:
        self.calls.append({"selection": selection, "address_id": address_id})
        if not self.categories and not self.packages:
            return {"success": False, "message": EMPTY_CART_MESSAGE}

        full = sum(
            (Decimal(str(item["price"])) * int(item.get("quantity", 1))
             for item in self.categories + self.packages),
            Decimal("0"),
        )
        savings = Decimal("0")
        plan_price = Decimal("0")
        if selection.payment_mode is PaymentMode.VIP and selection.vip_plan_id:
            pct = self.vip_discount_pct.get(selection.vip_plan_id)
            if pct is None:
                return {"success": False, "message": "Selected VIP plan is not available."}
            savings += (full * pct / 100).quantize(Decimal("1"))
            plan_price = self._plan_price(selection.vip_plan_id)

        coupon_data: Dict[str, Any] = {}
        if selection.coupon_code:
            value = self.coupons.get(selection.coupon_code.upper())
            if value is None:
                return {"success": False, "message": "Invalid coupon code."}
            value = min(value, full - savings)
            savings += value
            coupon_data = {"coupon_code": selection.coupon_code.upper(), "coupon_value": str(value), "is_free": False}

        # VIP totals include the subscription fee.
        total = full - savings + self.convenience_charge + plan_price
        wallet_used = min(self.wallet_balance, total) if selection.wallet_enabled else Decimal("0")
        data: Dict[str, Any] = {
            "groupedCart": {
                "categories": [dict(item) for item in self.categories],
                "packages": [dict(item) for item in self.packages],
            },
            "totalPrice": str(total),
            "convinencecharge": str(self.convenience_charge),
            "user_wallet_amount": str(self.wallet_balance),
            "wallet_amount_used": str(wallet_used),
            "item_full_amount": str(full),
            "vip_full_amount": str(full - savings) if plan_price else "0",
            "vip_plan": str(plan_price),
            "total_tax": "0",
        }
        data.update(coupon_data)
        return {"success": True, "message": "Cart data fetched successfully", "data": data}

    def _plan_price(self, plan_id: str) -> Decimal:
        for plan in self.plans:
            if plan.id == plan_id:
                return plan.discount_price or plan.price
        return Decimal("0")


__all__ = ["PricingMock"]
