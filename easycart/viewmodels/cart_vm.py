from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..domain.entities import CartLine, CartState, CartStatus, VipPlan
from . import cart_projections as proj

LineRow = Tuple[str, str, int, str]
PlanRow = Tuple[str, str, str, str, int, bool]


@dataclass
class CartVM:
    """Turns cart store state into a render-ready DTO for the cart page."""

    on_update_cart: Optional[Callable[[Dict[str, Any]], None]] = None
    currency_symbol: str = proj.CURRENCY_SYMBOL

    vip_plans: List[VipPlan] = field(default_factory=list)
    last_state: Optional[CartState] = None
    last_dto: Dict[str, Any] = field(default_factory=dict)

    def set_vip_plans(self, plans: Sequence[VipPlan]) -> None:
        self.vip_plans = list(plans)
        if self.last_state is not None:
            self.apply_state(self.last_state)

    def apply_state(self, state: CartState) -> Dict[str, Any]:
        """Consume the latest store state and push the DTO to the view."""
        if not isinstance(state, CartState):
            raise TypeError("CartVM.apply_state requires a CartState.")
        self.last_state = state
        dto = self.build_dto(state)
        self.last_dto = dto
        if self.on_update_cart:
            self.on_update_cart(dto)
        return dto

    # ------------------------------------------------------------------
    # Public DTO helpers
    # ------------------------------------------------------------------
    def build_dto(self, state: CartState) -> Dict[str, Any]:
        snapshot = state.snapshot
        selection = state.selection
        counts = proj.item_counts(snapshot)
        coupon = state.applied_coupon
        money = self._money

        return {
            "status": state.status.value,
            "loading": state.status is CartStatus.LOADING,
            "blocking_loader": state.is_initial_load,
            "empty": state.status is CartStatus.EMPTY,
            "error": state.error_message if state.status is CartStatus.FAILURE else None,
            "payment_mode": selection.payment_mode.value,
            "wallet_enabled": selection.wallet_enabled,
            "vip_plan_id": selection.vip_plan_id,
            "coupon": (
                {
                    "code": coupon.code,
                    "discount": money(coupon.discount_value),
                    "is_free": coupon.is_free,
                }
                if coupon
                else None
            ),
            "coupons_applicable": proj.coupons_applicable(selection, snapshot),
            "has_items": proj.has_items(snapshot),
            "counts": {"services": counts.services, "packages": counts.packages},
            "services": self.derive_line_rows(snapshot.grouped_items.categories if snapshot else ()),
            "packages": self.derive_line_rows(snapshot.grouped_items.packages if snapshot else ()),
            "subtotal": money(proj.items_subtotal(snapshot)),
            "savings": money(snapshot.savings_amount if snapshot else 0),
            "discount_pct": proj.discount_percentage(snapshot),
            "convenience": money(proj.convenience_fee(snapshot)),
            "tax": money(snapshot.tax_amount if snapshot else 0),
            "subscription_fee": money(snapshot.subscription_fee if snapshot else 0),
            "total": proj.formatted_total(snapshot, self.currency_symbol),
            "wallet_deduction": money(snapshot.wallet_deduction if snapshot else 0),
            "payable": money(proj.payable_after_wallet(snapshot)),
            "vip_savings": money(proj.vip_savings(snapshot)),
            "plans": self.derive_plan_rows(selection.vip_plan_id),
        }

    def derive_line_rows(self, lines: Sequence[CartLine]) -> List[LineRow]:
        return [(line.id, line.name, line.quantity, self._money(line.subtotal)) for line in lines]

    def derive_plan_rows(self, selected_id: Optional[str]) -> List[PlanRow]:
        """Rows for the VIP plan picker (id, name, price, offer price, pct, selected)."""
        rows: List[PlanRow] = []
        for plan in self.vip_plans:
            offer = plan.discount_price if plan.discount_price is not None else plan.price
            rows.append(
                (
                    plan.id,
                    plan.plan_name,
                    self._money(plan.price),
                    self._money(offer),
                    proj.plan_discount_percentage(plan.price, plan.discount_price),
                    plan.id == selected_id,
                )
            )
        return rows

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _money(self, amount: Any) -> str:
        return proj.format_currency(amount, self.currency_symbol)


__all__ = ["CartVM"]
