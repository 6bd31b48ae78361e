"""Cart runtime composition for the NiceGUI page.

This module wires adapters, the pricing gateway, the cart store and the cart
viewmodel for one browser session. It holds no pricing logic of its own.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from easycart.adapters.pricing_mock import PricingMock
from easycart.adapters.pricing_rest import PricingRestAdapter
from easycart.adapters.vip_rest import VipRestAdapter
from easycart.app.settings import ApiSettings
from easycart.domain.entities import CartState, PaymentMode, VipPlan
from easycart.domain.errors import CartError, ValidationError
from easycart.domain.ports import PricingPort, VipPlanPort
from easycart.usecases.cart_pricing_store import CartPricingStore
from easycart.usecases.fetch_cart_price import FetchCartPrice
from easycart.usecases.load_vip_plans import LoadVipPlans
from easycart.viewmodels.cart_vm import CartVM

LOGGER = logging.getLogger(__name__)


class CartRuntime:
    """One cart session: store, viewmodel and the collaborators they need."""

    def __init__(
        self,
        settings: Optional[ApiSettings] = None,
        *,
        pricing_port: Optional[PricingPort] = None,
        vip_port: Optional[VipPlanPort] = None,
    ) -> None:
        self.settings = settings or ApiSettings()
        if pricing_port is None or vip_port is None:
            default_pricing, default_vip = self._build_ports(self.settings)
            pricing_port = pricing_port or default_pricing
            vip_port = vip_port or default_vip

        self.address_id: Optional[str] = None
        self.notice: str = ""
        self.vip_plans: List[VipPlan] = []

        self.fetch_price = FetchCartPrice(pricing_port, address_provider=lambda: self.address_id)
        self.load_vip_plans = LoadVipPlans(vip_port)
        self.store = CartPricingStore(self.fetch_price, timeout_s=self.settings.request_timeout_s)
        self.cart_vm = CartVM(currency_symbol=self.settings.currency_symbol)
        self._unsubscribe = self.store.subscribe(self.cart_vm.apply_state)

    @staticmethod
    def _build_ports(settings: ApiSettings) -> tuple[PricingPort, VipPlanPort]:
        if settings.use_mock:
            mock = PricingMock()
            return mock, mock
        token = settings.auth_token or None
        pricing = PricingRestAdapter(
            settings.base_url,
            auth_token=token,
            request_timeout_s=settings.request_timeout_s,
            retries=settings.retries,
        )
        vip = VipRestAdapter(
            settings.base_url, auth_token=token, request_timeout_s=settings.request_timeout_s
        )
        return pricing, vip

    @property
    def dto(self) -> Dict[str, Any]:
        return self.cart_vm.last_dto

    async def mount(self) -> CartState:
        """First visit to the cart: fetch plans for the picker, then price the cart."""
        try:
            self.vip_plans = await asyncio.to_thread(self.load_vip_plans)
        except CartError as exc:
            LOGGER.warning("VIP plans unavailable: %s", exc.message)
            self.notice = exc.message
        else:
            self.cart_vm.set_vip_plans(self.vip_plans)
        return await self.store.load()

    async def select_address(self, address_id: Optional[str]) -> CartState:
        self.address_id = address_id or None
        return await self.store.refresh()

    async def select_payment_mode(self, mode: PaymentMode | str) -> CartState:
        return await self.store.select_payment_mode(mode)

    async def toggle_wallet(self) -> CartState:
        return await self.store.toggle_wallet()

    async def select_vip_plan(self, plan_id: Optional[str]) -> CartState:
        return await self.store.select_vip_plan(plan_id)

    async def apply_coupon(self, code: str) -> bool:
        """Apply a coupon; returns False (with ``notice`` set) when the code is blank."""
        try:
            state = await self.store.apply_coupon(code)
        except ValidationError as exc:
            self.notice = exc.message
            return False
        self.notice = ""
        return state.applied_coupon is not None

    async def remove_coupon(self) -> CartState:
        return await self.store.remove_coupon()

    async def refresh(self) -> CartState:
        return await self.store.refresh()

    def close(self) -> None:
        self._unsubscribe()


__all__ = ["CartRuntime"]
