import asyncio
from decimal import Decimal

from easycart.adapters.pricing_mock import PricingMock
from easycart.adapters.pricing_rest import PricingRestAdapter
from easycart.app.settings import ApiSettings
from easycart.domain.entities import CartStatus
from easycart.web_ui.runtime import CartRuntime


class _BrokenPlans:
    def list_plans(self):
        raise RuntimeError("catalog down")


def test_runtime_builds_rest_adapters_from_settings():
    runtime = CartRuntime(ApiSettings(base_url="http://engine", auth_token="t"))
    assert isinstance(runtime.fetch_price.pricing_port, PricingRestAdapter)
    assert runtime.store.timeout_s == 30.0


def test_mount_loads_plans_and_prices_cart():
    runtime = CartRuntime(ApiSettings(use_mock=True))

    state = asyncio.run(runtime.mount())

    assert state.status is CartStatus.SUCCESS
    assert [plan.id for plan in runtime.vip_plans] == ["vip-3m", "vip-12m"]
    assert runtime.dto["total"] == "₹1,248"
    assert len(runtime.dto["plans"]) == 2


def test_coupon_flow_and_address_forwarding():
    mock = PricingMock()
    runtime = CartRuntime(ApiSettings(), pricing_port=mock, vip_port=mock)

    async def scenario():
        await runtime.mount()
        assert await runtime.apply_coupon("") is False
        assert runtime.notice == "Please enter a coupon code."
        assert await runtime.apply_coupon("first100") is True
        await runtime.select_address("addr-1")
        return runtime.dto

    dto = asyncio.run(scenario())

    assert dto["coupon"]["code"] == "FIRST100"
    assert runtime.store.snapshot.total_price == Decimal("1148")
    assert mock.calls[-1]["address_id"] == "addr-1"


def test_plan_failure_sets_notice_but_still_prices():
    runtime = CartRuntime(ApiSettings(), pricing_port=PricingMock(), vip_port=_BrokenPlans())

    state = asyncio.run(runtime.mount())

    assert state.status is CartStatus.SUCCESS
    assert runtime.notice == "Failed to fetch VIP plans"
    assert runtime.dto["plans"] == []


def test_close_detaches_viewmodel():
    runtime = CartRuntime(ApiSettings(use_mock=True))
    runtime.close()
    asyncio.run(runtime.refresh())
    assert runtime.dto == {}


def test_each_action_pushes_loading_and_settled_dto_once():
    runtime = CartRuntime(ApiSettings(), pricing_port=PricingMock(), vip_port=PricingMock())
    pushed = []

    async def scenario():
        await runtime.mount()
        runtime.cart_vm.on_update_cart = pushed.append
        await runtime.toggle_wallet()

    asyncio.run(scenario())

    assert [dto["status"] for dto in pushed] == ["loading", "success"]
