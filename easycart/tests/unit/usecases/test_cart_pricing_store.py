import asyncio
from decimal import Decimal

import pytest

from easycart.adapters.pricing_mock import PricingMock
from easycart.domain.entities import (
    AppliedCoupon,
    CartLine,
    CartSelection,
    CartSnapshot,
    CartStatus,
    GroupedItems,
    PaymentMode,
    VipPlan,
)
from easycart.domain.errors import EmptyCartError, PricingError, ValidationError
from easycart.usecases.cart_pricing_store import CartPricingStore, normalize_coupon_code
from easycart.usecases.fetch_cart_price import FetchCartPrice


def _snapshot(total, *, subtotal=None, coupon=None):
    subtotal = Decimal(subtotal if subtotal is not None else total)
    return CartSnapshot(
        grouped_items=GroupedItems(categories=(CartLine("c1", "Cleaning", subtotal),)),
        total_price=Decimal(total),
        savings_amount=subtotal - Decimal(total),
        applied_coupon=coupon,
    )


class _ScriptedGateway:
    """Gateway whose calls stay pending until the test resolves them."""

    def __init__(self):
        self.calls = []

    async def fetch(self, selection, *, generation=0, timeout_s=None):
        future = asyncio.get_running_loop().create_future()
        self.calls.append((selection, generation, future))
        return await future

    def resolve(self, index, snapshot):
        self.calls[index][2].set_result(snapshot)

    def fail(self, index, exc):
        self.calls[index][2].set_exception(exc)


class _ImmediateGateway:
    def __init__(self, *results):
        self.results = list(results)
        self.selections = []

    async def fetch(self, selection, *, generation=0, timeout_s=None):
        self.selections.append(selection)
        result = self.results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result


class _StaticPort:
    def __init__(self, envelope):
        self.envelope = envelope

    def fetch_cart(self, selection, *, address_id=None, timeout_s=None):
        return self.envelope


def test_out_of_order_results_keep_latest_generation():
    async def scenario():
        gateway = _ScriptedGateway()
        store = CartPricingStore(gateway)

        first = asyncio.create_task(store.toggle_wallet())
        await asyncio.sleep(0)
        second = asyncio.create_task(store.select_payment_mode(PaymentMode.VIP))
        await asyncio.sleep(0)

        assert [call[1] for call in gateway.calls] == [1, 2]
        assert store.status is CartStatus.LOADING

        gateway.resolve(1, _snapshot("900", subtotal="1000"))
        await second
        gateway.resolve(0, _snapshot("1000"))
        await first
        return store

    store = asyncio.run(scenario())

    assert store.status is CartStatus.SUCCESS
    assert store.snapshot.total_price == Decimal("900")
    assert store.snapshot.generation == 2
    assert store.accepted_generation == 2
    assert store.selection.payment_mode is PaymentMode.VIP
    assert store.selection.wallet_enabled is True


def test_stale_failure_does_not_override_newer_success():
    async def scenario():
        gateway = _ScriptedGateway()
        store = CartPricingStore(gateway)
        first = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)
        second = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)
        gateway.resolve(1, _snapshot("500"))
        await second
        gateway.fail(0, PricingError("late failure"))
        await first
        return store

    store = asyncio.run(scenario())

    assert store.status is CartStatus.SUCCESS
    assert store.error_message is None
    assert store.snapshot.total_price == Decimal("500")


def test_select_vip_plan_prices_with_plan():
    gateway = _ImmediateGateway(_snapshot("900", subtotal="1000"))
    store = CartPricingStore(gateway)

    state = asyncio.run(store.select_vip_plan(VipPlan("p1", "Gold", Decimal("999"))))

    assert gateway.selections[0].payment_mode is PaymentMode.VIP
    assert gateway.selections[0].vip_plan_id == "p1"
    assert state.status is CartStatus.SUCCESS
    assert state.snapshot.total_price == Decimal("900")
    assert store.priced_selection == gateway.selections[0]


def test_changing_inputs_clears_coupon():
    coupon = AppliedCoupon("SAVE50", Decimal("50"))
    gateway = _ImmediateGateway(
        _snapshot("950", subtotal="1000", coupon=coupon), _snapshot("1000")
    )
    store = CartPricingStore(gateway)
    seen = []
    store.subscribe(lambda state: seen.append(state))

    async def scenario():
        await store.apply_coupon("  save50 ")
        assert store.applied_coupon == coupon
        await store.toggle_wallet()

    asyncio.run(scenario())

    assert gateway.selections[0].coupon_code == "SAVE50"
    assert gateway.selections[1].coupon_code is None
    assert store.applied_coupon is None
    # The coupon is hidden as soon as the wallet toggle is dispatched.
    loading = [state for state in seen if state.status is CartStatus.LOADING]
    assert loading[1].applied_coupon is None


def test_blank_coupon_raises_without_touching_state():
    gateway = _ImmediateGateway()
    store = CartPricingStore(gateway)

    with pytest.raises(ValidationError):
        asyncio.run(store.apply_coupon("   "))

    assert store.status is CartStatus.IDLE
    assert store.generation == 0
    assert gateway.selections == []


def test_blank_coupon_raises_at_call_time():
    store = CartPricingStore(_ImmediateGateway())

    with pytest.raises(ValidationError):
        store.apply_coupon("")

    assert store.generation == 0


def test_empty_cart_clears_snapshot():
    gateway = _ImmediateGateway(_snapshot("100"), EmptyCartError("No items found in the cart."))
    store = CartPricingStore(gateway)

    async def scenario():
        await store.load()
        await store.refresh()

    asyncio.run(scenario())

    assert store.status is CartStatus.EMPTY
    assert store.snapshot is None
    assert store.error_message is None


def test_failure_keeps_previous_snapshot_and_refresh_retries_same_selection():
    gateway = _ImmediateGateway(
        _snapshot("100"),
        PricingError("Pricing service error, try again."),
        _snapshot("80", subtotal="100"),
    )
    store = CartPricingStore(gateway)

    async def scenario():
        await store.load()
        await store.toggle_wallet()

    asyncio.run(scenario())

    assert store.status is CartStatus.FAILURE
    assert store.error_message == "Pricing service error, try again."
    assert store.snapshot.total_price == Decimal("100")
    # The failed selection stays current while the old price is shown.
    assert store.selection.wallet_enabled is True
    assert store.priced_selection.wallet_enabled is False

    state = asyncio.run(store.refresh())

    assert gateway.selections[2] == gateway.selections[1]
    assert state.status is CartStatus.SUCCESS
    assert state.error_message is None
    assert state.snapshot.total_price == Decimal("80")


def test_unexpected_exception_becomes_failure():
    store = CartPricingStore(_ImmediateGateway(RuntimeError("socket closed")))
    state = asyncio.run(store.load())
    assert state.status is CartStatus.FAILURE
    assert state.error_message == "socket closed"


def test_timeout_becomes_failure():
    class _Hanging:
        async def fetch(self, selection, *, generation=0, timeout_s=None):
            await asyncio.sleep(10)

    store = CartPricingStore(_Hanging(), timeout_s=0.01)
    state = asyncio.run(store.refresh())

    assert state.status is CartStatus.FAILURE
    assert state.error_message == "Request timed out. Check connection."


def test_cancel_restores_settled_status():
    async def scenario():
        gateway = _ScriptedGateway()
        store = CartPricingStore(gateway)
        task = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)
        assert store.status is CartStatus.LOADING
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return store

    store = asyncio.run(scenario())
    assert store.status is CartStatus.IDLE


def test_initial_load_flag_and_listener_unsubscribe():
    seen = []
    store = CartPricingStore(_ImmediateGateway(_snapshot("10"), _snapshot("20")))
    unsubscribe = store.subscribe(lambda state: seen.append(state))

    asyncio.run(store.load())
    unsubscribe()
    asyncio.run(store.refresh())

    assert [state.status for state in seen] == [CartStatus.LOADING, CartStatus.SUCCESS]
    assert seen[0].is_initial_load is True
    assert store.is_initial_load is False
    assert store.snapshot.total_price == Decimal("20")


def test_store_with_mock_engine_end_to_end():
    store = CartPricingStore(FetchCartPrice(PricingMock()))

    async def scenario():
        await store.load()
        await store.select_vip_plan("vip-12m")
        return store.state

    state = asyncio.run(scenario())

    assert state.status is CartStatus.SUCCESS
    assert state.selection == CartSelection(payment_mode=PaymentMode.VIP, vip_plan_id="vip-12m")
    # 1199 - 240 (20% rounded) + 49 convenience + 599 plan fee
    assert state.snapshot.total_price == Decimal("1607")


def test_normalize_coupon_code():
    assert normalize_coupon_code(" first100 ") == "FIRST100"
    with pytest.raises(ValidationError):
        normalize_coupon_code(None)


def test_select_vip_plan_accepts_engine_total_with_plan_fee():
    envelope = {
        "success": True,
        "data": {
            "groupedCart": {"categories": [{"id": "c1", "name": "Cleaning", "subtotal": "1000"}]},
            "convinencecharge": "49",
            "vip_plan": "599",
            "totalPrice": "1448",
        },
    }
    store = CartPricingStore(FetchCartPrice(_StaticPort(envelope)))

    state = asyncio.run(store.select_vip_plan("p1"))

    assert state.status is CartStatus.SUCCESS
    assert state.snapshot.total_price == Decimal("1448")
    assert state.snapshot.subscription_fee == Decimal("599")
    assert state.snapshot.savings_amount == Decimal("200")


def test_coupon_ignored_by_engine_is_not_shown():
    envelope = {
        "success": True,
        "data": {
            "groupedCart": {"categories": [{"id": "c1", "subtotal": "1000"}]},
            "totalPrice": "1000",
        },
    }
    store = CartPricingStore(FetchCartPrice(_StaticPort(envelope)))

    state = asyncio.run(store.apply_coupon("bogus"))

    assert state.status is CartStatus.SUCCESS
    assert state.selection.coupon_code == "BOGUS"
    assert state.applied_coupon is None
