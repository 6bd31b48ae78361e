"""Cart pricing store: single writer of the cart selection and snapshot."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Protocol, Union

from easycart.domain.entities import (
    AppliedCoupon,
    CartSelection,
    CartSnapshot,
    CartState,
    CartStatus,
    PaymentMode,
    VipPlan,
)
from easycart.domain.errors import (
    CartError,
    EmptyCartError,
    PricingTimeoutError,
    ValidationError,
)
from easycart.usecases.error_mapping import map_pricing_error

_LOG = logging.getLogger(__name__)

Listener = Callable[[CartState], None]


class PriceFetcher(Protocol):
    """Async pricing gateway consumed by the store (see ``FetchCartPrice.fetch``)."""

    async def fetch(
        self,
        selection: CartSelection,
        *,
        generation: int = 0,
        timeout_s: Optional[float] = None,
    ) -> CartSnapshot: ...


def normalize_coupon_code(code: Any) -> str:
    """Trim and upper-case a coupon code, rejecting blank input."""
    if not isinstance(code, str) or not code.strip():
        raise ValidationError("Please enter a coupon code.")
    return code.strip().upper()


class CartPricingStore:
    """Holds the authoritative cart price while pricing inputs change.

    Every mutator merges its change into the current selection, issues a new
    generation and awaits one gateway round trip. A result is applied only if
    its generation is still the newest issued; older results are dropped, so
    the snapshot always belongs to the latest selection the user made.
    Failures are recorded as state (``EMPTY`` / ``FAILURE``), never raised;
    the only exception a mutator raises is ``ValidationError`` for bad local
    input, before anything changes.
    """

    def __init__(
        self,
        gateway: PriceFetcher,
        *,
        timeout_s: Optional[float] = None,
        selection: Optional[CartSelection] = None,
    ) -> None:
        self._gateway = gateway
        self.timeout_s = timeout_s
        self._selection = selection or CartSelection()
        self._priced_selection: Optional[CartSelection] = None
        self._snapshot: Optional[CartSnapshot] = None
        self._status = CartStatus.IDLE
        self._settled_status = CartStatus.IDLE
        self._error_message: Optional[str] = None
        self._settled_error: Optional[str] = None
        self._issued = 0
        self._accepted = 0
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------
    @property
    def status(self) -> CartStatus:
        return self._status

    @property
    def selection(self) -> CartSelection:
        return self._selection

    @property
    def priced_selection(self) -> Optional[CartSelection]:
        """Selection that produced the current snapshot, if any."""
        return self._priced_selection

    @property
    def snapshot(self) -> Optional[CartSnapshot]:
        return self._snapshot

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def generation(self) -> int:
        """Highest generation issued so far."""
        return self._issued

    @property
    def accepted_generation(self) -> int:
        return self._accepted

    @property
    def applied_coupon(self) -> Optional[AppliedCoupon]:
        """Coupon shown to the user.

        Hidden as soon as the selection no longer carries the coupon, even
        while the snapshot that priced it is still on screen.
        """
        return self.state.applied_coupon

    @property
    def is_initial_load(self) -> bool:
        """True while the very first price is loading (full-screen loader)."""
        return self.state.is_initial_load

    @property
    def state(self) -> CartState:
        return CartState(
            status=self._status,
            selection=self._selection,
            snapshot=self._snapshot,
            error_message=self._error_message,
            generation=self._issued,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a state listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------
    async def load(self) -> CartState:
        """Initial fetch for the current selection (first mount)."""
        return await self._recompute(self._selection)

    async def refresh(self) -> CartState:
        """Re-issue the current selection unchanged."""
        return await self._recompute(self._selection)

    async def select_payment_mode(self, mode: Union[PaymentMode, str]) -> CartState:
        return await self._recompute(self._selection.with_payment_mode(PaymentMode.parse(mode)))

    async def toggle_wallet(self) -> CartState:
        return await self._recompute(self._selection.with_wallet_toggled())

    async def select_vip_plan(self, plan: Union[VipPlan, str, None]) -> CartState:
        if isinstance(plan, VipPlan):
            plan_id: Optional[str] = plan.id
        else:
            plan_id = str(plan).strip() if plan is not None else None
        return await self._recompute(self._selection.with_vip_plan(plan_id or None))

    def apply_coupon(self, code: str) -> Awaitable[CartState]:
        """Validate ``code`` now and return the recompute to await.

        Validation runs when this method is called, not when the result is
        awaited, so a caller scheduling it with ``create_task`` still gets
        the error synchronously.

        Raises:
            ValidationError: ``code`` is blank; the store is left untouched.
        """
        return self._apply_coupon(normalize_coupon_code(code))

    async def _apply_coupon(self, code: str) -> CartState:
        return await self._recompute(self._selection.with_coupon(code))

    async def remove_coupon(self) -> CartState:
        return await self._recompute(self._selection.with_coupon(None))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _recompute(self, selection: CartSelection) -> CartState:
        self._issued += 1
        generation = self._issued
        self._selection = selection
        self._status = CartStatus.LOADING
        self._error_message = None
        _LOG.debug("dispatch generation %s: %s", generation, selection)
        self._emit()

        try:
            snapshot = await self._call_gateway(selection, generation)
        except asyncio.CancelledError:
            if self._is_current(generation):
                self._status = self._settled_status
                self._error_message = self._settled_error
                self._emit()
            raise
        except EmptyCartError:
            if not self._accept(generation):
                return self.state
            self._snapshot = None
            self._priced_selection = selection
            self._settle(CartStatus.EMPTY)
        except CartError as exc:
            if not self._accept(generation):
                return self.state
            _LOG.warning("pricing failed for generation %s: %s", generation, exc.message)
            self._error_message = exc.message
            self._settle(CartStatus.FAILURE)
        else:
            if not self._accept(generation):
                return self.state
            if snapshot.generation != generation:
                snapshot = snapshot.with_generation(generation)
            self._snapshot = snapshot
            self._priced_selection = selection
            self._settle(CartStatus.SUCCESS)

        self._emit()
        return self.state

    async def _call_gateway(self, selection: CartSelection, generation: int) -> CartSnapshot:
        call = self._gateway.fetch(selection, generation=generation, timeout_s=self.timeout_s)
        try:
            if self.timeout_s is None:
                return await call
            return await asyncio.wait_for(call, self.timeout_s)
        except asyncio.TimeoutError:
            raise PricingTimeoutError("Request timed out. Check connection.") from None
        except CartError:
            raise
        except Exception as exc:
            raise map_pricing_error(exc) from exc

    def _is_current(self, generation: int) -> bool:
        return generation == self._issued

    def _accept(self, generation: int) -> bool:
        if not self._is_current(generation):
            _LOG.debug(
                "discard stale generation %s (latest issued %s)", generation, self._issued
            )
            return False
        self._accepted = generation
        return True

    def _settle(self, status: CartStatus) -> None:
        self._status = status
        self._settled_status = status
        self._settled_error = self._error_message

    def _emit(self) -> None:
        state = self.state
        for listener in list(self._listeners):
            listener(state)


__all__ = ["CartPricingStore", "PriceFetcher", "normalize_coupon_code"]
