"""Pricing gateway: one selection in, one normalized cart snapshot out.

The gateway performs exactly one pricing-engine call per invocation and keeps
no state between calls, so the cart store can resolve races purely by the
generation it stamps onto each request. Failures are raised as
``EmptyCartError`` or ``PricingError``; retries are the caller's business.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from easycart.domain.cart_normalizer import normalize_cart
from easycart.domain.entities import CartSelection, CartSnapshot
from easycart.domain.errors import EMPTY_CART_MESSAGE, EmptyCartError, PricingError
from easycart.domain.ports import AddressProvider, PricingPort
from easycart.usecases.error_mapping import is_empty_cart_reply, map_pricing_error

_LOG = logging.getLogger(__name__)


@dataclass
class FetchCartPrice:
    pricing_port: PricingPort
    address_provider: Optional[AddressProvider] = None

    def __call__(
        self,
        selection: CartSelection,
        *,
        generation: int = 0,
        timeout_s: Optional[float] = None,
    ) -> CartSnapshot:
        """Price ``selection`` and stamp the snapshot with ``generation``.

        Raises:
            EmptyCartError: The engine reported an empty cart.
            PricingError: Any other failure, including malformed payloads.
        """
        address_id = self.address_provider() if self.address_provider else None
        try:
            envelope = self.pricing_port.fetch_cart(
                selection, address_id=address_id, timeout_s=timeout_s
            )
        except Exception as exc:
            raise map_pricing_error(exc, default_message="Failed to fetch cart data") from exc

        if not isinstance(envelope, Mapping):
            raise PricingError("Malformed pricing response: expected an object.")
        if not _is_success(envelope):
            if is_empty_cart_reply(envelope):
                raise EmptyCartError(EMPTY_CART_MESSAGE)
            message = envelope.get("message")
            if isinstance(message, str) and message.strip():
                raise PricingError(message.strip())
            raise PricingError("Failed to fetch cart data")

        try:
            snapshot = normalize_cart(envelope.get("data"), selection, generation=generation)
        except (TypeError, ValueError) as exc:
            raise PricingError(f"Malformed pricing response: {exc}") from exc

        if snapshot.grouped_items.is_empty() and is_empty_cart_reply(envelope):
            raise EmptyCartError(EMPTY_CART_MESSAGE)

        _LOG.debug(
            "priced generation %s: total=%s services=%s packages=%s",
            generation,
            snapshot.total_price,
            snapshot.item_counts.services,
            snapshot.item_counts.packages,
        )
        return snapshot

    async def fetch(
        self,
        selection: CartSelection,
        *,
        generation: int = 0,
        timeout_s: Optional[float] = None,
    ) -> CartSnapshot:
        """Run the blocking pricing call in a worker thread."""
        return await asyncio.to_thread(
            self, selection, generation=generation, timeout_s=timeout_s
        )


def _is_success(envelope: Mapping[str, Any]) -> bool:
    flag = envelope.get("success", envelope.get("status"))
    if flag is None:
        return "data" in envelope
    if isinstance(flag, str):
        return flag.strip().lower() in ("true", "1", "ok", "success")
    return bool(flag)


__all__ = ["FetchCartPrice"]
