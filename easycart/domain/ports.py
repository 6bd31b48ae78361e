from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Protocol

from .entities import CartSelection, VipPlan

AddressId = str
AddressProvider = Callable[[], Optional[AddressId]]


# ---- Ports (Hexagonal boundaries) ----
class PricingPort(Protocol):
    """Remote pricing engine. Returns the raw JSON envelope of one cart computation."""

    def fetch_cart(
        self,
        selection: CartSelection,
        *,
        address_id: Optional[AddressId] = None,
        timeout_s: Optional[float] = None,
    ) -> Dict[str, Any]: ...  # {"success": bool, "message": str, "data": {...}}


class VipPlanPort(Protocol):
    """Catalog of purchasable VIP plans."""

    def list_plans(self) -> List[VipPlan]: ...
