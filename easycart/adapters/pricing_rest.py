from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from easycart.domain.entities import CartSelection
from easycart.domain.ports import AddressId, PricingPort

from .api_errors import ApiError, raise_for_status
from .http_client import HttpConfig, RetryingSession

_LOG = logging.getLogger(__name__)


def build_pricing_request(
    selection: CartSelection, *, address_id: Optional[AddressId] = None
) -> Dict[str, Any]:
    """Translate a selection into the pricing engine's request body."""
    body: Dict[str, Any] = {
        "paymentType": selection.payment_mode.value,
        "vipId": selection.vip_plan_id or "",
        "isWallet": bool(selection.wallet_enabled),
    }
    if selection.coupon_code:
        body["couponCode"] = selection.coupon_code
    if address_id:
        body["addressId"] = str(address_id)
    return body


class PricingRestAdapter(PricingPort):
    """REST adapter for the remote cart pricing engine."""

    def __init__(
        self,
        base_url: str,
        *,
        auth_token: Optional[str] = None,
        request_timeout_s: float = 30.0,
        retries: int = 0,
        cart_path: str = "/cart/price",
    ) -> None:
        if not base_url or not str(base_url).strip():
            raise ValueError("PricingRestAdapter requires a base URL")
        self.base_url = str(base_url).strip().rstrip("/")
        self.cart_path = "/" + cart_path.lstrip("/")
        self.cfg = HttpConfig(request_timeout_s=request_timeout_s, retries=retries)
        self.session = RetryingSession(auth_token, self.cfg)

    def fetch_cart(
        self,
        selection: CartSelection,
        *,
        address_id: Optional[AddressId] = None,
        timeout_s: Optional[float] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{self.cart_path}"
        body = build_pricing_request(selection, address_id=address_id)
        _LOG.debug(
            "pricing request: mode=%s vip=%s wallet=%s coupon=%s",
            body["paymentType"],
            body["vipId"] or "-",
            body["isWallet"],
            body.get("couponCode", "-"),
        )
        resp = self.session.post(url, json_body=body, timeout=timeout_s)
        raise_for_status(resp, "cart")
        data = self._json_any(resp, ctx="cart")
        if not isinstance(data, dict):
            raise ApiError("cart: expected object response", status=resp.status_code, payload=data)
        return data

    @staticmethod
    def _json_any(resp: requests.Response, *, ctx: str) -> Any:
        try:
            return resp.json()
        except ValueError:
            snippet = getattr(resp, "text", "")[:400]
            raise ApiError(f"{ctx}: invalid JSON response: {snippet}", status=resp.status_code)


__all__ = ["PricingRestAdapter", "build_pricing_request"]
