from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional

from easycart.domain.entities import VipPlan
from easycart.domain.ports import VipPlanPort

from .api_errors import ApiError, first_string, raise_for_status
from .http_client import HttpConfig, RetryingSession


def _money(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return amount if amount.is_finite() else None


def parse_plan(raw: Mapping[str, Any]) -> Optional[VipPlan]:
    """Build a VipPlan from one catalog entry; entries without an id are skipped."""
    plan_id = raw.get("id", raw.get("_id"))
    if plan_id is None or not str(plan_id).strip():
        return None
    name = raw.get("plan_name") or raw.get("planName") or raw.get("name") or ""
    return VipPlan(
        id=str(plan_id).strip(),
        plan_name=str(name).strip(),
        price=_money(raw.get("price")) or Decimal("0"),
        discount_price=_money(raw.get("discount_price", raw.get("discountPrice"))),
    )


class VipRestAdapter(VipPlanPort):
    """REST adapter for the VIP plan catalog."""

    def __init__(
        self,
        base_url: str,
        *,
        auth_token: Optional[str] = None,
        request_timeout_s: float = 30.0,
        retries: int = 1,
    ) -> None:
        if not base_url or not str(base_url).strip():
            raise ValueError("VipRestAdapter requires a base URL")
        self.base_url = str(base_url).strip().rstrip("/")
        self.session = RetryingSession(
            auth_token, HttpConfig(request_timeout_s=request_timeout_s, retries=retries)
        )

    def list_plans(self) -> List[VipPlan]:
        resp = self.session.get(f"{self.base_url}/vip-plans")
        raise_for_status(resp, "vip-plans")
        try:
            payload = resp.json()
        except ValueError:
            raise ApiError("vip-plans: invalid JSON response", status=resp.status_code)
        if isinstance(payload, Mapping):
            if payload.get("success") is False:
                raise ApiError(
                    first_string(payload) or "vip-plans: request rejected",
                    status=resp.status_code,
                    payload=payload,
                )
            entries = payload.get("data") or []
        else:
            entries = payload
        if not isinstance(entries, list):
            raise ApiError("vip-plans: expected list response", payload=payload)
        plans: List[VipPlan] = []
        for entry in entries:
            if not isinstance(entry, Mapping):
                continue
            plan = parse_plan(entry)
            if plan is not None:
                plans.append(plan)
        return plans


__all__ = ["VipRestAdapter", "parse_plan"]
