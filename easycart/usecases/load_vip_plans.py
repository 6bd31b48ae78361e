from __future__ import annotations

from dataclasses import dataclass
from typing import List

from easycart.domain.entities import VipPlan
from easycart.domain.errors import PricingError
from easycart.domain.ports import VipPlanPort
from easycart.usecases.error_mapping import map_pricing_error


@dataclass
class LoadVipPlans:
    vip_port: VipPlanPort

    def __call__(self) -> List[VipPlan]:
        """Return the purchasable plans, de-duplicated by id in catalog order."""
        try:
            plans = self.vip_port.list_plans()
        except Exception as exc:
            mapped = map_pricing_error(exc, default_message="Failed to fetch VIP plans")
            raise PricingError(mapped.message, code="VIP_PLANS_FAILED") from exc

        seen = set()
        unique: List[VipPlan] = []
        for plan in plans or []:
            if plan.id in seen:
                continue
            seen.add(plan.id)
            unique.append(plan)
        return unique
