"""
Subscription plan catalog
"""
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

from app.models.subscription import PlanDefinition

DEFAULT_PLANS: List[PlanDefinition] = [
    PlanDefinition(planId="free", name="Free Plan", amount=0, duration="lifetime", interviews=0),
    PlanDefinition(planId="monthly", name="Basic Plan", amount=79, duration="monthly", interviews=4),
    PlanDefinition(planId="premium", name="Pro Access", amount=179, duration="monthly", interviews=9),
    PlanDefinition(planId="yearly", name="Premium Plan", amount=499, duration="monthly", interviews=25),
]


class PlanCatalog:
    """Read-only lookup of plan id -> PlanDefinition"""

    def __init__(self, plans: Iterable[PlanDefinition]):
        self._plans: Mapping[str, PlanDefinition] = MappingProxyType(
            {plan.planId: plan for plan in plans}
        )

    def lookup(self, plan_id: Optional[str]) -> Optional[PlanDefinition]:
        if not plan_id:
            return None
        return self._plans.get(plan_id)

    def all(self) -> List[PlanDefinition]:
        return list(self._plans.values())

    def as_dict(self) -> Dict[str, dict]:
        """Catalog keyed by plan id, the shape the pricing page consumes"""
        return {plan_id: plan.model_dump(exclude={"planId"}) for plan_id, plan in self._plans.items()}

    def __contains__(self, plan_id: str) -> bool:
        return plan_id in self._plans

    def __len__(self) -> int:
        return len(self._plans)


default_catalog = PlanCatalog(DEFAULT_PLANS)
