"""Static plan catalog."""
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, List, Tuple

from src.models.enums import PlanTier

PLAN_DURATION = timedelta(days=30)


@dataclass(frozen=True)
class PlanSpec:
    tier: PlanTier
    name: str
    price: int  # INR
    storage_mb: float
    max_file_mb: float
    features: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def purchasable(self) -> bool:
        return self.price > 0

    @property
    def storage_label(self) -> str:
        if self.storage_mb >= 1024:
            return f"{self.storage_mb / 1024:g} GB"
        return f"{self.storage_mb:g} MB"


PLANS: Dict[PlanTier, PlanSpec] = {
    PlanTier.free: PlanSpec(
        tier=PlanTier.free,
        name="Free Plan",
        price=0,
        storage_mb=100,
        max_file_mb=100,
        features=("100MB Storage", "Basic Hosting", "30 Days", "Email Support"),
    ),
    PlanTier.basic: PlanSpec(
        tier=PlanTier.basic,
        name="Basic Plan",
        price=99,
        storage_mb=1024,
        max_file_mb=250,
        features=("1GB Storage", "Priority Support", "30 Days", "Faster Uploads"),
    ),
    PlanTier.premium: PlanSpec(
        tier=PlanTier.premium,
        name="Premium Plan",
        price=999,
        storage_mb=10240,
        max_file_mb=500,
        features=("10GB Storage", "24/7 Priority Support", "30 Days", "Unlimited Bandwidth"),
    ),
}


def get_plan(tier) -> PlanSpec:
    """Look up a plan by tier or tier name. Raises KeyError for unknown tiers."""
    return PLANS[PlanTier(tier)]


def purchasable_tiers() -> List[PlanTier]:
    return [spec.tier for spec in PLANS.values() if spec.purchasable]
