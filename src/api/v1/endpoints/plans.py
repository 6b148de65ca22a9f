"""Plan catalog endpoint."""
from fastapi import APIRouter

from src.core.plans import PLANS
from src.schemas.plan import PlanInfo, PlansResponse

router = APIRouter()


@router.get("", response_model=PlansResponse)
def list_plans():
    plans = {
        spec.tier.value: PlanInfo(
            name=spec.name,
            price=spec.price,
            storage=spec.storage_label,
            storage_mb=spec.storage_mb,
            max_file_mb=spec.max_file_mb,
            features=list(spec.features),
        )
        for spec in PLANS.values()
    }
    return PlansResponse(plans=plans)
