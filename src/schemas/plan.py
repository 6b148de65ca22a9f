"""Plan catalog schemas."""
from pydantic import BaseModel


class PlanInfo(BaseModel):
    name: str
    price: int
    storage: str
    storage_mb: float
    max_file_mb: float
    features: list[str]


class PlansResponse(BaseModel):
    plans: dict[str, PlanInfo]
