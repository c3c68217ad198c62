"""API response models."""

from pydantic import BaseModel
from typing import Any, Optional, Literal

from wardrobe_planner.models.design import DesignChannel


class DesignCodeResponse(BaseModel):
    """A freshly generated (unsaved) design code."""

    design_code: str


class SaveDesignResponse(BaseModel):
    """Response after saving a design."""

    design_code: str
    channel: DesignChannel
    created_at: str
    updated_at: str
    resume_url: str


class DesignCodeStatusResponse(BaseModel):
    """Whether a code is held in a channel (deleted designs keep theirs)."""

    design_code: str
    channel: DesignChannel
    taken: bool


class DeleteDesignResponse(BaseModel):
    design_code: str
    deleted: bool = True


class BundleAccessory(BaseModel):
    item_number: str
    name: str = ""
    price: float = 0.0


class BundlePriceResponse(BaseModel):
    """Bundle price: base wardrobe plus packed accessories."""

    bundle_id: str
    base_price: float
    accessories: list[BundleAccessory] = []
    accessories_total: float
    total: float


class CatalogResponse(BaseModel):
    collection: str
    count: int
    items: list[dict[str, Any]]


class EmailSentResponse(BaseModel):
    ok: bool = True


class CustomerResponse(BaseModel):
    id: str
    created_at: str


class HealthDependency(BaseModel):
    """Health status of a single dependency."""

    status: Literal["healthy", "unhealthy", "degraded"]
    latency_ms: Optional[float] = None
    message: Optional[str] = None


class HealthResponse(BaseModel):
    """System health check response."""

    status: Literal["healthy", "unhealthy", "degraded"]
    version: str = "1.0.0"
    uptime_seconds: float
    dependencies: dict[str, HealthDependency]
