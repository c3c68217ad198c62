"""Design document models shared by the store and the API."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class DesignChannel(str, Enum):
    """Retail channel a design was saved from."""

    FLEXI = "flexi"
    BUNNINGS = "bunnings"
    BUNNINGS_TRADE = "bunnings_trade"

    @property
    def collection(self) -> str:
        return CHANNEL_COLLECTIONS[self]


CHANNEL_COLLECTIONS = {
    DesignChannel.FLEXI: "designs",
    DesignChannel.BUNNINGS: "bunnings_designs",
    DesignChannel.BUNNINGS_TRADE: "bunnings_trade_designs",
}


class Dimensions(BaseModel):
    width: float
    height: float
    depth: float


class ShoppingCartItem(BaseModel):
    """One line of the shopping cart captured with a design."""

    item_number: str
    name: str
    price: float = Field(ge=0)
    quantity: int = Field(default=1, ge=0)
    total_price: float = Field(ge=0)
    image: Optional[str] = None
    dimensions: Optional[Dimensions] = None


class DesignData(BaseModel):
    """Planner state needed to restore a design in the browser."""

    version: str = "1.0.0"
    wardrobe_instances: list[dict[str, Any]] = []
    walls_dimensions: dict[str, Any] = {}
    customize_mode: bool = False
    selected_color: Optional[str] = None
    depth_tab: Optional[str] = None


class DesignDocument(BaseModel):
    """A design as stored against its design code."""

    design_id: str
    channel: DesignChannel = DesignChannel.FLEXI
    design_data: DesignData
    shopping_cart: list[ShoppingCartItem] = []
    total_price: float = 0.0
    created_at: str
    updated_at: str
    unix_timestamp: int
    deleted: bool = False
    deleted_at: Optional[str] = None
