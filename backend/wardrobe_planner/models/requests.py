"""API request models."""

from pydantic import BaseModel, Field
from typing import Optional

from wardrobe_planner.models.design import DesignData, ShoppingCartItem, Dimensions

# Loose check only; the SMTP server is the real judge of an address.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class SaveDesignRequest(BaseModel):
    """Request to save (or overwrite) a design."""

    design_data: DesignData
    shopping_cart: list[ShoppingCartItem] = []
    total_price: float = Field(default=0.0, ge=0)


class EmailProductItem(BaseModel):
    """A product row shown in the design email."""

    item_number: str
    name: str
    price: float = 0.0
    quantity: int = 1
    total_price: float = 0.0
    image: Optional[str] = None
    dimensions: Optional[Dimensions] = None


class ShareDesignEmailRequest(BaseModel):
    """Request to email a design summary to a customer."""

    to: str = Field(..., pattern=EMAIL_PATTERN, max_length=254)
    subject: str = Field(default="Your Flexi Wardrobe Design", max_length=200)
    url: Optional[str] = Field(default=None, max_length=2048)
    from_address: Optional[str] = Field(default=None, alias="from", pattern=EMAIL_PATTERN)
    screenshot_base64: Optional[str] = Field(
        default=None,
        description="PNG screenshot as a data URL or raw base64",
    )
    products: list[EmailProductItem] = []
    organizers: list[EmailProductItem] = []
    total_price: float = 0.0
    total_items: int = 0
    total_quantity: int = 0
    design_code: str = ""
    customer_name: str = Field(default="", max_length=200)
    bunnings_checkout_url: str = ""
    bunnings_trade_checkout_url: str = ""

    model_config = {"populate_by_name": True}


class CustomerRequest(BaseModel):
    """Customer details captured by the share-via-email form."""

    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=254)
    name: str = Field(..., min_length=1, max_length=200)
    postcode: str = Field(default="", max_length=16)
    accept_email: bool = False
    design_id: str = ""


class ContactEmailRequest(BaseModel):
    """Contact form submission relayed to the administrator."""

    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=254)
    name: str = Field(..., min_length=1, max_length=200)
    subject: str = Field(default="Hello from Flexi Wardrobe Builder", max_length=200)
    postcode: Optional[str] = Field(default=None, max_length=16)
    subscribe: bool = False
    design_id: str = ""
