"""HTML email bodies for design sharing and the contact form.

Rendered from Jinja2 templates under ``wardrobe_planner/templates/email``
with autoescaping on, so customer-supplied text never reaches the markup raw.
"""

from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from wardrobe_planner.models.requests import EmailProductItem

SCREENSHOT_CID = "design-screenshot"

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
templates.filters["money"] = lambda value: f"${value:,.2f}"
templates.filters["mm"] = lambda value: f"{value:g}"


def render_design_email(
    url: str,
    show_image: bool = False,
    products: Optional[list[EmailProductItem]] = None,
    organizers: Optional[list[EmailProductItem]] = None,
    total_price: float = 0.0,
    total_items: int = 0,
    total_quantity: int = 0,
    design_code: str = "",
    customer_name: str = "",
    bunnings_checkout_url: str = "",
    bunnings_trade_checkout_url: str = "",
) -> str:
    """Design summary sent to the customer."""
    return templates.get_template("email/design.html").render(
        url=url,
        show_image=show_image,
        screenshot_cid=SCREENSHOT_CID,
        products=products or [],
        organizers=organizers or [],
        total_price=total_price,
        total_items=total_items,
        total_quantity=total_quantity,
        design_code=design_code,
        customer_name=customer_name,
        bunnings_checkout_url=bunnings_checkout_url,
        bunnings_trade_checkout_url=bunnings_trade_checkout_url,
    )


def render_contact_email(name: str, email: str, subscribe: bool, postcode: Optional[str] = None) -> str:
    """Contact form submission forwarded to the administrator."""
    fields = [("Name", name), ("Email", email)]
    if postcode:
        fields.append(("Postcode", postcode))
    fields.append(("Newsletter Subscription", "Yes" if subscribe else "No"))
    return templates.get_template("email/contact.html").render(fields=fields)
