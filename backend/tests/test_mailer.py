"""
Tests for email rendering and SMTP delivery.

Run with: pytest backend/tests/test_mailer.py -v
"""

import base64
import smtplib

import pytest

from wardrobe_planner.config import Settings
from wardrobe_planner.errors import EmailDeliveryError, EmailNotConfiguredError
from wardrobe_planner.models.requests import (
    ContactEmailRequest,
    EmailProductItem,
    ShareDesignEmailRequest,
)
from wardrobe_planner.services.email_templates import render_contact_email, render_design_email
from wardrobe_planner.services.mailer import Mailer, decode_screenshot

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
PNG_B64 = base64.b64encode(PNG_BYTES).decode()


def share_request(**overrides):
    fields = {
        "to": "customer@example.com",
        "design_code": "W3K8ZQ12",
        "customer_name": "Sam",
        "products": [
            EmailProductItem(item_number="2583987", name="Flexi Wardrobe", price=299.0, quantity=2, total_price=598.0)
        ],
        "total_price": 598.0,
        "total_items": 1,
        "total_quantity": 2,
    }
    fields.update(overrides)
    return ShareDesignEmailRequest(**fields)


class TestTemplates:
    """Tests for the HTML email bodies."""

    def test_design_email_contents(self):
        html = render_design_email(
            url="https://planner.example.com/?design=W3K8ZQ12",
            products=[EmailProductItem(item_number="2583987", name="Flexi Wardrobe", total_price=299.0)],
            total_price=299.0,
            design_code="W3K8ZQ12",
            customer_name="Sam",
            bunnings_checkout_url="https://bunnings.example.com/cart",
        )
        assert "W3K8ZQ12" in html
        assert "Hi Sam," in html
        assert "Flexi Wardrobe" in html
        assert "$299.00" in html
        assert "https://bunnings.example.com/cart" in html
        assert "cid:" not in html

    def test_design_email_screenshot_reference(self):
        html = render_design_email(url="https://x.example.com", show_image=True)
        assert 'src="cid:design-screenshot"' in html

    def test_user_text_is_escaped(self):
        html = render_design_email(url="https://x.example.com", customer_name="<script>alert(1)</script>")
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_item_rows_and_links_are_escaped(self):
        html = render_design_email(
            url='https://x.example.com/?a=1&b="2"',
            products=[
                EmailProductItem(
                    item_number="<i>1</i>",
                    name="Wardrobe <b>XL</b>",
                    total_price=1234.5,
                    dimensions={"width": 900, "height": 2100, "depth": 580.5},
                )
            ],
        )
        assert "Wardrobe &lt;b&gt;XL&lt;/b&gt;" in html
        assert "#&lt;i&gt;1&lt;/i&gt;" in html
        assert 'href="https://x.example.com/?a=1&amp;b=&#34;2&#34;"' in html
        assert "900 x 2100 x 580.5 mm" in html
        assert "$1,234.50" in html

    def test_contact_email_escapes_fields(self):
        html = render_contact_email(name="<img src=x>", email="sam@example.com", subscribe=False)
        assert "<img" not in html
        assert "&lt;img src=x&gt;" in html

    def test_contact_email_fields(self):
        html = render_contact_email(name="Sam", email="sam@example.com", subscribe=True, postcode="3000")
        assert "sam@example.com" in html
        assert "Postcode" in html
        assert "Yes" in html

    def test_contact_email_without_postcode(self):
        html = render_contact_email(name="Sam", email="sam@example.com", subscribe=False)
        assert "Postcode" not in html
        assert "No" in html


class TestScreenshot:
    def test_decodes_data_url(self):
        assert decode_screenshot(f"data:image/png;base64,{PNG_B64}") == PNG_BYTES

    def test_decodes_raw_base64(self):
        assert decode_screenshot(PNG_B64) == PNG_BYTES

    def test_garbage_returns_none(self):
        assert decode_screenshot("data:image/png;base64,***not base64***") is None


class TestBuildMessage:
    def test_html_alternative_and_inline_image(self):
        msg = Mailer.build_message(
            sender="no-reply@example.com",
            to="customer@example.com",
            subject="Your design",
            html="<p>hi</p>",
            screenshot=PNG_BYTES,
        )
        assert msg["To"] == "customer@example.com"
        images = [p for p in msg.walk() if p.get_content_type() == "image/png"]
        assert len(images) == 1
        assert images[0]["Content-ID"] == "<design-screenshot>"
        assert images[0].get_filename() == "design.png"
        assert any(p.get_content_type() == "text/html" for p in msg.walk())

    def test_reply_to(self):
        msg = Mailer.build_message("a@example.com", "b@example.com", "s", "<p/>", reply_to="c@example.com")
        assert msg["Reply-To"] == "c@example.com"


class TestSend:
    """Tests for SMTP delivery through the fake server."""

    async def test_design_email_delivered(self, email_settings, fake_smtp):
        mailer = Mailer(email_settings)
        await mailer.send_design_email(share_request(screenshot_base64=f"data:image/png;base64,{PNG_B64}"))

        assert len(fake_smtp.sent) == 1
        msg = fake_smtp.sent[0]
        assert msg["To"] == "customer@example.com"
        assert msg["From"] == "no-reply@example.com"
        assert msg["Subject"] == "Your Flexi Wardrobe Design"
        assert any(p.get_content_type() == "image/png" for p in msg.walk())

    async def test_from_override(self, email_settings, fake_smtp):
        mailer = Mailer(email_settings)
        await mailer.send_design_email(share_request(from_address="sales@example.com"))
        assert fake_smtp.sent[0]["From"] == "sales@example.com"

    async def test_contact_email_goes_to_admin(self, email_settings, fake_smtp):
        mailer = Mailer(email_settings)
        await mailer.send_contact_email(
            ContactEmailRequest(email="sam@example.com", name="Sam", subject="Sizes", subscribe=True)
        )

        msg = fake_smtp.sent[0]
        assert msg["To"] == "admin@example.com"
        assert msg["Reply-To"] == "sam@example.com"
        assert msg["Subject"] == "Contact Form: Sizes"

    async def test_not_configured(self, fake_smtp):
        mailer = Mailer(Settings(EMAIL_USER="", EMAIL_PASS=""))
        with pytest.raises(EmailNotConfiguredError):
            await mailer.send_design_email(share_request())
        assert fake_smtp.sent == []

    async def test_rejected_recipient_raises_delivery_error(self, email_settings, fake_smtp):
        fake_smtp.fail_with = smtplib.SMTPRecipientsRefused({"customer@example.com": (550, b"no such user")})
        mailer = Mailer(email_settings)
        with pytest.raises(EmailDeliveryError):
            await mailer.send_design_email(share_request())
