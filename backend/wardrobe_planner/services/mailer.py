"""Mailer — transactional email relay over SMTP."""

import asyncio
import base64
import binascii
import smtplib
from email.message import EmailMessage
from typing import Optional

import structlog
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from wardrobe_planner.config import Settings
from wardrobe_planner.errors import EmailDeliveryError, EmailNotConfiguredError
from wardrobe_planner.models.requests import ContactEmailRequest, ShareDesignEmailRequest
from wardrobe_planner.services.email_templates import (
    SCREENSHOT_CID,
    render_contact_email,
    render_design_email,
)

logger = structlog.get_logger()

# Connection-level failures worth another attempt
TRANSIENT_SMTP_ERRORS = (
    smtplib.SMTPServerDisconnected,
    smtplib.SMTPConnectError,
    ConnectionError,
    TimeoutError,
)


def decode_screenshot(screenshot: str) -> Optional[bytes]:
    """Decode a data URL or raw base64 PNG. Returns None if undecodable."""
    data = screenshot.split(",", 1)[1] if "," in screenshot else screenshot
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("screenshot_decode_failed", length=len(screenshot))
        return None


class Mailer:
    """Builds and sends the service's emails."""

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def configured(self) -> bool:
        return self.settings.email_configured

    def _sender(self, override: Optional[str] = None) -> str:
        return override or self.settings.EMAIL_FROM or self.settings.EMAIL_USER

    @staticmethod
    def build_message(
        sender: str,
        to: str,
        subject: str,
        html: str,
        reply_to: Optional[str] = None,
        screenshot: Optional[bytes] = None,
    ) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = sender
        msg["To"] = to
        if reply_to:
            msg["Reply-To"] = reply_to
        msg.set_content("This email contains HTML content. Please view it in an HTML-capable client.")
        msg.add_alternative(html, subtype="html")
        if screenshot:
            html_part = msg.get_payload()[1]
            html_part.add_related(
                screenshot,
                maintype="image",
                subtype="png",
                cid=f"<{SCREENSHOT_CID}>",
                filename="design.png",
            )
        return msg

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(TRANSIENT_SMTP_ERRORS),
        reraise=True,
        before_sleep=lambda retry_state: logger.warning(
            "smtp_retry",
            attempt=retry_state.attempt_number,
            wait=retry_state.next_action.sleep,
        ),
    )
    def _deliver(self, msg: EmailMessage) -> None:
        s = self.settings
        if s.SMTP_USE_SSL:
            server = smtplib.SMTP_SSL(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT_SECONDS)
        else:
            server = smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT_SECONDS)
        with server:
            if not s.SMTP_USE_SSL:
                server.starttls()
            server.login(s.EMAIL_USER, s.EMAIL_PASS)
            server.send_message(msg)

    async def send(self, msg: EmailMessage) -> None:
        """Send a message from a worker thread (smtplib blocks)."""
        if not self.configured:
            raise EmailNotConfiguredError()
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("email_send_failed", to=msg["To"], error=str(e), error_type=type(e).__name__)
            raise EmailDeliveryError(str(e)) from e
        logger.info("email_sent", to=msg["To"], subject=msg["Subject"])

    async def send_design_email(self, request: ShareDesignEmailRequest) -> None:
        """Email a design summary to the customer."""
        screenshot = decode_screenshot(request.screenshot_base64) if request.screenshot_base64 else None
        html = render_design_email(
            url=request.url or self.settings.PUBLIC_BASE_URL,
            show_image=screenshot is not None,
            products=request.products,
            organizers=request.organizers,
            total_price=request.total_price,
            total_items=request.total_items,
            total_quantity=request.total_quantity,
            design_code=request.design_code,
            customer_name=request.customer_name,
            bunnings_checkout_url=request.bunnings_checkout_url,
            bunnings_trade_checkout_url=request.bunnings_trade_checkout_url,
        )
        msg = self.build_message(
            sender=self._sender(request.from_address),
            to=request.to,
            subject=request.subject,
            html=html,
            screenshot=screenshot,
        )
        await self.send(msg)

    async def send_contact_email(self, request: ContactEmailRequest) -> None:
        """Forward a contact form to the admin, replying to the customer."""
        html = render_contact_email(
            name=request.name,
            email=request.email,
            postcode=request.postcode,
            subscribe=request.subscribe,
        )
        msg = self.build_message(
            sender=self._sender(),
            to=self.settings.ADMIN_EMAIL or self.settings.EMAIL_USER,
            subject=f"Contact Form: {request.subject}",
            html=html,
            reply_to=request.email,
        )
        await self.send(msg)
