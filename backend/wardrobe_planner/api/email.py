"""Email API — share a design by email, contact form relay, customer capture."""

import math

from fastapi import APIRouter, HTTPException, Request

import structlog

from wardrobe_planner.models.requests import (
    ContactEmailRequest,
    CustomerRequest,
    ShareDesignEmailRequest,
)
from wardrobe_planner.models.responses import CustomerResponse, EmailSentResponse

logger = structlog.get_logger()

router = APIRouter()


def _check_rate_limit(request: Request, address: str) -> str:
    limiter = request.app.state.email_rate_limiter
    client_ip = request.client.host if request.client else "unknown"
    wait = limiter.acquire(client_ip, address)
    if wait > 0:
        retry_after = max(1, math.ceil(wait))
        raise HTTPException(
            status_code=429,
            detail={
                "error": "Rate limit exceeded",
                "message": "Too many emails sent. Try again later.",
                "remaining": limiter.clients.remaining(client_ip),
                "retry_after_seconds": retry_after,
            },
            headers={"Retry-After": str(retry_after)},
        )
    return client_ip


@router.post("/email/share", response_model=EmailSentResponse)
async def share_design_by_email(request_body: ShareDesignEmailRequest, request: Request):
    """Send the customer a summary of their design."""
    client_ip = _check_rate_limit(request, request_body.to)
    await request.app.state.mailer.send_design_email(request_body)
    logger.info(
        "design_shared",
        design_code=request_body.design_code,
        with_screenshot=bool(request_body.screenshot_base64),
        client_ip=client_ip,
    )
    return EmailSentResponse()


@router.post("/email/contact", response_model=EmailSentResponse)
async def send_contact_form(request_body: ContactEmailRequest, request: Request):
    """Relay a contact form to the administrator and record the customer."""
    _check_rate_limit(request, request_body.email)
    await request.app.state.mailer.send_contact_email(request_body)
    await request.app.state.customer_store.save(
        CustomerRequest(
            email=request_body.email,
            name=request_body.name,
            postcode=request_body.postcode or "",
            accept_email=request_body.subscribe,
            design_id=request_body.design_id,
        )
    )
    return EmailSentResponse()


@router.post("/customers", status_code=201, response_model=CustomerResponse)
async def save_customer(request_body: CustomerRequest, request: Request):
    """Record customer details submitted with the share form."""
    record = await request.app.state.customer_store.save(request_body)
    return CustomerResponse(id=record["id"], created_at=record["created_at"])
