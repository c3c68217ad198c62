"""Designs API — design codes, save, resume by code, update, delete."""

from typing import Optional

from fastapi import APIRouter, Query, Request

import structlog

from wardrobe_planner.config import get_settings
from wardrobe_planner.models.design import DesignChannel, DesignDocument
from wardrobe_planner.models.requests import SaveDesignRequest
from wardrobe_planner.models.responses import (
    DeleteDesignResponse,
    DesignCodeResponse,
    DesignCodeStatusResponse,
    SaveDesignResponse,
)
from wardrobe_planner.services.design_codes import normalize_design_code

logger = structlog.get_logger()

router = APIRouter()


def _resume_url(design_code: str) -> str:
    base = get_settings().PUBLIC_BASE_URL.rstrip("/")
    return f"{base}/?design={design_code}"


def _code_from_path(request: Request, raw: str) -> str:
    # Whatever length the generator issues must resolve again
    return normalize_design_code(raw, request.app.state.code_generator.min_resume_length)


def _save_response(doc: DesignDocument) -> SaveDesignResponse:
    return SaveDesignResponse(
        design_code=doc.design_id,
        channel=doc.channel,
        created_at=doc.created_at,
        updated_at=doc.updated_at,
        resume_url=_resume_url(doc.design_id),
    )


@router.post("/design-codes", status_code=201, response_model=DesignCodeResponse)
async def create_design_code(
    request: Request,
    length: Optional[int] = Query(default=None, ge=0, le=32),
):
    """Generate a fresh design code without saving anything."""
    generator = request.app.state.code_generator
    return DesignCodeResponse(design_code=generator.generate(length))


@router.get("/design-codes/{design_code}", response_model=DesignCodeStatusResponse)
async def get_design_code_status(
    design_code: str,
    request: Request,
    channel: DesignChannel = DesignChannel.FLEXI,
):
    """Report whether a code is held, including by a deleted design."""
    code = _code_from_path(request, design_code)
    taken = await request.app.state.design_store.exists(code, channel)
    return DesignCodeStatusResponse(design_code=code, channel=channel, taken=taken)


@router.post("/designs", status_code=201, response_model=SaveDesignResponse)
async def save_design(
    request_body: SaveDesignRequest,
    request: Request,
    channel: DesignChannel = DesignChannel.FLEXI,
):
    """Save a new design and return the code that resumes it."""
    store = request.app.state.design_store
    doc = await store.create(
        request_body,
        request.app.state.code_generator,
        channel=channel,
        max_attempts=get_settings().DESIGN_CODE_MAX_ATTEMPTS,
    )
    return _save_response(doc)


@router.get("/designs/latest", response_model=DesignDocument)
async def get_latest_design(request: Request, channel: DesignChannel = DesignChannel.FLEXI):
    """Most recently updated design in a channel."""
    return await request.app.state.design_store.latest(channel)


@router.get("/designs/{design_code}", response_model=DesignDocument)
async def resume_design(design_code: str, request: Request, channel: DesignChannel = DesignChannel.FLEXI):
    """Look up a design by its (user-entered) code."""
    code = _code_from_path(request, design_code)
    doc = await request.app.state.design_store.get(code, channel)
    logger.info("design_resumed", design_code=code, channel=channel.value)
    return doc


@router.put("/designs/{design_code}", response_model=SaveDesignResponse)
async def update_design(
    design_code: str,
    request_body: SaveDesignRequest,
    request: Request,
    channel: DesignChannel = DesignChannel.FLEXI,
):
    """Overwrite an existing design, keeping its code."""
    code = _code_from_path(request, design_code)
    doc = await request.app.state.design_store.update(code, request_body, channel)
    return _save_response(doc)


@router.delete("/designs/{design_code}", response_model=DeleteDesignResponse)
async def delete_design(design_code: str, request: Request, channel: DesignChannel = DesignChannel.FLEXI):
    """Soft-delete a design."""
    code = _code_from_path(request, design_code)
    await request.app.state.design_store.delete(code, channel)
    return DeleteDesignResponse(design_code=code)
