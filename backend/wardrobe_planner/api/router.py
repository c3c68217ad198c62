"""Main API router — combines all endpoint routers."""

from fastapi import APIRouter

from wardrobe_planner.api.health import router as health_router
from wardrobe_planner.api.designs import router as designs_router
from wardrobe_planner.api.catalog import router as catalog_router
from wardrobe_planner.api.email import router as email_router

api_router = APIRouter()

# Health check
api_router.include_router(health_router, tags=["Health"])

# Design codes, save and resume
api_router.include_router(designs_router, tags=["Designs"])

# Product catalog
api_router.include_router(catalog_router, tags=["Catalog"])

# Email sharing and customer capture
api_router.include_router(email_router, tags=["Email"])
