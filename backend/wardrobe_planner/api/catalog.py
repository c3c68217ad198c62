"""Catalog API — read-only product listings and bundle pricing."""

from fastapi import APIRouter, Request

from wardrobe_planner.models.responses import BundlePriceResponse, CatalogResponse

router = APIRouter()


@router.get("/catalog", response_model=CatalogResponse)
async def get_catalog(request: Request):
    """Every planner item: products, accessories, organisors and bundles."""
    items = await request.app.state.catalog.get_all()
    return CatalogResponse(collection="all", count=len(items), items=items)


@router.get("/catalog/bundles/{bundle_id}/price", response_model=BundlePriceResponse)
async def get_bundle_price(bundle_id: str, request: Request):
    """Bundle price = base wardrobe + the accessories it packs."""
    breakdown = await request.app.state.catalog.bundle_price_breakdown(bundle_id)
    return BundlePriceResponse(**breakdown)


@router.get("/catalog/{collection}", response_model=CatalogResponse)
async def get_collection(collection: str, request: Request):
    items = await request.app.state.catalog.get_collection(collection)
    return CatalogResponse(collection=collection, count=len(items), items=items)
