"""Catalog service — products, accessories, organisors and bundles.

Each collection is a Redis hash of item id -> JSON document. Collections are
seeded from JSON exports of the hosted catalog, one ``<collection>.json`` per
collection.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Optional, Union

import structlog

from wardrobe_planner.errors import (
    CatalogItemNotFoundError,
    StoreUnavailableError,
    UnknownCollectionError,
)

logger = structlog.get_logger()

COLLECTIONS = ("products", "accessories", "organisors", "bundles")


def item_id(item: dict) -> Optional[str]:
    """Identifier of a catalog document (bundles use ItemName)."""
    for field in ("itemNumber", "ItemName", "code"):
        value = item.get(field)
        if value:
            return str(value)
    return None


def parse_export(collection: str, payload: Any) -> list[dict]:
    """Flatten an export file into a list of documents.

    Accepts ``{"<collection>": {"<docId>": {...}}}`` as written by the
    Firestore exporter, a bare ``{"<docId>": {...}}`` mapping, or a list.
    """
    if isinstance(payload, dict) and collection in payload:
        payload = payload[collection]
    if isinstance(payload, dict):
        return [doc for doc in payload.values() if isinstance(doc, dict)]
    if isinstance(payload, list):
        return [doc for doc in payload if isinstance(doc, dict)]
    raise ValueError(f"Unsupported export format for {collection}")


class CatalogService:
    """Read access to the product catalog plus bundle pricing."""

    def __init__(
        self,
        redis_client,
        key_prefix: str = "wardrobe",
        base_wardrobe_item_number: str = "2583987",
    ):
        self.redis = redis_client
        self._prefix = f"{key_prefix}:catalog:"
        self.base_wardrobe_item_number = base_wardrobe_item_number

    def _key(self, collection: str) -> str:
        if collection not in COLLECTIONS:
            raise UnknownCollectionError(collection)
        return f"{self._prefix}{collection}"

    def _client(self):
        if self.redis is None:
            raise StoreUnavailableError("Catalog store is not connected")
        return self.redis

    async def get_collection(self, collection: str) -> list[dict]:
        key = self._key(collection)
        values = await self._client().hvals(key)
        return [json.loads(v) for v in values]

    async def get_all(self) -> list[dict]:
        """All items from every collection, in COLLECTIONS order."""
        results = await asyncio.gather(*(self.get_collection(c) for c in COLLECTIONS))
        return [item for items in results for item in items]

    async def get_item(self, collection: str, item_id_: str) -> dict:
        data = await self._client().hget(self._key(collection), item_id_)
        if data is None:
            raise CatalogItemNotFoundError(collection, item_id_)
        return json.loads(data)

    async def replace_collection(self, collection: str, items: list[dict]) -> int:
        """Replace a whole collection. Items without an id are skipped."""
        key = self._key(collection)
        mapping = {}
        for item in items:
            iid = item_id(item)
            if iid is None:
                logger.warning("catalog_item_without_id", collection=collection)
                continue
            mapping[iid] = json.dumps(item)

        redis = self._client()
        await redis.delete(key)
        if mapping:
            await redis.hset(key, mapping=mapping)
        logger.info("catalog_collection_loaded", collection=collection, items=len(mapping))
        return len(mapping)

    async def seed_from_directory(self, directory: Union[str, Path]) -> dict[str, int]:
        """Load every ``<collection>.json`` present in a directory."""
        directory = Path(directory)
        loaded = {}
        for collection in COLLECTIONS:
            path = directory / f"{collection}.json"
            if not path.exists():
                continue
            payload = json.loads(path.read_text(encoding="utf-8"))
            loaded[collection] = await self.replace_collection(
                collection, parse_export(collection, payload)
            )
        return loaded

    async def bundle_price_breakdown(self, bundle_id: str) -> dict:
        """Price a bundle as base wardrobe + each packed accessory.

        Unknown accessories are logged and left out of the total.
        """
        bundle = await self.get_item("bundles", bundle_id)

        try:
            base = await self.get_item("products", self.base_wardrobe_item_number)
            base_price = float(base.get("price") or 0)
        except CatalogItemNotFoundError:
            logger.warning("base_wardrobe_missing", item_number=self.base_wardrobe_item_number)
            base_price = 0.0

        accessories = []
        for item_number in bundle.get("packDetails") or []:
            try:
                accessory = await self.get_item("accessories", str(item_number))
            except CatalogItemNotFoundError:
                logger.warning("bundle_accessory_missing", bundle_id=bundle_id, item_number=item_number)
                continue
            accessories.append({
                "item_number": str(item_number),
                "name": accessory.get("name", ""),
                "price": float(accessory.get("price") or 0),
            })

        accessories_total = sum(a["price"] for a in accessories)
        return {
            "bundle_id": bundle_id,
            "base_price": base_price,
            "accessories": accessories,
            "accessories_total": round(accessories_total, 2),
            "total": round(base_price + accessories_total, 2),
        }
