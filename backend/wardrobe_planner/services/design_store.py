"""Design store — Redis-backed design documents keyed by design code."""

import json
import time
from datetime import datetime, timezone
from typing import Callable

import structlog
from redis.exceptions import WatchError
from tenacity import AsyncRetrying, RetryError, stop_after_attempt, retry_if_exception_type

from wardrobe_planner.errors import (
    DesignCodeCollisionError,
    DesignConflictError,
    DesignNotFoundError,
    StoreUnavailableError,
)
from wardrobe_planner.models.design import DesignChannel, DesignDocument
from wardrobe_planner.models.requests import SaveDesignRequest
from wardrobe_planner.services.design_codes import DesignCodeGenerator

logger = structlog.get_logger()

# Optimistic-lock retries before giving up on a contended design
MAX_WRITE_ATTEMPTS = 5


def _now() -> tuple[str, float]:
    return datetime.now(timezone.utc).isoformat(), time.time()


def _load(data) -> DesignDocument:
    return DesignDocument.model_validate(json.loads(data))


class DesignStore:
    """Manages saved designs in Redis.

    Each channel maps to its own collection. Documents live at
    ``<prefix>:<collection>:<code>``; a sorted set per collection indexes
    live designs by last update time (float seconds).
    """

    def __init__(self, redis_client, key_prefix: str = "wardrobe"):
        self.redis = redis_client
        self._prefix = f"{key_prefix}:"

    def _key(self, channel: DesignChannel, design_code: str) -> str:
        return f"{self._prefix}{channel.collection}:{design_code}"

    def _index_key(self, channel: DesignChannel) -> str:
        return f"{self._prefix}{channel.collection}:updated"

    def _client(self):
        if self.redis is None:
            raise StoreUnavailableError("Design store is not connected")
        return self.redis

    def _index(self, client, doc: DesignDocument, score: float):
        index_key = self._index_key(doc.channel)
        if doc.deleted:
            return client.zrem(index_key, doc.design_id)
        return client.zadd(index_key, {doc.design_id: score})

    async def _insert(
        self,
        design_code: str,
        request: SaveDesignRequest,
        channel: DesignChannel,
    ) -> DesignDocument:
        iso, now = _now()
        doc = DesignDocument(
            design_id=design_code,
            channel=channel,
            design_data=request.design_data,
            shopping_cart=request.shopping_cart,
            total_price=request.total_price,
            created_at=iso,
            updated_at=iso,
            unix_timestamp=int(now),
        )
        redis = self._client()
        if not await redis.set(self._key(channel, design_code), doc.model_dump_json(), nx=True):
            logger.warning("design_code_collision", design_code=design_code, channel=channel.value)
            raise DesignCodeCollisionError(design_code)
        await self._index(redis, doc, now)
        return doc

    async def _modify(
        self,
        design_code: str,
        channel: DesignChannel,
        change: Callable[[DesignDocument, str, float], DesignDocument],
    ) -> DesignDocument:
        """Read-modify-write a live design under WATCH.

        If the key changes between the read and the write the transaction is
        discarded and the whole step runs again against the fresh document.
        """
        redis = self._client()
        key = self._key(channel, design_code)

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(MAX_WRITE_ATTEMPTS),
                retry=retry_if_exception_type(WatchError),
            ):
                with attempt:
                    async with redis.pipeline(transaction=True) as pipe:
                        await pipe.watch(key)
                        data = await pipe.get(key)
                        if data is None:
                            raise DesignNotFoundError(design_code, channel.value)
                        current = _load(data)
                        if current.deleted:
                            raise DesignNotFoundError(design_code, channel.value)

                        iso, now = _now()
                        doc = change(current, iso, now)
                        pipe.multi()
                        pipe.set(key, doc.model_dump_json())
                        self._index(pipe, doc, now)
                        await pipe.execute()
        except RetryError as e:
            logger.warning("design_write_contended", design_code=design_code, channel=channel.value)
            raise DesignConflictError(design_code) from e
        return doc

    async def create(
        self,
        request: SaveDesignRequest,
        generator: DesignCodeGenerator,
        channel: DesignChannel = DesignChannel.FLEXI,
        max_attempts: int = 5,
    ) -> DesignDocument:
        """Save a new design under a freshly generated code.

        A code that is already taken is regenerated, up to ``max_attempts``
        times; after that DesignCodeCollisionError propagates.
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            retry=retry_if_exception_type(DesignCodeCollisionError),
            reraise=True,
        ):
            with attempt:
                doc = await self._insert(generator.generate(), request, channel)

        logger.info(
            "design_saved",
            design_code=doc.design_id,
            channel=channel.value,
            wardrobes=len(doc.design_data.wardrobe_instances),
            total_price=doc.total_price,
        )
        return doc

    async def get(self, design_code: str, channel: DesignChannel = DesignChannel.FLEXI) -> DesignDocument:
        """Retrieve a design. Soft-deleted designs count as missing."""
        data = await self._client().get(self._key(channel, design_code))
        if data is None:
            raise DesignNotFoundError(design_code, channel.value)
        doc = _load(data)
        if doc.deleted:
            raise DesignNotFoundError(design_code, channel.value)
        return doc

    async def update(
        self,
        design_code: str,
        request: SaveDesignRequest,
        channel: DesignChannel = DesignChannel.FLEXI,
    ) -> DesignDocument:
        """Overwrite the design contents of an existing code."""
        doc = await self._modify(
            design_code,
            channel,
            lambda current, iso, now: current.model_copy(update={
                "design_data": request.design_data,
                "shopping_cart": request.shopping_cart,
                "total_price": request.total_price,
                "updated_at": iso,
                "unix_timestamp": int(now),
            }),
        )
        logger.info("design_updated", design_code=design_code, channel=channel.value)
        return doc

    async def latest(self, channel: DesignChannel = DesignChannel.FLEXI) -> DesignDocument:
        """Most recently updated live design in a channel."""
        codes = await self._client().zrevrange(self._index_key(channel), 0, 0)
        if not codes:
            raise DesignNotFoundError("latest", channel.value)
        code = codes[0]
        if isinstance(code, bytes):
            code = code.decode()
        return await self.get(code, channel)

    async def delete(self, design_code: str, channel: DesignChannel = DesignChannel.FLEXI) -> None:
        """Soft delete: the document is kept but flagged."""
        await self._modify(
            design_code,
            channel,
            lambda current, iso, now: current.model_copy(update={
                "deleted": True,
                "deleted_at": iso,
                "unix_timestamp": int(now),
            }),
        )
        logger.info("design_deleted", design_code=design_code, channel=channel.value)

    async def exists(self, design_code: str, channel: DesignChannel = DesignChannel.FLEXI) -> bool:
        """Check if a code is taken (deleted designs still hold their code)."""
        return bool(await self._client().exists(self._key(channel, design_code)))
