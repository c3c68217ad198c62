"""Customer store — records details submitted with the share-via-email form."""

import json
import time
import uuid
from datetime import datetime, timezone

import structlog

from wardrobe_planner.errors import StoreUnavailableError
from wardrobe_planner.models.requests import CustomerRequest

logger = structlog.get_logger()

RECENT_LIMIT = 1000


class CustomerStore:
    """Append-only customer records in Redis."""

    def __init__(self, redis_client, key_prefix: str = "wardrobe"):
        self.redis = redis_client
        self._prefix = f"{key_prefix}:customers:"

    def _key(self, customer_id: str) -> str:
        return f"{self._prefix}{customer_id}"

    async def save(self, customer: CustomerRequest) -> dict:
        """Store a customer record and return it with its generated id."""
        if self.redis is None:
            raise StoreUnavailableError("Customer store is not connected")

        customer_id = uuid.uuid4().hex
        record = {
            "id": customer_id,
            **customer.model_dump(),
            "created_at": datetime.now(timezone.utc).isoformat(),
            "unix_timestamp": int(time.time()),
        }
        await self.redis.set(self._key(customer_id), json.dumps(record))
        await self.redis.lpush(f"{self._prefix}recent", customer_id)
        await self.redis.ltrim(f"{self._prefix}recent", 0, RECENT_LIMIT - 1)

        logger.info("customer_saved", customer_id=customer_id, design_id=customer.design_id)
        return record
