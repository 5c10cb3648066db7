from typing import Optional, Any, List
import json
import logging
import redis.asyncio as redis
from redis.asyncio import Redis

logger = logging.getLogger(__name__)


class RedisManager:
    """Redis connection manager and utilities"""

    def __init__(self):
        self._redis_client: Optional[Redis] = None
        self._is_connected = False

    async def connect(self, redis_url: str) -> None:
        """Establish Redis connection"""
        try:
            self._redis_client = redis.from_url(
                redis_url,
                encoding="utf-8",
                decode_responses=False,
                max_connections=20,
                retry_on_timeout=True,
                socket_timeout=5,
                socket_connect_timeout=5,
                health_check_interval=30
            )
            await self._redis_client.ping()
            self._is_connected = True
            logger.info("Redis connection established")
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self._is_connected = False
            raise

    async def disconnect(self) -> None:
        """Close Redis connection"""
        if self._redis_client:
            await self._redis_client.aclose()
            self._is_connected = False
            logger.info("Redis connection closed")

    @property
    def client(self) -> Redis:
        if not self._is_connected or not self._redis_client:
            raise RuntimeError("Redis is not connected")
        return self._redis_client

    async def is_healthy(self) -> bool:
        try:
            if self._redis_client:
                await self._redis_client.ping()
                return True
        except Exception as e:
            logger.error(f"Redis health check failed: {e}")
        return False


# Global Redis manager instance
redis_manager = RedisManager()


class ClientStorage:
    """
    Per-user key/value state the web client keeps between visits.

    Keys are ``bepawa_<kind>_<user_id>`` and never expire. Values are JSON;
    a missing or unreadable value reads as the supplied default.
    """

    KINDS = ("wishlist", "cart", "notifications")
    GUEST = "guest"

    def __init__(self, redis_client: Redis):
        self.redis = redis_client

    @classmethod
    def key(cls, kind: str, user_id: Optional[str]) -> str:
        if kind not in cls.KINDS:
            raise ValueError(f"Unknown client storage kind: {kind}")
        return f"bepawa_{kind}_{user_id or cls.GUEST}"

    async def get(self, kind: str, user_id: Optional[str], default: Any = None) -> Any:
        raw = await self.redis.get(self.key(kind, user_id))
        if raw is None:
            return default
        try:
            return json.loads(raw.decode("utf-8") if isinstance(raw, bytes) else raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning(f"Discarding corrupt {kind} entry for {user_id}")
            return default

    async def set(self, kind: str, user_id: Optional[str], value: Any) -> None:
        await self.redis.set(self.key(kind, user_id), json.dumps(value, default=str).encode("utf-8"))

    async def delete(self, kind: str, user_id: Optional[str]) -> bool:
        return await self.redis.delete(self.key(kind, user_id)) > 0

    async def wishlist(self, user_id: Optional[str]) -> List[str]:
        value = await self.get("wishlist", user_id, [])
        return [str(item) for item in value] if isinstance(value, list) else []

    async def toggle_wishlist(self, user_id: Optional[str], product_id: str) -> List[str]:
        """Add or remove ``product_id``; returns the updated list"""
        items = await self.wishlist(user_id)
        if product_id in items:
            items = [item for item in items if item != product_id]
        else:
            items = items + [product_id]
        await self.set("wishlist", user_id, items)
        return items
