"""
Live-sync order mirror on top of Redis.

Records live at slash-separated paths such as
``customerOrders/<customer_id>/<order_id>``. The children of a path are kept
in one Redis hash (``<prefix>:<path>``) so the full value of an index path is
a single HGETALL. Every write publishes on the channel of the written path and
of its parent, and subscribers re-read the whole value when notified.
"""
from typing import Any, Awaitable, Callable, Optional
import asyncio
import inspect
import json
import logging
from redis.exceptions import RedisError
from ezyeats.config import settings
from ezyeats.core.exceptions import LiveSyncError
from ezyeats.core.redis import RedisClient, redis_client

logger = logging.getLogger(__name__)

SHOP_ORDERS_ROOT = "shopOrders"
CUSTOMER_ORDERS_ROOT = "customerOrders"

LiveCallback = Callable[[Optional[Any]], Any]


def shop_orders_path(shop_id: str, order_id: Optional[str] = None) -> str:
    """Index path of a shop's orders, or of one order under it"""
    path = f"{SHOP_ORDERS_ROOT}/{shop_id}"
    return f"{path}/{order_id}" if order_id else path


def customer_orders_path(customer_id: str, order_id: Optional[str] = None) -> str:
    """Index path of a customer's orders, or of one order under it"""
    path = f"{CUSTOMER_ORDERS_ROOT}/{customer_id}"
    return f"{path}/{order_id}" if order_id else path


def split_path(path: str) -> tuple[str, str]:
    """Split ``a/b/c`` into (``a/b``, ``c``)"""
    parts = [part for part in path.strip("/").split("/") if part]
    if len(parts) < 2:
        raise LiveSyncError(f"Path must name a child record: {path!r}")
    return "/".join(parts[:-1]), parts[-1]


async def _deliver(callback: LiveCallback, value: Optional[Any], path: str):
    """Invoke a sync or async callback, keeping the listener alive on errors"""
    try:
        result = callback(value)
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        logger.error(f"[LIVE] Callback for {path} raised: {e}", exc_info=True)


class LiveSubscription:
    """Handle for one live listener; close() stops callbacks and frees the connection"""

    def __init__(self, path: str, task: asyncio.Task, release: Callable[[], Awaitable[Any]]):
        self.path = path
        self._task = task
        self._release = release
        self._closed = False

    @property
    def active(self) -> bool:
        return not self._closed

    async def close(self):
        if self._closed:
            return
        self._closed = True
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        try:
            await self._release()
        except RedisError as e:
            logger.warning(f"[LIVE] Error releasing listener for {self.path}: {e}")
        logger.info(f"[LIVE] Listener closed: {self.path}")


class RedisLiveSync:
    """Path-addressed JSON records with change notification"""

    def __init__(self, redis: RedisClient, key_prefix: Optional[str] = None):
        self._redis = redis
        self._prefix = key_prefix or settings.LIVE_SYNC_KEY_PREFIX

    def _key(self, path: str) -> str:
        return f"{self._prefix}:{path.strip('/')}"

    @property
    def is_available(self) -> bool:
        return self._redis.is_connected

    async def write(self, path: str, record: dict):
        """Replace the record stored at ``path``"""
        parent, leaf = split_path(path)
        client = self._redis.client
        try:
            async with client.pipeline(transaction=True) as pipe:
                pipe.hset(self._key(parent), leaf, json.dumps(record, default=str))
                pipe.publish(self._key(parent), path)
                pipe.publish(self._key(path), path)
                await pipe.execute()
        except RedisError as e:
            raise LiveSyncError(f"Live-sync write to {path} failed: {e}") from e

    async def update(self, path: str, fields: dict):
        """Merge ``fields`` into the record at ``path``, creating it if missing"""
        current = await self.read(path)
        record = dict(current) if isinstance(current, dict) else {}
        record.update(fields)
        await self.write(path, record)

    async def read(self, path: str) -> Optional[Any]:
        """
        Full value at ``path``: a mapping of child id to record for index
        paths, the record itself for leaf paths, None when nothing is stored.
        """
        client = self._redis.client
        try:
            children = await client.hgetall(self._key(path))
            if children:
                return {child: json.loads(raw) for child, raw in children.items()}
            if "/" not in path.strip("/"):
                return None
            parent, leaf = split_path(path)
            raw = await client.hget(self._key(parent), leaf)
        except RedisError as e:
            raise LiveSyncError(f"Live-sync read of {path} failed: {e}") from e
        return json.loads(raw) if raw else None

    async def subscribe(self, path: str, callback: LiveCallback) -> LiveSubscription:
        """
        Call ``callback`` with the full value at ``path`` now (if any data
        exists) and after every change. Raises LiveSyncError when the
        listener cannot be established.
        """
        client = self._redis.client
        pubsub = client.pubsub()
        try:
            await pubsub.subscribe(self._key(path))
        except RedisError as e:
            await pubsub.aclose()
            raise LiveSyncError(f"Live-sync subscribe to {path} failed: {e}") from e

        task = asyncio.create_task(self._listen(path, pubsub, callback), name=f"live-sync:{path}")
        logger.info(f"[LIVE] Listener attached: {path}")
        return LiveSubscription(path, task, pubsub.aclose)

    async def _listen(self, path: str, pubsub, callback: LiveCallback):
        try:
            value = await self.read(path)
            if value is not None:
                await _deliver(callback, value, path)

            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                await _deliver(callback, await self.read(path), path)
        except (RedisError, LiveSyncError) as e:
            logger.error(f"[LIVE] Listener for {path} stopped: {e}")


# Global live-sync instance bound to the shared Redis client
live_sync = RedisLiveSync(redis_client)
