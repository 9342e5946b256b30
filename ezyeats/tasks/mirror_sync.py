from sqlalchemy.ext.asyncio import async_sessionmaker
from ezyeats.database import async_session_maker
from ezyeats.core.exceptions import PersistenceError
from ezyeats.core.live_sync import RedisLiveSync, live_sync
from ezyeats.services.order_service import mirror_order
from ezyeats.services.order_store import order_store, serialize_order
import logging

logger = logging.getLogger(__name__)


async def rebuild_live_mirror(
    session_factory: async_sessionmaker = async_session_maker,
    live: RedisLiveSync = live_sync
) -> int:
    """
    Rewrite the shop and customer indexes of the live-sync mirror from the
    durable store. Returns the number of orders fully mirrored.
    """
    if not live.is_available:
        logger.warning("[MIRROR] Live-sync store unavailable, skipping rebuild")
        return 0

    async with session_factory() as db:
        try:
            orders = await order_store.query(db)
        except PersistenceError as e:
            logger.error(f"[MIRROR] Could not read orders for rebuild: {e}")
            return 0

        mirrored = 0
        for order in orders:
            written = await mirror_order(
                live, order.id, order.shop_id, order.customer_id, serialize_order(order)
            )
            if written == 2:
                mirrored += 1

    logger.info(f"[MIRROR] Rebuilt live mirror: {mirrored}/{len(orders)} orders")
    return mirrored
