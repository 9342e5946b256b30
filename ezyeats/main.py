from fastapi import Depends, FastAPI, Request, WebSocket, WebSocketDisconnect, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.websockets import WebSocketState
from contextlib import asynccontextmanager
from typing import List
import logging

from ezyeats.config import settings
from ezyeats.database import init_db, close_db, async_session_maker
from ezyeats.tasks.scheduler import start_scheduler, stop_scheduler
from ezyeats.core.exceptions import EzyeatsError
from ezyeats.core.rate_limit import limiter
from ezyeats.core.redis import init_redis, close_redis, redis_client
from ezyeats.core.security import customer_from_token
from ezyeats.core.websocket import connection_manager
from ezyeats.api.deps import get_order_feed
from ezyeats.schemas.feed import FeedErrorEvent, OrdersSnapshotEvent
from ezyeats.schemas.order import OrderResponse
from ezyeats.services.cart_store import CartRegistry
from ezyeats.services.order_feed import OrderFeed, OrderFilter, filter_orders

# Import routers
from ezyeats.api import shops, cart, orders

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Reduce SQLAlchemy log verbosity
logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("Starting EZYeats Pickup API...")

    await init_db()
    logger.info("Database initialized")

    # The live-sync mirror is optional; orders still go to the database without it
    await init_redis()
    logger.info("Redis initialized")

    start_scheduler()

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down...")
    stop_scheduler()
    await close_redis()
    await close_db()
    logger.info("Application shutdown complete")


# Disable docs in production
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="EZYeats Pickup API - browse campus food shops and order for pickup",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None
)

# Carts live for the lifetime of the process, one per customer
app.state.carts = CartRegistry()

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(EzyeatsError)
async def ezyeats_error_handler(request: Request, exc: EzyeatsError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# CORS middleware - must be added BEFORE other middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(shops.router, prefix=f"{settings.API_V1_PREFIX}/shops", tags=["Shops"])
app.include_router(cart.router, prefix=f"{settings.API_V1_PREFIX}/cart", tags=["Cart"])
app.include_router(orders.router, prefix=f"{settings.API_V1_PREFIX}/orders", tags=["Orders"])


@app.get("/")
async def root():
    response = {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }

    # Only show docs links in development
    if settings.DEBUG:
        response["docs"] = "/docs"
        response["redoc"] = "/redoc"

    return response


@app.get("/health")
async def health_check():
    """Health check with database and live-sync connectivity"""
    health_status = {
        "status": "ok",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION
    }

    try:
        async with async_session_maker() as db:
            await db.execute(text("SELECT 1"))
        health_status["database"] = "connected"
    except (SQLAlchemyError, OSError) as e:
        health_status["status"] = "unhealthy"
        health_status["database"] = f"disconnected: {str(e)}"
        logger.error(f"Health check failed: {e}")

    # Orders keep working without the mirror, so this only degrades
    if await redis_client.ping():
        health_status["redis"] = "connected"
    else:
        health_status["redis"] = "disconnected"
        if health_status["status"] == "ok":
            health_status["status"] = "degraded"

    health_status["websocket_connections"] = connection_manager.get_connection_count()

    return health_status


@app.websocket("/ws/orders")
async def orders_websocket(
    websocket: WebSocket,
    token: str = Query(...),
    platform: str = Query("mobile"),
    feed: OrderFeed = Depends(get_order_feed)
):
    """
    Live order list of the authenticated customer

    Usage:
    ws://localhost:8000/ws/orders?token=YOUR_JWT_TOKEN

    Client messages:
    - {"type": "ping"} -> {"type": "pong"}
    - {"type": "filter", "value": "active"} -> last snapshot, filtered
    """
    customer = customer_from_token(token)
    if not customer:
        logger.warning("WebSocket rejected: invalid token")
        await websocket.close(code=1008, reason="Invalid token")
        return

    await connection_manager.connect(websocket, customer.id, platform)

    latest: List[OrderResponse] = []
    state = {"filter": OrderFilter.ALL.value}

    async def send_snapshot():
        event = OrdersSnapshotEvent(
            filter=state["filter"],
            orders=filter_orders(latest, state["filter"])
        )
        await connection_manager.send_personal_message(event.model_dump(mode="json"), websocket)

    async def on_update(orders: List[OrderResponse]):
        latest[:] = orders
        await send_snapshot()

    try:
        async with await feed.subscribe(customer.id, on_update):
            while True:
                data = await websocket.receive_json()

                if data.get("type") == "ping":
                    await connection_manager.send_personal_message(
                        {"type": "pong", "timestamp": data.get("timestamp")},
                        websocket
                    )
                elif data.get("type") == "filter":
                    try:
                        state["filter"] = OrderFilter(data.get("value")).value
                    except ValueError:
                        await connection_manager.send_personal_message(
                            FeedErrorEvent(message=f"Unknown order filter: {data.get('value')}").model_dump(mode="json"),
                            websocket
                        )
                        continue
                    await send_snapshot()

    except WebSocketDisconnect:
        pass
    except (EzyeatsError, ValueError) as e:
        # ValueError covers malformed JSON frames
        logger.error(f"[FEED] WebSocket feed for customer {customer.id} failed: {e}")
        await connection_manager.send_personal_message(
            FeedErrorEvent(message=str(e)).model_dump(mode="json"),
            websocket
        )
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close(code=1011)
    finally:
        connection_manager.disconnect(websocket, customer.id)


@app.get("/ws/stats")
async def websocket_stats():
    """Get WebSocket connection statistics (for monitoring)"""
    return connection_manager.get_connection_count()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "ezyeats.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
