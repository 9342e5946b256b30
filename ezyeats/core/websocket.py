"""
WebSocket Connection Manager for the live order feed
"""
from typing import Dict, List
from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState
import logging
from ezyeats.core.datetime_utils import utc_now
from ezyeats.schemas.feed import FeedEventType

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks open feed sockets per customer"""

    def __init__(self):
        # Structure: {customer_id: [websockets]}
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, customer_id: str, platform: str = "mobile"):
        """Accept and register a new WebSocket connection"""
        await websocket.accept()

        self.active_connections.setdefault(customer_id, []).append(websocket)

        logger.info(
            f"WebSocket connected: customer:{customer_id} (platform: {platform}) | "
            f"Total connections: {self.connection_total()}"
        )

        # Send connection confirmation
        await self.send_personal_message(
            {
                "event": FeedEventType.CONNECTED.value,
                "customer_id": customer_id,
                "timestamp": utc_now().isoformat()
            },
            websocket
        )

    def disconnect(self, websocket: WebSocket, customer_id: str):
        """Remove a WebSocket connection"""
        sockets = self.active_connections.get(customer_id)
        if not sockets:
            return

        if websocket in sockets:
            sockets.remove(websocket)

        # Clean up empty lists
        if not sockets:
            del self.active_connections[customer_id]

        logger.info(f"WebSocket disconnected: customer:{customer_id}")

    async def send_personal_message(self, message: dict, websocket: WebSocket) -> bool:
        """Send message to a specific WebSocket connection"""
        if websocket.client_state != WebSocketState.CONNECTED:
            logger.warning(f"WebSocket is not connected (state: {websocket.client_state.name}), skipping message")
            return False
        try:
            await websocket.send_json(message)
            return True
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            logger.error(f"Error sending personal message: {e}")
            return False

    def connection_total(self) -> int:
        return sum(len(sockets) for sockets in self.active_connections.values())

    def get_connection_count(self) -> dict:
        """Get statistics about active connections"""
        return {
            "total": self.connection_total(),
            "customers": len(self.active_connections)
        }


# Global connection manager instance
connection_manager = ConnectionManager()
