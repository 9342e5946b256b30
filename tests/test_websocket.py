"""
Tests for the /ws/orders live feed
"""
from datetime import datetime, timedelta, timezone

import pytest
from starlette.websockets import WebSocketDisconnect

from ezyeats.core.security import create_access_token

BASE = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def mirror_record(order_id: str, status: str, minutes: int) -> dict:
    return {
        "id": order_id,
        "customer_id": "customer-1",
        "shop_id": "shop-1",
        "shop_name": "Campus Grill",
        "items": [{"item_id": "item-burger", "name": "Classic Burger", "unit_price": 100.0, "quantity": 1}],
        "total_amount": 100.0,
        "status": status,
        "pickup_time": "ASAP",
        "created_at": (BASE + timedelta(minutes=minutes)).isoformat(),
    }


class TestOrdersWebSocket:
    """Live order feed over WebSocket"""

    def test_rejects_invalid_token(self, ws_client):
        with pytest.raises(WebSocketDisconnect):
            with ws_client.websocket_connect("/ws/orders?token=invalid") as websocket:
                websocket.receive_json()

    def test_snapshot_filter_and_ping(self, ws_client, live, customer_token):
        live.seed("customerOrders/customer-1/o1", mirror_record("o1", "completed", 0))
        live.seed("customerOrders/customer-1/o2", mirror_record("o2", "pending", 5))

        with ws_client.websocket_connect(f"/ws/orders?token={customer_token}") as websocket:
            connected = websocket.receive_json()
            assert connected["event"] == "connected"
            assert connected["customer_id"] == "customer-1"

            snapshot = websocket.receive_json()
            assert snapshot["event"] == "orders.snapshot"
            assert snapshot["filter"] == "all"
            assert [order["id"] for order in snapshot["orders"]] == ["o2", "o1"]

            websocket.send_json({"type": "filter", "value": "active"})
            filtered = websocket.receive_json()
            assert filtered["filter"] == "active"
            assert [order["id"] for order in filtered["orders"]] == ["o2"]

            websocket.send_json({"type": "filter", "value": "refunded"})
            assert websocket.receive_json()["event"] == "error"

            websocket.send_json({"type": "ping", "timestamp": 1})
            assert websocket.receive_json() == {"type": "pong", "timestamp": 1}

    def test_only_own_orders(self, ws_client, live):
        token = create_access_token({"customer_id": "customer-9", "email": "other@example.edu"})
        live.seed("customerOrders/customer-1/o1", mirror_record("o1", "pending", 0))

        with ws_client.websocket_connect(f"/ws/orders?token={token}") as websocket:
            assert websocket.receive_json()["event"] == "connected"
            websocket.send_json({"type": "ping"})
            assert websocket.receive_json()["type"] == "pong"

    def test_listener_released_on_disconnect(self, ws_client, live, customer_token):
        live.seed("customerOrders/customer-1/o1", mirror_record("o1", "pending", 0))

        with ws_client.websocket_connect(f"/ws/orders?token={customer_token}") as websocket:
            websocket.receive_json()
            websocket.receive_json()
            websocket.send_json({"type": "ping"})
            websocket.receive_json()

        assert live.listeners["customerOrders/customer-1"] == []
