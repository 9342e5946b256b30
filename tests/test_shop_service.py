"""
Tests for the shop catalogue and QR lookups
"""
import pytest

from ezyeats.core.exceptions import NotFoundError, ValidationError
from ezyeats.core.qr import parse_shop_qr, shop_qr_payload
from ezyeats.services.shop_service import shop_service


class TestQRPayload:
    """Shop QR payload parsing"""

    def test_parse(self):
        assert parse_shop_qr("ezyeats-shop:shop-1") == "shop-1"
        assert parse_shop_qr("  ezyeats-shop:shop-1\n") == "shop-1"

    def test_payload_round_trip(self):
        assert parse_shop_qr(shop_qr_payload("abc123")) == "abc123"

    def test_custom_prefix(self):
        assert parse_shop_qr("campus:shop-9", prefix="campus") == "shop-9"

    @pytest.mark.parametrize("payload", [None, "", "shop-1", "other-app:shop-1", "ezyeats-shop:", "ezyeats-shop:   "])
    def test_invalid_payloads(self, payload):
        with pytest.raises(ValidationError):
            parse_shop_qr(payload)


class TestListShops:
    """Shop listing"""

    async def test_sorted_by_name(self, db_session, test_shop, second_shop):
        shops = await shop_service.list_shops(db_session)

        assert [shop.name for shop in shops] == ["Bean There", "Campus Grill"]

    async def test_category_filter(self, db_session, test_shop, second_shop):
        assert [shop.id for shop in await shop_service.list_shops(db_session, category="Cafe")] == ["shop-2"]
        assert len(await shop_service.list_shops(db_session, category="All")) == 2

    async def test_search_is_case_insensitive(self, db_session, test_shop, second_shop):
        by_name = await shop_service.list_shops(db_session, search="grill")
        by_location = await shop_service.list_shops(db_session, search="LIBRARY")
        by_category = await shop_service.list_shops(db_session, search="cafe")

        assert [shop.id for shop in by_name] == ["shop-1"]
        assert [shop.id for shop in by_location] == ["shop-2"]
        assert [shop.id for shop in by_category] == ["shop-2"]

    async def test_no_matches(self, db_session, test_shop):
        assert await shop_service.list_shops(db_session, search="sushi") == []


class TestMenu:
    """Menu listing"""

    async def test_only_available_items(self, db_session, menu_items):
        items = await shop_service.get_menu(db_session, "shop-1")

        assert "item-special" not in {item.id for item in items}
        assert len(items) == 3

    async def test_category_and_search(self, db_session, menu_items):
        mains = await shop_service.get_menu(db_session, "shop-1", category="Mains")
        crispy = await shop_service.get_menu(db_session, "shop-1", search="crispy")

        assert [item.id for item in mains] == ["item-burger"]
        assert [item.id for item in crispy] == ["item-fries"]

    async def test_categories(self, db_session, menu_items):
        items = await shop_service.get_menu(db_session, "shop-1")

        categories = shop_service.menu_categories(items)

        assert categories[0] == "All"
        assert sorted(categories[1:]) == ["Drinks", "Mains", "Sides"]

    async def test_menu_item_belongs_to_shop(self, db_session, menu_items, coffee):
        assert (await shop_service.get_menu_item(db_session, "shop-1", "item-burger")).name == "Classic Burger"
        with pytest.raises(NotFoundError):
            await shop_service.get_menu_item(db_session, "shop-1", "item-latte")


class TestResolveQR:
    """QR scans resolve to the same shop as the list"""

    async def test_resolves_shop(self, db_session, test_shop):
        shop = await shop_service.resolve_qr(db_session, shop_qr_payload(test_shop.id))

        assert shop.id == test_shop.id
        assert shop is await shop_service.get_shop(db_session, test_shop.id)

    async def test_unknown_shop(self, db_session, test_shop):
        with pytest.raises(NotFoundError):
            await shop_service.resolve_qr(db_session, "ezyeats-shop:nope")

    async def test_invalid_payload(self, db_session, test_shop):
        with pytest.raises(ValidationError):
            await shop_service.resolve_qr(db_session, "https://example.com")
