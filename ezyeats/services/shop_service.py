from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.exc import SQLAlchemyError
from ezyeats.models.shop import Shop
from ezyeats.models.menu_item import MenuItem
from ezyeats.core.exceptions import NotFoundError, PersistenceError
from ezyeats.core.qr import parse_shop_qr
from typing import Optional, List, Iterable
import logging

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All"


def _contains(column, text: str):
    return func.lower(func.coalesce(column, "")).contains(text.lower())


class ShopService:
    """Shop catalogue: listing, menus and QR lookups"""

    @staticmethod
    async def list_shops(
        db: AsyncSession,
        search: Optional[str] = None,
        category: Optional[str] = None
    ) -> List[Shop]:
        """Shops sorted by name, filtered by category and free-text search"""
        query = select(Shop)

        if category and category != ALL_CATEGORIES:
            query = query.where(Shop.category == category)

        if search and search.strip():
            text = search.strip()
            query = query.where(or_(
                _contains(Shop.name, text),
                _contains(Shop.category, text),
                _contains(Shop.location, text),
            ))

        query = query.order_by(Shop.name)

        try:
            result = await db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"[SHOP] Error fetching shops: {e}", exc_info=True)
            raise PersistenceError("Failed to load shops") from e

    @staticmethod
    async def get_shop(db: AsyncSession, shop_id: str) -> Shop:
        """Get shop by ID"""
        try:
            result = await db.execute(select(Shop).where(Shop.id == shop_id))
            shop = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"[SHOP] Error fetching shop {shop_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to load shop") from e

        if not shop:
            raise NotFoundError("The shop could not be found")
        return shop

    @staticmethod
    async def get_menu(
        db: AsyncSession,
        shop_id: str,
        category: Optional[str] = None,
        search: Optional[str] = None
    ) -> List[MenuItem]:
        """Available menu items of a shop"""
        query = select(MenuItem).where(
            MenuItem.shop_id == shop_id,
            MenuItem.is_available == True  # noqa: E712
        )

        if category and category != ALL_CATEGORIES:
            query = query.where(MenuItem.category == category)

        if search and search.strip():
            text = search.strip()
            query = query.where(or_(
                _contains(MenuItem.name, text),
                _contains(MenuItem.description, text),
            ))

        query = query.order_by(MenuItem.category, MenuItem.name)

        try:
            result = await db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"[SHOP] Error fetching menu of shop {shop_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to load menu") from e

    @staticmethod
    async def get_menu_item(db: AsyncSession, shop_id: str, item_id: str) -> MenuItem:
        try:
            result = await db.execute(
                select(MenuItem).where(MenuItem.id == item_id, MenuItem.shop_id == shop_id)
            )
            item = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"[SHOP] Error fetching menu item {item_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to load menu item") from e

        if not item:
            raise NotFoundError("Menu item not found")
        return item

    @staticmethod
    def menu_categories(items: Iterable[MenuItem]) -> List[str]:
        """"All" followed by each category once, in first-seen order"""
        categories = [ALL_CATEGORIES]
        for item in items:
            if item.category and item.category not in categories:
                categories.append(item.category)
        return categories

    @staticmethod
    async def resolve_qr(db: AsyncSession, payload: str) -> Shop:
        """Shop behind a scanned QR payload"""
        shop_id = parse_shop_qr(payload)
        shop = await ShopService.get_shop(db, shop_id)
        logger.info(f"[SHOP] QR scan resolved to shop {shop.id} ({shop.name})")
        return shop


shop_service = ShopService()
