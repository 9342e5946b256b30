from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from ezyeats.database import get_db
from ezyeats.services.shop_service import shop_service
from ezyeats.schemas.shop import (
    MenuItemResponse,
    MenuResponse,
    QRScanRequest,
    ShopListResponse,
    ShopResponse,
)
from typing import Optional

router = APIRouter()


@router.get("", response_model=ShopListResponse)
async def get_shops(
    search: Optional[str] = None,
    category: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    """
    Get list of shops sorted by name
    - search: matches name, category or location
    - category: exact category, "All" for every shop
    """
    shops = await shop_service.list_shops(db, search, category)
    return ShopListResponse(
        shops=[ShopResponse.model_validate(shop) for shop in shops],
        total=len(shops)
    )


@router.post("/scan", response_model=ShopResponse)
async def scan_shop_qr(scan: QRScanRequest, db: AsyncSession = Depends(get_db)):
    """Resolve the text of a scanned shop QR code"""
    return await shop_service.resolve_qr(db, scan.payload)


@router.get("/{shop_id}", response_model=ShopResponse)
async def get_shop(shop_id: str, db: AsyncSession = Depends(get_db)):
    return await shop_service.get_shop(db, shop_id)


@router.get("/{shop_id}/menu", response_model=MenuResponse)
async def get_shop_menu(
    shop_id: str,
    category: Optional[str] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    """Available menu items; categories always cover the whole menu"""
    shop = await shop_service.get_shop(db, shop_id)
    menu = await shop_service.get_menu(db, shop_id)

    items = menu
    if category or search:
        items = await shop_service.get_menu(db, shop_id, category, search)

    return MenuResponse(
        shop=ShopResponse.model_validate(shop),
        categories=shop_service.menu_categories(menu),
        items=[MenuItemResponse.model_validate(item) for item in items],
    )
