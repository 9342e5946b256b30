from typing import Optional
from ezyeats.config import settings
from ezyeats.core.exceptions import ValidationError


def parse_shop_qr(payload: Optional[str], prefix: Optional[str] = None) -> str:
    """Return the shop id encoded in a "<prefix>:<shop_id>" QR payload."""
    prefix = prefix or settings.QR_PREFIX
    marker = f"{prefix}:"
    text = (payload or "").strip()

    if not text.startswith(marker):
        raise ValidationError("This is not a valid EZYeats shop QR code")

    shop_id = text[len(marker):].strip()
    if not shop_id:
        raise ValidationError("QR code does not contain a shop id")
    return shop_id


def shop_qr_payload(shop_id: str, prefix: Optional[str] = None) -> str:
    return f"{prefix or settings.QR_PREFIX}:{shop_id}"
