from __future__ import annotations

from sqlalchemy import String, Numeric, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING
from datetime import datetime
from decimal import Decimal
from ezyeats.database import Base
from ezyeats.core.datetime_utils import utc_now
from ezyeats.models.shop import generate_id

if TYPE_CHECKING:
    from ezyeats.models.shop import Shop


class MenuItem(Base):
    __tablename__ = "menu_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_id)
    shop_id: Mapped[str] = mapped_column(String(64), ForeignKey("shops.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    category: Mapped[str] = mapped_column(String(100), default="Other", nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    # Relationships
    shop: Mapped["Shop"] = relationship("Shop", back_populates="menu_items")

    def __repr__(self):
        return f"<MenuItem(id={self.id}, name={self.name}, shop_id={self.shop_id})>"
