from __future__ import annotations

from sqlalchemy import String, Boolean, DateTime, Float
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from typing import TYPE_CHECKING
import uuid
from ezyeats.database import Base
from ezyeats.core.datetime_utils import utc_now

if TYPE_CHECKING:
    from ezyeats.models.menu_item import MenuItem


def generate_id() -> str:
    """Opaque document id, same shape for shops, menu items and orders"""
    return uuid.uuid4().hex


class Shop(Base):
    __tablename__ = "shops"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    category: Mapped[str] = mapped_column(String(100), default="Restaurant", nullable=False, index=True)
    location: Mapped[str | None] = mapped_column(String(500), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_open: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    opening_time: Mapped[str | None] = mapped_column(String(20), nullable=True)  # "09:00"
    closing_time: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    # Relationships
    menu_items: Mapped[list["MenuItem"]] = relationship(
        "MenuItem", back_populates="shop", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Shop(id={self.id}, name={self.name})>"
