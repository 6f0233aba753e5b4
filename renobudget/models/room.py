# renobudget/models/room.py
from renobudget.db.base import Base
from renobudget.db.enums import RoomStatus
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import String, DateTime, Enum, Float, JSON, func
from sqlalchemy.orm import Mapped, mapped_column


class Room(Base):
    """
    One row per Room; the ordered items live embedded in ``items`` as documents
    carrying a stable ``_id``. Writing a Room is a single-row UPDATE.

    Derived fields (subtotal per item, status) are written for read convenience only
    and are recomputed on every write path.
    """

    __tablename__ = "rooms"

    # =========
    # 🔒 Immutable facts
    # =========
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="Room UUID")
    slug: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        comment="URL-safe slug, immutable after creation")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Creation timestamp")

    # =========
    # ✍️ Editable through room save
    # =========
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name")
    budget: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
        comment="Planned budget amount")
    images: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Image references")
    items: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered embedded item documents")

    # =========
    # 🔁 System maintained
    # =========
    status: Mapped[RoomStatus] = mapped_column(
        Enum(RoomStatus, name="room_status"),
        nullable=False,
        default=RoomStatus.NotStarted,
        comment="Cached derived status, recomputed on write")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="Last update timestamp")

    def __repr__(self) -> str:
        return f"<Room slug={self.slug} items={len(self.items or [])}>"
