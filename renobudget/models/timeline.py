# renobudget/models/timeline.py
from renobudget.db.base import Base
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import String, DateTime, JSON, func
from sqlalchemy.orm import Mapped, mapped_column


class Timeline(Base):
    """
    The project's single remodel timeline. Phases (with their subtasks,
    learnings and references) live embedded in ``phases``, ordered by ``order``.

    overall_progress and current_phase are never stored.
    """

    __tablename__ = "timeline"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="Timeline UUID")
    phases: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered embedded phase documents")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Creation timestamp")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="Last update timestamp")

    def __repr__(self) -> str:
        return f"<Timeline phases={len(self.phases or [])}>"
