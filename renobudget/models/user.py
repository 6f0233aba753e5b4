# renobudget/models/user.py
from sqlalchemy import (
    String,
    Boolean,
    DateTime,
    Enum,
    func,
)
from renobudget.db.base import Base
from renobudget.db.enums import UserRole
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from typing import Optional


class User(Base):
    """
    Account record behind the caller identity. Passwords are verified by the
    frontend credential provider against ``password_hash``.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, comment="User UUID")

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        comment="Login email, stored lower-cased",
    )

    username: Mapped[str] = mapped_column(
        String(30),
        unique=True,
        nullable=False,
        comment="Lower-case handle",
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False, comment="Display name")

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash",
    )

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role"),
        nullable=False,
        default=UserRole.user,
        comment="admin may write, user may only read",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, comment="Whether the account is active")

    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, comment="Last successful login")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Account creation timestamp",
    )
