from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field

from renobudget.db.enums import UserRole
from renobudget.models.user import User
from renobudget.schemas.dto.base_dto import BaseDTO


class CallerContext(BaseDTO):
    """The only part of the auth collaboration the core consumes."""
    model_config = ConfigDict(frozen=True)

    caller_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin


class UserDTO(BaseDTO):
    id: str = Field(alias="_id")
    email: str
    username: str
    name: str
    role: str
    password: str  # bcrypt hash, verified by the credential provider
    is_active: bool = Field(alias="isActive")
    last_login: Optional[datetime] = Field(default=None, alias="lastLogin")

    @classmethod
    def from_orm_model(cls, user: User) -> "UserDTO":
        return cls(
            id=user.id,
            email=user.email,
            username=user.username,
            name=user.name,
            role=user.role.value,
            password=user.password_hash,
            is_active=user.is_active,
            last_login=user.last_login,
        )
