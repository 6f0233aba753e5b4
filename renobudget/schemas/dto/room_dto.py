import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import Field, SerializeAsAny, field_validator

from renobudget.db.enums import ItemStatus, RoomStatus
from renobudget.schemas.dto.base_dto import BaseDTO
from renobudget.schemas.dto.item_dto import ItemDTO


class RoomDerivedDTO(BaseDTO):
    actual_spent: float = 0.0
    total_items: int = 0
    completed_items: int = 0
    progress_percent: float = 0.0
    status: RoomStatus = RoomStatus.NotStarted


class RoomDTO(BaseDTO):
    id: str
    slug: str
    name: str
    budget: float = Field(default=0.0, ge=0)
    status: RoomStatus = RoomStatus.NotStarted
    images: List[Dict[str, Any]] = Field(default_factory=list)
    # _general 房间里是 GeneralItemDTO，序列化时保留子类字段
    items: List[SerializeAsAny[ItemDTO]] = Field(default_factory=list)


class RoomOverviewDTO(BaseDTO):
    id: str
    slug: str
    name: str
    budget: float
    actual_spent: float
    completed_items: int
    total_items: int
    progress_percent: float
    status: RoomStatus


class RoomSaveDTO(BaseDTO):
    '''
    Body of a room save. Items stay raw dicts here: they are parsed one by one
    against the item model of the target room so errors are keyed "items.<n>.<field>".
    '''
    name: Optional[str] = None
    slug: Optional[str] = None
    budget: Optional[float] = Field(default=None, ge=0)
    images: Optional[List[Dict[str, Any]]] = None
    items: List[Dict[str, Any]] = Field(default_factory=list)


class RoomCreateDTO(BaseDTO):
    slug: str = Field(pattern=r"^[a-z0-9_-]+$", max_length=100)
    name: str = Field(min_length=1, max_length=255)
    budget: float = Field(default=0.0, ge=0)

    @field_validator("slug", "name", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class SharedItemDTO(BaseDTO):
    '''Read-only projection of a _general expense inside one room's view.'''
    id: str
    description: str
    category: str
    status: ItemStatus
    date: Optional[dt.date] = None
    amount: float
    percentage: float
    total_amount: float = Field(alias="totalAmount")
    is_shared_expense: bool = Field(alias="isSharedExpense")
    rooms: List[str] = Field(default_factory=list)
    read_only: bool = Field(default=True, alias="readOnly")
    source: str = "_general"
