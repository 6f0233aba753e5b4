import datetime as dt
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator

from renobudget.db.enums import ItemStatus, DEFAULT_CATEGORY
from renobudget.schemas.dto.base_dto import BaseDTO
from renobudget.schemas.dto.allocation_dto import RoomAllocationDTO


class ExpenseDTO(BaseDTO):
    '''
    Caller-facing view of a _general item.

    amount accepts "totalAmount" on input; rooms may be empty (general expense).
    '''
    id: Optional[str] = None
    description: str = ""
    category: str = DEFAULT_CATEGORY
    amount: float = Field(default=0.0, ge=0, validation_alias=AliasChoices("amount", "totalAmount"))
    status: ItemStatus = ItemStatus.Pending
    date: Optional[dt.date] = None
    rooms: List[str] = Field(default_factory=list)
    room_allocations: List[RoomAllocationDTO] = Field(default_factory=list, alias="roomAllocations")
    is_shared_expense: bool = Field(default=False, alias="isSharedExpense")
    notes: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _blank_id(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_CATEGORY
        return v

    @field_validator("date", mode="before")
    @classmethod
    def _blank_date(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v[:10] if v else None
        return v

    @field_validator("rooms", mode="before")
    @classmethod
    def _rooms_list(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        return v


class ExpenseSaveStatsDTO(BaseDTO):
    created: int = 0
    updated: int = 0
    deleted: int = 0
