import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from renobudget.db.enums import ItemStatus, DEFAULT_CATEGORY
from renobudget.schemas.dto.base_dto import BaseDTO
from renobudget.schemas.dto.allocation_dto import RoomAllocationDTO


class ProductOptionDTO(BaseDTO):
    id: str
    name: str = ""
    price: float = Field(default=0.0, ge=0)
    url: str = ""
    description: str = ""
    notes: str = ""
    images: List[Dict[str, Any]] = Field(default_factory=list)


class ItemDTO(BaseDTO):
    '''
    A costed line item inside a Room.

    subtotal is never part of the model; it is derived by compute_item_subtotal.
    '''
    id: Optional[str] = None
    description: str = ""
    category: str = DEFAULT_CATEGORY
    quantity: float = Field(default=1.0, ge=0)
    unit: str = "unit"
    budget_price: float = Field(default=0.0, ge=0)
    actual_price: float = Field(default=0.0, ge=0)
    status: ItemStatus = ItemStatus.Pending
    favorite: bool = False
    notes: str = ""
    images: List[Dict[str, Any]] = Field(default_factory=list)
    product_options: List[ProductOptionDTO] = Field(default_factory=list, alias="productOptions")
    selected_option_id: Optional[str] = Field(default=None, alias="selectedOptionId")

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_CATEGORY
        return v

    @field_validator("id", "selected_option_id", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("unit", mode="before")
    @classmethod
    def _default_unit(cls, v):
        return v or "unit"


class GeneralItemDTO(ItemDTO):
    '''
    Item stored in the reserved _general room: one per expense.

    rooms: slugs the expense is attributed to ([] = general)
    room_allocations: only for shared items (>= 2 rooms); [] means equal split
    total_amount: expense total, authoritative for shared items
    '''
    rooms: List[str] = Field(default_factory=list)
    room_allocations: List[RoomAllocationDTO] = Field(default_factory=list, alias="roomAllocations")
    is_shared_expense: bool = Field(default=False, alias="isSharedExpense")
    total_amount: float = Field(default=0.0, ge=0, alias="totalAmount")
    date: Optional[dt.date] = None

    @field_validator("date", mode="before")
    @classmethod
    def _blank_date(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            # 兼容 ISO datetime 字符串
            return v[:10]
        return v
