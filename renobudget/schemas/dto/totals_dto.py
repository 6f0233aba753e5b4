from pydantic import Field, SerializeAsAny

from renobudget.schemas.dto.base_dto import BaseDTO
from renobudget.schemas.dto.item_dto import ItemDTO


class ProjectTotalsDTO(BaseDTO):
    total_budget: float = 0.0
    total_expected: float = 0.0
    total_expenses: float = 0.0
    total_rooms: int = 0
    total_items: int = 0
    expense_count: int = 0

    def to_wire(self) -> dict:
        return {
            "totalBudget": self.total_budget,
            "totalExpenses": self.total_expenses,
            "totalExpected": self.total_expected,
            "totalRooms": self.total_rooms,
            "totalProducts": self.total_items,
            "expenseCount": self.expense_count,
        }


class CategoryTotalDTO(BaseDTO):
    category: str
    count: int = 0
    total: float = 0.0


class ProductEntryDTO(BaseDTO):
    '''One Products-category item with the room it lives in.'''
    room: str
    room_name: str = Field(alias="roomName")
    subtotal: float = 0.0
    item: SerializeAsAny[ItemDTO]
