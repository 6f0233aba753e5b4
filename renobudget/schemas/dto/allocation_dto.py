from pydantic import Field

from renobudget.schemas.dto.base_dto import BaseDTO


class RoomAllocationDTO(BaseDTO):
    """(room slug, amount, percentage) share of one expense."""
    room: str
    amount: float = Field(default=0.0, ge=0)
    percentage: float = Field(default=0.0, ge=0, le=100)
