from typing import Any, Dict
from pydantic import BaseModel, ConfigDict


class BaseDTO(BaseModel):
    # wire names are aliases (budget_price / productOptions / roomAllocations ...)
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict using the wire (alias) names."""
        return self.model_dump(mode="json", by_alias=True)
