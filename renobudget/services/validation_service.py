# renobudget/services/validation_service.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Set, Type, TypeVar

from pydantic import ValidationError

from renobudget.db.enums import GENERAL_ROOM_SLUG
from renobudget.errors import ValidationFailure, validation_failure_from_pydantic
from renobudget.schemas.dto.base_dto import BaseDTO
from renobudget.schemas.dto.expense_dto import ExpenseDTO
from renobudget.schemas.dto.item_dto import ItemDTO
from renobudget.schemas.dto.timeline_dto import PhaseDTO
from renobudget.services.cost_calculation_service import find_option

DTO = TypeVar("DTO", bound=BaseDTO)


@dataclass
class ValidationReport:
    # 字段路径 -> 错误信息，例如 "items.2.description"
    issues: Dict[str, str] = field(default_factory=dict)

    def add(self, path: str, message: str) -> None:
        self.issues.setdefault(path, message)

    @property
    def ok(self) -> bool:
        return not self.issues

    def raise_if_failed(self, message: str = "Validation failed") -> None:
        if self.issues:
            raise ValidationFailure(message, dict(self.issues))


class ValidationService:
    """
    Gatekeeper for every write. Collects all field issues of a payload before
    failing, so callers get one field-keyed 400 and nothing is written.
    """

    def parse_list(self, model: Type[DTO], raw_items: Sequence[Any], prefix: str) -> List[DTO]:
        '''
        Parse each raw dict against model, collecting errors keyed "<prefix>.<index>.<field>".

        :raises ValidationFailure: if any element fails
        '''
        report = ValidationReport()
        parsed: List[DTO] = []
        for index, raw in enumerate(raw_items):
            path = f"{prefix}.{index}"
            if not isinstance(raw, dict):
                report.add(path, "must be an object")
                continue
            try:
                parsed.append(model.model_validate(raw))
            except ValidationError as e:
                for key, msg in validation_failure_from_pydantic(e, path).fields.items():
                    report.add(key, msg)
        report.raise_if_failed()
        return parsed

    def validate_room_items(self, items: Sequence[ItemDTO]) -> None:
        '''
        Item rules at room save:
        - description non-empty
        - ids unique inside the room
        - selectedOptionId must name one of the item's product options
        '''
        report = ValidationReport()
        seen: Set[str] = set()
        for index, item in enumerate(items):
            path = f"items.{index}"
            if not item.description.strip():
                report.add(f"{path}.description", "must not be empty")
            if item.id:
                if item.id in seen:
                    report.add(f"{path}.id", f"duplicate item id {item.id}")
                seen.add(item.id)
            option_ids = [o.id for o in item.product_options]
            if len(set(option_ids)) != len(option_ids):
                report.add(f"{path}.productOptions", "duplicate option id")
            if item.selected_option_id and find_option(item, item.selected_option_id) is None:
                report.add(f"{path}.selectedOptionId", "does not match any product option")
        report.raise_if_failed()

    def validate_expenses(self, expenses: Sequence[ExpenseDTO], known_rooms: Set[str]) -> None:
        '''
        Expense rules at batch save:
        - description non-empty
        - ids unique inside the batch
        - every room slug exists and is not the reserved _general
        Allocation amounts/percentages are range-checked by RoomAllocationDTO;
        allocations that do not match the rooms are normalized later, not rejected.
        '''
        report = ValidationReport()
        seen: Set[str] = set()
        for index, expense in enumerate(expenses):
            path = f"expenses.{index}"
            if not expense.description.strip():
                report.add(f"{path}.description", "must not be empty")
            if expense.id:
                if expense.id in seen:
                    report.add(f"{path}.id", f"duplicate expense id {expense.id}")
                seen.add(expense.id)

            for slug in expense.rooms:
                if slug == GENERAL_ROOM_SLUG:
                    report.add(f"{path}.rooms", f"{GENERAL_ROOM_SLUG} is reserved")
                elif slug not in known_rooms:
                    report.add(f"{path}.rooms", f"unknown room {slug}")
        report.raise_if_failed()

    def validate_phases(self, phases: Sequence[PhaseDTO]) -> None:
        '''
        Phase rules at timeline save:
        - title non-empty
        - ids unique inside the timeline
        - endDate not before startDate
        '''
        report = ValidationReport()
        seen: Set[str] = set()
        for index, phase in enumerate(phases):
            path = f"phases.{index}"
            if not phase.title.strip():
                report.add(f"{path}.title", "must not be empty")
            if phase.id:
                if phase.id in seen:
                    report.add(f"{path}.id", f"duplicate phase id {phase.id}")
                seen.add(phase.id)
            if phase.start_date and phase.end_date and phase.end_date < phase.start_date:
                report.add(f"{path}.endDate", "must not be before startDate")
        report.raise_if_failed()
