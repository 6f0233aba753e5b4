# renobudget/services/expense_reconciliation_service.py
import datetime as dt
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

from renobudget.db.enums import GENERAL_ROOM_SLUG, ItemStatus
from renobudget.db.room_repository import RoomRepository
from renobudget.logger import get_logger
from renobudget.schemas.dto.expense_dto import ExpenseDTO, ExpenseSaveStatsDTO
from renobudget.schemas.dto.item_dto import GeneralItemDTO
from renobudget.schemas.dto.room_dto import RoomDTO, SharedItemDTO
from renobudget.schemas.dto.user_dto import CallerContext
from renobudget.services.allocation_service import AllocationService
from renobudget.services.cost_calculation_service import compute_item_amount
from renobudget.services.validation_service import ValidationService

logger = get_logger(__name__)


class ExpenseReconciliationService:
    """
    Keeps the caller-facing "expenses" projection and the _general room items in
    sync, joined by stable item id.

    Read:  every _general item surfaces as an expense; a room view additionally
           gets read-only shares of the expenses that include that room.
    Write: a batch save rewrites the _general items list in one document write;
           nothing is copied into the target rooms' own items.
    """

    def __init__(
        self,
        room_repository: RoomRepository,
        allocation_service: Optional[AllocationService] = None,
        validation_service: Optional[ValidationService] = None,
    ):
        self.room_repository = room_repository
        self.allocation_service = allocation_service or AllocationService()
        self.validation_service = validation_service or room_repository.validation_service

    # ======================================================
    # 🔄 item <-> expense translation
    # ======================================================

    @staticmethod
    def item_to_expense(item: GeneralItemDTO) -> ExpenseDTO:
        '''
        Shared items report their stored total; the rest use quantity x effective price.
        '''
        amount = compute_item_amount(item)
        return ExpenseDTO(
            id=item.id,
            description=item.description,
            category=item.category,
            amount=amount,
            status=item.status,
            date=item.date,
            rooms=list(item.rooms),
            room_allocations=[a.model_copy() for a in item.room_allocations] if item.is_shared_expense else [],
            is_shared_expense=item.is_shared_expense,
            notes=item.notes,
        )

    def expense_to_item(self, expense: ExpenseDTO, existing: Optional[GeneralItemDTO]) -> GeneralItemDTO:
        '''
        Build the _general item for an incoming expense.

        Fields the expense view does not carry (images, favorite, product options)
        are kept from the stored item. Pricing is rewritten to quantity 1 x amount
        unless the stored item already yields the same amount.
        '''
        rooms = list(dict.fromkeys(expense.rooms))  # 去重，保持顺序
        shared = len(rooms) >= 2

        allocations = []
        if shared:
            allocations = self.allocation_service.normalize(expense.amount, rooms, expense.room_allocations)
            if expense.room_allocations and allocations != expense.room_allocations:
                logger.info(
                    "Allocations of expense %s drifted from total %.2f; reset to equal split",
                    expense.id, expense.amount,
                )

        base = existing or GeneralItemDTO()
        update: Dict[str, Any] = {
            "id": expense.id,
            "description": expense.description.strip(),
            "category": expense.category,
            "status": expense.status,
            "notes": expense.notes,
            "rooms": rooms,
            "room_allocations": allocations,
            "is_shared_expense": shared,
            "total_amount": expense.amount,
            "date": expense.date or base.date,
        }
        if existing is None or abs(compute_item_amount(existing) - expense.amount) > 1e-9:
            update.update(quantity=1.0, unit=base.unit or "unit", budget_price=0.0, actual_price=expense.amount)
        return base.model_copy(update=update)

    # ======================================================
    # 📖 Read path
    # ======================================================

    def list_expenses(self) -> List[ExpenseDTO]:
        return [self.item_to_expense(item) for item in self.room_repository.list_general_items()]

    def shared_items_for(self, slug: str, general_items: Sequence[GeneralItemDTO]) -> List[SharedItemDTO]:
        '''Read-only shares of the _general expenses whose rooms include slug.'''
        shared = []
        for item in general_items:
            expense = self.item_to_expense(item)
            share = self.allocation_service.attributed_share(
                expense.amount, expense.rooms, expense.room_allocations, slug
            )
            if share is None:
                continue
            amount, percentage = share
            shared.append(SharedItemDTO(
                id=expense.id,
                description=expense.description,
                category=expense.category,
                status=expense.status,
                date=expense.date,
                amount=amount,
                percentage=percentage,
                total_amount=expense.amount,
                is_shared_expense=expense.is_shared_expense,
                rooms=expense.rooms,
            ))
        return shared

    def room_view(self, slug: str) -> Tuple[RoomDTO, List[SharedItemDTO]]:
        room = self.room_repository.get_room(slug)
        if slug == GENERAL_ROOM_SLUG:
            return room, []
        return room, self.shared_items_for(slug, self.room_repository.list_general_items())

    @staticmethod
    def shared_spent(shared_items: Sequence[SharedItemDTO]) -> float:
        return sum(s.amount for s in shared_items if s.status == ItemStatus.Completed)

    # ======================================================
    # ✍️ Write path
    # ======================================================

    def save_expenses(self, raw_expenses: Sequence[Any], *, caller: CallerContext) -> ExpenseSaveStatsDTO:
        '''
        Replace the expense set with raw_expenses, keyed by id.

        1. validate the whole batch (nothing written on failure)
        2. load current _general items, map by id
        3. mint ids for new expenses; general / single-room / shared shaping
        4. stored ids absent from the batch are deleted
        5. one write of the _general document

        :param raw_expenses: list of expense dicts from the request
        :param caller: writer identity, for the log
        :return: created / updated / deleted counts
        '''
        # 1️⃣ validation short-circuits before any write
        expenses = self.validation_service.parse_list(ExpenseDTO, raw_expenses, "expenses")
        self.validation_service.validate_expenses(expenses, self.room_repository.room_slugs())

        # 2️⃣ current state
        current = self.room_repository.list_general_items()
        current_by_id = {item.id: item for item in current}
        incoming_ids = {e.id for e in expenses if e.id}

        # 3️⃣ delete: stored but not sent
        deleted = [item for item in current if item.id not in incoming_ids]

        # 4️⃣ update / create
        stats = ExpenseSaveStatsDTO(deleted=len(deleted))
        new_items: List[GeneralItemDTO] = []
        for expense in expenses:
            existing = current_by_id.get(expense.id) if expense.id else None
            if existing is None:
                if not expense.id:
                    expense = expense.model_copy(update={"id": str(uuid4())})
                if expense.date is None:
                    expense = expense.model_copy(update={"date": dt.date.today()})
                stats.created += 1
                item = self.expense_to_item(expense, None)
            else:
                item = self.expense_to_item(expense, existing)
                if item.to_wire() != existing.to_wire():
                    stats.updated += 1
            new_items.append(item)

        reordered = [i.id for i in new_items] != [i.id for i in current]
        if stats.created or stats.updated or stats.deleted or reordered:
            self.room_repository.replace_general_items(new_items)

        affected = sorted({slug for item in [*deleted, *new_items] for slug in item.rooms})
        logger.info(
            "Expenses saved by %s: %d created, %d updated, %d deleted; rooms affected: %s",
            caller.caller_id, stats.created, stats.updated, stats.deleted, ", ".join(affected) or "-",
        )
        return stats
