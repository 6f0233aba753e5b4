# renobudget/services/cost_calculation_service.py
"""
Pure derived-value calculations over the in-memory model.

These are the single source of truth for every displayed number; nothing here
touches the store, and nothing computed here is trusted when read back from it.
"""
from typing import Iterable, List, Optional

from renobudget.db.enums import ItemStatus, RoomStatus, GENERAL_ROOM_SLUG
from renobudget.schemas.dto.item_dto import GeneralItemDTO, ItemDTO, ProductOptionDTO
from renobudget.schemas.dto.room_dto import RoomDTO, RoomDerivedDTO
from renobudget.schemas.dto.totals_dto import ProjectTotalsDTO


def effective_unit_price(item: ItemDTO) -> float:
    '''actual unit-price if positive, else budget unit-price'''
    return item.actual_price if item.actual_price > 0 else item.budget_price


def compute_item_subtotal(item: ItemDTO) -> float:
    return item.quantity * effective_unit_price(item)


def compute_item_amount(item: ItemDTO) -> float:
    '''
    Money an item stands for in every aggregate.

    Shared _general items count their total_amount; all other items their subtotal.
    '''
    if isinstance(item, GeneralItemDTO) and item.is_shared_expense:
        return item.total_amount
    return compute_item_subtotal(item)


def derive_room_status(total_items: int, completed_items: int) -> RoomStatus:
    '''
    all Completed and at least one item -> Completed
    some but not all Completed -> In Progress
    otherwise -> Not Started
    '''
    if total_items > 0 and completed_items == total_items:
        return RoomStatus.Completed
    if completed_items > 0:
        return RoomStatus.InProgress
    return RoomStatus.NotStarted


def compute_items_derived(items: Iterable[ItemDTO]) -> RoomDerivedDTO:
    items = list(items)
    completed = [i for i in items if i.status == ItemStatus.Completed]
    total_items = len(items)
    completed_items = len(completed)

    progress = (completed_items / total_items * 100) if total_items else 0.0

    return RoomDerivedDTO(
        actual_spent=sum(compute_item_amount(i) for i in completed),
        total_items=total_items,
        completed_items=completed_items,
        progress_percent=progress,
        status=derive_room_status(total_items, completed_items),
    )


def compute_room_derived(room: RoomDTO) -> RoomDerivedDTO:
    '''
    Derived figures of one room: actual_spent, total_items, completed_items,
    progress_percent and status.

    :param room: room with its full items list
    :type room: RoomDTO
    :rtype: RoomDerivedDTO
    '''
    return compute_items_derived(room.items)


def compute_project_totals(rooms: Iterable[RoomDTO]) -> ProjectTotalsDTO:
    '''
    Project-wide totals.

    Money figures run over every room including _general, so general and shared
    expenses count. Room and item counts cover regular rooms only; the _general
    items are counted as expense_count.

    :param rooms: all rooms with their items
    :rtype: ProjectTotalsDTO
    '''
    totals = ProjectTotalsDTO()
    for room in rooms:
        totals.total_budget += room.budget
        for item in room.items:
            amount = compute_item_amount(item)
            totals.total_expected += amount
            if item.status == ItemStatus.Completed:
                totals.total_expenses += amount

        if room.slug == GENERAL_ROOM_SLUG:
            totals.expense_count += len(room.items)
        else:
            totals.total_rooms += 1
            totals.total_items += len(room.items)
    return totals


# ======================================================
# 🛒 Product options
# ======================================================

def find_option(item: ItemDTO, option_id: Optional[str]) -> Optional[ProductOptionDTO]:
    if not option_id:
        return None
    for option in item.product_options:
        if option.id == option_id:
            return option
    return None


def select_product_option(item: ItemDTO, option_id: str) -> ItemDTO:
    '''
    Return a copy of item with option_id selected and actual_price mirroring the
    option price. Unknown ids leave the item unchanged.
    '''
    option = find_option(item, option_id)
    if option is None:
        return item
    return item.model_copy(update={"selected_option_id": option.id, "actual_price": option.price})


def clear_product_option(item: ItemDTO) -> ItemDTO:
    return item.model_copy(update={"selected_option_id": None})


def apply_selected_option(items: List[ItemDTO]) -> List[ItemDTO]:
    '''Re-mirror the selected option price into actual_price for every item that has one.'''
    return [
        select_product_option(item, item.selected_option_id) if item.selected_option_id else item
        for item in items
    ]
