"""Allocation engine: splits one expense total across the rooms it applies to.

Percentage and amount of an allocation are kept mutually consistent against the
current total. Edits to one room never touch the others, so the sums may drift
from the total / 100% until save time, where normalize() resets drifted splits to
an equal split.
"""
from typing import List, Optional, Sequence, Tuple, Union

from renobudget.db.enums import AllocationField
from renobudget.errors import ValidationFailure
from renobudget.schemas.dto.allocation_dto import RoomAllocationDTO

TOLERANCE = 0.01
# 浮点误差余量，使恰好差 0.01 的分配仍算平衡
_FLOAT_SLACK = 1e-9


class AllocationService:
    """Stateless allocation engine over (total, rooms, allocations)."""

    # ======================================================
    # ➗ Split construction
    # ======================================================

    def initialize_equal(self, total: float, rooms: Sequence[str]) -> List[RoomAllocationDTO]:
        '''
        Each room receives total/|rooms| and 100/|rooms| percent.

        :param total: expense total
        :param rooms: room slugs, in display order
        :return: one allocation per room; [] when rooms is empty
        '''
        if not rooms:
            return []
        count = len(rooms)
        return [
            RoomAllocationDTO(room=slug, amount=total / count, percentage=100 / count)
            for slug in rooms
        ]

    def reset_equal(
        self,
        allocations: Sequence[RoomAllocationDTO],
        total: float,
        rooms: Sequence[str],
    ) -> List[RoomAllocationDTO]:
        return self.initialize_equal(total, rooms)

    def clear_custom(self, allocations: Sequence[RoomAllocationDTO]) -> List[RoomAllocationDTO]:
        '''Drop custom allocations; readers then treat the expense as equally split.'''
        return []

    # ======================================================
    # ✍️ Single-room edit
    # ======================================================

    def update_allocation(
        self,
        allocations: Sequence[RoomAllocationDTO],
        total: float,
        room_slug: str,
        field: Union[AllocationField, str],
        value: float,
    ) -> List[RoomAllocationDTO]:
        '''
        Set one room's percentage or amount and recompute the other side from total.

        percentage: amount = total * value / 100
        amount:     percentage = value / total * 100 (0 when total is 0)

        :raises ValidationFailure: unknown field, unknown room, negative value, percentage > 100
        '''
        try:
            field = AllocationField(field)
        except ValueError:
            raise ValidationFailure(
                "Unknown allocation field", {"field": f"must be one of {[f.value for f in AllocationField]}"}
            )

        value = float(value)
        if value < 0:
            raise ValidationFailure("Allocation value must not be negative", {field.value: "must be >= 0"})
        if field == AllocationField.percentage and value > 100:
            raise ValidationFailure("Allocation percentage above 100", {"percentage": "must be <= 100"})

        updated = [a.model_copy() for a in allocations]
        target = next((a for a in updated if a.room == room_slug), None)
        if target is None:
            raise ValidationFailure("Room is not part of this allocation", {"room": room_slug})

        if field == AllocationField.percentage:
            target.percentage = value
            target.amount = total * value / 100
        else:
            target.amount = value
            target.percentage = (value / total * 100) if total > 0 else 0.0
        return updated

    # ======================================================
    # 📏 Consistency
    # ======================================================

    def drift(self, allocations: Sequence[RoomAllocationDTO], total: float) -> Tuple[float, float]:
        '''(|sum(amount) - total|, |sum(percentage) - 100|)'''
        amount_sum = sum(a.amount for a in allocations)
        percentage_sum = sum(a.percentage for a in allocations)
        return abs(amount_sum - total), abs(percentage_sum - 100)

    def is_balanced(self, allocations: Sequence[RoomAllocationDTO], total: float) -> bool:
        amount_drift, percentage_drift = self.drift(allocations, total)
        limit = TOLERANCE + _FLOAT_SLACK
        return amount_drift <= limit and percentage_drift <= limit

    def normalize(
        self,
        total: float,
        rooms: Sequence[str],
        allocations: Sequence[RoomAllocationDTO],
    ) -> List[RoomAllocationDTO]:
        '''
        Save-time normalization of a shared expense's allocations.

        - no custom allocations -> stay empty (equal split at read time)
        - allocations not covering exactly the expense rooms -> equal split
        - drift above TOLERANCE on amount or percentage -> equal split
        - otherwise kept as sent
        '''
        if not allocations:
            return []
        allocated_rooms = [a.room for a in allocations]
        if sorted(allocated_rooms) != sorted(rooms):
            return self.initialize_equal(total, rooms)
        if not self.is_balanced(allocations, total):
            return self.initialize_equal(total, rooms)
        return [a.model_copy() for a in allocations]

    def attributed_share(
        self,
        total: float,
        rooms: Sequence[str],
        allocations: Sequence[RoomAllocationDTO],
        room_slug: str,
    ) -> Optional[Tuple[float, float]]:
        '''
        (amount, percentage) of total attributed to room_slug, or None if the
        expense does not apply to that room. Empty allocations mean equal split.
        '''
        if room_slug not in rooms:
            return None
        for allocation in allocations:
            if allocation.room == room_slug:
                return allocation.amount, allocation.percentage
        count = len(rooms)
        return total / count, 100 / count
