# renobudget/tests/test_allocation_service.py
import pytest

from renobudget.errors import ValidationFailure
from renobudget.schemas.dto.allocation_dto import RoomAllocationDTO
from renobudget.services.allocation_service import TOLERANCE, AllocationService

ROOMS = ["cocina", "sala", "bano1"]


@pytest.fixture
def engine():
    return AllocationService()


def _by_room(allocations):
    return {a.room: a for a in allocations}


def test_initialize_equal(engine):
    allocations = engine.initialize_equal(900, ROOMS)
    assert [a.room for a in allocations] == ROOMS
    for a in allocations:
        assert a.amount == pytest.approx(300)
        assert a.percentage == pytest.approx(100 / 3)
    assert engine.is_balanced(allocations, 900)


def test_initialize_equal_no_rooms(engine):
    assert engine.initialize_equal(100, []) == []


def test_percentage_edit_leaves_other_rooms(engine):
    allocations = engine.initialize_equal(900, ROOMS)
    updated = _by_room(engine.update_allocation(allocations, 900, "cocina", "percentage", 50))

    assert updated["cocina"].amount == pytest.approx(450)
    assert updated["cocina"].percentage == pytest.approx(50)
    assert updated["sala"].amount == pytest.approx(300)
    assert updated["bano1"].percentage == pytest.approx(100 / 3)

    amount_drift, _ = engine.drift(updated.values(), 900)
    assert amount_drift == pytest.approx(150)
    # 原列表不变
    assert allocations[0].amount == pytest.approx(300)


def test_amount_edit(engine):
    allocations = engine.initialize_equal(1000, ["cocina", "sala"])
    updated = _by_room(engine.update_allocation(allocations, 1000, "sala", "amount", 250))
    assert updated["sala"].percentage == pytest.approx(25)


def test_zero_total_percentage_edit(engine):
    allocations = engine.initialize_equal(0, ["cocina", "sala"])
    updated = _by_room(engine.update_allocation(allocations, 0, "cocina", "percentage", 70))
    assert updated["cocina"].amount == 0
    assert updated["cocina"].percentage == 70


def test_zero_total_amount_edit(engine):
    allocations = engine.initialize_equal(0, ["cocina", "sala"])
    updated = _by_room(engine.update_allocation(allocations, 0, "cocina", "amount", 10))
    assert updated["cocina"].percentage == 0


def test_update_then_inverse_returns_to_original(engine):
    allocations = engine.initialize_equal(900, ROOMS)
    edited = engine.update_allocation(allocations, 900, "sala", "percentage", 40)
    recomputed_amount = _by_room(edited)["sala"].amount
    back = _by_room(engine.update_allocation(edited, 900, "sala", "amount", recomputed_amount))
    assert abs(back["sala"].percentage - 40) <= TOLERANCE
    assert abs(back["sala"].amount - 360) <= TOLERANCE


@pytest.mark.parametrize(
    "room, field, value, key",
    [
        ("cocina", "percentage", 101, "percentage"),
        ("cocina", "percentage", -1, "percentage"),
        ("cocina", "amount", -5, "amount"),
        ("cocina", "share", 10, "field"),
        ("garage", "amount", 10, "room"),
    ],
)
def test_update_allocation_rejects(engine, room, field, value, key):
    allocations = engine.initialize_equal(900, ROOMS)
    with pytest.raises(ValidationFailure) as exc:
        engine.update_allocation(allocations, 900, room, field, value)
    assert key in exc.value.fields


def test_reset_and_clear(engine):
    edited = engine.update_allocation(engine.initialize_equal(900, ROOMS), 900, "cocina", "percentage", 50)
    reset = engine.reset_equal(edited, 900, ROOMS)
    assert engine.is_balanced(reset, 900)
    assert engine.clear_custom(edited) == []


def test_normalize_drifted_split_resets_to_equal(engine):
    edited = engine.update_allocation(engine.initialize_equal(900, ROOMS), 900, "cocina", "percentage", 50)
    normalized = engine.normalize(900, ROOMS, edited)
    for a in normalized:
        assert a.amount == pytest.approx(300)
        assert a.percentage == pytest.approx(100 / 3)


def test_normalize_keeps_balanced_custom_split(engine):
    allocations = engine.initialize_equal(1000, ["cocina", "sala"])
    allocations = engine.update_allocation(allocations, 1000, "cocina", "percentage", 70)
    allocations = engine.update_allocation(allocations, 1000, "sala", "percentage", 30)
    normalized = _by_room(engine.normalize(1000, ["cocina", "sala"], allocations))
    assert normalized["cocina"].amount == pytest.approx(700)
    assert normalized["sala"].amount == pytest.approx(300)


def test_normalize_room_mismatch_and_empty(engine):
    stale = engine.initialize_equal(900, ["cocina", "sala", "balcon"])
    normalized = engine.normalize(900, ROOMS, stale)
    assert sorted(a.room for a in normalized) == sorted(ROOMS)
    assert engine.normalize(900, ROOMS, []) == []


def test_attributed_share(engine):
    assert engine.attributed_share(900, ROOMS, [], "sala") == pytest.approx((300, 100 / 3))
    assert engine.attributed_share(900, ROOMS, [], "balcon") is None

    custom = engine.update_allocation(engine.initialize_equal(900, ROOMS), 900, "sala", "amount", 450)
    amount, percentage = engine.attributed_share(900, ROOMS, custom, "sala")
    assert amount == pytest.approx(450)
    assert percentage == pytest.approx(50)


def test_split_off_by_exactly_tolerance_is_kept(engine):
    allocations = [
        {"room": "cocina", "amount": 400, "percentage": 40},
        {"room": "sala", "amount": 300, "percentage": 30},
        {"room": "bano1", "amount": 300, "percentage": 29.99},
    ]
    allocations = [RoomAllocationDTO.model_validate(a) for a in allocations]

    assert engine.is_balanced(allocations, 1000)
    normalized = _by_room(engine.normalize(1000, ROOMS, allocations))
    assert normalized["cocina"].amount == pytest.approx(400)
    assert normalized["bano1"].percentage == pytest.approx(29.99)


def test_split_beyond_tolerance_is_reset(engine):
    allocations = [
        RoomAllocationDTO(room="cocina", amount=400, percentage=40),
        RoomAllocationDTO(room="sala", amount=300, percentage=30),
        RoomAllocationDTO(room="bano1", amount=300, percentage=29.98),
    ]
    assert not engine.is_balanced(allocations, 1000)
