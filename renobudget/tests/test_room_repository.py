# renobudget/tests/test_room_repository.py
import pytest

from renobudget.db.enums import DEFAULT_ROOMS, GENERAL_ROOM_SLUG, RoomStatus
from renobudget.errors import Conflict, NotFound, PersistenceFailure, ValidationFailure
from renobudget.models.room import Room
from renobudget.schemas.dto.room_dto import RoomSaveDTO


def _save(repo, room_slug, items, caller, **extra):
    payload = RoomSaveDTO.model_validate({"budget": 1000, "items": items, **extra})
    return repo.save_room(slug=room_slug, payload=payload, caller=caller)


def test_bootstrap_rooms(repo):
    slugs = repo.room_slugs()
    assert slugs == {slug for slug, _ in DEFAULT_ROOMS}
    assert GENERAL_ROOM_SLUG in repo.room_slugs(include_general=True)

    general = repo.get_room(GENERAL_ROOM_SLUG)
    assert general.name == "General / Shared Expenses"
    assert general.items == []


def test_overview_excludes_general(repo):
    overview = repo.list_rooms_overview()
    assert GENERAL_ROOM_SLUG not in {r.slug for r in overview}
    assert all(r.status == RoomStatus.NotStarted for r in overview)


def test_get_unknown_room(repo):
    with pytest.raises(NotFound):
        repo.get_room("garage")


def test_save_preserves_ids_and_order(repo, admin_caller):
    _save(repo, "sala", [{"description": "X"}, {"description": "Y"}], admin_caller)
    x, y = repo.get_room("sala").items
    assert x.id and y.id and x.id != y.id

    z_then_x_y = [{"description": "Z"}, x.to_wire(), y.to_wire()]
    _save(repo, "sala", z_then_x_y, admin_caller)

    items = repo.get_room("sala").items
    assert [i.description for i in items] == ["Z", "X", "Y"]
    assert items[1].id == x.id
    assert items[2].id == y.id
    assert items[0].id not in (x.id, y.id)


def test_save_round_trip_is_noop(repo, admin_caller):
    _save(repo, "cocina", [{"description": "Tile", "quantity": 3, "budget_price": 20, "status": "Completed"}], admin_caller)
    before = repo.get_room("cocina")

    payload = before.to_wire()
    _save(repo, "cocina", payload["items"], admin_caller, name=payload["name"], slug="cocina")

    after = repo.get_room("cocina")
    assert after.to_wire() == before.to_wire()


def test_save_drops_missing_items_and_sets_status(repo, admin_caller):
    _save(repo, "bano1", [{"description": "A", "status": "Completed"}, {"description": "B"}], admin_caller)
    a = repo.get_room("bano1").items[0]
    _save(repo, "bano1", [a.to_wire()], admin_caller)

    room = repo.get_room("bano1")
    assert [i.id for i in room.items] == [a.id]
    assert room.status == RoomStatus.Completed


def test_save_unknown_room(repo, admin_caller):
    with pytest.raises(NotFound):
        _save(repo, "garage", [], admin_caller)


def test_save_slug_change_conflict(repo, admin_caller):
    with pytest.raises(Conflict):
        _save(repo, "sala", [], admin_caller, slug="living")


def test_general_room_rewrite_needs_admin(repo, viewer_caller, admin_caller):
    with pytest.raises(Conflict):
        _save(repo, GENERAL_ROOM_SLUG, [], viewer_caller)
    _save(repo, GENERAL_ROOM_SLUG, [{"description": "Permit", "totalAmount": 80}], admin_caller)
    assert repo.list_general_items()[0].total_amount == 80


def test_invalid_item_writes_nothing(repo, admin_caller):
    _save(repo, "sala", [{"description": "Keep"}], admin_caller)
    with pytest.raises(ValidationFailure) as exc:
        _save(repo, "sala", [{"description": "New"}, {"description": ""}], admin_caller)
    assert "items.1.description" in exc.value.fields
    assert [i.description for i in repo.get_room("sala").items] == ["Keep"]


def test_selected_option_mirrors_price(repo, admin_caller):
    _save(repo, "cocina", [{
        "description": "Faucet",
        "budget_price": 100,
        "selectedOptionId": "o2",
        "productOptions": [{"id": "o1", "price": 90}, {"id": "o2", "price": 140}],
    }], admin_caller)
    item = repo.get_room("cocina").items[0]
    assert item.actual_price == 140


def test_create_room(repo):
    room = repo.create_room(slug="garage", name="Garage", budget=300)
    assert room.slug == "garage"
    assert "garage" in repo.room_slugs()

    with pytest.raises(Conflict):
        repo.create_room(slug="garage", name="Again")
    with pytest.raises(Conflict):
        repo.create_room(slug=GENERAL_ROOM_SLUG, name="Nope")


def test_ensure_general_room_idempotent(repo):
    first = repo.ensure_general_room()
    second = repo.ensure_general_room()
    assert first.id == second.id


def test_item_without_stable_id_is_persistence_failure(repo, db):
    room = db.query(Room).filter(Room.slug == "balcon").one()
    room.items = [{"description": "legacy", "quantity": 1}]
    db.commit()

    with pytest.raises(PersistenceFailure):
        repo.get_room("balcon")


def test_omitted_budget_and_images_kept(repo, admin_caller):
    _save(repo, "sala", [], admin_caller, images=[{"url": "a.jpg"}])
    repo.save_room(slug="sala", payload=RoomSaveDTO.model_validate({"items": [{"description": "Lamp"}]}), caller=admin_caller)

    room = repo.get_room("sala")
    assert room.budget == 1000
    assert room.images == [{"url": "a.jpg"}]
    assert len(room.items) == 1


def test_general_save_rebalances_shared_allocations(repo, admin_caller):
    _save(repo, GENERAL_ROOM_SLUG, [{
        "description": "Electrician",
        "totalAmount": 900,
        "isSharedExpense": True,
        "rooms": ["cocina", "sala"],
        "roomAllocations": [
            {"room": "cocina", "amount": 800, "percentage": 80},
            {"room": "sala", "amount": 300, "percentage": 30},
        ],
    }], admin_caller)

    allocations = repo.list_general_items()[0].room_allocations
    assert [a.amount for a in allocations] == pytest.approx([450, 450])
    assert [a.percentage for a in allocations] == pytest.approx([50, 50])
