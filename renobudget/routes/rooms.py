# renobudget/routes/rooms.py
from flask import Blueprint, jsonify
from pydantic import ValidationError

from renobudget.db.room_repository import RoomRepository
from renobudget.errors import ValidationFailure, validation_failure_from_pydantic
from renobudget.routes.guards import current_caller, json_body, require_admin, require_auth, run_in_session
from renobudget.schemas.dto.room_dto import RoomCreateDTO, RoomSaveDTO
from renobudget.services.cost_calculation_service import compute_room_derived
from renobudget.services.expense_reconciliation_service import ExpenseReconciliationService

rooms_bp = Blueprint("rooms", __name__, url_prefix="/rooms")


@rooms_bp.route("", methods=["GET"])
@require_auth
def list_rooms():
    """房间列表（不含 _general），派生字段实时计算"""
    rooms = run_in_session(lambda db: RoomRepository(db).list_rooms_overview())
    return jsonify({"rooms": [r.to_wire() for r in rooms]})


@rooms_bp.route("", methods=["POST"])
@require_admin
def create_room():
    try:
        payload = RoomCreateDTO.model_validate(json_body())
    except ValidationError as e:
        raise validation_failure_from_pydantic(e)

    room = run_in_session(
        lambda db: RoomRepository(db).create_room(slug=payload.slug, name=payload.name, budget=payload.budget)
    )
    return jsonify({"success": True, "room": room.to_wire()}), 201


@rooms_bp.route("/<slug>", methods=["GET"])
@require_auth
def get_room(slug):
    """房间详情：自身 items + 从 _general 投影的只读共享费用"""
    def work(db):
        service = ExpenseReconciliationService(RoomRepository(db))
        room, shared = service.room_view(slug)
        return room, shared, service.shared_spent(shared)

    room, shared, shared_spent = run_in_session(work)

    room_data = room.to_wire()
    room_data["derived"] = compute_room_derived(room).to_wire()
    room_data["sharedItems"] = [s.to_wire() for s in shared]
    room_data["sharedSpent"] = shared_spent
    return jsonify({"roomData": room_data})


@rooms_bp.route("/<slug>", methods=["POST"])
@require_admin
def save_room(slug):
    room_data = json_body().get("roomData")
    if not isinstance(room_data, dict):
        raise ValidationFailure("roomData is required", {"roomData": "must be an object"})
    try:
        payload = RoomSaveDTO.model_validate(room_data)
    except ValidationError as e:
        raise validation_failure_from_pydantic(e)

    caller = current_caller()
    room_id = run_in_session(lambda db: RoomRepository(db).save_room(slug=slug, payload=payload, caller=caller))
    return jsonify({"success": True, "roomId": room_id})
