# renobudget/routes/timeline.py
from flask import Blueprint, jsonify

from renobudget.db.timeline_repository import TimelineRepository
from renobudget.errors import ValidationFailure
from renobudget.routes.guards import current_caller, json_body, require_admin, require_auth, run_in_session
from renobudget.services.timeline_service import TimelineService

timeline_bp = Blueprint("timeline", __name__, url_prefix="/timeline")


def _service(db) -> TimelineService:
    return TimelineService(TimelineRepository(db))


@timeline_bp.route("", methods=["GET"])
@require_auth
def get_timeline():
    """阶段列表 + 实时计算的 overallProgress / currentPhase"""
    timeline = run_in_session(lambda db: _service(db).get_timeline())
    return jsonify({"success": True, "timeline": timeline.to_wire()})


@timeline_bp.route("", methods=["POST"])
@require_admin
def save_timeline():
    data = json_body().get("timeline")
    if not isinstance(data, dict) or not isinstance(data.get("phases", []), list):
        raise ValidationFailure("timeline is required", {"timeline": "must be an object with a phases list"})

    caller = current_caller()
    timeline = run_in_session(lambda db: _service(db).save_timeline(data.get("phases", []), caller=caller))
    return jsonify({"success": True, "timeline": timeline.to_wire()})


@timeline_bp.route("/phase/<phase_id>", methods=["PUT"])
@require_admin
def update_phase(phase_id):
    caller = current_caller()
    raw_phase = json_body().get("phase")
    timeline = run_in_session(lambda db: _service(db).update_phase(phase_id, raw_phase, caller=caller))
    return jsonify({"success": True, "timeline": timeline.to_wire()})


@timeline_bp.route("/phase/<phase_id>", methods=["DELETE"])
@require_admin
def delete_phase(phase_id):
    caller = current_caller()
    timeline = run_in_session(lambda db: _service(db).delete_phase(phase_id, caller=caller))
    return jsonify({"success": True, "timeline": timeline.to_wire()})
