# renobudget/routes/reports.py
from flask import Blueprint, jsonify

from renobudget.db.room_repository import RoomRepository
from renobudget.routes.guards import require_auth, run_in_session
from renobudget.services.aggregation_service import AggregationService

reports_bp = Blueprint("reports", __name__, url_prefix="")


@reports_bp.route("/categories", methods=["GET"])
@require_auth
def list_categories():
    categories = run_in_session(lambda db: AggregationService(RoomRepository(db)).category_totals())
    return jsonify([c.to_wire() for c in categories])


@reports_bp.route("/totals", methods=["GET"])
@require_auth
def project_totals():
    totals = run_in_session(lambda db: AggregationService(RoomRepository(db)).project_totals())
    return jsonify(totals.to_wire())


@reports_bp.route("/products", methods=["GET"])
@require_auth
def list_products():
    products = run_in_session(lambda db: AggregationService(RoomRepository(db)).list_products())
    return jsonify({"success": True, "products": [p.to_wire() for p in products]})
