# renobudget/routes/expenses.py
import datetime as dt
from typing import Optional

from flask import Blueprint, jsonify, request

from renobudget.db.room_repository import RoomRepository
from renobudget.errors import ValidationFailure
from renobudget.routes.guards import current_caller, json_body, require_admin, require_auth, run_in_session
from renobudget.services.aggregation_service import AggregationService
from renobudget.services.expense_reconciliation_service import ExpenseReconciliationService

expenses_bp = Blueprint("expenses", __name__, url_prefix="/expenses")


def _date_arg(name: str) -> Optional[dt.date]:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        return dt.date.fromisoformat(raw[:10])
    except ValueError:
        raise ValidationFailure(f"Invalid {name} date", {name: "must be YYYY-MM-DD"})


@expenses_bp.route("", methods=["GET"])
@require_auth
def list_expenses():
    expenses = run_in_session(lambda db: ExpenseReconciliationService(RoomRepository(db)).list_expenses())
    return jsonify({"success": True, "expenses": [e.to_wire() for e in expenses]})


@expenses_bp.route("", methods=["POST"])
@require_admin
def save_expenses():
    """整批保存：按 id 对账，缺席即删除"""
    expenses = json_body().get("expenses")
    if not isinstance(expenses, list):
        raise ValidationFailure("expenses must be a list", {"expenses": "must be a list"})

    caller = current_caller()
    stats = run_in_session(
        lambda db: ExpenseReconciliationService(RoomRepository(db)).save_expenses(expenses, caller=caller)
    )
    return jsonify({"success": True, "stats": stats.to_wire()})


@expenses_bp.route("/summary", methods=["GET"])
@require_auth
def expense_summary():
    start, end = _date_arg("start"), _date_arg("end")
    if start and end and start > end:
        raise ValidationFailure("start must not be after end", {"start": "must be <= end"})

    def work(db):
        repository = RoomRepository(db)
        expenses = ExpenseReconciliationService(repository).list_expenses()
        return AggregationService(repository).summarize_expenses(expenses, start, end)

    summary = run_in_session(work)
    return jsonify({"success": True, "summary": [row.to_wire() for row in summary]})
