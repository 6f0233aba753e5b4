# renobudget/routes/auth.py
"""Endpoints consumed by the frontend credential provider (no caller header yet)."""
from flask import Blueprint, jsonify

from renobudget.errors import ValidationFailure
from renobudget.routes.guards import json_body, run_in_session
from renobudget.schemas.dto.user_dto import UserDTO
from renobudget.services.user_service import UserService

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.route("/user-by-email", methods=["POST"])
def user_by_email():
    email = json_body().get("email")
    if not isinstance(email, str) or not email.strip():
        raise ValidationFailure("email is required", {"email": "must not be empty"})

    def work(db):
        user = UserService(db).get_user_by_email(email)
        return UserDTO.from_orm_model(user) if user else None

    user = run_in_session(work)
    return jsonify({"user": user.to_wire() if user else None})


@auth_bp.route("/update-last-login", methods=["POST"])
def update_last_login():
    user_id = json_body().get("userId")
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValidationFailure("userId is required", {"userId": "must not be empty"})

    def work(db):
        UserService(db).update_last_login(user_id=user_id)
        db.commit()

    run_in_session(work)
    return jsonify({"success": True})
