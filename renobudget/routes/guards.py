# renobudget/routes/guards.py
from functools import wraps
from typing import Any, Callable, Dict, TypeVar

from flask import g, request
from sqlalchemy.orm import Session

from renobudget.db.session import get_session
from renobudget.errors import PermissionDenied, PersistenceFailure, ValidationFailure
from renobudget.logger import get_logger
from renobudget.schemas.dto.user_dto import CallerContext
from renobudget.services.user_service import UserService

logger = get_logger(__name__)

T = TypeVar("T")

CALLER_HEADER = "X-User-Id"


def run_in_session(work: Callable[[Session], T]) -> T:
    '''
    Run work with a fresh session, closing it afterwards.
    A transient PersistenceFailure is retried once with a new session.
    '''
    attempt = 0
    while True:
        attempt += 1
        db = get_session()
        try:
            return work(db)
        except PersistenceFailure as e:
            if e.transient and attempt == 1:
                logger.warning("Transient store failure, retrying once: %s", e.message)
                continue
            raise
        finally:
            db.close()


def json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationFailure("Request body must be a JSON object", {"body": "must be a JSON object"})
    return body


def current_caller() -> CallerContext:
    return g.caller


def require_auth(view):
    """检查调用方身份（由前端认证服务放入请求头）"""
    @wraps(view)
    def wrapper(*args, **kwargs):
        user_id = (request.headers.get(CALLER_HEADER) or "").strip()
        g.caller = run_in_session(lambda db: UserService(db).resolve_caller(user_id))
        return view(*args, **kwargs)
    return wrapper


def require_admin(view):
    """写操作只允许管理员"""
    @require_auth
    @wraps(view)
    def wrapper(*args, **kwargs):
        caller = current_caller()
        if not caller.is_admin:
            logger.info("Write denied for %s on %s %s", caller.caller_id, request.method, request.path)
            raise PermissionDenied("Administrator role required")
        return view(*args, **kwargs)
    return wrapper
