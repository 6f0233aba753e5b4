# renobudget/tests/conftest.py
import os

# 测试不写日志文件
os.environ["LOG_DIR"] = ""

import pytest

from renobudget.app_factory import create_app
from renobudget.db.enums import UserRole
from renobudget.db.room_repository import RoomRepository
from renobudget.db.session import get_session
from renobudget.schemas.dto.user_dto import CallerContext
from renobudget.services.user_service import UserService


@pytest.fixture
def app():
    # 每个测试一个全新的内存库（create_app 会重新绑定 engine）
    app = create_app({
        "TESTING": True,
        "DATABASE_URL": "sqlite://",
        "SEED_ROOMS": True,
        "ADMIN_EMAIL": None,
        "ADMIN_PASSWORD": None,
    })
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    session = get_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repo(db):
    return RoomRepository(db)


@pytest.fixture
def users(app):
    """admin / viewer / inactive 三个账号的 id"""
    session = get_session()
    try:
        service = UserService(session)
        admin = service.create_user(email="admin@example.com", password="admin123", name="Admin", role=UserRole.admin)
        viewer = service.create_user(email="Viewer@Example.com", password="viewer123", name="Viewer")
        inactive = service.create_user(email="gone@example.com", password="gone1234", name="Gone")
        service.deactivate_user(user_id=inactive.id)
        session.commit()
        return {"admin": admin.id, "viewer": viewer.id, "inactive": inactive.id}
    finally:
        session.close()


@pytest.fixture
def admin_headers(users):
    return {"X-User-Id": users["admin"]}


@pytest.fixture
def viewer_headers(users):
    return {"X-User-Id": users["viewer"]}


@pytest.fixture
def admin_caller():
    return CallerContext(caller_id="admin-test", role=UserRole.admin)


@pytest.fixture
def viewer_caller():
    return CallerContext(caller_id="viewer-test", role=UserRole.user)
