"""
数据库自动初始化检查模块
在应用启动时自动检查并执行必要的初始化步骤
"""
from typing import Optional

from sqlalchemy import inspect

from renobudget.db.enums import DEFAULT_ROOMS, UserRole
from renobudget.db.init_db import init_db
from renobudget.db.room_repository import RoomRepository
from renobudget.db.session import get_engine, get_session
from renobudget.logger import get_logger
from renobudget.services.user_service import UserService

logger = get_logger(__name__)


def check_tables_exist() -> bool:
    """检查数据库表是否存在"""
    inspector = inspect(get_engine())
    tables = inspector.get_table_names()
    return all(t in tables for t in ("rooms", "users", "timeline"))


def seed_default_rooms() -> int:
    """库里没有普通房间时写入默认房间"""
    db = get_session()
    try:
        repository = RoomRepository(db)
        if repository.room_slugs():
            return 0
        for slug, name in DEFAULT_ROOMS:
            repository.create_room(slug=slug, name=name)
        return len(DEFAULT_ROOMS)
    finally:
        db.close()


def create_admin_user(email: str, password: str, name: str) -> bool:
    """没有管理员时创建一个"""
    db = get_session()
    try:
        user_service = UserService(db)
        if user_service.has_admin():
            return False
        user_service.create_user(email=email, password=password, name=name, role=UserRole.admin)
        db.commit()
        return True
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def auto_init(
    *,
    seed_rooms: bool = True,
    admin_email: Optional[str] = None,
    admin_password: Optional[str] = None,
    admin_name: str = "Administrator",
) -> None:
    """
    自动初始化检查
    - 建表
    - 保证 _general 房间存在
    - 可选：写入默认房间
    - 可选：按环境变量创建管理员
    """
    logger.info("🔍 Checking database initialisation state")

    if not check_tables_exist():
        logger.info("📦 Tables missing, creating")
        init_db()

    db = get_session()
    try:
        RoomRepository(db).ensure_general_room()
    finally:
        db.close()

    if seed_rooms:
        seeded = seed_default_rooms()
        if seeded:
            logger.info("🏠 Seeded %d default rooms", seeded)

    if admin_email and admin_password:
        if create_admin_user(admin_email, admin_password, admin_name):
            logger.info("👤 Administrator created: %s", admin_email)

    logger.info("🎉 Database initialisation check finished")


if __name__ == "__main__":
    auto_init()
