# create_admin.py
"""
创建初始管理员
⚠️ 仅用于开发 / 手动维护

usage: python create_admin.py EMAIL PASSWORD [NAME]
"""
import sys

from renobudget.app_factory import default_config
from renobudget.db.enums import UserRole
from renobudget.db.init_db import init_db
from renobudget.db.session import configure_engine, get_session
from renobudget.errors import DomainError
from renobudget.logger import get_logger
from renobudget.services.user_service import UserService

logger = get_logger("create_admin")


def create_admin(email: str, password: str, name: str = "Administrator") -> None:
    init_db()
    db = get_session()
    try:
        user_service = UserService(db)

        existing = user_service.get_user_by_email(email)
        if existing:
            logger.warning("⚠️ User '%s' already exists, skipped", email)
            return

        user_service.create_user(email=email, password=password, name=name, role=UserRole.admin)
        db.commit()
        logger.info("✅ Administrator created: %s", email)

    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def main(argv):
    if len(argv) < 3:
        print(__doc__)
        return 2

    configure_engine(default_config()["DATABASE_URL"])
    try:
        create_admin(argv[1], argv[2], argv[3] if len(argv) > 3 else "Administrator")
    except DomainError as e:
        logger.error("❌ %s", e.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
