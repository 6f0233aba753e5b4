from renobudget.db.session import get_engine
from renobudget.db.base import Base
# 导入所有表，保证 metadata 完整
from renobudget.models.room import Room  # noqa: F401
from renobudget.models.user import User  # noqa: F401
from renobudget.models.timeline import Timeline  # noqa: F401


def init_db():
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
