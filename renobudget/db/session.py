# renobudget/db/session.py
from typing import Optional
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
import os

_engine: Optional[Engine] = None
_SessionLocal = None

_IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def _build_engine(db_url: str) -> Engine:
    kwargs = {}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        # 内存库必须共享同一个连接，否则每个 session 都是空库
        if db_url in _IN_MEMORY_URLS:
            kwargs["poolclass"] = StaticPool
    return create_engine(db_url, **kwargs)


def configure_engine(db_url: str) -> Engine:
    """Bind the module level engine/sessionmaker to ``db_url``, replacing any previous one."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = _build_engine(db_url)
    _SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=_engine,
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        db_url = os.environ.get("DATABASE_URL")
        if not db_url:
            raise RuntimeError("DATABASE_URL not set")
        configure_engine(db_url)
    return _engine


def get_session() -> Session:
    if _SessionLocal is None:
        get_engine()
    return _SessionLocal()
