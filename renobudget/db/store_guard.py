# renobudget/db/store_guard.py
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from renobudget.errors import DomainError, PersistenceFailure
from renobudget.logger import get_logger

logger = get_logger(__name__)


@contextmanager
def store_guard(db: Session, action: str) -> Iterator[None]:
    '''Translate driver errors into PersistenceFailure; rollback so the session stays usable.'''
    try:
        yield
    except DomainError:
        raise
    except OperationalError as e:
        db.rollback()
        logger.warning("%s failed (transient): %s", action, e)
        raise PersistenceFailure(f"{action} failed", transient=True) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("%s failed: %s", action, e)
        raise PersistenceFailure(f"{action} failed") from e
