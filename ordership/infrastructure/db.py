from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator, Optional
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from ordership.core import get_logger
from ordership.core_settings import get_settings
from ordership.domain.errors import PersistenceError
from ordership.domain.models import Base

logger = get_logger(__name__)

_DEPTH_KEY = "ordership.transaction_depth"

@lru_cache
def get_engine() -> Engine:
    settings = get_settings()
    return create_engine(settings.database_url, echo=settings.SQL_ECHO, future=True)

def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

@lru_cache
def get_session_factory() -> sessionmaker:
    return make_session_factory(get_engine())

def get_db() -> Iterator[Session]:
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()

@contextmanager
def session_scope(factory: Optional[sessionmaker] = None) -> Iterator[Session]:
    """One session per console operation, always closed afterwards."""
    db = (factory or get_session_factory())()
    try:
        yield db
    finally:
        db.close()

def init_models(engine: Optional[Engine] = None):
    Base.metadata.create_all(engine or get_engine())

@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Unit of work around a multi-step sequence.

    Only the outermost block commits; a nested block joins it. Any exception
    rolls back every step since the outermost block started.
    """
    depth = db.info.get(_DEPTH_KEY, 0)
    db.info[_DEPTH_KEY] = depth + 1
    try:
        yield db
        if depth == 0:
            try:
                db.commit()
            except SQLAlchemyError as e:
                raise PersistenceError(f"Commit failed: {e}") from e
    except Exception as e:
        if depth == 0:
            db.rollback()
            logger.warning(
                "Transaction rolled back",
                extra={'extra_fields': {'error_type': type(e).__name__, 'error': str(e)}}
            )
        raise
    finally:
        db.info[_DEPTH_KEY] = depth
