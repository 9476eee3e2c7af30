"""Database engine and session management."""
import logging
from functools import lru_cache
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from inventory_api.settings import get_settings

logger = logging.getLogger(__name__)


def build_engine(url: str, echo: bool = False) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(url, pool_pre_ping=True, echo=echo, connect_args=connect_args)
    logger.info(f"Initialized database engine ({engine.url.get_backend_name()})")
    return engine


@lru_cache()
def get_engine() -> Engine:
    settings = get_settings()
    return build_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)


@lru_cache()
def get_sessionmaker() -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """Dependency yielding a session, closed after the request."""
    db = get_sessionmaker()()
    try:
        yield db
    finally:
        db.close()
