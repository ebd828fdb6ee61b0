"""Database session management."""

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from sitesync.config import Settings

logger = logging.getLogger(__name__)


def make_engine(settings: Settings) -> Engine:
    """Create an engine for the local store described by ``settings``.

    SQL is echoed when ``settings.debug`` is set.
    """
    return create_engine(settings.database_url, echo=settings.debug)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Build a session factory bound to ``engine``."""
    return sessionmaker(
        engine,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


def init_db(engine: Engine) -> None:
    """Create any missing tables.

    Schema bootstrap beyond ``create_all`` is handled outside this package.
    """
    from sitesync.models import Base

    logger.info("Ensuring local store tables exist")
    Base.metadata.create_all(engine)
