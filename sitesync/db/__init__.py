"""Database module."""

from sitesync.db.session import init_db, make_engine, make_session_factory

__all__ = ["init_db", "make_engine", "make_session_factory"]
