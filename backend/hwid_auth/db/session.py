"""
SQLAlchemy engine and session factories for the SQL storage backend.

- make_engine(url): engine tuned for the URL (SQLite gets check_same_thread=False;
  other databases get pool_pre_ping).
- make_session_factory(engine): sessionmaker used by the SQL stores.
- init_schema(engine): create the tenant and ledger tables if missing.

SQLALCHEMY_ECHO=1 turns on statement echo for debugging.
"""

from __future__ import annotations

import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from hwid_auth.db.base import Base, import_all_models

__all__ = ["make_engine", "make_session_factory", "init_schema", "SQLALCHEMY_ECHO"]


SQLALCHEMY_ECHO: bool = os.getenv("SQLALCHEMY_ECHO", "0").lower() in {"1", "true", "yes", "on"}


def make_engine(url: str) -> Engine:
    """
    Build an engine for the given database URL.
    """
    # SQLite needs check_same_thread=False because request handlers run on a thread pool
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=SQLALCHEMY_ECHO,
        )

    return create_engine(url, pool_pre_ping=True, echo=SQLALCHEMY_ECHO)


def make_session_factory(engine: Engine) -> sessionmaker:
    # expire_on_commit=False keeps loaded rows usable after the transaction closes
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        class_=Session,
    )


def init_schema(engine: Engine) -> None:
    import_all_models()
    Base.metadata.create_all(bind=engine)
