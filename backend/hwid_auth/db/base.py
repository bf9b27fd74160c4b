"""
SQLAlchemy declarative base and model import hook for the SQL storage backend.

- Base: Declarative base class for the tenant and ledger tables.
- import_all_models(): imports every module under hwid_auth.models so their
  tables are registered on Base.metadata before create_all().
"""

from __future__ import annotations

import importlib
import pkgutil
from typing import List

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

__all__ = ["Base", "import_all_models"]


# Naming conventions for constraints & indexes (helpful for migrations)
_NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=_NAMING_CONVENTION)


def import_all_models() -> List[str]:
    """
    Import all modules under hwid_auth.models so SQLAlchemy registers their tables.

    Returns:
        The fully-qualified module names that were imported.
    """
    models_pkg = importlib.import_module("hwid_auth.models")
    imported: List[str] = []
    prefix = models_pkg.__name__ + "."
    for _finder, name, _ispkg in pkgutil.walk_packages(models_pkg.__path__, prefix):
        importlib.import_module(name)
        imported.append(name)
    return imported
