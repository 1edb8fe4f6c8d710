"""
Base Repository
===============

Shared plumbing for the SQLite repositories. Every repository wraps the
same ``SQLiteDatabaseHandler`` backend, so a transaction opened through any
of them covers writes made through all of them::

    with task_repo.transaction():
        plan_repo.deactivate_all(plant_id)
        task_repo.delete_pending_for_plant(plant_id)
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler


@runtime_checkable
class BaseRepository(Protocol):
    """Minimal contract shared by every repository: a transaction scope."""

    def transaction(self) -> AbstractContextManager[Any]: ...


class SQLiteRepository:
    """Repository bound to a database handler backend."""

    def __init__(self, backend: "SQLiteDatabaseHandler") -> None:
        """
        Initialize with database backend.

        Args:
            backend: Database handler that implements the ops mixins
        """
        self._backend = backend

    def transaction(self) -> AbstractContextManager[Any]:
        return self._backend.transaction()
