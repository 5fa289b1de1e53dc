"""
Active-database context for the analyst.

The uploaded database a user is asking about changes over the
life of the process.  Instead of a module-level variable, the
current database and its schema cache live on one
``AnalystContext`` that is stored on ``app.state`` and handed
to each chat turn.
"""

import logging
import os
from typing import Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from sql_analyst.services.completion import CompletionClient
from sql_analyst.services.schema_provider import SchemaProvider

logger = logging.getLogger(__name__)


class DatabaseHandle:
    """
    Reference to one uploaded SQLite file.

    Two handles for the same path are still two databases:
    identity of the handle object is what the schema cache
    compares, so every upload gets a fresh handle.
    """

    def __init__(self, path: str):
        self.path = path

    def exists(self) -> bool:
        """Return True if the file is still on disk."""
        return bool(self.path) and os.path.isfile(self.path)

    def create_engine(self) -> Engine:
        """
        Build a short-lived engine for this file.

        Callers must ``dispose()`` the engine when done so no
        connection outlives the operation that opened it.
        """
        return create_engine(f"sqlite:///{self.path}")

    def __repr__(self) -> str:
        return f"DatabaseHandle({self.path!r})"


class AnalystContext:
    """
    Process-wide state shared by chat turns.

    Attributes:
        database (DatabaseHandle | None): Currently uploaded db.
        schema_provider (SchemaProvider): Cached schema snapshot.
        client (CompletionClient): Text-generation client.
    """

    def __init__(
        self,
        client: Optional[CompletionClient] = None,
        schema_provider: Optional[SchemaProvider] = None,
    ):
        self.database: Optional[DatabaseHandle] = None
        self.schema_provider = schema_provider or SchemaProvider()
        self.client = client or CompletionClient()

    def replace_database(self, path: str) -> DatabaseHandle:
        """
        Make the file at *path* the active database.

        Parameters:
            path (str): Filesystem path of the uploaded file.

        Returns:
            DatabaseHandle: The new active handle.
        """
        handle = DatabaseHandle(path)
        self.database = handle
        logger.info("[session] active database set to %s", path)
        return handle


def get_analyst_context(request: Request) -> AnalystContext:
    """
    Dependency that provides the shared analyst context.

    Returns:
        AnalystContext: The instance stored on ``app.state``.
    """
    return request.app.state.analyst
