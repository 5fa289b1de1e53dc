"""
Schema extraction for uploaded SQLite databases.

Reads table DDL from ``sqlite_master`` and caches the snapshot
against the handle it was built from.  The catalog is only
queried again when a different handle (a new upload) comes in.
"""

import logging
import threading
from typing import Any, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from sql_analyst.schemas import TableDefinition

logger = logging.getLogger(__name__)

Schema = Tuple[TableDefinition, ...]

_CATALOG_QUERY = (
    "SELECT name, sql FROM sqlite_master "
    "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' "
    "ORDER BY rowid"
)


class SchemaUnavailable(Exception):
    """The catalog could not be read or holds no tables."""


def read_catalog(handle: Any) -> Schema:
    """
    Query the catalog of *handle* for table definitions.

    Opens one connection and releases it before returning.

    Parameters:
        handle (DatabaseHandle): Database to introspect.

    Returns:
        tuple[TableDefinition, ...]: Tables in catalog order.

    Raises:
        SchemaUnavailable: On catalog errors or an empty catalog.
    """
    engine = handle.create_engine()
    try:
        with engine.connect() as connection:
            rows = connection.execute(text(_CATALOG_QUERY)).fetchall()
    except SQLAlchemyError as exc:
        raise SchemaUnavailable(
            f"Could not read schema: {exc}"
        ) from exc
    finally:
        engine.dispose()

    if not rows:
        raise SchemaUnavailable("Database contains no tables")
    return tuple(
        TableDefinition(name=row[0], ddl=row[1] or "")
        for row in rows
    )


def schema_ddl(schema: Schema) -> str:
    """
    Join table DDL into one prompt-ready block.

    Parameters:
        schema (tuple[TableDefinition, ...]): Schema snapshot.

    Returns:
        str: DDL statements separated by blank lines.
    """
    return "\n\n".join(t.ddl for t in schema if t.ddl)


class SchemaProvider:
    """Hand out the schema of a database, cached by handle."""

    def __init__(self):
        self._lock = threading.Lock()
        self._handle: Optional[Any] = None
        self._schema: Optional[Schema] = None

    def load(self, handle: Any) -> Schema:
        """
        Return the schema for *handle*.

        Parameters:
            handle (DatabaseHandle): Database to describe.

        Returns:
            tuple[TableDefinition, ...]: Immutable snapshot.

        Raises:
            SchemaUnavailable: If the catalog cannot be read.
        """
        with self._lock:
            if self._handle is handle and self._schema is not None:
                return self._schema

            logger.info("[schema] loading schema for %r", handle)
            schema = read_catalog(handle)
            self._handle = handle
            self._schema = schema
            logger.info(
                "[schema] loaded %d tables: %s",
                len(schema),
                ", ".join(t.name for t in schema),
            )
            return schema

