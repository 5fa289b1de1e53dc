"""
SQL execution against the uploaded database.

Each statement gets its own engine and connection, released
whatever the outcome; the transaction is never committed.
Engine errors never propagate: they are returned in
``ExecutionOutcome.error`` so the orchestrator can route the
turn to the clarification agent.
"""

import logging
import re
from typing import Any, Iterable, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from sql_analyst.config import settings
from sql_analyst.schemas import (
    BatchOutcome,
    ExecutionOutcome,
    QueryCandidate,
)

logger = logging.getLogger(__name__)

# Patterns that must NEVER appear in executable SQL.
_DANGEROUS_SQL_RE = re.compile(
    r"\b(DROP|DELETE|TRUNCATE|UPDATE|INSERT|ALTER|CREATE|"
    r"GRANT|REVOKE|ATTACH|DETACH|PRAGMA|VACUUM|"
    r"REINDEX|EXEC|EXECUTE|CALL|LOAD)\b",
    re.IGNORECASE,
)

_LEADING_COMMENTS_RE = re.compile(r"^(?:\s*--[^\n]*(?:\n|$))*\s*")

_READ_STATEMENT_RE = re.compile(r"^(SELECT|WITH)\b", re.IGNORECASE)

# Quoted literals, quoted identifiers and comments.
_QUOTED_OR_COMMENT_RE = re.compile(
    r"'(?:[^']|'')*'"
    r'|"(?:[^"]|"")*"'
    r"|`[^`]*`"
    r"|\[[^\]]*\]"
    r"|--[^\n]*"
    r"|/\*[\s\S]*?\*/"
)


def _statement_words(sql: str) -> str:
    """Blank out literals and comments, leaving only SQL words."""
    return _QUOTED_OR_COMMENT_RE.sub(" ", sql)


def check_read_only(sql: str) -> Optional[str]:
    """
    Reject anything that is not a single plain read query.

    Keywords inside string literals, quoted identifiers and
    comments are ignored, so ``WHERE status = 'delete'`` is
    still a read.

    Parameters:
        sql (str): Statement about to be executed.

    Returns:
        str | None: Reason for rejection, or None if allowed.
    """
    body = _LEADING_COMMENTS_RE.sub("", sql or "", count=1)
    if not body.strip():
        return "Empty SQL statement"
    if not _READ_STATEMENT_RE.match(body):
        return "Only read-only SELECT statements can be run"
    words = _statement_words(body)
    statements = [s for s in words.split(";") if s.strip()]
    if len(statements) > 1:
        return "Only one SQL statement can be run at a time"
    match = _DANGEROUS_SQL_RE.search(words)
    if match:
        return (
            "Only read-only SELECT statements can be run "
            f"(found {match.group(1).upper()})"
        )
    return None


def execute_sql(handle: Any, sql: str) -> ExecutionOutcome:
    """
    Run one statement and collect its rows.

    Parameters:
        handle (DatabaseHandle): Database to run against.
        sql (str): Statement to execute.

    Returns:
        ExecutionOutcome: Rows as dicts, or the error message.
    """
    if settings.enforce_read_only_sql:
        reason = check_read_only(sql)
        if reason:
            logger.warning("[executor] rejected statement: %s", reason)
            return ExecutionOutcome(error=reason)

    engine = handle.create_engine()
    try:
        with engine.connect() as connection:
            result = connection.execute(text(sql))
            rows = []
            if result.returns_rows:
                columns = list(result.keys())
                rows = [
                    dict(zip(columns, row))
                    for row in result.fetchall()
                ]
    except SQLAlchemyError as exc:
        message = str(getattr(exc, "orig", None) or exc)
        logger.info("[executor] statement failed: %s", message)
        return ExecutionOutcome(error=message)
    finally:
        engine.dispose()

    logger.info("[executor] statement returned %d rows", len(rows))
    return ExecutionOutcome(rows=rows)


def execute_batch(
    handle: Any,
    candidates: Iterable[QueryCandidate],
) -> BatchOutcome:
    """
    Run candidates in order, stopping at the first failure.

    Statements after the failing one are never executed.  An
    empty batch succeeds with no results.

    Parameters:
        handle (DatabaseHandle): Database to run against.
        candidates (iterable[QueryCandidate]): Generated queries.

    Returns:
        BatchOutcome: Collected row lists, plus the first error
            if one occurred.
    """
    results = []
    for index, candidate in enumerate(candidates, start=1):
        outcome = execute_sql(handle, candidate.sql)
        if not outcome.ok:
            logger.info(
                "[executor] batch halted at statement %d", index,
            )
            return BatchOutcome(results=results, error=outcome.error)
        results.append(outcome.rows)
    return BatchOutcome(results=results)
