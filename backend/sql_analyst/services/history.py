"""
Chat-history persistence.

Turns are append-only; the newest few for a user are replayed
into prompts as plain ``User:`` / ``AI:`` lines.
"""

import logging
from typing import List, Sequence

from sqlalchemy.orm import Session

from sql_analyst.models import ChatTurn

logger = logging.getLogger(__name__)


def recent_turns(db: Session, user: str, limit: int) -> List[ChatTurn]:
    """
    Return the latest *limit* turns for *user*, oldest first.

    Parameters:
        db (Session): Active SQLAlchemy session.
        user (str): User identifier.
        limit (int): Window size.

    Returns:
        list[ChatTurn]: Turns in chronological order.
    """
    newest_first = (
        db.query(ChatTurn)
        .filter(ChatTurn.user == user)
        .order_by(ChatTurn.created_at.desc())
        .limit(limit)
        .all()
    )
    return list(reversed(newest_first))


def format_history(turns: Sequence[ChatTurn]) -> str:
    """Render turns as prompt text."""
    return "\n".join(
        f"User: {t.message}\nAI: {t.response}" for t in turns
    )


def save_turn(
    db: Session,
    user: str,
    message: str,
    response: str,
) -> ChatTurn:
    """
    Append one turn to the history.

    Parameters:
        db (Session): Active SQLAlchemy session.
        user (str): User identifier.
        message (str): The user's message.
        response (str): The text returned for it.

    Returns:
        ChatTurn: The stored row.
    """
    turn = ChatTurn(user=user, message=message, response=response)
    db.add(turn)
    db.commit()
    db.refresh(turn)
    return turn


def list_turns(db: Session) -> List[ChatTurn]:
    """All stored turns, newest first."""
    return (
        db.query(ChatTurn)
        .order_by(ChatTurn.created_at.desc())
        .all()
    )


def clear_turns(db: Session, user: str) -> int:
    """
    Delete every turn for *user*.

    Returns:
        int: Number of rows removed.
    """
    deleted = (
        db.query(ChatTurn)
        .filter(ChatTurn.user == user)
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("[history] cleared %d turns for %s", deleted, user)
    return deleted
