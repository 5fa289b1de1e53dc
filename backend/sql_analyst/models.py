"""
SQLAlchemy models for the SQL Analyst chat history.

Every chat turn is stored as one append-only row, whatever
the outcome of the pipeline that answered it.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column,
    String,
    Text,
    DateTime,
)
from sql_analyst.database import Base


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(timezone.utc)


class ChatTurn(Base):
    """
    One question/answer exchange between a user and the analyst.

    Rows are never updated after creation; the most recent
    ones are replayed into prompts as conversation history.
    """

    __tablename__ = "chat_turns"

    id = Column(String, primary_key=True, default=generate_uuid)
    user = Column(String(255), nullable=False, index=True)
    message = Column(Text, nullable=False)
    response = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, default=utcnow, index=True)
