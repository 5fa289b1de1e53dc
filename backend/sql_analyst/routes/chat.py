"""
API routes for the analyst chat.

Every turn is answered and persisted, whether the pipeline
succeeded, asked for clarification, or failed outright.
"""

import json
import logging
from typing import Any, List

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from sql_analyst.config import settings
from sql_analyst.database import SessionLocal, get_db
from sql_analyst.schemas import (
    ChatRequest,
    ChatTurnResponse,
    ClearHistoryRequest,
    ClearHistoryResult,
    TurnReply,
)
from sql_analyst.services import history
from sql_analyst.services.agents import (
    orchestrate_turn,
    orchestrate_turn_stream,
)
from sql_analyst.services.session import (
    AnalystContext,
    get_analyst_context,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


def get_session_factory():
    """
    Dependency that provides the session factory.

    The streaming endpoint opens its own session inside the
    generator because ``StreamingResponse`` consumes it after
    ``Depends``-based sessions may already be closed.
    """
    return SessionLocal


def _history_text(db: Session, user: str) -> str:
    """Format the user's recent turns for the prompts."""
    turns = history.recent_turns(db, user, settings.history_window)
    return history.format_history(turns)


@router.post(
    "/chat",
    response_model=TurnReply,
    summary="Ask a question about the uploaded database",
)
def send_chat_message(
    data: ChatRequest,
    db: Session = Depends(get_db),
    ctx: AnalystContext = Depends(get_analyst_context),
):
    """
    Answer one chat turn.

    Runs the multi-agent pipeline against the active database
    with the user's last turns as context, then stores the turn.
    """
    logger.info("[chat] turn from %s", data.user)
    reply = orchestrate_turn(
        ctx, data.message, _history_text(db, data.user),
    )
    history.save_turn(db, data.user, data.message, reply.response)
    return reply


@router.post(
    "/chat/stream",
    summary="Ask a question (SSE stream)",
)
def send_chat_message_stream(
    data: ChatRequest,
    ctx: AnalystContext = Depends(get_analyst_context),
    session_factory=Depends(get_session_factory),
):
    """
    SSE streaming variant of the chat endpoint.

    Emits ``agent_start`` / ``agent_done`` events as each agent
    runs, then a ``result`` event with the complete reply.
    The turn is stored as soon as the reply exists, before
    the ``result`` event is sent.
    """

    def _sse(event: str, data_obj: Any) -> str:
        """Format a Server-Sent Event string."""
        payload = json.dumps(data_obj, ensure_ascii=False)
        return f"event: {event}\ndata: {payload}\n\n"

    def event_stream():
        """Yield SSE events from the orchestrator."""
        db = session_factory()

        def persist(reply: TurnReply) -> None:
            history.save_turn(
                db, data.user, data.message, reply.response,
            )

        try:
            yield from orchestrate_turn_stream(
                ctx,
                data.message,
                _history_text(db, data.user),
                on_reply=persist,
            )
        except Exception as exc:
            logger.exception("[chat] stream failed")
            yield _sse("error", {"message": str(exc)})
        finally:
            db.close()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )


@router.get(
    "/history",
    response_model=List[ChatTurnResponse],
    summary="List stored chat turns",
)
def get_history(db: Session = Depends(get_db)):
    """Retrieve every stored turn, newest first."""
    return history.list_turns(db)


@router.post(
    "/clear-history",
    response_model=ClearHistoryResult,
    summary="Delete a user's chat turns",
)
def clear_history(
    data: ClearHistoryRequest,
    db: Session = Depends(get_db),
):
    """Remove the stored conversation for one user."""
    deleted = history.clear_turns(db, data.user)
    return {"success": True, "deleted": deleted}
