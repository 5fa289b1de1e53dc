"""
Agent orchestrator.

Coordinates the per-turn pipeline:

1. **Triage**        → query or not, single or multi, chart or not.
2. **Query writer**  → one or several SQL candidates.
3. **Executor**      → run candidates in order, fail-fast.
4. **Insight**       → Markdown answer (success / no query), or
   **Clarifier**     → clarifying question (execution failed).
5. **Visualizer**    → chart spec, only when asked and no error.
6. **Formatter**     → one assembled response.

The steps are written once as a generator of progress events
(``_turn_events``).  ``orchestrate_turn`` drains it and
returns the reply; ``orchestrate_turn_stream`` renders each
event as a Server-Sent Event for real-time UI feedback.
Closing the stream abandons the turn before the next stage.
"""

import json
import logging
from typing import Any, Callable, Dict, Generator, Optional, Tuple

from sql_analyst.schemas import ChartSpec, Insight, TurnReply
from sql_analyst.services.agents.clarifier import ClarifierAgent
from sql_analyst.services.agents.insight import InsightAgent
from sql_analyst.services.agents.query_writer import QueryWriterAgent
from sql_analyst.services.agents.triage import TriageAgent
from sql_analyst.services.agents.visualizer import VisualizerAgent
from sql_analyst.services.executor import execute_batch, execute_sql
from sql_analyst.services.formatter import assemble_response
from sql_analyst.services.schema_provider import (
    SchemaUnavailable,
    schema_ddl,
)
from sql_analyst.services.session import AnalystContext

logger = logging.getLogger(__name__)

NO_DATABASE_MESSAGE = "Sorry, no database uploaded."
NO_SCHEMA_MESSAGE = (
    "Error: No schema could be loaded from the uploaded "
    "database. Please check your file."
)
PIPELINE_ERROR_PREFIX = "Error processing database: "

Event = Tuple[str, Dict[str, Any]]
TurnEvents = Generator[Event, None, TurnReply]


def _sse_event(
    event: str,
    data: Any,
) -> str:
    """
    Format a Server-Sent Event string.

    Parameters:
        event (str): Event name.
        data: Payload (will be JSON-serialised).

    Returns:
        str: SSE-formatted string.
    """
    payload = json.dumps(data, ensure_ascii=False, default=str)
    return f"event: {event}\ndata: {payload}\n\n"


class _Steps:
    """Numbered agent_start / agent_done events."""

    def __init__(self):
        self.step = 0

    def start(self, agent: str, label: str) -> Event:
        self.step += 1
        return "agent_start", {
            "agent": agent, "label": label, "step": self.step,
        }

    def done(self, agent: str, **extra: Any) -> Event:
        return "agent_done", {
            "agent": agent, "step": self.step, **extra,
        }


def _turn_events(
    ctx: AnalystContext,
    message: str,
    history_text: str,
) -> TurnEvents:
    """
    Run one chat turn, yielding progress events.

    Never raises: a missing database, an unreadable schema or
    any unexpected error becomes a plain-text reply.

    Parameters:
        ctx (AnalystContext): Active database, schema cache and
            completion client.
        message (str): The user's new message.
        history_text (str): Formatted recent conversation.

    Returns:
        TurnReply: The outbound reply (via StopIteration).
    """
    handle = ctx.database
    if handle is None or not handle.exists():
        logger.info("[orchestrator] no database uploaded")
        return TurnReply(response=NO_DATABASE_MESSAGE)

    try:
        try:
            schema = ctx.schema_provider.load(handle)
        except SchemaUnavailable as exc:
            logger.warning("[orchestrator] schema unavailable: %s", exc)
            return TurnReply(response=NO_SCHEMA_MESSAGE)
        ddl = schema_ddl(schema)
        return (yield from _pipeline(ctx, handle, ddl, message, history_text))
    except Exception as exc:
        logger.exception("[orchestrator] pipeline failed")
        return TurnReply(response=f"{PIPELINE_ERROR_PREFIX}{exc}")


def _pipeline(
    ctx: AnalystContext,
    handle: Any,
    ddl: str,
    message: str,
    history_text: str,
) -> TurnEvents:
    """Agent steps proper, once a schema is in hand."""
    client = ctx.client
    steps = _Steps()

    # ---- 1. Triage ----------------------------------------------
    yield steps.start("triage", "Understanding the question…")
    triage = TriageAgent(client).run({
        "schema_ddl": ddl,
        "history_text": history_text,
        "message": message,
    })
    logger.info(
        "[orchestrator] action=%s  multi=%s  visualization=%s",
        triage.action,
        triage.multi,
        triage.visualization,
    )
    yield steps.done(
        "triage",
        action=triage.action,
        visualization=triage.visualization,
    )

    insight: Optional[Insight] = None
    clarification: Optional[str] = None
    chart: Optional[ChartSpec] = None
    sql_result: Any = None
    error: Optional[str] = None

    if triage.action == "query":
        # ---- 2. Query writer ------------------------------------
        yield steps.start("query_writer", "Writing SQL…")
        generated = QueryWriterAgent(client).run({
            "schema_ddl": ddl,
            "subtask": triage.subtask,
            "multi": triage.multi,
        })
        yield steps.done("query_writer")

        # ---- 3. Executor ----------------------------------------
        yield steps.start("executor", "Running query…")
        if isinstance(generated, list):
            batch = execute_batch(handle, generated)
            sql_result = batch.results
            error = batch.error
        else:
            outcome = execute_sql(handle, generated.sql)
            if outcome.ok:
                sql_result = outcome.rows
            error = outcome.error
        yield steps.done("executor", ok=error is None)

    if error is not None:
        # ---- 4b. Clarifier --------------------------------------
        yield steps.start("clarifier", "Asking for clarification…")
        clarification = ClarifierAgent(client).run({
            "schema_ddl": ddl,
            "message": message,
            "error": error,
        }).clarification
        yield steps.done("clarifier")
    else:
        # ---- 4a. Insight ----------------------------------------
        yield steps.start("insight", "Summarising results…")
        insight = InsightAgent(client).run({
            "schema_ddl": ddl,
            "message": message,
            "sql_result": sql_result,
        })
        yield steps.done("insight")

    # ---- 5. Visualizer --------------------------------------------
    wants_chart = triage.visualization and clarification is None
    if wants_chart and insight is not None:
        yield steps.start("visualizer", "Building chart…")
        chart = VisualizerAgent(client).run({
            "schema_ddl": ddl,
            "sql_result": sql_result,
            "insight": insight,
        })
        yield steps.done("visualizer", chart_type=chart.chart_type)

    # ---- 6. Assemble ----------------------------------------------
    assembled = assemble_response(
        insight=insight,
        clarification=clarification,
        chart=chart,
        visualization_requested=triage.visualization,
    )
    logger.info("[orchestrator] response type=%s", assembled.type)
    return TurnReply(
        response=assembled.content,
        chart=(
            assembled.chart.to_payload()
            if assembled.chart is not None else None
        ),
        response_type=assembled.type,
    )


def orchestrate_turn(
    ctx: AnalystContext,
    message: str,
    history_text: str = "",
) -> TurnReply:
    """
    Run the multi-agent pipeline and return the reply.

    Parameters:
        ctx (AnalystContext): Shared analyst state.
        message (str): The user's natural language input.
        history_text (str): Formatted recent conversation.

    Returns:
        TurnReply: Reply ready for the chat endpoint.
    """
    events = _turn_events(ctx, message, history_text)
    while True:
        try:
            next(events)
        except StopIteration as stop:
            return stop.value


def orchestrate_turn_stream(
    ctx: AnalystContext,
    message: str,
    history_text: str = "",
    on_reply: Optional[Callable[[TurnReply], None]] = None,
) -> Generator[str, None, TurnReply]:
    """
    Streaming variant of ``orchestrate_turn``.

    SSE events emitted:

    - ``agent_start`` → ``{"agent": "...", "label": "...", "step": N}``
    - ``agent_done``  → ``{"agent": "...", "step": N, ...}``
    - ``result``      → outbound reply payload

    Parameters:
        on_reply (callable, optional): Called with the reply as
            soon as it exists, before the ``result`` event is
            yielded.

    Yields:
        str: SSE-formatted event strings.

    Returns:
        TurnReply: The reply (as ``StopIteration.value``).
    """
    events = _turn_events(ctx, message, history_text)
    while True:
        try:
            name, data = next(events)
        except StopIteration as stop:
            reply = stop.value
            break
        yield _sse_event(name, data)
    if on_reply is not None:
        on_reply(reply)
    yield _sse_event("result", reply.to_payload())
    return reply

