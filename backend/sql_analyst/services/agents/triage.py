"""
Triage agent.

First gate of every turn: decides whether the question needs
a database query, whether it splits into several subtasks,
and whether the user wants a chart.
"""

from typing import Any, Dict

from sql_analyst.schemas import TriageDecision
from sql_analyst.services.agents.base import BaseAgent


PROMPT = """\
You are the triage step of a data analyst assistant that
answers questions about an uploaded SQLite database.
Given the conversation so far, the database schema and the
user's new message, decide what has to happen next.

Return a JSON object — nothing else:

{
  "action": "query" | "noquery",
  "multi": true | false,
  "subtask": "<one subtask>" | ["<subtask 1>", "<subtask 2>"],
  "visualization": true | false,
  "reason": "<short reason>" | null
}

Rules:
- If answering needs data from the database, set action to
  "query" and describe the subtask(s) in plain language.
- If the question has several independent parts that each
  need their own query, set multi to true and give subtask
  as a list, one entry per part.
- If no query is needed (greeting, follow-up about a previous
  answer, general question), set action to "noquery".
- If the user asks for a chart, graph, plot or visual
  comparison, set visualization to true.
"""


def fallback_decision() -> TriageDecision:
    """Decision used when the model's answer cannot be parsed."""
    return TriageDecision(
        action="noquery",
        multi=False,
        subtask="",
        visualization=False,
        reason="",
    )


class TriageAgent(BaseAgent):
    """Classify a message into query / noquery and chart needs."""

    name = "triage"
    system_prompt = PROMPT
    temperature = 0.2  # deterministic routing

    def run(self, context: Dict[str, Any]) -> TriageDecision:
        """
        Decide how the pipeline should handle this turn.

        Parameters:
            context (dict): Keys: ``schema_ddl``,
                ``history_text``, ``message``.

        Returns:
            TriageDecision: Parsed decision or the fallback.
        """
        prompt = self._build_prompt(
            "Conversation history:\n"
            f"{context.get('history_text') or '(none)'}",
            f"SQLite schema:\n{context.get('schema_ddl', '')}",
            f'User message: "{context["message"]}"',
        )
        raw = self._complete(prompt)
        return self._parse(raw, fallback_decision(), TriageDecision)
