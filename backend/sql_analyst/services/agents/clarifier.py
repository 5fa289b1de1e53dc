"""
Clarification agent.

Runs only when a generated query failed.  Instead of showing
the engine error, it asks the user a question that would let
the next attempt succeed.
"""

from typing import Any, Dict

from sql_analyst.schemas import Clarification
from sql_analyst.services.agents.base import BaseAgent


PROMPT = """\
You help users of a data analyst assistant when their
question could not be answered because the generated query
failed.  Given the database schema, the user's question and
the error, ask ONE friendly clarifying question that would
let the next attempt succeed (e.g. which column or table they
meant).  Do not show SQL or the raw error text.

Return a JSON object — nothing else:
{"clarification": "<question for the user>"}
"""


class ClarifierAgent(BaseAgent):
    """Turn an execution error into a clarifying question."""

    name = "clarifier"
    system_prompt = PROMPT
    temperature = 0.4

    def run(self, context: Dict[str, Any]) -> Clarification:
        """
        Ask the user to clarify a failed question.

        Parameters:
            context (dict): Keys: ``schema_ddl``, ``message``,
                ``error``.

        Returns:
            Clarification: Parsed question, or the raw text.
        """
        prompt = self._build_prompt(
            f"SQLite schema:\n{context.get('schema_ddl', '')}",
            f'User question: "{context["message"]}"',
            f"SQL error: {context.get('error', '')}",
        )
        raw = self._complete(prompt)
        return self._parse(
            raw, Clarification(clarification=raw), Clarification,
        )
