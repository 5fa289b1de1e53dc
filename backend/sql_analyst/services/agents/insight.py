"""
Insight agent.

Explains query results (or answers a no-query message) in
Markdown for the user, without ever showing the SQL or the
schema behind them.
"""

from typing import Any, Dict

from sql_analyst.schemas import Insight
from sql_analyst.services.agents.base import BaseAgent, dump_json


PROMPT = """\
You are a data analyst explaining results to a business user.
Given the database schema, the user's question and (when
available) the query result, write a short Markdown answer
with the key numbers and any notable insight.

Rules:
- Do NOT mention the SQL query, show any SQL, or reproduce
  the schema or table definitions.
- Do NOT paste the raw result set; summarise it.  A small
  table (a dozen rows at most) is fine.
- If there is no query result, answer the message directly.

Return a JSON object — nothing else:
{"markdown": "<answer in Markdown>", "summary": "<one sentence>"}
"""


class InsightAgent(BaseAgent):
    """Summarise results into user-facing Markdown."""

    name = "insight"
    system_prompt = PROMPT
    temperature = 0.5

    def run(self, context: Dict[str, Any]) -> Insight:
        """
        Produce the Markdown answer for this turn.

        Parameters:
            context (dict): Keys: ``schema_ddl``, ``message``,
                ``sql_result`` (rows, list of row lists, or None).

        Returns:
            Insight: Parsed insight, or the raw text as Markdown.
        """
        prompt = self._build_prompt(
            f"SQLite schema:\n{context.get('schema_ddl', '')}",
            f'User question: "{context["message"]}"',
            f"Query result: {dump_json(context.get('sql_result'))}",
        )
        raw = self._complete(prompt)
        return self._parse(raw, Insight(markdown=raw, summary=""), Insight)
