"""
Query writer agent.

Turns triage subtasks into read-only SQLite statements.  In
single mode it returns one candidate; in multi mode one
candidate per subtask.
"""

import json
from typing import Any, Dict, List, Union

from sql_analyst.schemas import QueryBatch, QueryCandidate
from sql_analyst.services.agents.base import BaseAgent


PROMPT = """\
You are a SQLite query writer for a data analyst assistant.
Given the database schema and a description of the data that
is needed, write the query that retrieves it.

Safety rules:
- Only SELECT queries (a leading WITH is fine) — never DROP,
  DELETE, UPDATE, INSERT, ALTER, CREATE, ATTACH or PRAGMA.
- Use only tables and columns present in the schema.
- Always include GROUP BY / ORDER BY when aggregating.
- Use SQLite date functions (strftime, date) for dates.
"""

SINGLE_FORMAT = """\
Return a JSON object — nothing else:
{"sql": "<SQL query>", "rationale": "<why this query>"}
"""

MULTI_FORMAT = """\
Write one query per subtask, in the order given.
Return a JSON object — nothing else:
{"sqls": [{"sql": "<SQL query>", "rationale": "<why>"}]}
"""


class QueryWriterAgent(BaseAgent):
    """Generate SQL query candidates for one turn."""

    name = "query_writer"
    system_prompt = PROMPT
    temperature = 0.2

    def run(
        self,
        context: Dict[str, Any],
    ) -> Union[QueryCandidate, List[QueryCandidate]]:
        """
        Generate one or several query candidates.

        Parameters:
            context (dict): Keys: ``schema_ddl``, ``subtask``
                (str or list), ``multi`` (bool).

        Returns:
            QueryCandidate in single mode, list of them in
            multi mode.
        """
        subtask = context.get("subtask") or ""
        schema_section = (
            f"SQLite schema:\n{context.get('schema_ddl', '')}"
        )

        if context.get("multi"):
            prompt = self._build_prompt(
                schema_section,
                f"Subtasks: {json.dumps(subtask)}",
                MULTI_FORMAT,
            )
            raw = self._complete(prompt)
            batch = self._parse(raw, None, QueryBatch)
            return batch.sqls if batch is not None else []

        if isinstance(subtask, list):
            subtask = "; ".join(str(s) for s in subtask)
        prompt = self._build_prompt(
            schema_section,
            f"Data needed: {subtask}",
            SINGLE_FORMAT,
        )
        raw = self._complete(prompt)
        return self._parse(
            raw,
            QueryCandidate(sql=raw, rationale=""),
            QueryCandidate,
        )
