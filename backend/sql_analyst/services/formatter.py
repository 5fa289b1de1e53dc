"""
Response assembly and Markdown clean-up.

``assemble_response`` merges whichever agents ran into the one
value the UI renders.  ``sanitize_markdown`` is a best-effort
post-filter that strips SQL, schema dumps and oversized result
tables the model may have leaked into its answer; the prompts
remain the first line of defence.
"""

import re
from typing import Optional

from sql_analyst.config import settings
from sql_analyst.schemas import (
    AssembledResponse,
    ChartSpec,
    Insight,
)

# A whole fenced block: opener line, body, closer line.
_FENCED_BLOCK_RE = re.compile(
    r"^[ \t]*```([\w+#-]*)[^\n]*\n[\s\S]*?^[ \t]*```[ \t]*$",
    re.MULTILINE,
)

# Info strings of blocks that are dropped; "" is an untagged fence.
_DROPPED_FENCE_TAGS = {"", "sql", "sqlite", "ddl", "schema", "json"}

_TECHNICAL_LINE_RE = re.compile(
    r"^[ \t]*(?:Schema|Table|DDL|Columns|CREATE TABLE|--).*$",
    re.IGNORECASE | re.MULTILINE,
)

_EXCESS_BLANK_LINES_RE = re.compile(r"\n{3,}")


def _drop_fenced_block(match: re.Match) -> str:
    """Remove a data or untagged block; keep any other language."""
    if match.group(1).lower() in _DROPPED_FENCE_TAGS:
        return ""
    return match.group(0)


def _drop_large_tables(markdown: str, row_limit: int) -> str:
    """
    Remove Markdown tables with more than *row_limit* rows.

    A table is a run of consecutive lines starting with ``|``;
    header and separator lines count as rows.
    """
    kept = []
    table = []

    def flush():
        if len(table) <= row_limit:
            kept.extend(table)
        table.clear()

    for line in markdown.split("\n"):
        if line.strip().startswith("|"):
            table.append(line)
            continue
        flush()
        kept.append(line)
    flush()
    return "\n".join(kept)


def sanitize_markdown(
    markdown: Optional[str],
    row_limit: Optional[int] = None,
) -> Optional[str]:
    """
    Strip SQL and schema leakage from a Markdown answer.

    1. Remove fenced blocks tagged sql/ddl/schema/json (or
       untagged).  Blocks in any other language are kept
       whole.
    2. Blank out lines starting with Schema, Table, DDL,
       Columns, CREATE TABLE or ``--``.
    3. Remove tables longer than *row_limit* rows.
    4. Collapse three or more newlines into two and trim.

    Applying it twice gives the same result as applying it
    once.

    Parameters:
        markdown (str): Markdown produced by the insight agent.
        row_limit (int, optional): Largest table kept; defaults
            to ``settings.markdown_table_row_limit``.

    Returns:
        str: Cleaned Markdown (non-strings are returned as-is).
    """
    if not markdown or not isinstance(markdown, str):
        return markdown
    if row_limit is None:
        row_limit = settings.markdown_table_row_limit

    cleaned = _FENCED_BLOCK_RE.sub(_drop_fenced_block, markdown)
    cleaned = _TECHNICAL_LINE_RE.sub("", cleaned)
    cleaned = _drop_large_tables(cleaned, row_limit)
    cleaned = _EXCESS_BLANK_LINES_RE.sub("\n\n", cleaned)
    return cleaned.strip()


def assemble_response(
    insight: Optional[Insight],
    clarification: Optional[str],
    chart: Optional[ChartSpec],
    visualization_requested: bool,
) -> AssembledResponse:
    """
    Merge agent outputs into one response, by precedence.

    1. A clarification wins outright; no chart is attached.
    2. A requested chart with a chart type → markdown+chart.
    3. Any chart with a chart type, even unrequested →
       markdown+chart.
    4. Otherwise plain text from the insight.

    Insight-derived content is passed through
    ``sanitize_markdown``; a clarification is returned verbatim.

    Parameters:
        insight (Insight | None): Insight agent output.
        clarification (str | None): Clarifier output.
        chart (ChartSpec | None): Visualizer output.
        visualization_requested (bool): Triage's chart flag.

    Returns:
        AssembledResponse: Type, content and chart.
    """
    if clarification is not None:
        return AssembledResponse(
            type="clarification", content=clarification, chart=None,
        )

    markdown = insight.markdown if insight is not None else ""
    content = sanitize_markdown(markdown) or ""
    has_chart = chart is not None and bool(chart.chart_type)

    if visualization_requested and has_chart:
        return AssembledResponse(
            type="markdown+chart", content=content, chart=chart,
        )
    if has_chart:
        return AssembledResponse(
            type="markdown+chart", content=content, chart=chart,
        )
    return AssembledResponse(type="text", content=content, chart=None)
