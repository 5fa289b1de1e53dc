"""
Unit tests for response assembly and Markdown sanitizing.
"""

import pytest

from sql_analyst.schemas import ChartSpec, Insight
from sql_analyst.services.formatter import (
    assemble_response,
    sanitize_markdown,
)


def _table(rows: int) -> str:
    """Markdown table with a header, separator and data rows."""
    lines = ["| region | total |", "| --- | --- |"]
    lines += [f"| r{i} | {i} |" for i in range(rows - 2)]
    return "\n".join(lines)


BAR_CHART = ChartSpec.model_validate({
    "chartType": "bar",
    "chartData": {"x": "region", "y": "total", "data": [{"region": "N", "total": 1}]},
    "chartDescription": "Totals",
})


# ============================================================================
# Assembly precedence
# ============================================================================


class TestAssembleResponse:
    """Test suite for assemble_response."""

    def test_clarification_wins_and_drops_chart(self):
        response = assemble_response(
            insight=Insight(markdown="ignored"),
            clarification="Which region did you mean?",
            chart=BAR_CHART,
            visualization_requested=True,
        )

        assert response.type == "clarification"
        assert response.content == "Which region did you mean?"
        assert response.chart is None

    def test_empty_clarification_still_wins(self):
        response = assemble_response(
            insight=None, clarification="", chart=None,
            visualization_requested=False,
        )

        assert response.type == "clarification"
        assert response.content == ""

    def test_requested_chart(self):
        response = assemble_response(
            insight=Insight(markdown="North leads."),
            clarification=None,
            chart=BAR_CHART,
            visualization_requested=True,
        )

        assert response.type == "markdown+chart"
        assert response.content == "North leads."
        assert response.chart is BAR_CHART

    def test_unrequested_chart_is_still_shown(self):
        response = assemble_response(
            insight=Insight(markdown="North leads."),
            clarification=None,
            chart=BAR_CHART,
            visualization_requested=False,
        )

        assert response.type == "markdown+chart"
        assert response.chart is BAR_CHART

    def test_chart_without_type_is_text(self):
        response = assemble_response(
            insight=Insight(markdown="North leads."),
            clarification=None,
            chart=ChartSpec(chart_type=None),
            visualization_requested=True,
        )

        assert response.type == "text"
        assert response.chart is None

    def test_text_content_is_sanitized(self):
        response = assemble_response(
            insight=Insight(
                markdown="17 orders.\n```sql\nSELECT COUNT(*) FROM orders\n```"
            ),
            clarification=None,
            chart=None,
            visualization_requested=False,
        )

        assert response.type == "text"
        assert response.content == "17 orders."


# ============================================================================
# Sanitizer
# ============================================================================


class TestSanitizeMarkdown:
    """Test suite for sanitize_markdown."""

    @pytest.mark.parametrize("tag", ["sql", "SQL", "ddl", "schema", "json", ""])
    def test_removes_data_fenced_blocks(self, tag):
        markdown = f"Before\n```{tag}\nSELECT * FROM orders;\n```\nAfter"

        assert sanitize_markdown(markdown) == "Before\n\nAfter"

    def test_keeps_other_fenced_blocks(self):
        markdown = "Example:\n```python\nprint('hi')\n```"

        assert sanitize_markdown(markdown) == markdown

    def test_sql_block_after_kept_block_is_removed(self):
        markdown = (
            "Example:\n```python\nprint(1)\n```\n\n"
            "```sql\nSELECT secret FROM customers\n```\nDone."
        )

        cleaned = sanitize_markdown(markdown)

        assert cleaned == "Example:\n```python\nprint(1)\n```\n\nDone."
        assert "SELECT secret" not in cleaned

    def test_indented_sql_block_is_removed(self):
        markdown = "Steps:\n  ```SQL\n  SELECT 1\n  ```\nDone."

        assert sanitize_markdown(markdown) == "Steps:\n\nDone."

    def test_removes_table_over_row_limit(self):
        markdown = f"Results:\n\n{_table(13)}\n\nThat is all."

        assert sanitize_markdown(markdown) == "Results:\n\nThat is all."

    def test_keeps_table_within_row_limit(self):
        markdown = f"Results:\n\n{_table(12)}\n\nThat is all."

        assert sanitize_markdown(markdown) == markdown

    def test_row_limit_is_configurable(self):
        markdown = f"Results:\n\n{_table(5)}"

        assert sanitize_markdown(markdown, row_limit=4) == "Results:"

    @pytest.mark.parametrize(
        "line",
        [
            "Schema: orders(id, amount)",
            "Table orders has 17 rows",
            "DDL follows",
            "columns: id, amount",
            "CREATE TABLE orders (id INTEGER)",
            "-- count of orders",
            "   Table: customers",
        ],
    )
    def test_removes_technical_lines(self, line):
        markdown = f"There were 17 orders.\n{line}\nMostly in the North."

        assert sanitize_markdown(markdown) == (
            "There were 17 orders.\n\nMostly in the North."
        )

    def test_collapses_blank_lines(self):
        assert sanitize_markdown("a\n\n\n\n\nb") == "a\n\nb"

    @pytest.mark.parametrize("value", [None, ""])
    def test_passes_empty_values_through(self, value):
        assert sanitize_markdown(value) == value

    @pytest.mark.parametrize(
        "markdown",
        [
            "Plain answer with **bold** text.",
            "Intro\n```sql\nSELECT 1\n```\n\n\n\nOutro",
            f"{_table(13)}\nTable: orders\n{_table(6)}",
            f"{_table(6)}\n\tTable: orders\n{_table(6)}",
            "\tSchema dump\n\n\n-- comment\nanswer\n```python\nx = 1\n```",
            "```python\nx = 1\n```\n```sql\nSELECT 1\n```\n```\nraw\n```",
            f"## Summary\n\n{_table(12)}\n\n\n\n```json\n{{}}\n```\nDone.",
        ],
    )
    def test_is_idempotent(self, markdown):
        once = sanitize_markdown(markdown)

        assert sanitize_markdown(once) == once
