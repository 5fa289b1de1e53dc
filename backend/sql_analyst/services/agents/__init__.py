"""
Multi-agent pipeline for answering questions about an
uploaded database.

Each agent has a dedicated prompt and handles one concern:
- TriageAgent       → query / no query, multi-part, chart wanted
- QueryWriterAgent  → read-only SQLite statements
- InsightAgent      → Markdown answer without SQL
- ClarifierAgent    → clarifying question after a failed query
- VisualizerAgent   → chart specification

The orchestrator runs them in order for each chat turn,
executes the generated SQL in between, and assembles a single
response.
"""

from sql_analyst.services.agents.orchestrator import (
    orchestrate_turn,
    orchestrate_turn_stream,
)

__all__ = ["orchestrate_turn", "orchestrate_turn_stream"]
