"""
Visualizer agent.

Proposes a chart for the turn's results when triage asked for
one.  The chart spec is rendering-agnostic; the UI maps it to
its own charting library.
"""

from typing import Any, Dict

from sql_analyst.schemas import ChartSpec
from sql_analyst.services.agents.base import BaseAgent, dump_json


PROMPT = """\
You are a data-visualisation expert.  A chart is required for
the query result below.  Always return a chart.

Return a JSON object — nothing else:
{
  "chartType": "bar|line|pie|scatter|area",
  "chartData": {"x": "<x key>", "y": "<y key>", "data": [ {...} ]},
  "chartDescription": "<short description>",
  "scale": {"x": {"min": 0, "max": 100}, "y": {"min": 0, "max": 1000}}
}

Guidelines:
1. chartData.x and chartData.y are keys of the objects in
   chartData.data.
2. Categorical comparison → bar; time series → line;
   part-of-whole → pie; two numeric measures → scatter.
3. Include scale only when the data range is large; it is
   optional.
"""


class VisualizerAgent(BaseAgent):
    """Choose a chart type and build its data."""

    name = "visualizer"
    system_prompt = PROMPT
    temperature = 0.5

    def run(self, context: Dict[str, Any]) -> ChartSpec:
        """
        Build a chart spec for the turn.

        Parameters:
            context (dict): Keys: ``schema_ddl``,
                ``sql_result``, ``insight`` (Insight).

        Returns:
            ChartSpec: Parsed spec; ``chart_type`` is None when
                the response could not be parsed.
        """
        insight = context.get("insight")
        insight_payload = (
            insight.model_dump() if insight is not None else None
        )
        prompt = self._build_prompt(
            f"SQLite schema:\n{context.get('schema_ddl', '')}",
            f"Query result: {dump_json(context.get('sql_result'))}",
            f"Insight: {dump_json(insight_payload)}",
        )
        raw = self._complete(prompt)
        return self._parse(raw, ChartSpec(chart_type=None), ChartSpec)
