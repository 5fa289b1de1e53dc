"""
Base agent class for the multi-agent SQL analyst pipeline.

Provides the shared completion call and parse-or-fallback
helper so every agent degrades the same way: a failed call or
an unparseable answer becomes that agent's fallback value,
never an exception.
"""

import json
import logging
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel

from sql_analyst.services.completion import CompletionClient
from sql_analyst.services.json_extract import extract_json

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseAgent:
    """
    Abstract base for all specialised agents.

    Subclasses must set ``name`` and ``system_prompt``, and
    implement ``run()``.

    Attributes:
        name (str): Human-readable agent identifier.
        system_prompt (str): Instructions that open every
            prompt this agent sends.
        temperature (float): Sampling temperature (0 – 2).
    """

    name: str = "base"
    system_prompt: str = ""
    temperature: float = 0.7

    def __init__(self, client: CompletionClient):
        self.client = client

    # ----- LLM helpers -----------------------------------------------

    def _complete(self, prompt: str) -> str:
        """
        Send *prompt* and return the raw completion text.

        A failed call is returned as the client's error
        sentinel so the caller's parser lands on its fallback.

        Parameters:
            prompt (str): Fully rendered prompt.

        Returns:
            str: Completion text or error sentinel.
        """
        result = self.client.complete(
            prompt, temperature=self.temperature,
        )
        if not result.ok:
            logger.error(
                "[%s] completion failed: %s",
                self.name,
                result.error,
            )
        raw = result.as_text()
        logger.debug("[%s] raw completion: %s", self.name, raw)
        return raw

    def _parse(
        self,
        raw: str,
        fallback: T,
        shape: Optional[Type[BaseModel]] = None,
    ) -> T:
        """
        Parse *raw* into *shape*, or return *fallback*.

        Parameters:
            raw (str): Raw completion text.
            fallback: Value used when parsing fails.
            shape (type[BaseModel], optional): Expected model.

        Returns:
            Parsed model instance, or *fallback*.
        """
        parsed = extract_json(raw, fallback, shape)
        if parsed is fallback:
            logger.warning(
                "[%s] unparseable response, using fallback: %s",
                self.name,
                raw[:200],
            )
        return parsed

    def _build_prompt(self, *sections: str) -> str:
        """Join the system prompt and context sections."""
        parts = [self.system_prompt.strip()]
        parts.extend(s for s in sections if s)
        return "\n\n".join(parts)

    # ----- public interface (override in subclass) --------------------

    def run(self, context: Dict[str, Any]) -> Any:
        """
        Execute the agent's task.

        Parameters:
            context (dict): Inputs supplied by the orchestrator.

        Returns:
            Agent-specific typed result.
        """
        raise NotImplementedError


def dump_json(value: Any) -> str:
    """JSON-encode prompt data, tolerating dates and decimals."""
    return json.dumps(value, default=str, ensure_ascii=False)
