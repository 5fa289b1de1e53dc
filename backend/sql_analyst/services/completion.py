"""
Completion client for the text-generation service.

Every agent sends one flattened prompt string and receives one
text blob back.  Transport and API failures never raise to the
caller: they come back as a ``CompletionResult`` carrying an
``error`` tag, which agents turn into their own fallback value.
"""

import logging
from typing import Optional

from openai import OpenAI
from pydantic import BaseModel

from sql_analyst.config import settings

logger = logging.getLogger(__name__)

# Prefix of the text rendering of a failed completion.
ERROR_MARKER = "--"


class CompletionResult(BaseModel):
    """Text returned by the model, or the reason there is none."""

    text: str = ""
    error: Optional[str] = None
    provider: str = "openai"

    @property
    def ok(self) -> bool:
        return self.error is None

    def as_text(self) -> str:
        """
        Return the completion text, or the error sentinel.

        The sentinel looks like ``-- openai error: <message>``
        so that it can still be fed through a stage's parser
        and land on that stage's fallback.
        """
        if self.ok:
            return self.text
        return f"{ERROR_MARKER} {self.provider} error: {self.error}"


class CompletionClient:
    """
    Thin wrapper around the OpenAI chat completions API.

    Attributes:
        model (str): Model name sent with every request.
        provider (str): Label used in error sentinels.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        provider: Optional[str] = None,
    ):
        self.api_key = (
            api_key if api_key is not None
            else settings.openai_api_key
        )
        self.model = model or settings.openai_model
        self.base_url = base_url or settings.openai_base_url
        self.timeout = (
            timeout if timeout is not None
            else settings.llm_timeout_seconds
        )
        self.provider = provider or settings.llm_provider_label
        self._client: Optional[OpenAI] = None

    def _get_client(self) -> OpenAI:
        """Build the SDK client on first use."""
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=settings.llm_max_retries,
            )
        return self._client

    def complete(
        self,
        prompt: str,
        temperature: Optional[float] = None,
    ) -> CompletionResult:
        """
        Send *prompt* as a single user message.

        Parameters:
            prompt (str): Fully rendered prompt, history included.
            temperature (float, optional): Sampling temperature.

        Returns:
            CompletionResult: Model text, or an error-tagged result.
        """
        kwargs = {}
        if temperature is not None:
            kwargs["temperature"] = temperature

        try:
            response = self._get_client().chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                **kwargs,
            )
        except Exception as exc:
            logger.error(
                "[completion] %s call failed: %s",
                self.provider,
                exc,
            )
            return CompletionResult(
                error=str(exc), provider=self.provider,
            )

        content = None
        if response.choices:
            content = response.choices[0].message.content
        if not content:
            logger.warning(
                "[completion] %s returned no content",
                self.provider,
            )
            return CompletionResult(
                error="empty completion", provider=self.provider,
            )
        return CompletionResult(text=content, provider=self.provider)
