"""
OpenRouter-powered dependency summarizer.

Sends the aggregated findings of a run to the OpenRouter chat completions
API and returns the model's prioritized narrative. A report without this
analysis is considered incomplete, so every failure is raised.
"""

from typing import List

import requests
import structlog

from ..config import Config
from ..collector.models import RepositoryReport
from ..errors import ConfigurationError, SummarizationError
from .prompts import ANALYSIS_SYSTEM_PROMPT, build_analysis_prompt

logger = structlog.get_logger(__name__)


class DependencySummarizer:
    """
    AI-powered dependency report summarizer using OpenRouter.

    One request per run, attempted once.
    """

    def __init__(self, config: Config):
        """
        Initialize the summarizer.

        Args:
            config: Application configuration.
        """
        self.config = config
        self.api_key = config.openrouter_api_key
        self.model = config.openrouter_model
        self.api_url = f"{config.openrouter_base_url.rstrip('/')}/chat/completions"
        self.preview_limit = config.outdated_preview_limit
        self.timeout = config.request_timeout_seconds

        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": "Depwatch Dependency Monitor"
        })

        logger.info("summarizer_initialized", model=self.model)

    def _call_api(self, messages: list, temperature: float = 0.3) -> str:
        """
        Make a request to the OpenRouter API.

        Args:
            messages: Chat messages for the model.
            temperature: Sampling temperature (lower = more deterministic).

        Returns:
            Generated text content.

        Raises:
            SummarizationError: On transport failure, non-success status,
                or a response without content.
        """
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": 2048,
        }

        logger.debug("openrouter_request", model=self.model)

        try:
            response = self.session.post(self.api_url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise SummarizationError(f"OpenRouter request failed: {e}") from e

        if response.status_code != 200:
            logger.error(
                "openrouter_api_error",
                status_code=response.status_code,
                detail=response.text[:500]
            )
            raise SummarizationError(
                f"OpenRouter API error: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SummarizationError(f"Invalid JSON in API response: {e}") from e

        choices = (data.get("choices") or []) if isinstance(data, dict) else []
        if not choices:
            raise SummarizationError("No choices in API response")

        choice = choices[0] if isinstance(choices, list) else None
        message = choice.get("message") if isinstance(choice, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise SummarizationError("Malformed choice in API response")
        if not content.strip():
            raise SummarizationError("Empty content in API response")

        usage = data.get("usage")
        if isinstance(usage, dict):
            logger.debug(
                "openrouter_usage",
                prompt_tokens=usage.get("prompt_tokens"),
                completion_tokens=usage.get("completion_tokens"),
                total_tokens=usage.get("total_tokens")
            )

        return content

    def summarize(self, reports: List[RepositoryReport]) -> str:
        """
        Produce a prioritized analysis of the run's findings.

        Args:
            reports: Findings for every checked repository.

        Returns:
            The model's analysis text.

        Raises:
            ConfigurationError: If no API key is configured.
            SummarizationError: If no usable analysis was returned.
        """
        if not self.api_key:
            raise ConfigurationError("OPENROUTER_API_KEY is required to analyze findings")

        messages = [
            {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
            {"role": "user", "content": build_analysis_prompt(reports, self.preview_limit)}
        ]

        logger.info("generating_analysis", repositories=len(reports))

        try:
            analysis = self._call_api(messages)
        except SummarizationError as e:
            logger.error("analysis_generation_failed", error=str(e))
            raise

        logger.info("analysis_generated", length=len(analysis))
        return analysis

    def close(self):
        """Close the HTTP session."""
        self.session.close()
