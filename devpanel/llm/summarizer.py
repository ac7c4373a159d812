"""
Plain-text summarization through an LLM provider.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import anthropic
import openai

from devpanel.config import Settings

logger = logging.getLogger(__name__)

NO_TEXT_MESSAGE = "No text provided"
FAILURE_MESSAGE = "Summarization failed"
EMPTY_SUMMARY_MESSAGE = "Could not generate summary"

SUMMARY_PROMPT = """Summarize the following answer into 3-6 clear sentences.
Do NOT use bullet points, headings, lists, formatting, code fences, or markdown.
Write the summary in plain text only. Keep it neutral and informative.

Answer:
{text}"""


class ModelProvider(Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


@dataclass
class SummarizerConfig:
    """Configuration for the summarization model."""
    provider: ModelProvider
    model_name: str
    api_key: str
    max_tokens: int = 400
    temperature: float = 0.2
    timeout: float = 30.0


class Summarizer:
    """Summarizes text, returning a placeholder string instead of raising."""

    def __init__(self, config: Optional[SummarizerConfig] = None):
        self.config = config
        self.client = None

        if config is None:
            return
        if config.provider == ModelProvider.ANTHROPIC:
            self.client = anthropic.AsyncAnthropic(api_key=config.api_key, timeout=config.timeout)
        else:
            self.client = openai.AsyncOpenAI(api_key=config.api_key, timeout=config.timeout)

    @classmethod
    def from_env(cls, settings: Optional[Settings] = None) -> 'Summarizer':
        """Create a Summarizer from environment settings, preferring Anthropic."""
        settings = settings or Settings.from_env()

        if settings.anthropic_api_key:
            return cls(SummarizerConfig(
                provider=ModelProvider.ANTHROPIC,
                model_name=settings.anthropic_model,
                api_key=settings.anthropic_api_key
            ))
        if settings.openai_api_key:
            return cls(SummarizerConfig(
                provider=ModelProvider.OPENAI,
                model_name=settings.openai_model,
                api_key=settings.openai_api_key
            ))
        return cls()

    async def _generate(self, prompt: str) -> Optional[str]:
        if self.config.provider == ModelProvider.ANTHROPIC:
            response = await self.client.messages.create(
                model=self.config.model_name,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                messages=[{"role": "user", "content": prompt}]
            )
            parts = [block.text for block in response.content if getattr(block, "type", "") == "text"]
            return "".join(parts) or None

        response = await self.client.chat.completions.create(
            model=self.config.model_name,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            messages=[{"role": "user", "content": prompt}]
        )
        return response.choices[0].message.content if response.choices else None

    async def summarize(self, text: str) -> str:
        if not text or not text.strip():
            return NO_TEXT_MESSAGE

        if self.client is None:
            logger.warning("No summarization provider configured")
            return FAILURE_MESSAGE

        try:
            summary = await self._generate(SUMMARY_PROMPT.format(text=text))
        except Exception as e:
            logger.warning("Summarizer error: %s", e)
            return FAILURE_MESSAGE

        summary = summary.strip() if summary else ""
        return summary or EMPTY_SUMMARY_MESSAGE
