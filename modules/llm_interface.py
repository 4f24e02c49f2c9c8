"""
LLM Interface Module
-------------------
Provides a unified async interface for communicating with different LLM providers.
"""

import logging

import anthropic
import openai

from config.prompts import TUTOR_SYSTEM
from config.settings import (
    ANTHROPIC_API_KEY,
    DEFAULT_LLM_PROVIDER,
    LLM_CONFIG,
    OPENAI_API_KEY,
)

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Raised when the provider call fails or returns no content."""

    def __init__(self, message: str, code: str | None = None, status: int | None = None):
        super().__init__(message)
        self.code = code
        self.status = status


class LLMInterface:
    """Interface for communicating with Large Language Models."""

    def __init__(self, provider: str = DEFAULT_LLM_PROVIDER, client=None):
        """
        Initialize the LLM interface.

        Retries on transient failures are delegated to the provider SDK
        (``max_retries`` in LLM_CONFIG); they are separate from the speech
        queue's rate-limit retries.

        Args:
            provider: The LLM provider to use ('openai' or 'anthropic')
            client: Pre-built async SDK client, mainly for tests
        """
        self.provider = provider.lower()
        if self.provider not in LLM_CONFIG:
            raise ValueError(f"Unsupported LLM provider: {provider}")
        self.config = LLM_CONFIG[self.provider]

        if client is not None:
            self.client = client
        elif self.provider == "openai":
            if not OPENAI_API_KEY:
                raise ValueError("OpenAI API key is required but not provided")
            self.client = openai.AsyncOpenAI(
                api_key=OPENAI_API_KEY,
                timeout=self.config["timeout"],
                max_retries=self.config["max_retries"],
            )
        else:
            if not ANTHROPIC_API_KEY:
                raise ValueError("Anthropic API key is required but not provided")
            self.client = anthropic.AsyncAnthropic(
                api_key=ANTHROPIC_API_KEY,
                timeout=self.config["timeout"],
                max_retries=self.config["max_retries"],
            )

        logger.info(f"Initialized LLM interface with provider: {self.provider}")

    async def _call_openai(self, prompt: str, system_prompt: str, **params) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=params["model"],
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
                temperature=params["temperature"],
                max_tokens=params["max_tokens"],
            )
        except openai.APIStatusError as e:
            raise LLMError(e.message, code=getattr(e, "code", None), status=e.status_code) from e
        except openai.OpenAIError as e:
            raise LLMError(str(e)) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMError("No content in response from OpenAI")
        return content

    async def _call_anthropic(self, prompt: str, system_prompt: str, **params) -> str:
        try:
            response = await self.client.messages.create(
                model=params["model"],
                system=system_prompt,
                messages=[{"role": "user", "content": prompt}],
                temperature=params["temperature"],
                max_tokens=params["max_tokens"],
            )
        except anthropic.APIStatusError as e:
            raise LLMError(e.message, status=e.status_code) from e
        except anthropic.AnthropicError as e:
            raise LLMError(str(e)) from e

        content = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        if not content:
            raise LLMError("No content in response from Anthropic")
        return content

    async def complete(
        self,
        prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
        system_prompt: str = TUTOR_SYSTEM,
    ) -> str:
        """
        Generate a completion using the configured LLM provider.

        Args:
            prompt: The prompt to send to the LLM
            max_tokens: Completion length limit, provider default when None
            temperature: Sampling temperature, provider default when None
            system_prompt: The system prompt for context

        Returns:
            The LLM response, stripped of surrounding whitespace

        Raises:
            LLMError: If the provider call fails or returns no content
        """
        params = dict(self.config)
        if max_tokens is not None:
            params["max_tokens"] = max_tokens
        if temperature is not None:
            params["temperature"] = temperature

        logger.debug(f"Generating completion with provider: {self.provider}")

        if self.provider == "openai":
            content = await self._call_openai(prompt, system_prompt, **params)
        else:
            content = await self._call_anthropic(prompt, system_prompt, **params)

        return content.strip()
