"""
LLM Backend Abstraction for SlideForge
======================================

Text-generation collaborators used to draft presentation content:

1. OpenAILLM    - OpenAI chat completions (default, model list gpt-4 → gpt-4o-mini → gpt-3.5-turbo)
2. ClaudeLLM    - Anthropic messages API
3. OllamaLLM    - local Ollama server, no data leaves your machine

Every backend translates its SDK / HTTP failures into the SlideForge error
taxonomy so that the orchestrator can classify each attempt uniformly:
credentials rejected -> UpstreamAuthError, throttled -> UpstreamRateLimitError,
anything else (model not found, timeout, connection, 5xx) -> UpstreamUnavailable.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Dict, Optional
import copy
import os
import logging

import requests

from slideforge_core.errors import (
    UpstreamAuthError,
    UpstreamRateLimitError,
    UpstreamUnavailable,
)
from slideforge_core.resilience import FailureAction

logger = logging.getLogger(__name__)


# =============================================================================
# Sovereignty Status
# =============================================================================

class SovereigntyStatus(str, Enum):
    """Indicates whether prompts leave your machine."""
    SOVEREIGN = "sovereign"      # 100% local
    CLOUD = "cloud"              # Data sent to external API


# =============================================================================
# Base LLM Interface
# =============================================================================

class BaseLLM(ABC):
    """
    Abstract base class for LLM backends.

    All backends must implement:
        - generate(): Generate response from prompt + history
        - sovereignty: Property indicating data privacy status
    """

    model: str

    @property
    @abstractmethod
    def sovereignty(self) -> SovereigntyStatus:
        """Return the sovereignty status of this backend."""

    @abstractmethod
    def generate(self, system_prompt: str, history: List[Dict[str, str]]) -> str:
        """
        Generate a response.

        Args:
            system_prompt: System instructions for the LLM
            history: List of {"role": "user"|"assistant", "content": "..."}

        Returns:
            Generated text response

        Raises:
            UpstreamAuthError, UpstreamRateLimitError, UpstreamUnavailable
        """

    def for_model(self, model: str) -> "BaseLLM":
        """Return a shallow copy bound to another model (shares the client)."""
        clone = copy.copy(self)
        clone.model = model
        return clone


def classify_llm_failure(exc: Exception) -> FailureAction:
    """
    Per-attempt classifier for the model preference chain.

    Credential and quota failures are not retried with another model: they
    would fail the same way and the caller needs to see them.
    """
    if isinstance(exc, (UpstreamAuthError, UpstreamRateLimitError)):
        return FailureAction.ABORT
    return FailureAction.NEXT


# =============================================================================
# OpenAI Backend
# =============================================================================

class OpenAILLM(BaseLLM):
    """
    OpenAI backend - uses the OpenAI chat completions API.

    Requires:
        pip install openai
        export OPENAI_API_KEY="sk-..."

    Example:
        llm = OpenAILLM("gpt-4o-mini")
        text = llm.generate(
            system_prompt="You are an expert presentation designer.",
            history=[{"role": "user", "content": "Outline a talk on cloud costs"}]
        )
    """

    def __init__(
        self,
        model: str = "gpt-4",
        api_key: Optional[str] = None,
        max_tokens: int = 4000,
        temperature: float = 0.7,
        timeout: float = 60.0,
    ):
        """
        Initialize OpenAI backend.

        Args:
            model: OpenAI model name
            api_key: OpenAI API key (or set OPENAI_API_KEY env var)
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature (0.0-2.0)
            timeout: Per-request timeout in seconds
        """
        import openai

        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._api_key = api_key or os.environ.get("OPENAI_API_KEY")

        if not self._api_key:
            raise ValueError(
                "OpenAI API key required. Set OPENAI_API_KEY environment "
                "variable or pass api_key parameter."
            )

        # Fallback across models is handled by the caller, not by SDK retries
        self._client = openai.OpenAI(api_key=self._api_key, timeout=timeout, max_retries=0)
        logger.info(f"Initialized OpenAILLM (CLOUD) with model: {model}")

    @property
    def sovereignty(self) -> SovereigntyStatus:
        return SovereigntyStatus.CLOUD

    def generate(self, system_prompt: str, history: List[Dict[str, str]]) -> str:
        import openai

        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(history)

        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            raise UpstreamAuthError(
                "Invalid OpenAI API key. Please check your API key in the .env file."
            ) from e
        except openai.RateLimitError as e:
            raise UpstreamRateLimitError(
                "Too many requests to OpenAI API. Please try again later."
            ) from e
        except openai.APIError as e:
            raise UpstreamUnavailable(f"OpenAI model {self.model} failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise UpstreamUnavailable(f"OpenAI model {self.model} returned an empty response")
        return content


# =============================================================================
# Claude Backend (Anthropic API)
# =============================================================================

class ClaudeLLM(BaseLLM):
    """
    Claude backend - uses the Anthropic messages API.

    Requires:
        pip install anthropic
        export ANTHROPIC_API_KEY="sk-ant-..."
    """

    def __init__(
        self,
        model: str = "claude-sonnet-4-20250514",
        api_key: Optional[str] = None,
        max_tokens: int = 4000,
        temperature: float = 0.7,
        timeout: float = 60.0,
    ):
        import anthropic

        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")

        if not self._api_key:
            raise ValueError(
                "Anthropic API key required. Set ANTHROPIC_API_KEY environment "
                "variable or pass api_key parameter."
            )

        self._client = anthropic.Anthropic(api_key=self._api_key, timeout=timeout, max_retries=0)
        logger.info(f"Initialized ClaudeLLM (CLOUD) with model: {model}")

    @property
    def sovereignty(self) -> SovereigntyStatus:
        return SovereigntyStatus.CLOUD

    def generate(self, system_prompt: str, history: List[Dict[str, str]]) -> str:
        import anthropic

        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=system_prompt,
                messages=history,
            )
        except (anthropic.AuthenticationError, anthropic.PermissionDeniedError) as e:
            raise UpstreamAuthError(
                "Invalid Anthropic API key. Please check your API key in the .env file."
            ) from e
        except anthropic.RateLimitError as e:
            raise UpstreamRateLimitError(
                "Too many requests to Anthropic API. Please try again later."
            ) from e
        except anthropic.APIError as e:
            raise UpstreamUnavailable(f"Claude model {self.model} failed: {e}") from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        if not text:
            raise UpstreamUnavailable(f"Claude model {self.model} returned an empty response")
        return text


# =============================================================================
# Ollama Backend (local)
# =============================================================================

class OllamaLLM(BaseLLM):
    """
    Ollama backend - 100% local execution.

    Requires Ollama running locally:
        ollama serve
    """

    def __init__(self, model: str, base_url: str = "http://localhost:11434", timeout: float = 120.0):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        logger.info(f"Initialized OllamaLLM (SOVEREIGN) with model: {model}")

    @property
    def sovereignty(self) -> SovereigntyStatus:
        return SovereigntyStatus.SOVEREIGN

    def generate(self, system_prompt: str, history: List[Dict[str, str]]) -> str:
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(history)

        payload = {
            "model": self.model,
            "messages": messages,
            "stream": False,
        }

        try:
            r = requests.post(f"{self.base_url}/api/chat", json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"Ollama unreachable at {self.base_url}: {e}") from e

        if r.status_code in (401, 403):
            raise UpstreamAuthError(f"Ollama rejected the request ({r.status_code})")
        if r.status_code == 429:
            raise UpstreamRateLimitError("Ollama is throttling requests")
        if r.status_code >= 400:
            raise UpstreamUnavailable(f"Ollama model {self.model} failed with HTTP {r.status_code}")

        try:
            return r.json()["message"]["content"].strip()
        except (ValueError, KeyError, TypeError) as e:
            raise UpstreamUnavailable(f"Malformed Ollama response: {e}") from e


# =============================================================================
# Factory Function
# =============================================================================

def create_llm_backend(
    backend: str = "openai",
    model: Optional[str] = None,
    **kwargs
) -> BaseLLM:
    """
    Factory function to create LLM backend.

    Args:
        backend: Backend type - "openai", "claude" or "ollama"
        model: Model name (optional, uses defaults)
        **kwargs: Additional backend-specific arguments

    Returns:
        Configured LLM backend instance
    """
    backend = backend.lower()

    if backend in ("openai", "chatgpt", "gpt"):
        return OpenAILLM(model=model or "gpt-4", **kwargs)

    elif backend == "claude":
        return ClaudeLLM(model=model or "claude-sonnet-4-20250514", **kwargs)

    elif backend == "ollama":
        return OllamaLLM(model=model or "qwen2.5:7b", **kwargs)

    else:
        raise ValueError(
            f"Unknown backend: {backend}. Supported: openai, claude, ollama"
        )


def create_backend_from_config(llm_config) -> Optional[BaseLLM]:
    """
    Build the backend described by an ``LLMConfig``.

    Returns None when the backend needs credentials that are not configured;
    callers then serve canned demo content.
    """
    if not llm_config.has_credentials:
        logger.info(f"No credentials for LLM backend '{llm_config.backend}', demo mode")
        return None

    first_model = llm_config.models[0] if llm_config.models else None
    if llm_config.backend == "ollama":
        return create_llm_backend(
            "ollama",
            model=first_model,
            base_url=llm_config.base_url,
            timeout=llm_config.timeout,
        )

    return create_llm_backend(
        llm_config.backend,
        model=first_model,
        api_key=llm_config.api_key,
        max_tokens=llm_config.max_tokens,
        temperature=llm_config.temperature,
        timeout=llm_config.timeout,
    )
