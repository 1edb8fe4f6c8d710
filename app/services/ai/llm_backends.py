"""
Language model providers for the care advisor.

``OpenAIBackend`` talks to the Chat Completions API and ``AnthropicBackend``
to the Messages API. Both take the same prompt, history and JSON flag, and
return an ``LLMResponse``. Provider SDKs load on ``initialize`` so a missing
package only disables AI features. Clients are built with a request timeout.
``create_backend`` turns the ``LLM_PROVIDER`` setting into a ready backend
or ``None``.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_ANTHROPIC_MODEL = "claude-3-5-haiku-latest"


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass
class LLMResponse:
    """Reply text plus the model, token counts and latency of one request."""

    text: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: float = 0.0
    raw: Any = None


# ---------------------------------------------------------------------------
# Abstract backend
# ---------------------------------------------------------------------------


class LLMBackend(ABC):
    """A configured provider the advisor can send prompts to."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name recorded with usage and chat replies."""

    @property
    @abstractmethod
    def model(self) -> str:
        """Model identifier requests are sent to."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Whether a client exists and requests can be made."""

    @abstractmethod
    def initialize(self) -> bool:
        """Build the SDK client. False when the key or package is missing."""

    @abstractmethod
    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        history: list[dict[str, str]] | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.3,
        json_mode: bool = False,
    ) -> LLMResponse:
        """
        Send one request and return the reply.

        Parameters
        ----------
        system_prompt:
            Care assistant instructions.
        user_prompt:
            Final user turn, e.g. the plant context and question.
        history:
            Prior chat turns as ``{"role", "content"}`` dicts, oldest first.
        max_tokens:
            Reply length cap.
        temperature:
            Lower values give steadier care plans.
        json_mode:
            Ask for a bare JSON object.

        Raises whatever the SDK raises; callers fall back on failure.
        """

    def _timed(self, fn, *args, **kwargs):
        start = time.perf_counter()
        result = fn(*args, **kwargs)
        return result, (time.perf_counter() - start) * 1000

    @staticmethod
    def _turns(history: list[dict[str, str]] | None, user_prompt: str) -> list[dict[str, str]]:
        turns = [
            {"role": msg["role"], "content": msg["content"]}
            for msg in (history or [])
            if msg.get("role") in ("user", "assistant") and msg.get("content")
        ]
        turns.append({"role": "user", "content": user_prompt})
        return turns


# ---------------------------------------------------------------------------
# OpenAI
# ---------------------------------------------------------------------------


class OpenAIBackend(LLMBackend):
    """Chat Completions provider. ``base_url`` points at a compatible gateway."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_OPENAI_MODEL,
        base_url: str | None = None,
        timeout: int = 30,
    ):
        self._api_key = api_key
        self._model = model
        self._base_url = base_url
        self._timeout = timeout
        self._client: Any = None

    @property
    def name(self) -> str:
        return "openai"

    @property
    def model(self) -> str:
        return self._model

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def initialize(self) -> bool:
        if not self._api_key:
            logger.warning("OPENAI key missing, care advice will use defaults")
            return False
        try:
            import openai

            options: dict[str, Any] = {"api_key": self._api_key, "timeout": self._timeout, "max_retries": 1}
            if self._base_url:
                options["base_url"] = self._base_url
            self._client = openai.OpenAI(**options)
        except ImportError:
            logger.error("LLM_PROVIDER=openai but the openai package is not installed")
            return False
        except Exception as exc:
            logger.error("Could not create OpenAI client: %s", exc)
            return False
        logger.info("Care advisor using OpenAI model %s", self._model)
        return True

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        history: list[dict[str, str]] | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.3,
        json_mode: bool = False,
    ) -> LLMResponse:
        if not self.is_available:
            raise RuntimeError("OpenAI client is not ready")

        request: dict[str, Any] = {
            "model": self._model,
            "messages": [{"role": "system", "content": system_prompt}, *self._turns(history, user_prompt)],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        response, latency = self._timed(self._client.chat.completions.create, **request)

        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }
        return LLMResponse(
            text=response.choices[0].message.content or "",
            model=response.model,
            usage=usage,
            latency_ms=latency,
            raw=response,
        )


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------


class AnthropicBackend(LLMBackend):
    """Messages API provider."""

    def __init__(self, api_key: str, model: str = DEFAULT_ANTHROPIC_MODEL, timeout: int = 30):
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._client: Any = None

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def model(self) -> str:
        return self._model

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def initialize(self) -> bool:
        if not self._api_key:
            logger.warning("ANTHROPIC key missing, care advice will use defaults")
            return False
        try:
            import anthropic

            self._client = anthropic.Anthropic(api_key=self._api_key, timeout=self._timeout, max_retries=1)
        except ImportError:
            logger.error("LLM_PROVIDER=anthropic but the anthropic package is not installed")
            return False
        except Exception as exc:
            logger.error("Could not create Anthropic client: %s", exc)
            return False
        logger.info("Care advisor using Anthropic model %s", self._model)
        return True

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        history: list[dict[str, str]] | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.3,
        json_mode: bool = False,
    ) -> LLMResponse:
        if not self.is_available:
            raise RuntimeError("Anthropic client is not ready")

        # No native JSON mode; the system prompt goes in its own field
        if json_mode:
            user_prompt = f"{user_prompt}\n\nReply with a single JSON object and nothing else."

        response, latency = self._timed(
            self._client.messages.create,
            model=self._model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_prompt,
            messages=self._turns(history, user_prompt),
        )

        usage = {}
        if response.usage:
            prompt_tokens, completion_tokens = response.usage.input_tokens, response.usage.output_tokens
            usage = {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            }
        return LLMResponse(
            text=response.content[0].text if response.content else "",
            model=response.model,
            usage=usage,
            latency_ms=latency,
            raw=response,
        )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_backend(
    provider: str,
    *,
    api_key: str = "",
    model: str = "",
    base_url: str | None = None,
    timeout: int = 30,
) -> LLMBackend | None:
    """
    Build the backend named by ``LLM_PROVIDER``.

    ``"claude"`` is accepted for Anthropic. Returns None for ``"none"``, an
    unknown provider, or a backend that cannot start; the advisor then
    serves rule-based defaults.
    """
    provider = provider.strip().lower()
    if provider in ("none", ""):
        logger.info("No LLM provider configured, care advice will use defaults")
        return None

    backend: LLMBackend
    if provider == "openai":
        backend = OpenAIBackend(api_key, model or DEFAULT_OPENAI_MODEL, base_url, timeout)
    elif provider in ("anthropic", "claude"):
        backend = AnthropicBackend(api_key, model or DEFAULT_ANTHROPIC_MODEL, timeout)
    else:
        logger.error("LLM_PROVIDER '%s' is not supported", provider)
        return None

    if backend.initialize():
        return backend
    logger.warning("LLM provider '%s' unavailable, care advice will use defaults", provider)
    return None
