"""
AI Services
===========
LLM-backed care advice.

Services:
- LLMBackend: Provider abstraction (OpenAI, Anthropic)
- LLMCareAdvisor: Care plans, chat, schedule suggestions and task recommendations

All public symbols are importable via ``from app.services.ai import X``.
Imports are **lazy**: each submodule is loaded only when one of its
symbols is first accessed, so the provider SDKs are not imported until used.
"""

from __future__ import annotations

import importlib
from typing import Any

# ── Symbol → submodule mapping ──────────────────────────────────────
_LAZY_IMPORTS: dict[str, str] = {
    # care_advisor
    "ChatReply": "app.services.ai.care_advisor",
    "LLMCareAdvisor": "app.services.ai.care_advisor",
    "extract_json_object": "app.services.ai.care_advisor",
    # llm_backends
    "AnthropicBackend": "app.services.ai.llm_backends",
    "LLMBackend": "app.services.ai.llm_backends",
    "LLMResponse": "app.services.ai.llm_backends",
    "OpenAIBackend": "app.services.ai.llm_backends",
    "create_backend": "app.services.ai.llm_backends",
}

__all__ = list(_LAZY_IMPORTS.keys())


def __getattr__(name: str) -> Any:
    """Lazy-load a public symbol from its submodule on first access."""
    module_path = _LAZY_IMPORTS.get(name)
    if module_path is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = importlib.import_module(module_path)
    value = getattr(module, name)
    # Cache on the module so subsequent accesses skip __getattr__
    globals()[name] = value
    return value
