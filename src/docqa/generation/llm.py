"""LLM initialisation — single place to swap providers.

Supports two modes:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **OpenAI-compatible endpoint** — set ``LLM_BASE_URL`` to e.g. a vLLM
   server exposing ``/v1/chat/completions``; ``ChatOpenAI`` works
   unchanged.

Clients are built with an explicit timeout and with client-side retries
disabled: a failed call surfaces as :class:`~docqa.errors.ModelError`
and the caller decides whether to try again.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from langchain_openai import ChatOpenAI

from docqa.config import settings
from docqa.errors import ModelError, is_transient

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel
    from langchain_core.messages import BaseMessage

logger = logging.getLogger(__name__)


def get_llm(temperature: float = settings.llm_temperature) -> ChatOpenAI:
    """Return the configured chat model.

    When ``settings.llm_base_url`` is set the client is pointed at that
    endpoint instead of the OpenAI cloud API.  A dummy API key
    (``"EMPTY"``) is used because vLLM does not require authentication.
    """
    kwargs: dict = {
        "model": settings.llm_model_name,
        "temperature": temperature,
        "timeout": settings.llm_timeout,
        "max_retries": 0,
    }

    if settings.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", settings.llm_base_url)
        kwargs["base_url"] = settings.llm_base_url
        # vLLM doesn't need a real key; LangChain requires a non-empty value.
        kwargs["api_key"] = settings.openai_api_key or "EMPTY"
    else:
        kwargs["api_key"] = settings.openai_api_key

    return ChatOpenAI(**kwargs)


def invoke_model(llm: BaseChatModel, messages: list[BaseMessage]) -> str:
    """Send *messages* to *llm* once and return the reply text.

    Raises
    ------
    ModelError
        When the call fails.  ``retryable`` tells transient failures
        (timeouts, rate limits, 5xx) apart from malformed requests.
    """
    try:
        response = llm.invoke(messages)
    except Exception as exc:
        retryable = is_transient(exc)
        logger.error("Model call failed (retryable=%s): %s", retryable, exc)
        raise ModelError(f"{type(exc).__name__}: {exc}", retryable=retryable) from exc
    return _content_text(response.content)


def _content_text(content: Any) -> str:
    """Flatten a message ``content`` (string or list of parts) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(str(part.get("text", "")))
        return "".join(parts)
    return ""
