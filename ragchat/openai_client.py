"""
OpenAI-compatible API client.

The default base URL points at Gemini's OpenAI-compatible endpoint, so both
chat completions and embeddings go through the ``openai`` SDK.
"""
from typing import Dict, Iterator, List

from openai import OpenAI, OpenAIError

from .config import get_settings
from .exceptions import UpstreamServiceError
from .logging_config import logger


def get_client() -> OpenAI:
    settings = get_settings()
    if not settings.api_key:
        raise RuntimeError("OPENAI_API_KEY is not set. Put it in env or .env (server-side only).")
    return OpenAI(api_key=settings.api_key, base_url=settings.base_url)


def complete_chat(messages: List[Dict[str, str]], model: str = None) -> str:
    """Run a single non-streaming chat completion and return the text."""
    settings = get_settings()
    model = model or settings.chat_model
    logger.info("Sent request to chat API", model=model, messages=len(messages))
    try:
        response = get_client().chat.completions.create(
            model=model,
            messages=messages,
            temperature=settings.temperature,
        )
    except OpenAIError as e:
        raise UpstreamServiceError(f"Chat completion failed: {e}") from e
    return response.choices[0].message.content or ""


def stream_chat(messages: List[Dict[str, str]], model: str = None) -> Iterator[str]:
    """
    Stream a chat completion.

    Yields:
        Text deltas from the streaming response
    """
    settings = get_settings()
    model = model or settings.chat_model
    logger.info("Sent streaming request to chat API", model=model, messages=len(messages))
    try:
        stream_response = get_client().chat.completions.create(
            model=model,
            messages=messages,
            temperature=settings.temperature,
            stream=True,
        )
        for chunk in stream_response:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content or ""
            if delta:
                yield delta
    except OpenAIError as e:
        raise UpstreamServiceError(f"Chat completion failed: {e}") from e
