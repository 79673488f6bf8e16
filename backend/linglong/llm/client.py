"""
LLM client - Provider-agnostic LLM integration using LiteLLM
"""

import os
import json
import logging
import re
from typing import Any

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Configure logging
logger = logging.getLogger(__name__)


# Environment variable holding the API key of each hosted provider
PROVIDER_API_KEYS = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


def get_provider() -> str:
    """Get configured LLM provider"""
    return os.getenv("LLM_PROVIDER", "gemini")


def has_api_key(provider: str | None = None) -> bool:
    """Whether the key the provider needs is set (Ollama needs none)"""
    key_var = PROVIDER_API_KEYS.get(provider or get_provider())
    return key_var is None or bool(os.getenv(key_var))


def get_model() -> str:
    """Get configured model name"""
    return os.getenv("LLM_MODEL", "gemini-2.5-flash")


def get_temperature() -> float:
    """Get configured sampling temperature for story turns"""
    return float(os.getenv("LLM_TEMPERATURE", "0.7"))


def get_max_tokens() -> int:
    """Get configured completion budget"""
    return int(os.getenv("LLM_MAX_TOKENS", "2048"))


def get_model_string() -> str:
    """Get the full model string for LiteLLM"""
    provider = get_provider()
    model = get_model()

    # LiteLLM uses prefixed model names for some providers
    if provider == "gemini":
        return f"gemini/{model}"
    elif provider == "anthropic":
        return f"anthropic/{model}"
    elif provider == "ollama":
        return f"ollama/{model}"
    else:
        # OpenAI doesn't need a prefix
        return model


async def get_completion(
    messages: list[dict[str, str]],
    model: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
    response_format: dict | None = None,
) -> str:
    """
    Get completion from configured LLM provider.

    Args:
        messages: List of message dicts with 'role' and 'content'
        model: Optional model override
        temperature: Creativity (0-1), defaults to LLM_TEMPERATURE
        max_tokens: Maximum response length, defaults to LLM_MAX_TOKENS
        response_format: Optional format specification

    Returns:
        The generated text response
    """
    import litellm

    # Configure API keys from environment
    _configure_api_keys()

    model_string = model or get_model_string()
    if temperature is None:
        temperature = get_temperature()
    if max_tokens is None:
        max_tokens = get_max_tokens()

    logger.info(
        f"LLM Request: model={model_string}, temperature={temperature}, max_tokens={max_tokens}"
    )
    logger.debug(
        f"Messages: {len(messages)} messages, response_format={response_format}"
    )

    # Build completion kwargs
    kwargs: dict[str, Any] = {
        "model": model_string,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }

    # Not all models support JSON mode
    if response_format:
        kwargs["response_format"] = response_format

    try:
        response = await litellm.acompletion(**kwargs)

        content = response.choices[0].message.content
        finish_reason = getattr(response.choices[0], "finish_reason", "unknown")

        logger.info(
            f"LLM Response: finish_reason={finish_reason}, content_length={len(content) if content else 0}"
        )

        if finish_reason == "length":
            logger.warning(
                f"Response TRUNCATED due to max_tokens limit ({max_tokens}). Consider increasing LLM_MAX_TOKENS."
            )

        if not content:
            logger.warning(f"LLM returned empty content. Full response: {response}")
        else:
            preview = content[:200] + "..." if len(content) > 200 else content
            logger.debug(f"Response preview: {preview}")

        return content
    except Exception as e:
        logger.error(f"LLM Error: {type(e).__name__}: {e}")
        raise


def _configure_api_keys():
    """Configure API keys for LiteLLM from environment"""
    import litellm

    provider = get_provider()
    logger.debug(f"Configuring API keys for provider: {provider}")

    key_var = PROVIDER_API_KEYS.get(provider)
    if key_var and not os.getenv(key_var):
        logger.warning(f"{key_var} not found in environment")

    if provider == "openai" and os.getenv("OPENAI_API_KEY"):
        litellm.api_key = os.getenv("OPENAI_API_KEY")

    elif provider == "ollama":
        base_url = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
        os.environ["OLLAMA_API_BASE"] = base_url
        logger.debug(f"OLLAMA_API_BASE configured: {base_url}")


def strip_code_fences(response: str) -> str:
    """Remove markdown code fences wrapped around a JSON payload"""
    cleaned = response.strip()

    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]

    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]

    return cleaned.strip()


def parse_json_response(response: str | None) -> dict:
    """
    Parse a JSON object from an LLM response.
    Handles markdown code blocks and text around the object.

    Raises:
        ValueError: If the response is empty or holds no JSON object
    """
    # Handle None or empty response
    if response is None or not response.strip():
        raise ValueError("LLM returned empty response. Please try again.")

    cleaned = strip_code_fences(response)

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        # Try to extract JSON from the response
        json_match = re.search(r"\{[\s\S]*\}", cleaned)
        parsed = None
        if json_match:
            try:
                parsed = json.loads(json_match.group())
            except json.JSONDecodeError:
                pass

        if parsed is None:
            # Include a snippet of the response for debugging
            snippet = cleaned[:200] + "..." if len(cleaned) > 200 else cleaned
            raise ValueError(
                f"Failed to parse AI response. The response was not valid JSON. "
                f"Response preview: {snippet}"
            )

    if not isinstance(parsed, dict):
        raise ValueError(
            f"Failed to parse AI response. Expected a JSON object, got {type(parsed).__name__}."
        )

    return parsed
