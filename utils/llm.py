import logging
from typing import Any, Dict, Optional

import httpx

from config import load_config
from utils.errors import ConfigurationError, GenerationError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a careful assistant for a devotional app. "
    "You answer with valid JSON only, without commentary or markdown."
)


def call_llm(
    prompt: str,
    *,
    temperature: float = 0.7,
    max_tokens: int = 4000,
    config: Optional[Dict[str, Any]] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> str:
    """Send one prompt to the chat completion endpoint and return the reply text.

    Raises ConfigurationError when no API key is configured and
    GenerationError for HTTP failures, transport errors or an empty reply.
    """
    if config is None:
        config = load_config()
    llm_cfg = config.get("llm", {})
    api_key = llm_cfg.get("api_key")
    if not api_key:
        raise ConfigurationError("OPENROUTER_API_KEY is not configured")

    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "HTTP-Referer": llm_cfg.get("referer", ""),
        "X-Title": llm_cfg.get("title", ""),
    }
    payload = {
        "model": llm_cfg.get("model"),
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        "temperature": temperature,
        "max_tokens": max_tokens,
    }

    try:
        with httpx.Client(timeout=llm_cfg.get("timeout", 60), transport=transport) as client:
            response = client.post(llm_cfg["api_url"], headers=headers, json=payload)
    except httpx.HTTPError as e:
        logger.warning(f"LLM request failed: {e}")
        raise GenerationError(f"LLM request failed: {e}") from e

    if response.status_code != 200:
        logger.warning(f"LLM endpoint returned {response.status_code}: {response.text[:200]}")
        raise GenerationError(f"LLM endpoint returned {response.status_code}")

    try:
        data = response.json()
        content = data["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise GenerationError("LLM response had no message content") from e

    if not isinstance(content, str) or not content.strip():
        raise GenerationError("LLM returned empty content")
    return content.strip()
