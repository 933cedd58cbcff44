"""
JSON chat completions with retry and circuit breaking.

``generate_json`` never raises for provider trouble: it returns None and the
caller substitutes its keyword-based fallback.
"""

from __future__ import annotations

import time
from typing import Any

import httpx
import openai
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.core.logging import get_logger
from app.services.openai.client import get_client_manager
from app.services.openai.config import TaskType, get_settings, get_task_config
from app.services.openai.prompts import SYSTEM_PROMPTS
from app.services.openai.validation import parse_json_reply

logger = get_logger("openai.generate")

# Transient failures worth another attempt; 4xx errors are not retried
RETRYABLE_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
    httpx.TransportError,
)


async def generate_json(
    task: TaskType,
    prompt: str,
    *,
    model: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> dict[str, Any] | None:
    """
    Send ``prompt`` for ``task`` and return the parsed JSON object.

    Returns None when the client is unavailable (no key, circuit open), when
    every attempt fails, or when the reply holds no JSON object.
    """
    settings = get_settings()
    config = get_task_config(task)
    params: dict[str, Any] = {
        "model": model or settings.default_model,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPTS[task]},
            {"role": "user", "content": prompt},
        ],
        "temperature": config.temperature if temperature is None else temperature,
        "max_tokens": max_tokens or config.max_tokens,
    }

    manager = await get_client_manager()
    client = await manager.get_client()
    if client is None:
        return None

    started = time.perf_counter()
    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max(1, settings.max_retries)),
            wait=wait_exponential_jitter(
                initial=settings.retry_delay,
                max=settings.retry_max_delay,
                jitter=1.0,
            ),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True,
        ):
            with attempt:
                response = await client.chat.completions.create(**params)
    except RetryError as e:
        manager.record_failure()
        logger.warning(f"{task.value}: retries exhausted: {e}")
        return None
    except (openai.OpenAIError, httpx.HTTPError) as e:
        manager.record_failure()
        logger.warning(f"{task.value}: model request failed: {e}")
        return None

    manager.record_success()
    duration_ms = int((time.perf_counter() - started) * 1000)

    content = None
    if response.choices:
        content = response.choices[0].message.content
    result = parse_json_reply(content)

    logger.info(
        "Model call completed",
        extra={
            "task": task.value,
            "model": params["model"],
            "duration_ms": duration_ms,
            "parsed": result is not None,
        },
    )
    return result
