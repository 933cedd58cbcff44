"""
Chat-completion client package.

Usage:
    from app.services.openai import TaskType, generate_json

    result = await generate_json(TaskType.MARKET_SENTIMENT, prompt)
    if result is None:
        ...  # use the local fallback
"""

from app.services.openai.client import (
    OpenAIClientManager,
    close_client_manager,
    get_client_manager,
    reset_client_manager,
)
from app.services.openai.config import (
    OpenAISettings,
    TaskType,
    get_settings,
    get_task_config,
)
from app.services.openai.generate import generate_json
from app.services.openai.validation import parse_json_reply

__all__ = [
    "OpenAIClientManager",
    "OpenAISettings",
    "TaskType",
    "close_client_manager",
    "generate_json",
    "get_client_manager",
    "get_settings",
    "get_task_config",
    "parse_json_reply",
    "reset_client_manager",
]
