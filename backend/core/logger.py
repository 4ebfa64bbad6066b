import json
import logging
from typing import Any

from core.config import LOG_LEVEL

logging.basicConfig(
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    level=getattr(logging, LOG_LEVEL, logging.INFO),
)

logger = logging.getLogger("interview_agent.events")

_REDACTED_KEYS = {
    "text",
    "transcript",
    "question",
    "answer",
    "resume_text",
    "prompt",
    "user_prompt",
    "api_key",
}


def _sanitize_value(key: str, value: Any) -> Any:
    normalized_key = str(key or "").lower()
    if normalized_key in _REDACTED_KEYS:
        text = str(value or "")
        return {
            "redacted": True,
            "length": len(text),
        }
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, dict):
        return {str(k): _sanitize_value(str(k), v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_sanitize_value(normalized_key, item) for item in value]
    return str(value)


def log_event(component: str, event: str, session_id: str = "", **kwargs) -> None:
    payload = {
        "component": str(component or "interview_agent"),
        "event": str(event or "unknown"),
        "session_id": str(session_id or ""),
    }
    payload.update({str(k): _sanitize_value(str(k), v) for k, v in kwargs.items()})
    logger.info(json.dumps(payload, ensure_ascii=False, default=str))
