import json
import re
from typing import Type, TypeVar

from pydantic import BaseModel, ValidationError

from interview_agent.errors import ResponseParseError

T = TypeVar("T", bound=BaseModel)

_FENCE = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?```", re.IGNORECASE)


def extract_json_text(text: str) -> str:
    """Body of the first ``` fence if there is one, otherwise the whole text."""
    text = str(text or "")
    fenced = _FENCE.search(text)
    raw = fenced.group(1) if fenced else text
    return raw.strip()


def parse_completion(text: str, schema: Type[T]) -> T:
    raw = extract_json_text(text)
    if not raw:
        raise ResponseParseError("Completion response was empty")

    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise ResponseParseError(f"Completion response was not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ResponseParseError("Completion response JSON was not an object")

    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise ResponseParseError(f"Completion response did not match {schema.__name__}: {exc.error_count()} error(s)") from exc
