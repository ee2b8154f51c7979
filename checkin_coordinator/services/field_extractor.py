# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Field extraction from free text through the text model.
extract(schema, text) -> {field: value}; raises ExtractionError when the
completion does not contain a JSON object with the expected keys.
"""

import json
import re
from typing import Any, Optional, Protocol

from checkin_coordinator.core.errors import ExtractionError
from checkin_coordinator.core.logging import get_logger
from checkin_coordinator.services.model_client import TextModel

logger = get_logger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


class Extractor(Protocol):
    async def extract(self, schema: list[str], text: str, notes: str = "") -> dict[str, str]: ...


def parse_json_object(text: str) -> Optional[dict[str, Any]]:
    """Return the first JSON object found in text (fenced or bare), else None."""
    candidates: list[str] = [m.group(1) for m in _FENCED_JSON.finditer(text or "")]
    start = (text or "").find("{")
    end = (text or "").rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])
    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(_as_text(v) for v in value)
    return str(value).strip()


def build_extraction_prompt(schema: list[str], text: str, notes: str = "") -> str:
    keys = ",\n".join(f'  "{field}": "value"' for field in schema)
    prompt = (
        "Extract the following fields from this text.\n\n"
        "Return ONLY a valid JSON object with these exact keys:\n"
        f"{{\n{keys}\n}}\n"
    )
    if notes:
        prompt += f"\nNote:\n{notes}\n"
    prompt += f'\nUse an empty string for any field that is not present.\n\nText to parse: "{text}"'
    return prompt


class FieldExtractor:
    """Extractor backed by a TextModel."""

    def __init__(self, model: TextModel) -> None:
        self._model = model

    async def extract(self, schema: list[str], text: str, notes: str = "") -> dict[str, str]:
        completion = await self._model.complete(build_extraction_prompt(schema, text, notes))
        parsed = parse_json_object(completion)
        if parsed is None or not any(field in parsed for field in schema):
            logger.warning("Unparseable extraction output for schema %s", schema)
            raise ExtractionError(f"Expected a JSON object with keys {schema}")
        return {field: _as_text(parsed.get(field)) for field in schema}
