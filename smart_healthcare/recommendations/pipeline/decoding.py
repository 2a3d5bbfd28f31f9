"""Two-tier decoding of extracted JSON into a typed result.

Tier 1 validates the text strictly against the target model. Models get the
top-level fields right almost every time but now and then emit a nested
per-day structure, a number or a list in a slightly different shape, so tier 2
parses the payload into a plain dict and rebuilds it field by field through a
coercion table before validating it again in lax mode.

A coercion table maps each wire field name to a function that turns whatever
the model produced into the declared shape (or ``None`` to leave the field at
its default). Tables nest through :func:`record`, :func:`mapping_of` and
:func:`list_of`.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Mapping
from typing import Any, Generic, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from smart_healthcare.recommendations.pipeline.types import DecodeFailure

ModelT = TypeVar("ModelT", bound=BaseModel)

Coercion = Callable[[Any], Any]
CoercionTable = Mapping[str, Coercion]

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def _parse_json_text(value: str) -> Any:
    """Parse JSON embedded in a string value, returning None when it is not JSON."""
    stripped = value.strip()
    if not stripped or stripped[0] not in "{[":
        return None
    try:
        return json.loads(stripped)
    except (ValueError, RecursionError):
        return None


def as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return ", ".join(text for text in (as_text(item) for item in value) if text)
    return json.dumps(value, ensure_ascii=False)


def as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        # "1,900 kcal" -> 1900.0, "12-15" -> 12.0
        match = _NUMBER.search(value.replace(",", ""))
        return float(match.group()) if match else None
    return None


def as_int(value: Any) -> int | None:
    number = as_float(value)
    return int(number) if number is not None else None


def as_mapping(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        parsed = _parse_json_text(value)
        if isinstance(parsed, dict):
            return parsed
    return {}


def as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        # {"1": {...}, "2": {...}} style numbering
        return list(value.values())
    if isinstance(value, str):
        parsed = _parse_json_text(value)
        if isinstance(parsed, list):
            return parsed
        if isinstance(parsed, dict):
            return list(parsed.values())
    return []


def as_text_list(value: Any) -> list[str]:
    if isinstance(value, str) and _parse_json_text(value) is None:
        return [part.strip() for part in re.split(r"[,\n]", value) if part.strip()]
    return [text for text in (as_text(item) for item in as_list(value)) if text]


def text_or_text_list(value: Any) -> list[str] | str | None:
    """Keep free text as-is, normalize anything list-like into a list of strings."""
    if value is None:
        return None
    if isinstance(value, str) and _parse_json_text(value) is None:
        return value
    return as_text_list(value)


def number_map_or_text(value: Any) -> dict[str, float] | str | None:
    """Object of numbers (e.g. macro percentages) or a free-text description."""
    if value is None:
        return None
    if isinstance(value, str):
        parsed = _parse_json_text(value)
        if not isinstance(parsed, dict):
            return value
        value = parsed
    if isinstance(value, dict):
        numbers = {str(key): as_float(item) for key, item in value.items()}
        return {key: number for key, number in numbers.items() if number is not None}
    return as_text(value)


def record(table: CoercionTable, scalar_key: str | None = None) -> Coercion:
    """Coerce a nested object with its own table.

    With ``scalar_key``, a bare string item (e.g. just an exercise name) becomes
    ``{scalar_key: value}`` instead of an empty object.
    """

    def coerce(value: Any) -> dict[str, Any]:
        if scalar_key and isinstance(value, str) and _parse_json_text(value) is None and value.strip():
            return coerce_fields({scalar_key: value.strip()}, table)
        return coerce_fields(as_mapping(value), table)

    return coerce


def mapping_of(item: Coercion) -> Coercion:
    """Coerce ``{key: value}``, applying ``item`` to each value."""

    def coerce(value: Any) -> dict[str, Any]:
        return {str(key): item(entry) for key, entry in as_mapping(value).items()}

    return coerce


def list_of(item: Coercion) -> Coercion:
    def coerce(value: Any) -> list[Any]:
        return [item(entry) for entry in as_list(value) if entry is not None]

    return coerce


def coerce_fields(payload: Mapping[str, Any], table: CoercionTable) -> dict[str, Any]:
    """Rebuild ``payload`` through ``table``; unknown keys are dropped."""
    coerced: dict[str, Any] = {}
    for key, coercion in table.items():
        if key not in payload:
            continue
        value = coercion(payload[key])
        if value is not None:
            coerced[key] = value
    return coerced


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
    return f"{error.error_count()} validation error(s), first at {location}: {first.get('msg')}"


class SchemaDecoder(Generic[ModelT]):
    """Decode extracted JSON text into ``shape`` using ``table`` as the fallback."""

    def __init__(self, shape: type[ModelT], table: CoercionTable) -> None:
        self.shape = shape
        self.table = table

    def decode(self, text: str) -> ModelT | DecodeFailure:
        try:
            return self.shape.model_validate_json(text, strict=True)
        except ValidationError as e:
            logger.debug(
                "Strict decode failed, rebuilding payload field by field",
                shape=self.shape.__name__,
                detail=_describe(e),
            )

        try:
            payload = json.loads(text)
        except (ValueError, RecursionError) as e:
            return DecodeFailure(f"payload is not valid JSON: {e}")

        if not isinstance(payload, dict):
            return DecodeFailure(f"expected a JSON object, got {type(payload).__name__}")

        coerced = coerce_fields(payload, self.table)
        try:
            result = self.shape.model_validate(coerced)
        except ValidationError as e:
            return DecodeFailure(f"{self.shape.__name__} does not fit after coercion: {_describe(e)}")

        logger.info(
            "Decoded payload through coercion table",
            shape=self.shape.__name__,
            fields=sorted(coerced),
        )
        return result
