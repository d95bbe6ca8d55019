"""Structured-output parsing for oracle responses.

Oracle answers are free text that should contain a JSON object, possibly
wrapped in prose or markdown code fences. Parsing never raises: callers
get a :class:`ParseResult` and decide locally what a failure means.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import ValidationError

if TYPE_CHECKING:
    from pydantic import BaseModel

T = TypeVar("T")
M = TypeVar("M", bound="BaseModel")

_JSON_BLOCK_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
_BARE_JSON_RE = re.compile(r"\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}", re.DOTALL)


@dataclass(frozen=True, slots=True)
class ParseResult(Generic[T]):
    """Tagged result: either ``value`` or ``error`` is set."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> ParseResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> ParseResult[T]:
        return cls(error=error)


def _loads_object(text: str) -> dict[str, Any] | None:
    try:
        result = json.loads(text)
    except json.JSONDecodeError:
        return None
    return result if isinstance(result, dict) else None


def extract_json(text: str) -> ParseResult[dict[str, Any]]:
    """Extract a JSON object from text.

    Tries strategies in order:
    1. Direct ``json.loads()`` on the full text
    2. Extract from markdown code fences (```json ... ```)
    3. Find bare ``{...}`` in the text
    """
    stripped = text.strip()
    if not stripped:
        return ParseResult.failure("Empty text")

    result = _loads_object(stripped)
    if result is not None:
        return ParseResult.success(result)

    match = _JSON_BLOCK_RE.search(text)
    if match:
        result = _loads_object(match.group(1))
        if result is not None:
            return ParseResult.success(result)

    match = _BARE_JSON_RE.search(text)
    if match:
        result = _loads_object(match.group(0))
        if result is not None:
            return ParseResult.success(result)

    return ParseResult.failure("No valid JSON object found in text")


def extract_validated(text: str, model_class: type[M]) -> ParseResult[M]:
    """Extract JSON and validate it against a Pydantic model."""
    extracted = extract_json(text)
    if extracted.value is None:
        return ParseResult.failure(extracted.error or "No JSON object")
    try:
        return ParseResult.success(model_class.model_validate(extracted.value))
    except ValidationError as e:
        return ParseResult.failure(f"Schema mismatch: {e.error_count()} error(s)")
