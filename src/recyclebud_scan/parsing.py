"""Parse the AI gateway's free-text completion into a ScanResult.

The model is asked for a bare JSON object but sometimes wraps it in markdown
code fences, omits fields, or answers in prose. Fences are stripped first;
text that is not a JSON object yields the fallback result, and individual
fields that are missing or malformed fall back to their defaults.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import replace
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from recyclebud_scan.results import (
    MAX_BASE_POINTS,
    MAX_CONFIDENCE,
    MIN_BASE_POINTS,
    MIN_CONFIDENCE,
    UNIDENTIFIED_WASTE_TYPE,
    ScanResult,
    fallback_result,
)

logger = logging.getLogger("recyclebud_scan.parsing")

# ```json, ```JSON, ``` ... with or without a trailing newline
_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\r?\n?")


def strip_code_fences(text: str) -> str:
    """Remove markdown triple-backtick markers and surrounding whitespace."""
    return _FENCE_RE.sub("", text).strip()


class ClassificationPayload(BaseModel):
    """Schema for the JSON object the model is instructed to return.

    Unknown keys (including any ``user_id`` the model invents) are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    waste_type: str = UNIDENTIFIED_WASTE_TYPE
    confidence: int | float = 0
    recyclable: bool = False
    description: str = ""
    recycling_guide: str = ""
    base_points: int = 0

    @field_validator("waste_type", mode="before")
    @classmethod
    def _waste_type(cls, value: Any) -> str:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return UNIDENTIFIED_WASTE_TYPE

    @field_validator("description", "recycling_guide", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, list) and all(isinstance(v, str) for v in value):
            # Step-by-step guides occasionally arrive as a list of steps
            return "\n".join(value)
        return ""

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, value: Any) -> int | float:
        number = min(max(_as_number(value), MIN_CONFIDENCE), MAX_CONFIDENCE)
        return int(number) if float(number).is_integer() else number

    @field_validator("recyclable", mode="before")
    @classmethod
    def _recyclable(cls, value: Any) -> bool:
        return value if isinstance(value, bool) else False

    @field_validator("base_points", mode="before")
    @classmethod
    def _base_points(cls, value: Any) -> int:
        number = int(round(_as_number(value)))
        return min(max(number, MIN_BASE_POINTS), MAX_BASE_POINTS)

    def to_result(self) -> ScanResult:
        result = ScanResult(
            waste_type=self.waste_type,
            confidence=self.confidence,
            recyclable=self.recyclable,
            description=self.description,
            recycling_guide=self.recycling_guide,
            base_points=self.base_points,
        )
        if not result.is_identified and result.base_points:
            logger.debug("Zeroing base_points for unidentified classification")
            return replace(result, base_points=0)
        return result


def parse_classification(content: str) -> ScanResult | None:
    """Parse completion text into a ScanResult.

    Returns None when the cleaned text is not a JSON object.
    """
    cleaned = strip_code_fences(content)
    try:
        data = json.loads(cleaned)
    except (ValueError, RecursionError) as e:
        logger.warning("Classification output is not valid JSON: %s", e)
        return None

    if not isinstance(data, dict):
        logger.warning(
            "Classification output is JSON but not an object (%s)", type(data).__name__
        )
        return None

    try:
        payload = ClassificationPayload.model_validate(data)
    except ValidationError as e:
        logger.warning("Classification output failed schema validation: %s", e)
        return None
    return payload.to_result()


def parse_or_fallback(content: str) -> ScanResult:
    """Parse completion text, substituting the fallback result on failure."""
    result = parse_classification(content)
    if result is None:
        return fallback_result()
    return result


def _as_number(value: Any) -> float:
    """Coerce a JSON scalar to a finite float, 0 when it is not numeric."""
    if isinstance(value, bool):
        return 0.0
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            number = float(value.strip().rstrip("%"))
        else:
            return 0.0
    except (ValueError, OverflowError):
        return 0.0
    return number if math.isfinite(number) else 0.0
