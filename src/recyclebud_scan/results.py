"""Scan result model returned to the browser client."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

UNIDENTIFIED_WASTE_TYPE = "Unidentified"
FALLBACK_DESCRIPTION = "The waste type could not be identified from this image."
FALLBACK_RECYCLING_GUIDE = "Please take a clearer photo or try a different angle."

MIN_CONFIDENCE = 0
MAX_CONFIDENCE = 100
MIN_BASE_POINTS = 0
MAX_BASE_POINTS = 50


@dataclass(frozen=True)
class ScanResult:
    """Normalized classification of one scanned image.

    Every field is always populated. ``user_id`` is the identity returned by
    the verifier and is attached after parsing, never read from the model
    output.
    """

    waste_type: str
    confidence: float  # 0 to 100
    recyclable: bool
    description: str = ""
    recycling_guide: str = ""
    base_points: int = 0  # 0 to 50
    user_id: str = ""

    @property
    def is_identified(self) -> bool:
        """True if the model produced a usable classification."""
        return self.confidence > 0 and self.waste_type != UNIDENTIFIED_WASTE_TYPE

    def with_user(self, user_id: str) -> ScanResult:
        """Return a copy carrying the verified user id."""
        return replace(self, user_id=user_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "waste_type": self.waste_type,
            "confidence": self.confidence,
            "recyclable": self.recyclable,
            "description": self.description,
            "recycling_guide": self.recycling_guide,
            "base_points": self.base_points,
            "user_id": self.user_id,
        }


def fallback_result() -> ScanResult:
    """The deterministic zero-confidence result used when output is unparseable."""
    return ScanResult(
        waste_type=UNIDENTIFIED_WASTE_TYPE,
        confidence=0,
        recyclable=False,
        description=FALLBACK_DESCRIPTION,
        recycling_guide=FALLBACK_RECYCLING_GUIDE,
        base_points=0,
    )
