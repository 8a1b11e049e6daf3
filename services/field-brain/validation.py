"""Anchor-shape validation and confidence assignment.

A field's anchor text is checked against the pattern registered for its
type. This is a sanity signal for the UI: no field is ever dropped here.
"""

import logging
import re
from collections.abc import Mapping

from models import FieldCandidate, IdentifiedField

logger = logging.getLogger(__name__)

# One table for every pipeline. Types without an entry (text, checkbox, and
# anything unknown) are always high confidence.
DEFAULT_PATTERNS: dict[str, re.Pattern[str]] = {
    "date": re.compile(r"\b\d{2}-\d{2}-\d{4}\b"),  # mm-dd-yyyy
    "email": re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+"),
    "phone": re.compile(r"\+?\d[\d\s().-]{6,}\d"),
    "number": re.compile(r"\d"),
    "address": re.compile(r"^[\w\s,.#/:'()-]+$"),
}


class FieldValidator:
    """Assigns confidence to merged candidates, exactly once."""

    def __init__(
        self,
        patterns: Mapping[str, re.Pattern[str]] | None = None,
        strict: bool = False,
    ):
        self._patterns = dict(DEFAULT_PATTERNS if patterns is None else patterns)
        self._strict = strict

    def matches(self, field_type: str, anchor: str) -> bool:
        pattern = self._patterns.get(field_type)
        if pattern is None:
            return True
        return pattern.search(anchor) is not None

    def validate(self, candidate: FieldCandidate) -> IdentifiedField:
        """Turn a candidate into a field with confidence set.

        In strict mode a failing field is also reclassified as text, keeping
        the declared type in original_type.
        """
        data = candidate.model_dump()

        if self.matches(candidate.type, candidate.replacement):
            return IdentifiedField(**data, confidence="high")

        if self._strict:
            data["original_type"] = candidate.type
            data["type"] = "text"
        return IdentifiedField(**data, confidence="low")

    def validate_all(self, candidates: list[FieldCandidate]) -> list[IdentifiedField]:
        fields = [self.validate(c) for c in candidates]
        low = sum(1 for f in fields if f.confidence == "low")
        if low:
            logger.info("%d of %d field(s) failed their type pattern", low, len(fields))
        return fields
