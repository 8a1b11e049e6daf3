"""Relationship inference between fields with overlapping anchor vocabulary."""

import logging

from models import IdentifiedField

logger = logging.getLogger(__name__)

MIN_SHARED_TOKENS = 2


def anchor_tokens(anchor: str) -> set[str]:
    return set(anchor.lower().split())


def link_related_fields(
    fields: list[IdentifiedField],
    min_shared: int = MIN_SHARED_TOKENS,
) -> list[IdentifiedField]:
    """Return new fields whose relationships list every other field sharing
    at least min_shared anchor tokens. O(n^2) in the field count.
    """
    tokens = [anchor_tokens(f.replacement) for f in fields]
    linked = []

    for i, field in enumerate(fields):
        related = [
            other.name
            for j, other in enumerate(fields)
            if j != i and len(tokens[i] & tokens[j]) >= min_shared
        ]
        linked.append(field.model_copy(update={"relationships": related}))

    pairs = sum(len(f.relationships) for f in linked) // 2
    logger.debug("linked %d related field pair(s)", pairs)
    return linked
