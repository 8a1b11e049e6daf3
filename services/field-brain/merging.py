"""Cross-chunk merge of field candidates.

Candidates are deduplicated by anchor text (``replacement``). On collision
the later candidate in chunk order wins and the earlier one's metadata is
discarded. Output order is the order in which each anchor first appeared.

Names and placeholders are then made unique. When two surviving fields
share a name or placeholder, the one written later in chunk order keeps it
and the other is suffixed (``name_2``, ``[[NAME_2]]``).
"""

import logging

from models import FieldCandidate

logger = logging.getLogger(__name__)


def merge_candidates(chunk_results: list[list[FieldCandidate]]) -> list[FieldCandidate]:
    """Flatten per-chunk candidates and deduplicate them by anchor, last write wins."""
    by_anchor: dict[str, FieldCandidate] = {}
    written: dict[str, int] = {}
    total = 0

    for candidates in chunk_results:
        for candidate in candidates:
            if candidate.replacement in by_anchor:
                logger.debug("anchor collision, later candidate %r wins", candidate.name)
            by_anchor[candidate.replacement] = candidate
            written[candidate.replacement] = total
            total += 1

    merged = _unique_names(list(by_anchor.values()), [written[a] for a in by_anchor])
    logger.info("merged %d candidate(s) into %d field(s)", total, len(merged))
    return merged


def _unique_names(candidates: list[FieldCandidate], written: list[int]) -> list[FieldCandidate]:
    """Suffix a repeated name and its placeholder so both stay unique.

    Names are claimed from the latest write backwards; output keeps the
    order of ``candidates``.
    """
    names: set[str] = set()
    placeholders: set[str] = set()
    result = list(candidates)

    for i in sorted(range(len(candidates)), key=lambda i: written[i], reverse=True):
        candidate = candidates[i]
        if candidate.name not in names and candidate.placeholder not in placeholders:
            names.add(candidate.name)
            placeholders.add(candidate.placeholder)
            continue

        n = 2
        while f"{candidate.name}_{n}" in names or _suffix_placeholder(candidate.placeholder, n) in placeholders:
            n += 1
        name = f"{candidate.name}_{n}"
        placeholder = _suffix_placeholder(candidate.placeholder, n)
        logger.debug("renamed duplicate field %r to %r", candidate.name, name)

        names.add(name)
        placeholders.add(placeholder)
        result[i] = candidate.model_copy(update={"name": name, "placeholder": placeholder})

    return result


def _suffix_placeholder(placeholder: str, n: int) -> str:
    """[[FULL_NAME]] -> [[FULL_NAME_2]]"""
    if placeholder.startswith("[[") and placeholder.endswith("]]"):
        return f"{placeholder[:-2]}_{n}]]"
    return f"{placeholder}_{n}"
