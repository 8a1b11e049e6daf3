"""Text normalization applied before chunking.

Rendered documents arrive with ragged whitespace: CRLF line endings, runs
of blank lines between paragraphs, tab-aligned form labels. The extraction
prompt only needs the words, so everything collapses to single spaces.
"""

import logging
import re

logger = logging.getLogger(__name__)

_LINE_ENDINGS = re.compile(r"\r\n?")
_BLANK_LINES = re.compile(r"\n[ \t\f\v]*(?:\n[ \t\f\v]*)+")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(raw: str | None) -> str:
    """Collapse whitespace runs and blank lines, then trim.

    Returns an empty string for empty or missing input.
    """
    if not raw:
        return ""

    text = _LINE_ENDINGS.sub("\n", raw)
    text = _BLANK_LINES.sub("\n", text)
    text = _WHITESPACE.sub(" ", text).strip()

    logger.debug("normalized text: %d chars -> %d chars", len(raw), len(text))
    return text
