"""Sentence-aligned chunking of normalized document text."""

import logging
import re

logger = logging.getLogger(__name__)

# Sentence boundary: terminal punctuation followed by whitespace
_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


def split_sentences(text: str) -> list[str]:
    """Split text after ., ! or ? when followed by whitespace.

    Text with no boundary at all is returned as a single sentence.
    """
    if not text or not text.strip():
        return []
    return [s for s in _BOUNDARY.split(text.strip()) if s]


def chunk_text(text: str, max_chars: int) -> list[str]:
    """Pack sentences into chunks of at most max_chars characters.

    Sentences inside a chunk are joined by one space, so joining the chunks
    with one space gives back normalized input. A sentence longer than
    max_chars becomes its own oversized chunk; it is never split further.
    """
    if max_chars < 1:
        raise ValueError(f"max_chars must be >= 1, got {max_chars}")

    chunks: list[str] = []
    buffer = ""

    for sentence in split_sentences(text):
        if not buffer:
            buffer = sentence
        elif len(buffer) + 1 + len(sentence) > max_chars:
            chunks.append(buffer)
            buffer = sentence
        else:
            buffer = f"{buffer} {sentence}"

    if buffer:
        chunks.append(buffer)

    oversized = sum(1 for c in chunks if len(c) > max_chars)
    if oversized:
        logger.warning("%d chunk(s) exceed %d chars (single long sentence)", oversized, max_chars)

    logger.debug("chunked %d chars into %d chunk(s)", len(text), len(chunks))
    return chunks
