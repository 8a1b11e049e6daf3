"""Rendering capabilities: binary document -> plain text.

Any callable ``render(bytes) -> str`` works with DocumentCache. Byte ranges
of UTF-8 text may split a character, so plain text split into ranges goes
through ``render_plain_text_ranges``, which carries one decoder across them.
A .docx is a zip container and must be rendered whole (use
``render_chunk_bytes=None`` on the cache).
"""

import codecs
import io
import logging
from collections.abc import Iterable

from docx import Document

logger = logging.getLogger(__name__)


def render_plain_text(data: bytes) -> str:
    """Decode UTF-8 text, replacing undecodable bytes."""
    return data.decode("utf-8", errors="replace")


def render_plain_text_ranges(parts: Iterable[bytes]) -> str:
    """Decode consecutive byte ranges of one UTF-8 document."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    text = "".join(decoder.decode(part) for part in parts)
    return text + decoder.decode(b"", final=True)


def render_docx(data: bytes) -> str:
    """Extract paragraph and table text from a Word document."""
    doc = Document(io.BytesIO(data))

    paragraphs = [p.text for p in doc.paragraphs if p.text.strip()]

    for table in doc.tables:
        for row in table.rows:
            row_text = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if row_text:
                paragraphs.append(" | ".join(row_text))

    logger.debug(
        "rendered docx: %d paragraphs, %d tables",
        len(doc.paragraphs), len(doc.tables),
    )
    return "\n\n".join(paragraphs)
