"""Memoization of the document rendering step.

Keyed by a cheap identity (file name + byte length), not a content hash:
two different documents with the same name and size collide. The store is
bounded softly: it may grow past its ceiling until ``evict()`` runs, which
happens on every editing-session teardown.
"""

import logging
from collections import OrderedDict
from collections.abc import Callable

from config import settings

logger = logging.getLogger(__name__)

Renderer = Callable[[bytes], str]
RangeRenderer = Callable[[list[bytes]], str]


def document_identity(file_name: str, data: bytes) -> str:
    return f"{file_name}-{len(data)}"


def split_bytes(data: bytes, chunk_size: int) -> list[bytes]:
    """Split data into consecutive ranges of at most chunk_size bytes."""
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    return [data[i:i + chunk_size] for i in range(0, len(data), chunk_size)]


class LRUStore:
    """Least-recently-used store with a soft entry ceiling."""

    def __init__(self, max_entries: int = 100):
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, str] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def keys(self) -> list[str]:
        """Keys from least to most recently used."""
        return list(self._entries)

    def get(self, key: str) -> str | None:
        if key not in self._entries:
            return None
        self._entries.move_to_end(key)
        return self._entries[key]

    def put(self, key: str, value: str) -> None:
        self._entries[key] = value
        self._entries.move_to_end(key)

    def clear(self) -> None:
        self._entries.clear()

    def evict(self) -> int:
        """Once over the ceiling, shed least recently used entries down to
        max_entries + 1 - max_entries // 2 (101 of 100 -> 51), however far the
        store has grown. Returns how many were removed.
        """
        if len(self._entries) <= self.max_entries:
            return 0

        keep = self.max_entries + 1 - max(self.max_entries // 2, 1)
        removed = 0
        while len(self._entries) > keep:
            self._entries.popitem(last=False)
            removed += 1
        return removed


class DocumentCache:
    """Renders each document once per identity and serves later reads from memory.

    Documents larger than render_chunk_bytes are split into byte ranges.
    With a range_renderer the ranges are rendered in one call; otherwise each
    range goes to the renderer on its own, which suits only formats whose
    ranges decode independently.
    """

    def __init__(
        self,
        renderer: Renderer,
        store: LRUStore | None = None,
        render_chunk_bytes: int | None = settings.RENDER_CHUNK_BYTES,
        range_renderer: RangeRenderer | None = None,
    ):
        self._render = renderer
        self._render_ranges = range_renderer
        self._store = store if store is not None else LRUStore(settings.CACHE_MAX_ENTRIES)
        self._render_chunk_bytes = render_chunk_bytes

    @property
    def store(self) -> LRUStore:
        return self._store

    def __len__(self) -> int:
        return len(self._store)

    def get_text(self, file_name: str, data: bytes) -> str:
        """Return rendered text, rendering on first sight of this identity.

        Rendering errors propagate and nothing is cached.
        """
        key = document_identity(file_name, data)
        cached = self._store.get(key)
        if cached is not None:
            logger.debug("document cache hit: %s", key)
            return cached

        if self._render_chunk_bytes and len(data) > self._render_chunk_bytes:
            parts = split_bytes(data, self._render_chunk_bytes)
            logger.info("Rendering %s in %d byte range(s)", key, len(parts))
            if self._render_ranges is not None:
                text = self._render_ranges(parts)
            else:
                text = "".join(self._render(part) for part in parts)
        else:
            text = self._render(data)

        self._store.put(key, text)
        logger.info("Cached rendered document %s (%d chars)", key, len(text))
        return text

    def evict(self) -> int:
        removed = self._store.evict()
        if removed:
            logger.info("Document cache over capacity: evicted %d entr(ies), %d left", removed, len(self._store))
        return removed
