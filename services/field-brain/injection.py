"""Placeholder injection into rendered content.

Each field's placeholder token is appended, after one space, to every
occurrence of its anchor text. Everything else is returned unchanged.

Plain text is scanned as a whole. Content the caller marks as markup is
tokenized first and only text outside tags is scanned, so an anchor that
happens to match a tag name or attribute value cannot corrupt the
structure. Placeholders are spliced in at source offsets; the markup is
never re-serialized. An anchor split by a tag or an entity reference is
not matched.
"""

import enum
import logging
import re
from dataclasses import dataclass
from html.parser import HTMLParser

from models import IdentifiedField

logger = logging.getLogger(__name__)

_SKIP_PARENTS = {"script", "style", "head", "title"}


class InjectionOutcome(str, enum.Enum):
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    NO_FIELDS = "no_fields"


@dataclass(frozen=True)
class InjectionResult:
    outcome: InjectionOutcome
    content: str
    applied: int = 0


def build_anchor_pattern(
    fields: list[IdentifiedField],
) -> tuple[re.Pattern[str] | None, dict[str, IdentifiedField]]:
    """One alternation over every escaped anchor, longest first.

    Returns (None, {}) when no field has a usable anchor.
    """
    by_anchor = {f.replacement: f for f in fields if f.replacement}
    if not by_anchor:
        return None, {}

    anchors = sorted(by_anchor, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(a) for a in anchors))
    return pattern, by_anchor


class _TextSpans(HTMLParser):
    """Collects (start, end) source offsets of text outside tags.

    Character references are left unconverted so every data span is a
    verbatim slice of the source.
    """

    def __init__(self, content: str):
        super().__init__(convert_charrefs=False)
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", content)]
        self._skip_depth = 0
        self.spans: list[tuple[int, int]] = []

    def handle_starttag(self, tag, attrs):
        if tag in _SKIP_PARENTS:
            self._skip_depth += 1

    def handle_endtag(self, tag):
        if tag in _SKIP_PARENTS and self._skip_depth:
            self._skip_depth -= 1

    def handle_data(self, data):
        if self._skip_depth:
            return
        line, col = self.getpos()
        start = self._line_starts[line - 1] + col
        self.spans.append((start, start + len(data)))


def inject_placeholders(content: str, fields: list[IdentifiedField], markup: bool = False) -> str:
    """Return content with each anchor followed by ' ' + its placeholder."""
    return _inject(content, fields, markup)[0]


def _inject(content: str, fields: list[IdentifiedField], markup: bool) -> tuple[str, int]:
    pattern, by_anchor = build_anchor_pattern(fields)
    if pattern is None or not content:
        return content, 0

    count = 0

    def _append_placeholder(match: re.Match[str]) -> str:
        nonlocal count
        count += 1
        anchor = match.group(0)
        return f"{anchor} {by_anchor[anchor].placeholder}"

    if not markup:
        return pattern.sub(_append_placeholder, content), count

    parser = _TextSpans(content)
    parser.feed(content)
    parser.close()

    pieces = []
    last = 0
    for start, end in parser.spans:
        pieces.append(content[last:start])
        pieces.append(pattern.sub(_append_placeholder, content[start:end]))
        last = end
    pieces.append(content[last:])

    return "".join(pieces), count


class PlaceholderInjector:
    """One-shot injection guard for a single editing session."""

    def __init__(self):
        self._applied = False

    @property
    def applied(self) -> bool:
        return self._applied

    def reset(self):
        self._applied = False

    def apply(self, content: str, fields: list[IdentifiedField], markup: bool = False) -> InjectionResult:
        if not fields:
            return InjectionResult(InjectionOutcome.NO_FIELDS, content)

        if self._applied:
            logger.info("Placeholders already applied to this document, skipping")
            return InjectionResult(InjectionOutcome.ALREADY_APPLIED, content)

        updated, count = _inject(content, fields, markup)
        self._applied = True
        logger.info("Applied %d placeholder(s) for %d field(s)", count, len(fields))
        return InjectionResult(InjectionOutcome.APPLIED, updated, count)
