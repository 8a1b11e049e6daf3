"""Document-editing session: render, analyze, inject placeholders.

One FieldManager per open document view. Closing it (or leaving its
``with`` block) always runs cache eviction, which keeps the shared
DocumentCache bounded.
"""

import logging
from collections.abc import Awaitable, Callable

from analysis_client import AnalysisFailed, AnalysisInputError
from config import settings
from debounce import Debouncer
from document_cache import DocumentCache
from injection import InjectionResult, PlaceholderInjector
from models import AnalyzeResponse, IdentifiedField

logger = logging.getLogger(__name__)

Analyzer = Callable[[str], Awaitable[AnalyzeResponse]]


class FieldManager:
    def __init__(
        self,
        cache: DocumentCache,
        analyzer: Analyzer,
        debounce_seconds: float = settings.DEBOUNCE_SECONDS,
    ):
        self._cache = cache
        self._analyzer = analyzer
        self._injector = PlaceholderInjector()
        self._debouncer = Debouncer(self._analyze_and_log, debounce_seconds)
        self.document_text = ""
        self.fields: list[IdentifiedField] = []
        self.last_error: str | None = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def placeholders_applied(self) -> bool:
        return self._injector.applied

    def load_document(self, file_name: str, data: bytes) -> str:
        """Render (or fetch from cache) the document and start a fresh session for it."""
        self.document_text = self._cache.get_text(file_name, data)
        self.fields = []
        self._injector.reset()
        return self.document_text

    async def analyze(self) -> AnalyzeResponse:
        """Analyze the loaded document now and replace the field list."""
        if not self.document_text:
            raise AnalysisInputError("Please upload a document first")

        result = await self._analyzer(self.document_text)
        self.fields = list(result.fields)
        self.last_error = None
        return result

    def request_analysis(self):
        """Debounced analyze; returns the timer task of this request."""
        return self._debouncer()

    async def wait_for_analysis(self):
        await self._debouncer.drain()

    async def _analyze_and_log(self) -> AnalyzeResponse | None:
        try:
            return await self.analyze()
        except (AnalysisInputError, AnalysisFailed) as e:
            self.last_error = str(e)
            logger.error("Failed to analyze document for fillable fields: %s", e)
            return None

    def apply_placeholders(self, content: str, markup: bool = False) -> InjectionResult:
        """Inject placeholders into rendered content, at most once per session."""
        return self._injector.apply(content, self.fields, markup=markup)

    def close(self):
        self._debouncer.cancel()
        self._cache.evict()
