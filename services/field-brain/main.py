"""FastAPI field brain service: extraction orchestrator for fillable fields.

Handles normalization, chunking, merge, validation and relationship
inference. Delegates field proposal to an LLM endpoint (or canned mock
candidates in local dev). Document text is never logged, only its size.
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Header
from fastapi.responses import JSONResponse

from config import settings
from extraction import ExtractionError, FieldExtractor, LLMExtractor, MockExtractor, analyze_document
from injection import inject_placeholders
from llm_client import LLMClient
from models import AnalyzeRequest, AnalyzeResponse, ApplyPlaceholdersRequest, ApplyPlaceholdersResponse
from validation import FieldValidator

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_llm_client: LLMClient | None = None
_extractor: FieldExtractor | None = None
_extraction_mode: str = "disabled"
_validator = FieldValidator(strict=settings.STRICT_VALIDATION)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Pick the extraction capability on startup."""
    global _llm_client, _extractor, _extraction_mode

    if settings.USE_MOCK_EXTRACTION:
        logger.info("Using mock extraction (USE_MOCK_EXTRACTION=true)")
        _extractor = MockExtractor()
        _extraction_mode = "mock"
    elif not settings.LLM_BASE_URL:
        logger.info("LLM endpoint not configured (LLM_BASE_URL is empty) - field extraction disabled")
        _extraction_mode = "disabled"
    else:
        logger.info("Using LLM endpoint at %s (model=%s)", settings.LLM_BASE_URL, settings.LLM_MODEL)
        _llm_client = LLMClient()
        _extractor = LLMExtractor(_llm_client)
        _extraction_mode = "llm"

    yield

    if _llm_client is not None:
        await _llm_client.close()
    _llm_client = None
    _extractor = None
    _extraction_mode = "disabled"


app = FastAPI(title="Field Brain", version="1.0.0", lifespan=lifespan)


@app.post("/api/analyze-document", response_model=AnalyzeResponse)
async def analyze(
    request: AnalyzeRequest,
    x_request_start: str | None = Header(default=None),
):
    """Identify fillable fields in document text."""
    if not request.document_text or not request.document_text.strip():
        return JSONResponse(status_code=400, content={"error": "Document text is required"})

    if _extractor is None:
        return JSONResponse(
            status_code=503,
            content={"error": "Field extraction is not available - no LLM endpoint configured"},
        )

    logger.info("Processing analysis: size=%d chars", len(request.document_text))

    try:
        result = await analyze_document(
            request.document_text,
            _extractor,
            max_chunk_chars=settings.MAX_CHUNK_CHARS,
            validator=_validator,
        )
    except ExtractionError:
        logger.exception("Error analyzing document")
        return JSONResponse(status_code=500, content={"error": "Failed to analyze document"})

    _log_round_trip(x_request_start)
    return AnalyzeResponse(fields=result.fields, metadata=result.metadata)


@app.post("/api/apply-placeholders", response_model=ApplyPlaceholdersResponse)
async def apply_placeholders(request: ApplyPlaceholdersRequest):
    """Insert each field's placeholder after its anchor text."""
    if not request.document_text or request.fields is None:
        return JSONResponse(status_code=400, content={"error": "Document text and fields are required"})

    new_text = inject_placeholders(request.document_text, request.fields, markup=request.markup)
    return ApplyPlaceholdersResponse(new_text=new_text)


@app.get("/health")
async def health():
    """Return service status and extraction availability."""
    base = {
        "status": "healthy",
        "extraction_available": _extractor is not None,
        "extraction_mode": _extraction_mode,
    }

    if _llm_client is not None:
        base["llm_health"] = await _llm_client.health()

    return base


def _log_round_trip(request_start: str | None) -> None:
    """Log latency from the client's x-request-start marker (epoch ms)."""
    if not request_start:
        return
    try:
        started_ms = int(request_start)
    except ValueError:
        logger.debug("Ignoring malformed x-request-start header")
        return
    logger.info("Round trip so far: %dms", int(time.time() * 1000) - started_ms)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
