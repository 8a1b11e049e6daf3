"""HTTP client for the field brain analysis endpoints."""

import logging
import time

import httpx
from pydantic import ValidationError

from config import settings
from models import AnalyzeResponse, ApplyPlaceholdersResponse, IdentifiedField

logger = logging.getLogger(__name__)


class AnalysisInputError(Exception):
    """The service rejected the request (400: missing document text)."""


class AnalysisFailed(Exception):
    """Analysis failed server-side or the service could not be reached."""


class AnalysisClient:
    def __init__(self, base_url: str | None = None, timeout: float = 300.0):
        self._client = httpx.AsyncClient(
            base_url=(base_url or settings.ANALYSIS_SERVICE_URL).rstrip("/"),
            timeout=timeout,
        )

    async def close(self):
        await self._client.aclose()

    async def analyze(self, document_text: str) -> AnalyzeResponse:
        """POST the text for analysis. Sends x-request-start for latency reporting."""
        started_ms = int(time.time() * 1000)
        resp = await self._post(
            "/api/analyze-document",
            json={"documentText": document_text},
            headers={"x-request-start": str(started_ms)},
        )
        result = _parse(resp, AnalyzeResponse)
        logger.info(
            "Found %d fillable field(s) in %d chunk(s) (%dms)",
            result.metadata.total_fields,
            result.metadata.chunks_processed,
            result.metadata.processing_time,
        )
        return result

    async def apply_placeholders(
        self, document_text: str, fields: list[IdentifiedField], markup: bool = False,
    ) -> str:
        resp = await self._post(
            "/api/apply-placeholders",
            json={
                "documentText": document_text,
                "fields": [f.model_dump(by_alias=True) for f in fields],
                "markup": markup,
            },
        )
        return _parse(resp, ApplyPlaceholdersResponse).new_text

    async def _post(self, path: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._client.post(path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Analysis service request failed: %s", e)
            raise AnalysisFailed(f"Analysis service unreachable: {e}") from e

        if resp.status_code == 400:
            raise AnalysisInputError(_error_message(resp))
        if resp.status_code != 200:
            message = _error_message(resp)
            logger.error("Analysis service error %d: %s", resp.status_code, message)
            raise AnalysisFailed(message)
        return resp


def _error_message(resp: httpx.Response) -> str:
    try:
        return resp.json().get("error") or f"HTTP {resp.status_code}"
    except (ValueError, AttributeError):
        return f"HTTP {resp.status_code}"


def _parse(resp: httpx.Response, model):
    """Validate a 200 body; a malformed one is an analysis failure."""
    try:
        return model.model_validate(resp.json())
    except (ValueError, ValidationError) as e:
        logger.error("Invalid response format from analysis service: %s", e)
        raise AnalysisFailed("Invalid response format") from e
