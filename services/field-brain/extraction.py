"""Extraction orchestrator: normalize, chunk, fan out, merge, validate, link.

The extraction capability is anything with an async ``extract(chunk)``
returning field candidates. Every chunk call runs concurrently and the
batch is all-or-nothing: one failing chunk fails the analysis.
"""

import asyncio
import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from chunking import chunk_text
from llm_client import LLMClient, LLMServiceError, LLMServiceUnavailable
from merging import merge_candidates
from models import AnalysisMetadata, FieldCandidate, IdentifiedField
from preprocessing import normalize_text
from prompts import SYSTEM_PROMPT, build_extraction_prompt
from relationships import link_related_fields
from validation import FieldValidator

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """The analysis failed; no partial result is available."""


class MalformedExtractionError(ExtractionError):
    """The extraction capability returned output that is not a field list."""


class FieldExtractor(Protocol):
    async def extract(self, chunk: str) -> list[FieldCandidate]: ...


@dataclass
class AnalysisResult:
    fields: list[IdentifiedField]
    metadata: AnalysisMetadata


class LLMExtractor:
    """Extraction capability backed by a chat-completions model."""

    def __init__(self, client: LLMClient):
        self._client = client

    async def extract(self, chunk: str) -> list[FieldCandidate]:
        raw = await self._client.complete(SYSTEM_PROMPT, build_extraction_prompt(chunk))
        return parse_candidates(raw)


# Canned candidates for local development without a model endpoint.
MOCK_CANDIDATES: list[dict] = [
    {"name": "full_name", "type": "text", "description": "User's full name",
     "placeholder": "[[FULL_NAME]]", "required": True, "replacement": "Full Name:"},
    {"name": "address", "type": "address", "description": "User's complete address",
     "placeholder": "[[ADDRESS]]", "required": True, "replacement": "Address:"},
    {"name": "phone_number", "type": "phone", "description": "User's phone number",
     "placeholder": "[[PHONE_NUMBER]]", "required": True, "replacement": "Phone Number:"},
    {"name": "email", "type": "email", "description": "User's email address",
     "placeholder": "[[EMAIL]]", "required": True, "replacement": "Email:"},
    {"name": "comments", "type": "text", "description": "Additional comments from the user",
     "placeholder": "[[COMMENTS]]", "required": False, "replacement": "Comments:"},
    {"name": "agree_terms", "type": "checkbox", "description": "Checkbox to agree to terms and conditions",
     "placeholder": "[[AGREE_TERMS]]", "required": True, "replacement": "Agree to Terms and Conditions"},
    {"name": "subscribe_newsletter", "type": "checkbox", "description": "Checkbox to subscribe to the newsletter",
     "placeholder": "[[SUBSCRIBE_NEWSLETTER]]", "required": False, "replacement": "Subscribe to Newsletter"},
    {"name": "signature", "type": "text", "description": "User's signature",
     "placeholder": "[[SIGNATURE]]", "required": True, "replacement": "Signature:"},
    {"name": "signature_date", "type": "date", "description": "Date the document is signed",
     "placeholder": "[[SIGNATURE_DATE]]", "required": True, "replacement": "Date:"},
]


class MockExtractor:
    """Returns the canned candidates whose anchors occur in the chunk."""

    def __init__(self, candidates: list[dict] | None = None):
        self._candidates = [FieldCandidate(**c) for c in (MOCK_CANDIDATES if candidates is None else candidates)]

    async def extract(self, chunk: str) -> list[FieldCandidate]:
        return [c for c in self._candidates if c.replacement in chunk]


async def dispatch_chunks(
    chunks: list[str],
    extractor: FieldExtractor,
) -> tuple[list[list[FieldCandidate]], list[float]]:
    """Run the extractor on every chunk concurrently.

    Returns (per-chunk candidates, per-chunk seconds), both in chunk order.
    The first failure cancels the remaining calls and raises ExtractionError.
    """
    durations = [0.0] * len(chunks)

    async def _run(index: int, chunk: str) -> list[FieldCandidate]:
        start = time.monotonic()
        try:
            return await extractor.extract(chunk)
        finally:
            durations[index] = time.monotonic() - start

    tasks = [asyncio.create_task(_run(i, chunk)) for i, chunk in enumerate(chunks)]
    try:
        results = await asyncio.gather(*tasks)
    except ExtractionError:
        _cancel_pending(tasks)
        raise
    except (LLMServiceUnavailable, LLMServiceError) as e:
        _cancel_pending(tasks)
        raise ExtractionError(f"Extraction capability failed: {e}") from e
    except Exception as e:
        _cancel_pending(tasks)
        logger.error("Unexpected extractor failure: %s", e)
        raise ExtractionError(f"Extraction failed: {e}") from e

    return list(results), durations


def _cancel_pending(tasks: list[asyncio.Task]) -> None:
    cancelled = 0
    for task in tasks:
        if not task.done():
            task.cancel()
            cancelled += 1
    if cancelled:
        logger.warning("Chunk extraction failed, cancelled %d pending chunk call(s)", cancelled)


async def analyze_document(
    document_text: str,
    extractor: FieldExtractor,
    max_chunk_chars: int,
    validator: FieldValidator | None = None,
) -> AnalysisResult:
    """Run the full pipeline on raw document text.

    Raises ValueError for empty text and ExtractionError for any capability
    or merge failure.
    """
    start = time.monotonic()

    text = normalize_text(document_text)
    if not text:
        raise ValueError("Document text is required")

    chunks = chunk_text(text, max_chunk_chars)
    logger.info("Analyzing document: %d chars in %d chunk(s)", len(text), len(chunks))

    chunk_start = time.monotonic()
    chunk_results, durations = await dispatch_chunks(chunks, extractor)
    chunk_ms = _ms(time.monotonic() - chunk_start)

    merge_start = time.monotonic()
    try:
        merged = merge_candidates(chunk_results)
        fields = (validator or FieldValidator()).validate_all(merged)
        fields = link_related_fields(fields)
    except Exception as e:
        logger.error("Merging extraction results failed: %s", e)
        raise ExtractionError(f"Merge failed: {e}") from e
    merge_ms = _ms(time.monotonic() - merge_start)

    metadata = AnalysisMetadata(
        total_fields=len(fields),
        processing_time=_ms(time.monotonic() - start),
        chunks_processed=len(chunks),
        chunk_processing_time=chunk_ms,
        merge_time=merge_ms,
        average_chunk_time=_ms(sum(durations) / len(durations)) if durations else 0,
    )
    logger.info(
        "Analysis complete: %d field(s) from %d chunk(s) in %dms",
        metadata.total_fields, metadata.chunks_processed, metadata.processing_time,
    )
    return AnalysisResult(fields=fields, metadata=metadata)


def _ms(seconds: float) -> int:
    return int(seconds * 1000)


def parse_candidates(raw: str) -> list[FieldCandidate]:
    """Convert model output into candidates.

    Accepts {"fields": [...]} or a bare list. Anything else raises
    MalformedExtractionError.
    """
    parsed = try_parse_json(raw)
    if isinstance(parsed, dict):
        items = parsed.get("fields")
    else:
        items = parsed

    if not isinstance(items, list):
        raise MalformedExtractionError("Model output has no field list")

    try:
        return [FieldCandidate.model_validate(item) for item in items]
    except ValidationError as e:
        raise MalformedExtractionError(f"Invalid field candidate: {e.error_count()} error(s)") from e


def try_parse_json(raw: str) -> dict | list | None:
    """Try to extract a JSON object or array from the model output.

    Handles: direct JSON, markdown fences, preamble text, and
    <think>...</think> blocks.
    """
    if not raw:
        return None

    cleaned = re.sub(r"<think>.*?</think>", "", raw, flags=re.DOTALL).strip()

    # Try direct parse first
    try:
        result = json.loads(cleaned)
        if isinstance(result, (dict, list)):
            return result
    except json.JSONDecodeError:
        pass

    # Try to find JSON block in markdown code fences
    match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", cleaned, re.DOTALL)
    if match:
        try:
            result = json.loads(match.group(1).strip())
            if isinstance(result, (dict, list)):
                return result
        except json.JSONDecodeError:
            pass

    # Try the outermost { ... } span
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start != -1 and end > start:
        try:
            result = json.loads(cleaned[start:end + 1])
            if isinstance(result, dict):
                return result
        except json.JSONDecodeError:
            pass

    logger.warning("Could not parse JSON from model response (%d chars)", len(cleaned))
    return None
