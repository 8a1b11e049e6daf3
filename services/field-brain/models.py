"""Pydantic models for the analysis API and the fields it returns."""

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

FIELD_TYPES = ("text", "number", "date", "email", "phone", "address", "checkbox")

Confidence = Literal["high", "low"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldCandidate(_CamelModel):
    """A field as proposed by the extraction capability, before merge."""

    name: str
    type: str
    description: str = ""
    placeholder: str
    required: bool = False
    replacement: str


class IdentifiedField(FieldCandidate):
    """A merged, validated field. Never mutated; use model_copy(update=...)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    confidence: Confidence = "high"
    original_type: str | None = None
    relationships: list[str] = []


class AnalyzeRequest(_CamelModel):
    document_text: str | None = None


class AnalysisMetadata(_CamelModel):
    total_fields: int
    processing_time: int
    chunks_processed: int
    chunk_processing_time: int | None = None
    merge_time: int | None = None
    average_chunk_time: int | None = None


class AnalyzeResponse(_CamelModel):
    fields: list[IdentifiedField]
    metadata: AnalysisMetadata


class ApplyPlaceholdersRequest(_CamelModel):
    document_text: str | None = None
    fields: list[IdentifiedField] | None = None
    markup: bool = False


class ApplyPlaceholdersResponse(_CamelModel):
    new_text: str


class ErrorResponse(BaseModel):
    error: str
