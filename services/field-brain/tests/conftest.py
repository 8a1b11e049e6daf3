"""Shared test fixtures for field brain tests."""

import json
import sys
from pathlib import Path

import pytest

# Add parent directory to path so we can import the modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from models import FieldCandidate, IdentifiedField  # noqa: E402


def make_candidate(name: str, replacement: str, **overrides) -> FieldCandidate:
    data = {
        "name": name,
        "type": "text",
        "description": f"{name} field",
        "placeholder": f"[[{name.upper()}]]",
        "required": True,
        "replacement": replacement,
    }
    data.update(overrides)
    return FieldCandidate(**data)


def make_field(name: str, replacement: str, **overrides) -> IdentifiedField:
    return IdentifiedField(**make_candidate(name, replacement, **overrides).model_dump())


class StubExtractor:
    """Extraction capability returning fixed candidates per chunk."""

    def __init__(self, by_chunk=None, fail_on: str | None = None, error: Exception | None = None):
        self.by_chunk = by_chunk or {}
        self.fail_on = fail_on
        self.error = error or RuntimeError("extraction failed")
        self.calls: list[str] = []

    async def extract(self, chunk: str):
        self.calls.append(chunk)
        if self.fail_on is not None and self.fail_on in chunk:
            raise self.error
        for needle, candidates in self.by_chunk.items():
            if needle in chunk:
                return candidates
        return []


@pytest.fixture
def sample_form_text() -> str:
    """A short intake form as rendered from a .docx."""
    return (
        "Contact Information Section.\r\n\r\n\r\n"
        "Full Name: ____\n\n"
        "Phone Number: ____\n\n"
        "Email: ____\n\n\n"
        "Emergency Contact Name: ____\tEmergency Contact Phone: ____\n"
        "Date: ____"
    )


@pytest.fixture
def mock_fields_response() -> str:
    """Mock model reply listing two fields."""
    return json.dumps({
        "fields": [
            {
                "name": "full_name",
                "type": "text",
                "description": "User's full name",
                "placeholder": "[[FULL_NAME]]",
                "required": True,
                "replacement": "Full Name:",
            },
            {
                "name": "email",
                "type": "email",
                "description": "User's email address",
                "placeholder": "[[EMAIL]]",
                "required": True,
                "replacement": "Email: john@example.com",
            },
        ]
    })


@pytest.fixture
def mock_markdown_response(mock_fields_response: str) -> str:
    """Mock model reply wrapped in a markdown code fence."""
    return f"```json\n{mock_fields_response}\n```"


@pytest.fixture
def mock_preamble_response(mock_fields_response: str) -> str:
    """Mock model reply with text before the JSON."""
    return f"Here are the fields I found:\n\n{mock_fields_response}"
