"""Shared test fixtures for the abstraction service tests."""

import json
import sys
from pathlib import Path

import pytest

# Add parent directory to path so we can import the modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from models import FieldDescriptor  # noqa: E402


@pytest.fixture
def injury_record() -> dict:
    """Model reply for the default injury surveillance schema."""
    return {
        "visitDate": "2024-01-01",
        "visitTime": "14:30",
        "patientAge": "12",
        "patientGender": "Male",
        "incidentLocation": "Street",
        "injuryMechanism": "Fall from bicycle",
        "intent": "Not Specified",
        "diagnoses": ["Concussion"],
        "disposition": "Discharged to home",
        "briefSummary": "12-year-old male fell off his bicycle without a helmet. Brief loss of consciousness.",
        "missingInformation": ["intent"],
    }


@pytest.fixture
def injury_reply(injury_record: dict) -> str:
    return json.dumps(injury_record)


@pytest.fixture
def allergy_field() -> FieldDescriptor:
    return FieldDescriptor(id="1", key="allergies", type="array", description="List of patient allergies")


@pytest.fixture
def mixed_fields() -> list[FieldDescriptor]:
    return [
        FieldDescriptor(id="1", key="blood_pressure", type="string", description="Initial BP reading"),
        FieldDescriptor(id="2", key="medications", type="array", description="Current medications"),
        FieldDescriptor(id="3", key="smoker", type="boolean", description="Is the patient a smoker"),
        FieldDescriptor(id="4", key="visit_date", type="date", description="Date of visit"),
    ]


@pytest.fixture
def completion_body():
    """Factory for a chat-completion response body wrapping message content."""

    def _make(content) -> dict:
        return {"choices": [{"message": {"role": "assistant", "content": content}}]}

    return _make
