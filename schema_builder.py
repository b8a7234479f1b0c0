"""JSON Schema construction for the completion request.

The default "Injury Surveillance" schema is fixed; custom configurations are
turned into a strict object schema one property per field, in field order.
"""

import copy
from typing import Any, Sequence

from models import MISSING_INFORMATION_KEY, FieldDescriptor

MISSING_INFORMATION_DESCRIPTION = (
    "List of the exact JSON property keys that were missing or could not be confidently extracted."
)

DEFAULT_INJURY_PROPERTIES: dict[str, dict[str, Any]] = {
    "visitDate": {"type": "string", "description": "Date of the hospital visit (YYYY-MM-DD) or 'Not Specified'"},
    "visitTime": {"type": "string", "description": "Time of arrival/visit or 'Not Specified'"},
    "patientAge": {"type": "string", "description": "Age of the patient or 'Not Specified'"},
    "patientGender": {"type": "string", "description": "Gender of the patient or 'Not Specified'"},
    "incidentLocation": {"type": "string", "description": "Where the injury/incident occurred (e.g. Home, Highway)"},
    "injuryMechanism": {"type": "string", "description": "How the injury happened (e.g. Fall, MVA, Poisoning)"},
    "intent": {
        "type": "string",
        "description": "Intent of injury (e.g. Unintentional, Self-harm, Assault, Undetermined)",
    },
    "diagnoses": {
        "type": "array",
        "items": {"type": "string"},
        "description": "List of confirmed clinical diagnoses for THIS ENCOUNTER only. Exclude past medical history.",
    },
    "disposition": {"type": "string", "description": "Discharge status (e.g. Discharged to home, Admitted, Transferred)"},
    "briefSummary": {
        "type": "string",
        "description": "A concise 2-sentence summary of the clinical narrative for research coding purposes.",
    },
    MISSING_INFORMATION_KEY: {
        "type": "array",
        "items": {"type": "string"},
        "description": (
            "List of the exact JSON property keys (e.g. 'patientAge', 'visitTime', 'intent') "
            "that were missing or could not be confidently extracted from the text."
        ),
    },
}

DEFAULT_INJURY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": DEFAULT_INJURY_PROPERTIES,
    "required": list(DEFAULT_INJURY_PROPERTIES),
    "additionalProperties": False,
}


def _property_for(field: FieldDescriptor) -> dict[str, Any]:
    if field.type == "array":
        return {"type": "array", "items": {"type": "string"}, "description": field.description}
    if field.type == "boolean":
        return {"type": "boolean", "description": field.description}
    # string, date and anything unrecognized
    return {"type": "string", "description": field.description}


def generate_schema(fields: Sequence[FieldDescriptor]) -> dict[str, Any]:
    """Build a strict object schema requiring every field plus missingInformation.

    Duplicate keys are not rejected: the later field's property replaces the
    earlier one, and the key appears in ``required`` once per occurrence.
    """
    properties: dict[str, Any] = {}
    required: list[str] = []

    for field in fields:
        properties[field.key] = _property_for(field)
        required.append(field.key)

    properties[MISSING_INFORMATION_KEY] = {
        "type": "array",
        "items": {"type": "string"},
        "description": MISSING_INFORMATION_DESCRIPTION,
    }
    required.append(MISSING_INFORMATION_KEY)

    return {
        "type": "object",
        "properties": properties,
        "required": required,
        "additionalProperties": False,
    }


def select_schema(fields: Sequence[FieldDescriptor] | None) -> tuple[dict[str, Any], bool]:
    """Return (schema, is_custom). No fields means the default injury schema."""
    if fields:
        return generate_schema(fields), True
    return copy.deepcopy(DEFAULT_INJURY_SCHEMA), False
