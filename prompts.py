"""Prompt assembly for clinical note abstraction.

The rule preamble forbids invented facts and scopes diagnoses to the current
encounter; the schema is embedded verbatim so the model can mirror it.
"""

import json
from typing import Any

BASE_INSTRUCTION = """You are an expert clinical data abstraction assistant.

CRITICAL RULES:
1. NO HALLUCINATIONS: If the input text does not explicitly state a fact or diagnosis, do NOT generate one. Return "Not Specified" or an empty list.
2. SOURCE OF TRUTH: Only extract facts present in the text. Do not infer details that are not written.
3. DIAGNOSES EXTRACTION RULES:
   - ONLY extract diagnoses established, addressed, or treated during THIS specific clinical encounter.
   - STRICTLY EXCLUDE Past Medical History (PMH).
   - STRICTLY EXCLUDE chronic conditions listed under "History", "PMH", or "Past History" unless they are the primary reason for the current visit.
   - STRICTLY EXCLUDE "History of..." items (e.g., "History of appendectomy", "History of hypertension").
   - Just extract the name of the diagnosis as a string (e.g., "Fracture of distal radius")."""

CUSTOM_ADDENDUM = "Extract the specific fields defined in the schema. Return 'Not Specified' for missing string data."

DEFAULT_ADDENDUM = "Extract standard injury surveillance data."

_OUTPUT_INSTRUCTION = (
    "You must respond with ONLY valid JSON matching this exact schema "
    "(no additional text, no markdown, no explanations):"
)


def build_prompt(note: str, schema: dict[str, Any], is_custom: bool) -> str:
    """Concatenate rules, schema addendum, the note and the serialized schema."""
    addendum = CUSTOM_ADDENDUM if is_custom else DEFAULT_ADDENDUM
    instruction = f"{BASE_INSTRUCTION}\n{addendum}"

    return (
        f"{instruction}\n\n"
        f"CLINICAL NOTE:\n{note}\n\n"
        f"{_OUTPUT_INSTRUCTION}\n"
        f"{json.dumps(schema, indent=2)}"
    )
