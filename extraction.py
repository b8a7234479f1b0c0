"""Extraction orchestrator: select schema, build prompt, call model, parse JSON.

The parsed reply is returned as-is. It is not validated against the
requested schema; renderers tolerate missing and extra keys.
"""

import json
import logging
import re
from typing import Sequence

from llm_client import CompletionClient, MalformedJSONError
from models import ExtractedData, FieldDescriptor
from prompts import build_prompt
from schema_builder import select_schema

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```$")


def extract_clinical_data(
    note: str,
    client: CompletionClient,
    fields: Sequence[FieldDescriptor] | None = None,
) -> ExtractedData:
    """Run one extraction round trip for a clinical note.

    Raises an ExtractionError subclass on any failure.
    """
    schema, is_custom = select_schema(fields)
    prompt = build_prompt(note, schema, is_custom)

    # Log sizes only, never note content
    logger.info(
        "Extracting: schema=%s fields=%d note_chars=%d",
        "custom" if is_custom else "default",
        len(schema["properties"]),
        len(note),
    )

    content = client.complete(prompt)
    data = parse_completion(content)

    logger.info("Extraction returned %d keys", len(data))
    return data


def strip_code_fence(text: str) -> str:
    """Trim and remove a surrounding ``` fence, with or without a language tag."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
        cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_completion(text: str) -> ExtractedData:
    """Parse the model's reply into a record, stripping code fences first."""
    cleaned = strip_code_fence(text)
    try:
        result = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning("Could not parse JSON from model response: %s", cleaned[:200])
        raise MalformedJSONError(cleaned, str(e)) from e

    if not isinstance(result, dict):
        logger.warning("Model response is JSON but not an object: %s", type(result).__name__)
        raise MalformedJSONError(cleaned, f"expected a JSON object, got {type(result).__name__}")

    return result
