"""Pydantic models for field descriptors, extraction configs and API payloads."""

import itertools
import re
import time
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# The model's reply has no fixed shape; every consumer treats it as open.
ExtractedData = dict[str, Any]

MISSING_INFORMATION_KEY = "missingInformation"

_id_counter = itertools.count(1)


class FieldType(str, Enum):
    STRING = "string"
    ARRAY = "array"
    BOOLEAN = "boolean"
    DATE = "date"


class ProcessingStatus(str, Enum):
    IDLE = "IDLE"
    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class FieldValidationError(ValueError):
    """A user-authored field cannot be turned into a descriptor."""


def normalize_key(raw: str) -> str:
    """Convert free text like "Blood Pressure!!" to a snake_case key."""
    key = raw.lower()
    key = re.sub(r"\s+", "_", key.strip())
    return re.sub(r"[^a-z0-9_]", "", key)


def new_field_id() -> str:
    """Millisecond timestamp plus a process-wide counter, unique per session."""
    return f"{int(time.time() * 1000)}-{next(_id_counter)}"


class FieldDescriptor(BaseModel):
    """One user-defined output property of a custom schema."""

    model_config = ConfigDict(frozen=True)

    id: str
    key: str
    description: str
    # Kept as a plain string so unrecognized types still reach the schema builder.
    type: str = FieldType.STRING.value

    @classmethod
    def create(cls, raw_key: str, description: str, field_type: str = "string") -> "FieldDescriptor":
        """Validate user input and build a descriptor with a fresh id."""
        if not raw_key.strip() or not description.strip():
            raise FieldValidationError("Field name and description are both required")

        key = normalize_key(raw_key)
        if not key:
            raise FieldValidationError(f"Field name {raw_key!r} has no usable characters")

        if isinstance(field_type, FieldType):
            field_type = field_type.value
        return cls(id=new_field_id(), key=key, description=description, type=field_type)


class ExtractionConfig(BaseModel):
    """The active schema configuration. Replaced wholesale, never mutated."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    is_custom: bool = Field(default=False, alias="isCustom")
    fields: tuple[FieldDescriptor, ...] = ()


# --- API payloads ---


class AddFieldRequest(BaseModel):
    key: str
    description: str
    type: FieldType = FieldType.STRING


class ExtractRequest(BaseModel):
    note: str


class PresetInfo(BaseModel):
    key: str
    name: str
    fields: list[FieldDescriptor]
