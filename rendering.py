"""Result rendering: turn an extracted record into a display view.

The default injury schema gets a fixed layout; custom schemas get a generic
layout that partitions keys into scalar cards and full-width list/object
blocks. Both flag fields the model listed in ``missingInformation``.
"""

import json
from typing import Any, Literal, Union

from pydantic import BaseModel

from models import MISSING_INFORMATION_KEY, ExtractedData, ProcessingStatus

NOT_AVAILABLE = "N/A"
EMPTY_LIST = "None"
NO_DIAGNOSES = "No specific diagnoses extracted."
BANNER_TITLE = "Missing Information Detected"
BANNER_SEPARATOR = ", "


class FieldView(BaseModel):
    key: str
    label: str
    value: str
    is_missing: bool = False
    highlight: bool = False


class SectionView(BaseModel):
    title: str
    fields: list[FieldView]


class ListBlockView(BaseModel):
    key: str
    label: str
    items: list[str]
    is_missing: bool = False
    placeholder: str | None = None  # set when there are no items


class TextBlockView(BaseModel):
    key: str
    label: str
    text: str
    is_missing: bool = False


class DefaultLayoutView(BaseModel):
    kind: Literal["default"] = "default"
    summary: TextBlockView
    sections: list[SectionView]
    diagnoses: ListBlockView


class GenericLayoutView(BaseModel):
    kind: Literal["generic"] = "generic"
    simple_fields: list[FieldView]
    complex_fields: list[Union[ListBlockView, TextBlockView]]


class MissingBanner(BaseModel):
    title: str = BANNER_TITLE
    keys: list[str]
    message: str


class ResultView(BaseModel):
    status: ProcessingStatus
    title: str
    message: str | None = None
    can_retry: bool = False
    banner: MissingBanner | None = None
    layout: Union[DefaultLayoutView, GenericLayoutView, None] = None


def compact_json(value: Any) -> str:
    """Serialize like JSON.stringify: no whitespace between tokens."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def humanize_key(key: str) -> str:
    """``follow_up_instructions`` -> ``Follow Up Instructions``."""
    words = key.replace("_", " ").split(" ")
    return " ".join(w[:1].upper() + w[1:] for w in words)


def missing_keys(data: ExtractedData) -> list[str]:
    missing = data.get(MISSING_INFORMATION_KEY)
    if not isinstance(missing, list):
        return []
    return [m if isinstance(m, str) else compact_json(m) for m in missing]


def is_field_missing(data: ExtractedData, key: str) -> bool:
    """True if ``missingInformation`` names ``key``, compared case-insensitively."""
    missing = data.get(MISSING_INFORMATION_KEY)
    if not isinstance(missing, list):
        return False
    wanted = key.lower()
    return any(isinstance(m, str) and m.lower() == wanted for m in missing)


def missing_banner(data: ExtractedData) -> MissingBanner | None:
    keys = missing_keys(data)
    if not keys:
        return None
    joined = BANNER_SEPARATOR.join(keys)
    return MissingBanner(
        keys=keys,
        message=f"The following fields could not be confidently extracted: {joined}",
    )


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if value is None or value == "":
        return NOT_AVAILABLE
    if isinstance(value, (dict, list)):
        return compact_json(value)
    return str(value)


def _item_text(item: Any) -> str:
    return item if isinstance(item, str) else compact_json(item)


# --- default injury layout ---


def _field(data: ExtractedData, key: str, label: str, highlight: bool = False) -> FieldView:
    return FieldView(
        key=key,
        label=label,
        value=_scalar_text(data.get(key)),
        is_missing=is_field_missing(data, key),
        highlight=highlight,
    )


def _diagnosis_items(value: Any) -> list[str]:
    if isinstance(value, list):
        return [_item_text(v) for v in value]
    if isinstance(value, str) and value.strip():
        return [value]
    return []


def render_default_layout(data: ExtractedData) -> DefaultLayoutView:
    summary = data.get("briefSummary")
    diagnoses = _diagnosis_items(data.get("diagnoses"))

    return DefaultLayoutView(
        summary=TextBlockView(
            key="briefSummary",
            label="Brief Summary",
            text=_scalar_text(summary),
            is_missing=is_field_missing(data, "briefSummary"),
        ),
        sections=[
            SectionView(title="Visit Info", fields=[
                _field(data, "visitDate", "Date"),
                _field(data, "visitTime", "Time"),
                _field(data, "disposition", "Disposition"),
            ]),
            SectionView(title="Patient", fields=[
                _field(data, "patientAge", "Age"),
                _field(data, "patientGender", "Gender"),
            ]),
            SectionView(title="Incident Characteristics", fields=[
                _field(data, "incidentLocation", "Location"),
                _field(data, "injuryMechanism", "Mechanism"),
                _field(data, "intent", "Intent", highlight=True),
            ]),
        ],
        diagnoses=ListBlockView(
            key="diagnoses",
            label="Diagnoses",
            items=diagnoses,
            is_missing=is_field_missing(data, "diagnoses"),
            placeholder=None if diagnoses else NO_DIAGNOSES,
        ),
    )


# --- generic layout ---


def partition_keys(data: ExtractedData) -> tuple[list[str], list[str]]:
    """Split keys (minus missingInformation) into scalar and list/object keys."""
    simple, complex_ = [], []
    for key, value in data.items():
        if key == MISSING_INFORMATION_KEY:
            continue
        if isinstance(value, (list, dict)):
            complex_.append(key)
        else:
            simple.append(key)
    return simple, complex_


def _complex_block(data: ExtractedData, key: str) -> Union[ListBlockView, TextBlockView]:
    value = data[key]
    missing = is_field_missing(data, key)
    label = humanize_key(key)

    if isinstance(value, list):
        items = [_item_text(v) for v in value]
        return ListBlockView(
            key=key,
            label=label,
            items=items,
            is_missing=missing,
            placeholder=None if items else EMPTY_LIST,
        )

    return TextBlockView(key=key, label=label, text=json.dumps(value, indent=2, ensure_ascii=False), is_missing=missing)


def render_generic_layout(data: ExtractedData) -> GenericLayoutView:
    simple, complex_ = partition_keys(data)

    return GenericLayoutView(
        simple_fields=[
            FieldView(
                key=key,
                label=humanize_key(key),
                value=_scalar_text(data[key]),
                is_missing=is_field_missing(data, key),
            )
            for key in simple
        ],
        complex_fields=[_complex_block(data, key) for key in complex_],
    )


# --- top level ---


def render_result(
    data: ExtractedData | None,
    status: ProcessingStatus,
    schema_is_custom: bool,
) -> ResultView:
    """Build the view for the current session state."""
    if status == ProcessingStatus.IDLE:
        if schema_is_custom:
            message = "Configure your schema and submit a clinical note to abstract custom fields."
        else:
            message = "Submit a clinical note to abstract structured research data."
        return ResultView(status=status, title="Ready to Abstract", message=message)

    if status == ProcessingStatus.PROCESSING:
        return ResultView(status=status, title="Abstracting", message="Analyzing the clinical note...")

    if status == ProcessingStatus.ERROR:
        return ResultView(
            status=status,
            title="Abstraction Failed",
            message="There was an error processing the clinical note. Please try again.",
            can_retry=True,
        )

    title = "Custom Abstraction" if schema_is_custom else "Structured Output"
    if data is None:
        return ResultView(status=status, title=title)

    layout = render_generic_layout(data) if schema_is_custom else render_default_layout(data)
    return ResultView(status=status, title=title, banner=missing_banner(data), layout=layout)


def _flag(is_missing: bool) -> str:
    return " [!]" if is_missing else ""


def _block_lines(block: Union[ListBlockView, TextBlockView]) -> list[str]:
    lines = [f"{block.label}{_flag(block.is_missing)}"]
    if isinstance(block, TextBlockView):
        lines.extend(f"  {line}" for line in block.text.splitlines())
    elif block.items:
        lines.extend(f"  - {item}" for item in block.items)
    else:
        lines.append(f"  {block.placeholder}")
    return lines


def render_text(view: ResultView) -> str:
    """Plain-text rendering of a view, for terminals and logs."""
    lines = [view.title]
    if view.message:
        lines.append(view.message)

    if view.banner:
        lines.append(f"! {view.banner.title}: {BANNER_SEPARATOR.join(view.banner.keys)}")

    layout = view.layout
    if isinstance(layout, DefaultLayoutView):
        lines.extend(_block_lines(layout.summary))
        for section in layout.sections:
            lines.append(section.title)
            lines.extend(f"  {f.label}: {f.value}{_flag(f.is_missing)}" for f in section.fields)
        lines.extend(_block_lines(layout.diagnoses))
    elif isinstance(layout, GenericLayoutView):
        lines.extend(f"{f.label}: {f.value}{_flag(f.is_missing)}" for f in layout.simple_fields)
        for block in layout.complex_fields:
            lines.extend(_block_lines(block))

    return "\n".join(lines)
