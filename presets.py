"""Built-in field presets and pure config-editing operations.

Every operation returns a new ExtractionConfig; callers swap the whole value.
"""

from models import ExtractionConfig, FieldDescriptor


def _fields(*specs: tuple[str, str, str]) -> tuple[FieldDescriptor, ...]:
    return tuple(
        FieldDescriptor(id=str(i), key=key, type=field_type, description=description)
        for i, (key, field_type, description) in enumerate(specs, start=1)
    )


PRESET_NAMES: dict[str, str] = {
    "er_injury_surveillance": "ER Injury Surveillance",
    "medication_reconciliation": "Meds Recon",
    "billing_coding": "Billing Support",
    "discharge_summary": "Discharge Summary",
}

PRESETS: dict[str, tuple[FieldDescriptor, ...]] = {
    "er_injury_surveillance": _fields(
        ("visit_date", "string", "Date of the hospital visit (YYYY-MM-DD)"),
        ("visit_time", "string", "Time of arrival/visit"),
        ("patient_age", "string", "Age of the patient"),
        ("patient_gender", "string", "Gender of the patient"),
        ("incident_location", "string", "Where the injury/incident occurred"),
        ("injury_mechanism", "string", "How the injury happened (e.g. Fall, MVA)"),
        ("intent", "string", "Intent of injury (Unintentional, Self-harm, Assault)"),
        ("diagnoses", "array", "List of clinical diagnoses found in the text"),
        ("disposition", "string", "Discharge status"),
        ("brief_summary", "string", "Concise 2-sentence summary of the clinical narrative"),
    ),
    "medication_reconciliation": _fields(
        ("medications_list", "array", "List of all current medications including dosage"),
        ("allergies", "array", "List of patient allergies"),
        ("pharmacy_info", "string", "Patient preferred pharmacy details"),
        ("compliance_issues", "string", "Any notes regarding medication non-compliance"),
        ("changes_made", "array", "List of medications changed or added during this visit"),
    ),
    "billing_coding": _fields(
        ("primary_diagnosis", "string", "Primary diagnosis for billing"),
        ("cpt_codes", "array", "Potential CPT codes supported by the documentation"),
        ("mdm_level", "string", "Medical Decision Making level (Straightforward, Low, Moderate, High)"),
        ("procedures_performed", "array", "List of procedures performed during visit"),
        ("critical_care_time", "string", "Total critical care time documented, if any"),
    ),
    "discharge_summary": _fields(
        ("admission_diagnosis", "string", "Diagnosis at time of admission"),
        ("discharge_diagnosis", "string", "Final diagnosis at time of discharge"),
        ("hospital_course", "string", "Brief narrative of the hospital stay"),
        ("discharge_medications", "array", "List of medications prescribed at discharge"),
        ("follow_up_instructions", "string", "Instructions for follow-up appointments and care"),
    ),
}


def default_config() -> ExtractionConfig:
    return ExtractionConfig(id="default", name="Injury Surveillance", is_custom=False, fields=())


def load_preset(preset_key: str) -> ExtractionConfig:
    """Replace all fields with a named preset. Raises KeyError for unknown keys."""
    fields = PRESETS[preset_key]
    return ExtractionConfig(id=preset_key, name=PRESET_NAMES[preset_key], is_custom=True, fields=fields)


def add_field(
    config: ExtractionConfig,
    raw_key: str,
    description: str,
    field_type: str = "string",
) -> ExtractionConfig:
    """Append a validated field; raises FieldValidationError on bad input."""
    field = FieldDescriptor.create(raw_key, description, field_type)
    return config.model_copy(update={"is_custom": True, "fields": (*config.fields, field)})


def remove_field(config: ExtractionConfig, field_id: str) -> ExtractionConfig:
    remaining = tuple(f for f in config.fields if f.id != field_id)
    return config.model_copy(update={"is_custom": True, "fields": remaining})


def custom_fields(config: ExtractionConfig) -> tuple[FieldDescriptor, ...] | None:
    """Fields to send with an extraction, or None to request the default schema."""
    return config.fields if config.is_custom else None
