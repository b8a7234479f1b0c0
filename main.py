"""FastAPI abstraction service: session config, extraction, rendering, exports.

Holds one in-memory session per process. Schemas are never persisted.
PHI: note text is never logged or written to disk.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel

from config import settings
from exporting import CSV_MEDIA_TYPE, JSON_MEDIA_TYPE, csv_filename, json_filename, to_csv, to_json
from llm_client import CompletionClient
from models import (
    AddFieldRequest,
    ExtractedData,
    ExtractionConfig,
    ExtractRequest,
    FieldValidationError,
    PresetInfo,
    ProcessingStatus,
)
from presets import PRESET_NAMES, PRESETS, add_field, custom_fields, default_config, load_preset, remove_field
from rendering import ResultView, render_result
from schema_builder import select_schema
from session import ExtractionSession, InvalidTransitionError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_client: CompletionClient | None = None
_session = ExtractionSession()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the completion client on startup."""
    global _client

    if not settings.API_KEY:
        logger.warning("API_KEY is empty; completion requests will be rejected upstream")

    logger.info("Using completion endpoint %s (model=%s)", settings.COMPLETIONS_URL, settings.MODEL_ID)
    _client = CompletionClient()

    yield

    _client.close()
    _client = None


app = FastAPI(title="AutoAbstract", version="1.0.0", lifespan=lifespan)


def get_client() -> CompletionClient:
    if _client is None:
        raise HTTPException(status_code=503, detail="Completion client is not initialized")
    return _client


def get_session() -> ExtractionSession:
    return _session


class ResultResponse(BaseModel):
    status: ProcessingStatus
    data: ExtractedData | None = None
    view: ResultView


def _result(session: ExtractionSession) -> ResultResponse:
    view = render_result(session.data, session.status, session.config.is_custom)
    return ResultResponse(status=session.status, data=session.data, view=view)


@app.get("/health")
async def health():
    return {"status": "healthy", "model": settings.MODEL_ID}


# --- schema configuration ---


@app.get("/api/v1/presets", response_model=list[PresetInfo])
async def list_presets():
    return [PresetInfo(key=key, name=PRESET_NAMES[key], fields=list(fields)) for key, fields in PRESETS.items()]


@app.get("/api/v1/config", response_model=ExtractionConfig)
async def get_config(session: ExtractionSession = Depends(get_session)):
    return session.config


@app.post("/api/v1/config/fields", response_model=ExtractionConfig)
async def create_field(req: AddFieldRequest, session: ExtractionSession = Depends(get_session)):
    try:
        config = add_field(session.config, req.key, req.description, req.type.value)
    except FieldValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    session.update_config(config)
    return config


@app.delete("/api/v1/config/fields/{field_id}", response_model=ExtractionConfig)
async def delete_field(field_id: str, session: ExtractionSession = Depends(get_session)):
    if not any(f.id == field_id for f in session.config.fields):
        raise HTTPException(status_code=404, detail=f"Unknown field id: {field_id}")
    config = remove_field(session.config, field_id)
    session.update_config(config)
    return config


@app.post("/api/v1/config/presets/{preset_key}", response_model=ExtractionConfig)
async def apply_preset(preset_key: str, session: ExtractionSession = Depends(get_session)):
    try:
        config = load_preset(preset_key)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=f"Unknown preset: {preset_key}") from e
    session.update_config(config)
    return config


@app.post("/api/v1/config/reset", response_model=ExtractionConfig)
async def reset_config(session: ExtractionSession = Depends(get_session)):
    config = default_config()
    session.update_config(config)
    return config


@app.get("/api/v1/schema")
async def get_schema(session: ExtractionSession = Depends(get_session)) -> dict[str, Any]:
    """The JSON Schema the next extraction will request."""
    schema, _ = select_schema(custom_fields(session.config))
    return schema


# --- extraction ---


@app.post("/api/v1/extract", response_model=ResultResponse)
def extract(
    req: ExtractRequest,
    session: ExtractionSession = Depends(get_session),
    client: CompletionClient = Depends(get_client),
):
    """Abstract structured fields from a clinical note."""
    if not req.note.strip():
        raise HTTPException(status_code=422, detail="Clinical note is empty")

    try:
        session.run(req.note, client)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    return _result(session)


@app.get("/api/v1/result", response_model=ResultResponse)
async def get_result(session: ExtractionSession = Depends(get_session)):
    return _result(session)


@app.post("/api/v1/clear", response_model=ResultResponse)
async def clear(session: ExtractionSession = Depends(get_session)):
    try:
        session.clear()
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return _result(session)


# --- exports ---


def _require_data(session: ExtractionSession) -> ExtractedData:
    if session.status != ProcessingStatus.SUCCESS or session.data is None:
        raise HTTPException(status_code=404, detail="No extraction result to export")
    return session.data


@app.get("/api/v1/export/json")
async def export_json(session: ExtractionSession = Depends(get_session)):
    data = _require_data(session)
    return Response(
        content=to_json(data),
        media_type=JSON_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{json_filename()}"'},
    )


@app.get("/api/v1/export/csv")
async def export_csv(session: ExtractionSession = Depends(get_session)):
    data = _require_data(session)
    return Response(
        content=to_csv(data),
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{csv_filename()}"'},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
