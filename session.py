"""Processing state machine for a single abstraction session.

IDLE -> PROCESSING -> SUCCESS | ERROR, with at most one extraction in
flight. Hard extraction errors are logged here and collapse to ERROR.
"""

import logging
import threading

from extraction import extract_clinical_data
from llm_client import CompletionClient, ExtractionError
from models import ExtractedData, ExtractionConfig, ProcessingStatus
from presets import custom_fields, default_config

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """A state change was requested that the current status does not allow."""


class ExtractionSession:
    """Holds the active config, processing status and last extracted record."""

    def __init__(self, config: ExtractionConfig | None = None):
        self._lock = threading.Lock()
        self._config = config or default_config()
        self._status = ProcessingStatus.IDLE
        self._data: ExtractedData | None = None

    @property
    def config(self) -> ExtractionConfig:
        return self._config

    @property
    def status(self) -> ProcessingStatus:
        return self._status

    @property
    def data(self) -> ExtractedData | None:
        return self._data

    def update_config(self, config: ExtractionConfig) -> None:
        with self._lock:
            self._config = config

    def begin(self) -> ExtractionConfig:
        """Enter PROCESSING and return the config this extraction must use."""
        with self._lock:
            if self._status == ProcessingStatus.PROCESSING:
                raise InvalidTransitionError("An extraction is already in progress")
            self._status = ProcessingStatus.PROCESSING
            self._data = None
            return self._config

    def succeed(self, data: ExtractedData) -> None:
        with self._lock:
            self._require_processing("succeed")
            self._status = ProcessingStatus.SUCCESS
            self._data = data

    def fail(self) -> None:
        with self._lock:
            self._require_processing("fail")
            self._status = ProcessingStatus.ERROR
            self._data = None

    def clear(self) -> None:
        with self._lock:
            if self._status == ProcessingStatus.PROCESSING:
                raise InvalidTransitionError("Cannot clear while an extraction is in progress")
            self._status = ProcessingStatus.IDLE
            self._data = None

    def _require_processing(self, action: str) -> None:
        if self._status != ProcessingStatus.PROCESSING:
            raise InvalidTransitionError(f"Cannot {action} from {self._status.value}")

    def run(self, note: str, client: CompletionClient) -> ProcessingStatus:
        """Extract a note under this session's config and record the outcome."""
        if not note.strip():
            raise ValueError("Clinical note is empty")

        config = self.begin()
        try:
            data = extract_clinical_data(note, client, custom_fields(config))
        except ExtractionError as e:
            logger.error("Abstraction failed (%s): %s", type(e).__name__, e)
            self.fail()
        except Exception:
            logger.exception("Unexpected error during abstraction")
            self.fail()
            raise
        else:
            self.succeed(data)

        return self._status
