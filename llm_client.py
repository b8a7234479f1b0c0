"""HTTP client for the hosted chat-completion service.

Uses httpx with no timeout unless one is configured. Each call is exactly one request:
failures are classified and raised, never retried.
"""

import logging

import httpx

from config import DEFAULT_APP_NAME, DEFAULT_SITE_URL, settings

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """Base class for every hard failure of an extraction."""


class TransportError(ExtractionError):
    """The request could not be completed (connection, timeout, protocol)."""


class UpstreamStatusError(ExtractionError):
    """The completion service answered with a non-success status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Completion API error: {status_code} - {body}")
        self.status_code = status_code
        self.body = body


class EmptyResponseError(ExtractionError):
    """The service succeeded but returned no usable completion text."""


class MalformedJSONError(ExtractionError):
    """The completion text did not parse as JSON."""

    def __init__(self, text: str, detail: str):
        super().__init__(f"Model reply is not valid JSON: {detail}")
        self.text = text
        self.detail = detail


class CompletionClient:
    """Single-shot client for an OpenAI-compatible completions endpoint."""

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        site_url: str | None = None,
        app_name: str | None = None,
        temperature: float | None = None,
        seed: int | None = None,
        timeout: float | None = None,
    ):
        self._url = url or settings.COMPLETIONS_URL
        self._model = model or settings.MODEL_ID
        self._temperature = temperature if temperature is not None else settings.TEMPERATURE
        self._seed = seed if seed is not None else settings.SEED

        key = api_key if api_key is not None else settings.API_KEY
        self._headers = {
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
            "HTTP-Referer": site_url or settings.YOUR_SITE_URL or DEFAULT_SITE_URL,
            "X-Title": app_name or settings.YOUR_APP_NAME or DEFAULT_APP_NAME,
        }

        # None = no timeout; httpx would otherwise apply 5s to every phase
        timeout_s = timeout if timeout is not None else settings.COMPLETION_TIMEOUT_SECONDS
        self._client = httpx.Client(timeout=httpx.Timeout(timeout_s))

    def close(self):
        self._client.close()

    def build_payload(self, prompt: str) -> dict:
        return {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self._temperature,
            "seed": self._seed,
        }

    def complete(self, prompt: str) -> str:
        """Send one prompt and return the first completion's text.

        Raises TransportError, UpstreamStatusError or EmptyResponseError.
        """
        try:
            resp = self._client.post(self._url, json=self.build_payload(prompt), headers=self._headers)
        except httpx.HTTPError as e:
            logger.error("Completion request failed: %s", e)
            raise TransportError(f"Completion request failed: {e}") from e

        if not resp.is_success:
            logger.error("Completion API error %d: %s", resp.status_code, resp.text[:500])
            raise UpstreamStatusError(resp.status_code, resp.text)

        try:
            data = resp.json()
        except ValueError as e:
            raise EmptyResponseError("Empty or invalid response from model") from e

        content = _first_content(data)
        if not content:
            logger.warning("Completion response had no message content")
            raise EmptyResponseError("Empty or invalid response from model")

        return content


def _first_content(data) -> str | None:
    """Return choices[0].message.content if it is a string, else None."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None
