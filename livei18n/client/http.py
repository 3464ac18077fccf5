"""LiveI18n HTTP transport.

Responsibilities:
- Send individual, batch, and feedback requests to the LiveI18n REST API.
- Decode and validate response payloads into typed records.
- Raise `TranslationError` with status metadata so callers can classify retries.

Calls are synchronous (`requests`); the gateway runs them off the event loop.
"""

from __future__ import annotations

import json
import re
import socket
from typing import Any

import requests

from ..errors import TranslationError
from ..models.datatypes import BatchTranslationResponse, TranslationResponse

DEFAULT_ENDPOINT = "https://api.livei18n.com"
TRANSLATE_PATH = "/api/v1/translate"
BATCH_TRANSLATE_PATH = "/api/v1/translate/batch"
FEEDBACK_PATH = "/api/v1/feedback"


class LiveI18nHTTPClient:
    """Minimal requests-based client for the LiveI18n translation API."""

    _MAX_BACKEND_MESSAGE_CHARS = 180

    def __init__(
        self,
        *,
        api_key: str | None,
        customer_id: str,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout_seconds: float = 10.0,
    ) -> None:
        """Initialize API credentials and HTTP settings."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.customer_id = customer_id
        self.endpoint = endpoint.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def translate(
        self,
        payload: dict[str, str],
        timeout_seconds: float | None = None,
    ) -> TranslationResponse:
        """POST one translation request and return the decoded response.

        `timeout_seconds` can only shorten the configured request timeout.
        """

        return TranslationResponse.from_payload(
            self._post_json(
                endpoint_path=TRANSLATE_PATH,
                payload=payload,
                timeout_seconds=timeout_seconds,
            )
        )

    def translate_batch(self, requests_payload: list[dict[str, str]]) -> BatchTranslationResponse:
        """POST a batch of translation requests and return the decoded response."""

        return BatchTranslationResponse.from_payload(
            self._post_json(
                endpoint_path=BATCH_TRANSLATE_PATH,
                payload={"requests": requests_payload},
            )
        )

    def submit_feedback(self, payload: dict[str, Any]) -> None:
        """POST translation feedback; any non-2xx response raises `TranslationError`."""

        self._post_json(endpoint_path=FEEDBACK_PATH, payload=payload, expect_body=False)

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-API-Key": self.api_key,
            "X-Customer-ID": self.customer_id,
        }

    def _post_json(
        self,
        *,
        endpoint_path: str,
        payload: dict[str, Any],
        expect_body: bool = True,
        timeout_seconds: float | None = None,
    ) -> Any:
        """Execute a JSON POST request and map failures consistently."""

        url = f"{self.endpoint}{endpoint_path}"
        timeout = self.timeout_seconds
        if timeout_seconds is not None:
            timeout = min(timeout, timeout_seconds)
        try:
            response = requests.post(
                url,
                headers=self._headers(),
                json=payload,
                timeout=timeout,
            )
            response.raise_for_status()
            response_bytes = bytes(response.content)
        except requests.HTTPError as exc:
            raise self._http_error_to_translation_error(exc) from exc
        except requests.RequestException as exc:
            failure_kind = self._classify_transport_failure(exc)
            if failure_kind == "timeout":
                detail = "LiveI18n request timed out."
            else:
                detail = f"LiveI18n request transport error: {self._short_message(str(exc))}"
            raise TranslationError(detail, failure_kind=failure_kind) from exc
        except TimeoutError as exc:
            raise TranslationError("LiveI18n request timed out.", failure_kind="timeout") from exc

        if not expect_body:
            return None
        try:
            return json.loads(response_bytes.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise TranslationError(
                "LiveI18n returned an invalid JSON payload.",
                failure_kind="invalid_response",
            ) from exc

    @staticmethod
    def _decode_error_body(exc: requests.HTTPError) -> str:
        """Decode an HTTP error body into a best-effort UTF-8 payload string."""

        response = exc.response
        if response is None:
            return ""
        try:
            return bytes(response.content).decode("utf-8", errors="replace").strip()
        except (TypeError, ValueError):
            return ""

    @classmethod
    def _redact_sensitive_tokens(cls, text: str) -> str:
        """Redact API-key-like tokens from backend error content."""

        return re.sub(
            r"(?i)(x-api-key|api[_-]?key)([\"':= ]+)[A-Za-z0-9._-]{8,}",
            r"\1\2[redacted-key]",
            text,
        )

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing backend message length."""

        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_BACKEND_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_BACKEND_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _extract_backend_message(cls, body: str) -> str:
        """Extract a concise message from a JSON (`error`/`message`/`detail`) or text body."""

        if not body:
            return ""
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(cls._redact_sensitive_tokens(body))

        message: str | None = None
        if isinstance(payload, dict):
            for field_name in ("error", "message", "detail"):
                value = payload.get(field_name)
                if isinstance(value, dict):
                    value = value.get("message")
                if isinstance(value, str) and value.strip():
                    message = value.strip()
                    break
        if message is None:
            message = body
        return cls._short_message(cls._redact_sensitive_tokens(message))

    @staticmethod
    def _classify_http_failure(status_code: int) -> str:
        """Classify HTTP status codes into retry-relevant failure kinds."""

        if status_code in {408, 504}:
            return "timeout"
        if 400 <= status_code < 500:
            return "validation"
        return "http_error"

    @staticmethod
    def _classify_transport_failure(reason: object) -> str:
        """Classify network-layer failures into deterministic failure kinds."""

        if isinstance(reason, TimeoutError | socket.timeout | requests.Timeout):
            return "timeout"
        return "transport"

    @classmethod
    def _http_error_to_translation_error(cls, exc: requests.HTTPError) -> TranslationError:
        """Convert HTTP errors into translation errors carrying the status code."""

        status_code = exc.response.status_code if exc.response is not None else 0
        backend_message = cls._extract_backend_message(cls._decode_error_body(exc))
        if backend_message:
            detail = f"LiveI18n API error (HTTP {status_code}): {backend_message}"
        else:
            detail = f"LiveI18n API error (HTTP {status_code})."
        return TranslationError(
            detail,
            status_code=status_code or None,
            failure_kind=cls._classify_http_failure(status_code),
        )
