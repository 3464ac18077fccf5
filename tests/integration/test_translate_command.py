"""Integration tests for the `translate` CLI command over a mocked HTTP backend."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import requests
from typer.testing import CliRunner

from livei18n.cli import app
from livei18n.credentials import MemoryCredentialStore


class _MockRequestsResponse:
    """Minimal requests response mock for HTTP transport patching."""

    def __init__(self, *, payload: object, status_code: int = 200) -> None:
        """Initialize response with a JSON-serializable payload and HTTP status."""

        self.content = json.dumps(payload).encode("utf-8")
        self.status_code = status_code

    def raise_for_status(self) -> None:
        """Raise HTTPError when the response status represents a failure."""

        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code} error", response=self)


class _RecordingBackend:
    """Fake LiveI18n backend answering individual and batch requests."""

    def __init__(self, status_code: int = 200) -> None:
        """Initialize call log and the status code returned for every call."""

        self.status_code = status_code
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def post(self, url: str, **kwargs: Any) -> _MockRequestsResponse:
        """Record the call and answer like the translation API."""

        body = kwargs["json"]
        assert isinstance(body, dict)
        self.calls.append((url, kwargs))
        if self.status_code >= 400:
            return _MockRequestsResponse(payload={"error": "rejected"}, status_code=self.status_code)
        if url.endswith("/api/v1/translate/batch"):
            return _MockRequestsResponse(
                payload={
                    "responses": [
                        {
                            "cache_key": item["cache_key"],
                            "translated": f"{item['text']} ({item['locale']})",
                            "confidence": 0.9,
                        }
                        for item in body["requests"]
                    ]
                }
            )
        return _MockRequestsResponse(
            payload={"translated": f"{body['text']} ({body['locale']})", "confidence": 0.9}
        )


@pytest.fixture
def backend(monkeypatch: pytest.MonkeyPatch) -> _RecordingBackend:
    """Route `requests.post` to a recording fake backend."""

    fake = _RecordingBackend()
    monkeypatch.setattr("livei18n.client.http.requests.post", fake.post)
    return fake


def test_translate_individual_request_prints_translation(
    backend: _RecordingBackend, credential_store: MemoryCredentialStore
) -> None:
    """Individual mode should print the placeholder, then the translated text."""

    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "translate",
            "Hello world",
            "--customer-id",
            "acme",
            "--api-key",
            "cli-key",
            "--language",
            "de-DE",
            "--tone",
            "friendly",
            "--endpoint",
            "https://api.example.test",
            "--no-batch",
            "--memory-only",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "[progress] ••••• •••••" in result.output
    assert result.output.rstrip().endswith("Hello world (de-DE)")
    url, kwargs = backend.calls[0]
    assert url == "https://api.example.test/api/v1/translate"
    assert kwargs["headers"]["X-API-Key"] == "cli-key"
    assert kwargs["headers"]["X-Customer-ID"] == "acme"
    assert kwargs["json"]["tone"] == "friendly"
    assert credential_store.keys == {}


def test_translate_batches_by_default(
    backend: _RecordingBackend,
    credential_store: MemoryCredentialStore,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Without `--no-batch`, the miss should be sent through the batch endpoint."""

    monkeypatch.setenv("LIVEI18N_API_KEY", "env-key")
    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "translate",
            "Good morning",
            "--customer-id",
            "acme",
            "--language",
            "fr-FR",
            "--memory-only",
            "--loading-pattern",
            "none",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "[progress]" not in result.output
    assert result.output.rstrip().endswith("Good morning (fr-FR)")
    url, kwargs = backend.calls[0]
    assert url == "https://api.livei18n.com/api/v1/translate/batch"
    assert kwargs["headers"]["X-API-Key"] == "env-key"


def test_translate_uses_the_customers_stored_key_and_can_store_new_one(
    backend: _RecordingBackend,
    credential_store: MemoryCredentialStore,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Only the key stored for the requested customer should beat the environment key."""

    monkeypatch.setenv("LIVEI18N_API_KEY", "env-key")
    credential_store.set_api_key("acme", "acme-key")
    runner = CliRunner()
    base_args = ["translate", "Hi", "--language", "cs-CZ", "--memory-only"]

    acme = runner.invoke(app, [*base_args, "--customer-id", "acme"])
    globex = runner.invoke(app, [*base_args, "--customer-id", "globex"])
    stored = runner.invoke(
        app,
        [*base_args, "--customer-id", "globex", "--api-key", "new-key", "--store-api-key"],
    )

    assert acme.exit_code == 0, acme.output
    assert globex.exit_code == 0, globex.output
    assert stored.exit_code == 0, stored.output
    assert [kwargs["headers"]["X-API-Key"] for _, kwargs in backend.calls] == [
        "acme-key",
        "env-key",
        "new-key",
    ]
    assert backend.calls[1][1]["headers"]["X-Customer-ID"] == "globex"
    assert credential_store.keys == {"acme": "acme-key", "globex": "new-key"}
    assert "Stored API key for customer `globex` in secure credential storage." in stored.output


def test_translate_falls_back_to_original_text_on_rejection(
    backend: _RecordingBackend, credential_store: MemoryCredentialStore
) -> None:
    """A rejected request should still exit cleanly and print the source text."""

    backend.status_code = 400
    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "translate",
            "Checkout",
            "--customer-id",
            "acme",
            "--api-key",
            "key",
            "--language",
            "de-DE",
            "--memory-only",
            "--no-batch",
        ],
    )

    assert result.exit_code == 0, result.output
    assert result.output.rstrip().endswith("Checkout")
    assert len(backend.calls) == 1


def test_translate_reuses_persistent_cache_and_cache_commands(
    backend: _RecordingBackend, credential_store: MemoryCredentialStore, tmp_path: Path
) -> None:
    """Translations should persist across runs and be visible to cache maintenance commands."""

    cache_dir = tmp_path / "cache"
    runner = CliRunner()
    args = [
        "translate",
        "Welcome",
        "--customer-id",
        "acme",
        "--api-key",
        "key",
        "--language",
        "es-ES",
        "--cache-dir",
        str(cache_dir),
    ]

    first = runner.invoke(app, args)
    second = runner.invoke(app, args)
    stats = runner.invoke(app, ["cache-stats", "--cache-dir", str(cache_dir)])
    cleared = runner.invoke(app, ["clear-cache", "--cache-dir", str(cache_dir)])
    stats_after = runner.invoke(app, ["cache-stats", "--cache-dir", str(cache_dir)])

    assert first.exit_code == 0, first.output
    assert second.output.rstrip().endswith("Welcome (es-ES)")
    assert len(backend.calls) == 1
    assert stats.exit_code == 0, stats.output
    assert "Cache entries: 1/500" in stats.output
    assert "Persistent cache: available" in stats.output
    assert cleared.exit_code == 0, cleared.output
    assert f"Cleared translation cache in {cache_dir}" in cleared.output
    assert "Cache entries: 0/500" in stats_after.output
    assert list(cache_dir.iterdir()) == []
