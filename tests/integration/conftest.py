"""Integration-test fixtures isolating the CLI from host credentials and environment."""

from __future__ import annotations

import pytest

from livei18n.credentials import MemoryCredentialStore


@pytest.fixture
def credential_store(monkeypatch: pytest.MonkeyPatch) -> MemoryCredentialStore:
    """Replace the keyring-backed store and clear `LIVEI18N_*` variables for each test."""

    for name in ("LIVEI18N_API_KEY", "LIVEI18N_CUSTOMER_ID"):
        monkeypatch.delenv(name, raising=False)
    store = MemoryCredentialStore()
    monkeypatch.setattr("livei18n.cli.create_credential_store", lambda: store)
    return store
