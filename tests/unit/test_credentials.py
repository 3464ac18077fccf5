"""Unit tests for per-customer API-key storage."""

from __future__ import annotations

import pytest
from keyring.errors import KeyringError, PasswordDeleteError

from livei18n.credentials import (
    KEYRING_SERVICE,
    KeyringCredentialStore,
    MemoryCredentialStore,
    create_credential_store,
)
from livei18n.errors import CredentialStoreError


class _Backend:
    def __init__(self, priority: float) -> None:
        self.priority = priority


class FakeKeyring:
    """Stand-in for the `keyring` module API, keyed by (service, account)."""

    def __init__(self, priority: float = 1, fail_reads: bool = False) -> None:
        self.passwords: dict[tuple[str, str], str] = {}
        self._backend = _Backend(priority)
        self._fail_reads = fail_reads

    def get_keyring(self) -> _Backend:
        return self._backend

    def get_password(self, service_name: str, account_name: str) -> str | None:
        if self._fail_reads:
            raise KeyringError("locked collection")
        return self.passwords.get((service_name, account_name))

    def set_password(self, service_name: str, account_name: str, value: str) -> None:
        self.passwords[(service_name, account_name)] = value

    def delete_password(self, service_name: str, account_name: str) -> None:
        if (service_name, account_name) not in self.passwords:
            raise PasswordDeleteError("Password not found")
        del self.passwords[(service_name, account_name)]


@pytest.fixture
def fake_keyring(monkeypatch: pytest.MonkeyPatch) -> FakeKeyring:
    fake = FakeKeyring()
    monkeypatch.setattr("livei18n.credentials.keyring", fake)
    return fake


def test_keyring_store_keeps_one_entry_per_customer(fake_keyring: FakeKeyring) -> None:
    """Keys should be stored under the customer id as the keyring account name."""

    store = KeyringCredentialStore()

    store.set_api_key(" acme ", "  acme-key  ")
    store.set_api_key("globex", "globex-key")

    assert fake_keyring.passwords == {
        (KEYRING_SERVICE, "acme"): "acme-key",
        (KEYRING_SERVICE, "globex"): "globex-key",
    }
    assert store.get_api_key("acme") == "acme-key"
    assert store.get_api_key("initech") is None


def test_keyring_store_clear_reports_missing_entries(fake_keyring: FakeKeyring) -> None:
    """Clearing should delete only the selected customer and report absent entries as `False`."""

    store = KeyringCredentialStore()
    store.set_api_key("acme", "acme-key")
    store.set_api_key("globex", "globex-key")

    assert store.clear_api_key("acme") is True
    assert store.clear_api_key("acme") is False
    assert store.get_api_key("globex") == "globex-key"


def test_keyring_store_rejects_blank_customer_and_key(fake_keyring: FakeKeyring) -> None:
    store = KeyringCredentialStore()

    with pytest.raises(ValueError, match="customer id"):
        store.get_api_key("  ")
    with pytest.raises(ValueError, match="non-empty"):
        store.set_api_key("acme", "   ")
    assert fake_keyring.passwords == {}


def test_keyring_store_with_fail_backend_is_unavailable(monkeypatch: pytest.MonkeyPatch) -> None:
    """A zero-priority (fail) backend should read as empty and refuse writes."""

    monkeypatch.setattr("livei18n.credentials.keyring", FakeKeyring(priority=0))
    store = KeyringCredentialStore()

    assert store.is_available() is False
    assert store.get_api_key("acme") is None
    assert store.clear_api_key("acme") is False
    with pytest.raises(CredentialStoreError, match="no keyring backend"):
        store.set_api_key("acme", "acme-key")


def test_keyring_backend_errors_are_wrapped(monkeypatch: pytest.MonkeyPatch) -> None:
    """Backend read failures should surface as `CredentialStoreError` naming the customer."""

    monkeypatch.setattr("livei18n.credentials.keyring", FakeKeyring(fail_reads=True))

    with pytest.raises(CredentialStoreError, match="customer `acme`"):
        KeyringCredentialStore().get_api_key("acme")


def test_memory_store_matches_keyring_semantics() -> None:
    store = MemoryCredentialStore()

    store.set_api_key("acme", " key ")

    assert store.get_api_key(" acme ") == "key"
    assert store.clear_api_key("acme") is True
    assert store.clear_api_key("acme") is False
    store.available = False
    with pytest.raises(CredentialStoreError):
        store.set_api_key("acme", "key")


def test_create_credential_store_uses_livei18n_service() -> None:
    store = create_credential_store()

    assert isinstance(store, KeyringCredentialStore)
    assert store.service_name == "livei18n"
