"""Per-customer API-key storage.

LiveI18n keys are issued per customer id, so each key is stored under its own
keyring account: service `livei18n`, account `<customer_id>`. A machine can
hold keys for several customers and `LiveI18nConfig.resolved_api_key` reads
the one matching the configured customer.

Key types:
- `CredentialStore`: protocol shared by the keyring and in-memory stores.
- `KeyringCredentialStore`: OS-backed storage through `keyring`.
- `MemoryCredentialStore`: process-local storage for tests and embedding.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .errors import CredentialStoreError
from .parsing import normalize_optional_string

KEYRING_SERVICE = "livei18n"


class CredentialStore(Protocol):
    """API-key storage keyed by customer id."""

    def is_available(self) -> bool:
        """Return whether keys can be read and written."""

    def get_api_key(self, customer_id: str) -> str | None:
        """Return the stored key for `customer_id`, if any."""

    def set_api_key(self, customer_id: str, api_key: str) -> None:
        """Store `api_key` for `customer_id`, replacing any previous key."""

    def clear_api_key(self, customer_id: str) -> bool:
        """Delete the key for `customer_id` and return whether one existed."""


def _account_name(customer_id: str) -> str:
    account = normalize_optional_string(customer_id)
    if account is None:
        raise ValueError("A customer id is required to address stored API keys.")
    return account


def _normalized_api_key(api_key: str) -> str:
    normalized = normalize_optional_string(api_key)
    if normalized is None:
        raise ValueError("API key must be a non-empty string.")
    return normalized


@dataclass(slots=True)
class KeyringCredentialStore:
    """Credential store backed by the active `keyring` backend."""

    service_name: str = KEYRING_SERVICE

    def is_available(self) -> bool:
        """Return `False` when only the null (`fail`) keyring backend is configured."""

        return getattr(keyring.get_keyring(), "priority", 0) > 0

    def get_api_key(self, customer_id: str) -> str | None:
        account = _account_name(customer_id)
        if not self.is_available():
            return None
        try:
            value = keyring.get_password(self.service_name, account)
        except KeyringError as exc:
            raise CredentialStoreError(
                f"Failed to read the API key for customer `{account}`: {exc}"
            ) from exc
        return normalize_optional_string(value)

    def set_api_key(self, customer_id: str, api_key: str) -> None:
        account = _account_name(customer_id)
        normalized = _normalized_api_key(api_key)
        if not self.is_available():
            raise CredentialStoreError(
                "Secure credential storage is unavailable because no keyring backend "
                "is configured."
            )
        try:
            keyring.set_password(self.service_name, account, normalized)
        except KeyringError as exc:
            raise CredentialStoreError(
                f"Failed to store the API key for customer `{account}`: {exc}"
            ) from exc

    def clear_api_key(self, customer_id: str) -> bool:
        account = _account_name(customer_id)
        if not self.is_available():
            return False
        try:
            keyring.delete_password(self.service_name, account)
        except PasswordDeleteError:
            return False
        except KeyringError as exc:
            raise CredentialStoreError(
                f"Failed to clear the API key for customer `{account}`: {exc}"
            ) from exc
        return True


@dataclass(slots=True)
class MemoryCredentialStore:
    """Credential store holding keys in a dict for the life of the process."""

    keys: dict[str, str] = field(default_factory=dict)
    available: bool = True

    def is_available(self) -> bool:
        return self.available

    def get_api_key(self, customer_id: str) -> str | None:
        return self.keys.get(_account_name(customer_id))

    def set_api_key(self, customer_id: str, api_key: str) -> None:
        account = _account_name(customer_id)
        normalized = _normalized_api_key(api_key)
        if not self.available:
            raise CredentialStoreError("In-memory credential storage is disabled.")
        self.keys[account] = normalized

    def clear_api_key(self, customer_id: str) -> bool:
        return self.keys.pop(_account_name(customer_id), None) is not None


def create_credential_store() -> CredentialStore:
    """Create the default keyring-backed credential store."""

    return KeyringCredentialStore()
