"""Integration tests for the `credentials` CLI command."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from livei18n.cli import app
from livei18n.credentials import MemoryCredentialStore


def test_credentials_status_reports_availability(credential_store: MemoryCredentialStore) -> None:
    """Status mode should report the selected customer's key without printing it."""

    credential_store.set_api_key("acme", "very-secret")
    runner = CliRunner()

    acme = runner.invoke(app, ["credentials", "--customer-id", "acme"])
    globex = runner.invoke(app, ["credentials", "--customer-id", "globex"])

    assert acme.exit_code == 0, acme.output
    assert "Secure credential storage: available" in acme.output
    assert "Stored API key for customer `acme`: present" in acme.output
    assert "very-secret" not in acme.output
    assert "Stored API key for customer `globex`: not set" in globex.output


def test_credentials_set_and_clear_are_scoped_to_customer(
    credential_store: MemoryCredentialStore,
) -> None:
    """Set should store a prompted key for one customer; clear should remove only that key."""

    credential_store.set_api_key("globex", "globex-key")
    runner = CliRunner()
    args = ["credentials", "--customer-id", "acme"]

    stored = runner.invoke(app, [*args, "--set-api-key"], input=" typed-key \n")
    assert credential_store.keys == {"acme": "typed-key", "globex": "globex-key"}
    cleared = runner.invoke(app, [*args, "--clear-api-key"])
    cleared_again = runner.invoke(app, [*args, "--clear-api-key"])

    assert stored.exit_code == 0, stored.output
    assert "Stored API key for customer `acme` in secure credential storage." in stored.output
    assert "Cleared stored API key for customer `acme`." in cleared.output
    assert "No stored API key found for customer `acme`." in cleared_again.output
    assert credential_store.keys == {"globex": "globex-key"}


def test_credentials_reads_customer_from_config_or_environment(
    credential_store: MemoryCredentialStore,
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    """The customer id should resolve like `translate` does: YAML first, then environment."""

    config_path = tmp_path / "livei18n.yaml"
    config_path.write_text("customer_id: from-yaml\n", encoding="utf-8")
    runner = CliRunner()

    from_yaml = runner.invoke(
        app,
        ["credentials", "--config", str(config_path), "--set-api-key"],
        input="yaml-key\n",
    )
    monkeypatch.setenv("LIVEI18N_CUSTOMER_ID", "from-env")
    from_env = runner.invoke(app, ["credentials", "--set-api-key"], input="env-key\n")

    assert from_yaml.exit_code == 0, from_yaml.output
    assert from_env.exit_code == 0, from_env.output
    assert credential_store.keys == {"from-yaml": "yaml-key", "from-env": "env-key"}


def test_credentials_rejects_blank_key_conflicting_flags_and_missing_customer(
    credential_store: MemoryCredentialStore,
) -> None:
    """Invalid invocations should fail with stage-aware diagnostics and store nothing."""

    runner = CliRunner()

    blank = runner.invoke(app, ["credentials", "--customer-id", "acme", "--set-api-key"], input="\n")
    conflict = runner.invoke(app, ["credentials", "--set-api-key", "--clear-api-key"])
    no_customer = runner.invoke(app, ["credentials"])

    assert blank.exit_code == 1
    assert "credentials failed at stage `credentials`: No API key entered." in blank.output
    assert conflict.exit_code == 1
    assert "cannot be used together" in conflict.output
    assert no_customer.exit_code == 1
    assert "credentials failed at stage `config`: A customer id is required." in no_customer.output
    assert credential_store.keys == {}


def test_credentials_reports_unavailable_backend(credential_store: MemoryCredentialStore) -> None:
    """A disabled backend should be reported in status mode and fail when storing."""

    credential_store.available = False
    runner = CliRunner()

    status = runner.invoke(app, ["credentials", "--customer-id", "acme"])
    stored = runner.invoke(
        app, ["credentials", "--customer-id", "acme", "--set-api-key"], input="key\n"
    )

    assert "Secure credential storage: unavailable" in status.output
    assert stored.exit_code == 1
    assert "credentials failed at stage `credentials`: Failed to store API key securely" in stored.output
