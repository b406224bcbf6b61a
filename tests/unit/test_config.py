"""Unit tests for settings."""

import os

import pytest
from pydantic import ValidationError

from ai_proxy.app.config import DEFAULT_ALLOWED_ORIGINS, Settings


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.appwrite_database_id == "main_database"
    assert settings.users_collection_id == "users"
    assert settings.restaurants_collection_id == "restaurants"
    assert settings.default_model == "claude-3-5-sonnet-20241022"
    assert settings.default_max_tokens == 2000
    assert settings.allowed_origins == DEFAULT_ALLOWED_ORIGINS
    assert settings.reject_unknown_origins is True
    assert settings.auth_mode == "header"
    assert settings.claude_api_key is None
    assert settings.document_store_configured is False


def test_no_settings_leak_in_from_environment() -> None:
    """Test that no shell variable can override a setting during the test run."""
    settings_env = {name.upper() for name in Settings.model_fields}

    assert not settings_env & {name.upper() for name in os.environ}

    settings = Settings(_env_file=None)
    assert settings.anthropic_base_url == "https://api.anthropic.com"

def test_loaded_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APPWRITE_FUNCTION_API_ENDPOINT", "https://cloud.appwrite.io/v1")
    monkeypatch.setenv("APPWRITE_FUNCTION_PROJECT_ID", "proj")
    monkeypatch.setenv("APPWRITE_API_KEY", "secret")
    monkeypatch.setenv("CLAUDE_API_KEY", "sk-ant-xyz")
    monkeypatch.setenv("ALLOWED_ORIGINS", '["https://a.example", "https://b.example"]')

    settings = Settings(_env_file=None)

    assert settings.document_store_configured is True
    assert settings.claude_api_key is not None
    assert settings.claude_api_key.get_secret_value() == "sk-ant-xyz"
    assert settings.allowed_origins == ("https://a.example", "https://b.example")


def test_secrets_are_masked_in_repr(settings_factory) -> None:
    settings = settings_factory(claude_api_key="sk-ant-very-secret")

    assert "sk-ant-very-secret" not in repr(settings)


def test_settings_are_immutable(settings_factory) -> None:
    settings = settings_factory()

    with pytest.raises(ValidationError):
        settings.default_model = "other"  # type: ignore[misc]


def test_invalid_auth_mode_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, auth_mode="basic")  # type: ignore[arg-type]
