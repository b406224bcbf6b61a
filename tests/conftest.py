"""Shared pytest fixtures for all test suites."""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ai_proxy.app.config import Settings
from ai_proxy.app.db.inmemory import InMemoryDocumentStore
from ai_proxy.app.llm.client import AnthropicClient
from ai_proxy.app.main import create_app

OWNER_ID = "user-owner"
TENANT_ID = "rest-1"
TEST_API_KEY = "sk-ant-test-key"

CLAUDE_SUCCESS = {
    "id": "msg_01",
    "type": "message",
    "role": "assistant",
    "model": "claude-3-5-sonnet-20241022",
    "content": [{"type": "text", "text": "Sales look healthy."}],
    "stop_reason": "end_turn",
    "usage": {"input_tokens": 12, "output_tokens": 5},
}


class UpstreamRecorder:
    """Mock Anthropic endpoint that records every request it receives."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body: Any = CLAUDE_SUCCESS
        self.raw_content: bytes | None = None
        self.error: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.raw_content is not None:
            return httpx.Response(self.status_code, content=self.raw_content)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the environment and any .env file."""
    values: dict[str, Any] = {
        "appwrite_function_api_endpoint": "https://appwrite.test/v1",
        "appwrite_function_project_id": "project-1",
        "appwrite_api_key": "appwrite-key",
        "claude_api_key": TEST_API_KEY,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def seed_store(store: InMemoryDocumentStore) -> InMemoryDocumentStore:
    """Owner with a paid plan and one restaurant with AI analytics enabled."""
    store.put_document("users", OWNER_ID, {"email": "owner@example.com", "subscription": "growth"})
    store.put_document(
        "restaurants",
        TENANT_ID,
        {
            "name": "Luigi's Trattoria",
            "ownerId": OWNER_ID,
            "settings": '{"aiAnalyticsEnabled": true}',
        },
    )
    return store


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return seed_store(InMemoryDocumentStore())


@pytest.fixture
def upstream() -> UpstreamRecorder:
    return UpstreamRecorder()


@pytest.fixture
def build_app(
    store: InMemoryDocumentStore, upstream: UpstreamRecorder
) -> Callable[..., FastAPI]:
    """Factory for an app wired to the in-memory store and mock upstream."""

    def _build(settings: Settings | None = None, **kwargs: Any) -> FastAPI:
        settings = settings or make_settings()
        inference_client = AnthropicClient.from_settings(
            settings, client=httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
        )
        kwargs.setdefault("document_store", store)
        return create_app(settings, inference_client=inference_client, **kwargs)

    return _build


@pytest.fixture
def client(build_app: Callable[..., FastAPI]) -> TestClient:
    """Test client for the default app."""
    return TestClient(build_app())


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Build isolated settings with overrides."""
    return make_settings
