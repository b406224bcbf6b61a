"""FastAPI application."""

import logging

from fastapi import FastAPI

from ai_proxy.app.adapters.appwrite import (
    AppwriteAccountService,
    AppwriteDocumentStore,
    UnconfiguredDocumentStore,
)
from ai_proxy.app.api.auth import build_authenticator
from ai_proxy.app.api.cors import CorsPolicy
from ai_proxy.app.api.routes.health import router as health_router
from ai_proxy.app.api.routes.metrics import router as metrics_router
from ai_proxy.app.api.routes.proxy import router as proxy_router
from ai_proxy.app.authz.pipeline import AuthorizationPipeline
from ai_proxy.app.config import Settings, get_settings
from ai_proxy.app.db.repositories import DocumentStore, IdentityService
from ai_proxy.app.llm.client import AnthropicClient, InferenceClient
from ai_proxy.app.services.relay import RelayService

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def _default_document_store(settings: Settings) -> DocumentStore:
    if settings.document_store_configured:
        return AppwriteDocumentStore.from_settings(settings)
    logger.warning("Appwrite connection parameters missing; document lookups will fail")
    return UnconfiguredDocumentStore()


def _default_identity_service(settings: Settings) -> IdentityService | None:
    if settings.auth_mode != "jwt":
        return None
    if not (settings.appwrite_function_api_endpoint and settings.appwrite_function_project_id):
        raise ValueError("auth_mode=jwt requires the Appwrite endpoint and project id")
    return AppwriteAccountService(
        endpoint=settings.appwrite_function_api_endpoint,
        project_id=settings.appwrite_function_project_id,
        timeout=settings.document_store_timeout_seconds,
    )


def create_app(
    settings: Settings | None = None,
    *,
    document_store: DocumentStore | None = None,
    identity_service: IdentityService | None = None,
    inference_client: InferenceClient | None = None,
) -> FastAPI:
    """Build the application with its collaborators wired in.

    Args:
        settings: Configuration (defaults to environment settings)
        document_store: Override for the Appwrite document store
        identity_service: Override for the Appwrite account service (jwt mode)
        inference_client: Override for the Anthropic client

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()
    document_store = document_store or _default_document_store(settings)
    if identity_service is None:
        identity_service = _default_identity_service(settings)

    relay_service = RelayService(
        settings=settings,
        authenticator=build_authenticator(settings, identity_service),
        pipeline=AuthorizationPipeline(
            document_store,
            users_collection_id=settings.users_collection_id,
            tenants_collection_id=settings.restaurants_collection_id,
        ),
        inference_client=inference_client or AnthropicClient.from_settings(settings),
        cors=CorsPolicy.from_settings(settings),
    )

    app = FastAPI(title="AI Analytics Proxy", version=VERSION)
    app.state.settings = settings
    app.state.relay_service = relay_service

    # Register routes
    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(proxy_router, tags=["proxy"])

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {"message": "AI Analytics Proxy", "version": VERSION}

    return app


app = create_app()
