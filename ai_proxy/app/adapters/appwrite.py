"""Appwrite REST adapters for document and account lookups."""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from ai_proxy.app.config import Settings
from ai_proxy.app.errors import DocumentNotFoundError, DocumentStoreError, IdentityServiceError

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Pull Appwrite's error message out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return str(body)[:200]


class AppwriteDocumentStore:
    """DocumentStore backed by the Appwrite Databases REST API."""

    def __init__(
        self,
        endpoint: str,
        project_id: str,
        api_key: str,
        database_id: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            endpoint: Appwrite API endpoint (e.g. https://cloud.appwrite.io/v1)
            project_id: Appwrite project id
            api_key: Server API key with documents.read scope
            database_id: Database holding the collections
            timeout: Per-request timeout in seconds
            client: Optional httpx client (for testing with mocks)
        """
        self._endpoint = endpoint.rstrip("/")
        self._project_id = project_id
        self._api_key = api_key
        self._database_id = database_id
        self._timeout = timeout
        self._client = client

    @classmethod
    def from_settings(
        cls, settings: Settings, client: httpx.AsyncClient | None = None
    ) -> "AppwriteDocumentStore":
        """Build a store from the three connection parameters in settings."""
        endpoint = settings.appwrite_function_api_endpoint
        project_id = settings.appwrite_function_project_id
        api_key = settings.appwrite_api_key
        if not (endpoint and project_id and api_key and api_key.get_secret_value()):
            raise ValueError("Appwrite connection parameters are not configured")
        return cls(
            endpoint=endpoint,
            project_id=project_id,
            api_key=api_key.get_secret_value(),
            database_id=settings.appwrite_database_id,
            timeout=settings.document_store_timeout_seconds,
            client=client,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "X-Appwrite-Project": self._project_id,
            "X-Appwrite-Key": self._api_key,
            "Content-Type": "application/json",
        }

    async def get_document(self, collection_id: str, document_id: str) -> dict[str, Any]:
        """Fetch one document by id.

        Raises:
            DocumentNotFoundError: On 404
            DocumentStoreError: On transport errors or any other non-2xx status
        """
        if document_id in ("", ".", ".."):
            raise DocumentNotFoundError(collection_id, document_id)
        # Ids come from callers; each is one opaque path segment
        url = (
            f"{self._endpoint}/databases/{quote(self._database_id, safe='')}"
            f"/collections/{quote(collection_id, safe='')}"
            f"/documents/{quote(document_id, safe='')}"
        )

        close_client = False
        client = self._client
        if client is None:
            client = httpx.AsyncClient(timeout=self._timeout)
            close_client = True

        try:
            try:
                response = await client.get(url, headers=self._headers())
            except httpx.HTTPError as e:
                raise DocumentStoreError(f"Document store unreachable: {type(e).__name__}") from e

            if response.status_code == 404:
                raise DocumentNotFoundError(collection_id, document_id)
            if response.is_error:
                raise DocumentStoreError(
                    f"Document store returned {response.status_code}: {_error_message(response)}",
                    status_code=response.status_code,
                )

            try:
                document = response.json()
            except ValueError as e:
                raise DocumentStoreError("Document store returned invalid JSON") from e
            if not isinstance(document, dict):
                raise DocumentStoreError("Document store returned a non-object document")
            return document
        finally:
            if close_client:
                await client.aclose()


class AppwriteAccountService:
    """IdentityService backed by Appwrite's account endpoint.

    Resolves a client-issued JWT to the account it belongs to.
    """

    def __init__(
        self,
        endpoint: str,
        project_id: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._project_id = project_id
        self._timeout = timeout
        self._client = client

    async def resolve_user_id(self, jwt: str) -> str:
        """Return the user id owning ``jwt``."""
        close_client = False
        client = self._client
        if client is None:
            client = httpx.AsyncClient(timeout=self._timeout)
            close_client = True

        try:
            try:
                response = await client.get(
                    f"{self._endpoint}/account",
                    headers={"X-Appwrite-Project": self._project_id, "X-Appwrite-JWT": jwt},
                )
            except httpx.HTTPError as e:
                raise IdentityServiceError(
                    f"Identity service unreachable: {type(e).__name__}"
                ) from e

            if response.is_error:
                raise IdentityServiceError(
                    f"Identity service rejected session ({response.status_code}): "
                    f"{_error_message(response)}"
                )

            try:
                account = response.json()
            except ValueError as e:
                raise IdentityServiceError("Identity service returned invalid JSON") from e
            user_id = account.get("$id") if isinstance(account, dict) else None
            if not user_id:
                raise IdentityServiceError("Identity service returned no account id")
            return str(user_id)
        finally:
            if close_client:
                await client.aclose()


class UnconfiguredDocumentStore:
    """Stand-in used when connection parameters are missing; every lookup fails."""

    async def get_document(self, collection_id: str, document_id: str) -> dict[str, Any]:
        logger.error("Document store lookup attempted but Appwrite is not configured")
        raise DocumentStoreError("Document store is not configured")
