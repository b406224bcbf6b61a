"""In-memory implementations of repository interfaces."""

import copy
from typing import Any

from ai_proxy.app.errors import DocumentNotFoundError, IdentityServiceError


class InMemoryDocumentStore:
    """In-memory implementation of DocumentStore.

    Keeps a lookup log so callers can assert which documents were read.
    """

    def __init__(self, documents: dict[str, dict[str, dict[str, Any]]] | None = None) -> None:
        self._documents: dict[str, dict[str, dict[str, Any]]] = documents or {}
        self.lookups: list[tuple[str, str]] = []

    def put_document(self, collection_id: str, document_id: str, fields: dict[str, Any]) -> None:
        """Insert or replace a document."""
        document = {"$id": document_id, **fields}
        self._documents.setdefault(collection_id, {})[document_id] = document

    async def get_document(self, collection_id: str, document_id: str) -> dict[str, Any]:
        """Fetch one document by id."""
        self.lookups.append((collection_id, document_id))
        collection = self._documents.get(collection_id, {})
        if document_id not in collection:
            raise DocumentNotFoundError(collection_id, document_id)
        # Hand out copies so callers cannot mutate store state
        return copy.deepcopy(collection[document_id])


class InMemoryIdentityService:
    """In-memory implementation of IdentityService keyed by JWT."""

    def __init__(self, sessions: dict[str, str] | None = None) -> None:
        self._sessions = sessions or {}

    async def resolve_user_id(self, jwt: str) -> str:
        """Return the user id owning ``jwt``."""
        if jwt not in self._sessions:
            raise IdentityServiceError("Unknown session")
        return self._sessions[jwt]
