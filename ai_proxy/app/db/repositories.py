"""Repository protocol interfaces for data access."""

from typing import Any, Protocol


class DocumentStore(Protocol):
    """Read-only access to the external document store."""

    async def get_document(self, collection_id: str, document_id: str) -> dict[str, Any]:
        """Fetch one document by id.

        Args:
            collection_id: Collection holding the document
            document_id: Opaque document id

        Returns:
            Document fields as a dict

        Raises:
            DocumentNotFoundError: If the document does not exist
            DocumentStoreError: On any other store failure
        """
        ...


class IdentityService(Protocol):
    """Resolves a session credential to a user id."""

    async def resolve_user_id(self, jwt: str) -> str:
        """Return the user id owning ``jwt``.

        Raises:
            IdentityServiceError: If the credential is rejected
        """
        ...
