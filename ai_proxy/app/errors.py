"""Typed error hierarchy for the relay handler.

Every ProxyError knows its HTTP status and renders the JSON error body
``{"error": ..., "message"?: ..., "details"?: ...}``. Adapter errors
(DocumentStoreError and friends) carry no HTTP meaning; callers translate
them into ProxyErrors where the lookup happens.
"""

from typing import Any

from fastapi import status


class ProxyError(Exception):
    """Base class for all errors surfaced to the caller."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        error: str,
        message: str | None = None,
        details: Any = None,
        *,
        status_code: int | None = None,
    ) -> None:
        super().__init__(error)
        self.error = error
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_body(self) -> dict[str, Any]:
        """Render the JSON body returned to the caller."""
        body: dict[str, Any] = {"error": self.error}
        if self.message is not None:
            body["message"] = self.message
        if self.details is not None:
            body["details"] = self.details
        return body


class BadRequestError(ProxyError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(ProxyError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(ProxyError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ProxyError):
    status_code = status.HTTP_404_NOT_FOUND


class MethodNotAllowedError(ProxyError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED


class ServiceMisconfiguredError(ProxyError):
    """Configuration problem; the caller only ever sees a generic message."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class UpstreamError(ProxyError):
    """Upstream inference API answered with a non-success status.

    The upstream status is propagated as-is and its body is embedded in
    ``details``.
    """

    def __init__(self, upstream_status: int, upstream_body: Any) -> None:
        message = None
        if isinstance(upstream_body, dict):
            err = upstream_body.get("error")
            if isinstance(err, dict) and isinstance(err.get("message"), str):
                message = err["message"]
        super().__init__(
            message or "Claude API request failed",
            details=upstream_body,
            status_code=upstream_status,
        )
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body


class UpstreamUnavailableError(ProxyError):
    """Upstream could not be reached or returned an unusable response."""

    status_code = status.HTTP_502_BAD_GATEWAY


class DocumentStoreError(Exception):
    """Document store request failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DocumentNotFoundError(DocumentStoreError):
    """Requested document does not exist."""

    def __init__(self, collection_id: str, document_id: str) -> None:
        super().__init__(f"Document {document_id} not found in {collection_id}", status_code=404)
        self.collection_id = collection_id
        self.document_id = document_id


class IdentityServiceError(Exception):
    """Identity service rejected or failed to resolve a credential."""
