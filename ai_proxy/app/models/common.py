"""Externally owned records read by the relay handler.

These are read-only snapshots of documents fetched fresh for a single
request; nothing here is cached or written back.
"""

from dataclasses import dataclass, field
from typing import Any, Literal


@dataclass(frozen=True)
class CallerIdentity:
    """Authenticated principal making the request."""

    user_id: str
    source: Literal["header", "jwt"] = "header"


@dataclass(frozen=True)
class UserRecord:
    """User document with the caller's subscription label."""

    id: str
    subscription: str | None = None

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "UserRecord":
        subscription = document.get("subscription")
        return cls(
            id=str(document.get("$id", "")),
            subscription=subscription if isinstance(subscription, str) else None,
        )


@dataclass(frozen=True)
class TenantRecord:
    """Restaurant document: owner reference plus serialized settings blob."""

    id: str
    owner_id: str | None
    settings: str | dict[str, Any] | None = None
    name: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "TenantRecord":
        owner_id = document.get("ownerId")
        name = document.get("name")
        return cls(
            id=str(document.get("$id", "")),
            owner_id=str(owner_id) if owner_id is not None else None,
            settings=document.get("settings"),
            name=name if isinstance(name, str) else None,
            raw=document,
        )
