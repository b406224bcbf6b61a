"""CORS policy for the relay endpoint."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from ai_proxy.app.config import Settings

logger = logging.getLogger(__name__)

ALLOWED_METHODS = "POST, OPTIONS"
ALLOWED_HEADERS = "Content-Type, X-Appwrite-Project, X-Appwrite-JWT"


@dataclass(frozen=True)
class OriginDecision:
    """Outcome of checking a request's declared origin."""

    origin: str | None
    allowed: bool
    allow_origin: str

    @property
    def rejected(self) -> bool:
        """Origin was declared but is not on the allow-list."""
        return self.origin is not None and not self.allowed


class CorsPolicy:
    """Allow-list origin check plus response header construction."""

    def __init__(
        self,
        allowed_origins: tuple[str, ...],
        default_origin: str,
        reject_unknown_origins: bool = True,
    ) -> None:
        self.allowed_origins = allowed_origins
        self.default_origin = default_origin
        self.reject_unknown_origins = reject_unknown_origins

    @classmethod
    def from_settings(cls, settings: Settings) -> "CorsPolicy":
        return cls(
            allowed_origins=settings.allowed_origins,
            default_origin=settings.default_origin,
            reject_unknown_origins=settings.reject_unknown_origins,
        )

    def evaluate(self, headers: Mapping[str, str]) -> OriginDecision:
        """Check the Origin (or Referer) header against the allow-list.

        A Referer with a path matches its origin (prefix up to a "/");
        the matched allow-list entry is what gets echoed back.
        """
        origin = headers.get("origin") or headers.get("referer") or None
        matched = None
        if origin is not None:
            matched = next(
                (a for a in self.allowed_origins if origin == a or origin.startswith(a + "/")),
                None,
            )
        return OriginDecision(
            origin=origin,
            allowed=matched is not None,
            allow_origin=matched or self.default_origin,
        )

    def headers_for(self, decision: OriginDecision) -> dict[str, str]:
        """Build the CORS response headers for a decision."""
        return {
            "Access-Control-Allow-Origin": decision.allow_origin,
            "Access-Control-Allow-Methods": ALLOWED_METHODS,
            "Access-Control-Allow-Headers": ALLOWED_HEADERS,
            "Vary": "Origin",
        }
