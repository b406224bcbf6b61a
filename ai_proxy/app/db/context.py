"""Request context for tenancy enforcement."""

from dataclasses import dataclass

from ai_proxy.app.models.common import CallerIdentity


@dataclass(frozen=True)
class RequestContext:
    """Request context containing the request id and caller identity.

    Used to tie every log line and ownership check to one principal.
    """

    request_id: str
    caller: CallerIdentity

    @property
    def user_id(self) -> str:
        return self.caller.user_id
