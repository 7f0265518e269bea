"""
CRUD Authorization

Per-entity authorization checks, evaluated by the CRUD controller before an
operation runs. Subclass CrudAuthorizer and override the capabilities that
need restricting; every capability allows by default.
"""

from abc import ABC
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Request


@dataclass(frozen=True)
class AuthorizationDecision:
    """Outcome of a capability check"""

    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "AuthorizationDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: Optional[str] = None) -> "AuthorizationDecision":
        return cls(allowed=False, reason=reason)


class CrudAuthorizer(ABC):
    """
    CRUD Authorizer Interface

    Capabilities: create, update, delete, read (single record), list.
    """

    async def can_create(self, request: Request) -> AuthorizationDecision:
        """Create one or many records"""
        return AuthorizationDecision.allow()

    async def can_update(self, request: Request, record_id: Any) -> AuthorizationDecision:
        """Update the record `record_id`"""
        return AuthorizationDecision.allow()

    async def can_delete(self, request: Request, record_id: Any) -> AuthorizationDecision:
        """Delete the record `record_id`"""
        return AuthorizationDecision.allow()

    async def can_read(self, request: Request, record_id: Any) -> AuthorizationDecision:
        """Fetch the record `record_id`"""
        return AuthorizationDecision.allow()

    async def can_list(self, request: Request) -> AuthorizationDecision:
        """Search / list records"""
        return AuthorizationDecision.allow()


class AllowAllAuthorizer(CrudAuthorizer):
    """Default authorizer: every operation is allowed"""
    pass


class ReadOnlyAuthorizer(CrudAuthorizer):
    """Allows read and list, denies every write"""

    async def can_create(self, request: Request) -> AuthorizationDecision:
        return AuthorizationDecision.deny("read-only resource")

    async def can_update(self, request: Request, record_id: Any) -> AuthorizationDecision:
        return AuthorizationDecision.deny("read-only resource")

    async def can_delete(self, request: Request, record_id: Any) -> AuthorizationDecision:
        return AuthorizationDecision.deny("read-only resource")
