"""
Caller context for API requests.

Identity and tenant resolution happen upstream (API gateway); this module
only reads what the gateway forwards and performs the capability check
before a service method runs.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Header

from .shared.errors import ForbiddenError, ValidationError

logger = logging.getLogger(__name__)

# Capabilities understood by the booking core
BOOKINGS_READ = "bookings:read"
BOOKINGS_WRITE = "bookings:write"
CATALOG_WRITE = "catalog:write"
CUSTOMERS_READ = "customers:read"
CUSTOMERS_WRITE = "customers:write"


@dataclass(frozen=True)
class RequestContext:
    tenant_id: str
    user_id: Optional[str] = None
    capabilities: frozenset = field(default_factory=frozenset)

    def can(self, capability: str) -> bool:
        return capability in self.capabilities


def get_tenant_id(x_tenant_id: Optional[str] = Header(None)) -> str:
    """Tenant id forwarded by the gateway (required on every route)"""
    if not x_tenant_id or not x_tenant_id.strip():
        logger.warning("⚠️ Request rejected: missing X-Tenant-ID header")
        raise ValidationError("X-Tenant-ID header is required", code="TENANT_REQUIRED")
    return x_tenant_id.strip()


async def get_request_context(
    tenant_id: str = Depends(get_tenant_id),
    x_user_id: Optional[str] = Header(None),
    x_user_capabilities: Optional[str] = Header(None),
) -> RequestContext:
    capabilities = frozenset(
        c.strip() for c in (x_user_capabilities or "").split(",") if c.strip()
    )
    return RequestContext(tenant_id=tenant_id, user_id=x_user_id, capabilities=capabilities)


def require_capability(capability: str):
    """
    Create a dependency that rejects callers lacking a capability.

    Usage:
        @router.post("")
        async def create_booking(
            ctx: RequestContext = Depends(require_capability(BOOKINGS_WRITE)),
        ):
            ...
    """

    async def checker(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
        if not ctx.can(capability):
            logger.warning(
                f"🚫 User {ctx.user_id} of tenant {ctx.tenant_id} lacks capability '{capability}'"
            )
            raise ForbiddenError(f"Missing capability: {capability}")
        return ctx

    return checker
