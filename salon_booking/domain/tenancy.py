"""
Tenant scope guard.

Every read or write of tenant-owned rows is built through ``scoped`` so a
query can never run without a tenant filter. Rows owned by another tenant
look exactly like missing rows to callers.
"""

from typing import Optional, TypeVar

from sqlalchemy.orm import Query

from ..shared.errors import ValidationError

Q = TypeVar("Q", bound=Query)


def require_tenant(tenant_id: Optional[str]) -> str:
    """Return the tenant id, or reject the call before touching the database"""
    if tenant_id is None or not str(tenant_id).strip():
        raise ValidationError("Tenant identifier is required", code="TENANT_REQUIRED")
    return str(tenant_id).strip()


def scoped(query: Q, model, tenant_id: Optional[str]) -> Q:
    """Restrict a query on a tenant-owned model to one tenant"""
    return query.filter(model.tenant_id == require_tenant(tenant_id))
