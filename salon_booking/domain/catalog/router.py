"""Catalog router - FastAPI endpoints for services and staff"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import BOOKINGS_READ, CATALOG_WRITE, RequestContext, require_capability
from ...database import get_db
from .schemas import (
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
    StaffCreate,
    StaffResponse,
    StaffUpdate,
)
from .service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["Catalog"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


# ============================================================================
# SERVICES
# ============================================================================


@router.get("/services")
async def list_services(
    category: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    includeInactive: bool = Query(False),
    ctx: RequestContext = Depends(require_capability(BOOKINGS_READ)),
    service: CatalogService = Depends(get_catalog_service),
):
    """List services for the salon"""
    services, meta = service.list_services(ctx.tenant_id, category, page, limit, includeInactive)
    return {"data": [ServiceResponse.from_model(s) for s in services], "meta": meta}


@router.get("/services/categories")
async def get_categories(
    ctx: RequestContext = Depends(require_capability(BOOKINGS_READ)),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.get_categories(ctx.tenant_id)


@router.get("/services/{service_id}", response_model=ServiceResponse)
async def get_service(
    service_id: str,
    ctx: RequestContext = Depends(require_capability(BOOKINGS_READ)),
    service: CatalogService = Depends(get_catalog_service),
):
    return ServiceResponse.from_model(service.get_service(ctx.tenant_id, service_id))


@router.post("/services", response_model=ServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    ctx: RequestContext = Depends(require_capability(CATALOG_WRITE)),
    service: CatalogService = Depends(get_catalog_service),
):
    return ServiceResponse.from_model(service.create_service(ctx.tenant_id, data))


@router.patch("/services/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: str,
    data: ServiceUpdate,
    ctx: RequestContext = Depends(require_capability(CATALOG_WRITE)),
    service: CatalogService = Depends(get_catalog_service),
):
    return ServiceResponse.from_model(service.update_service(ctx.tenant_id, service_id, data))


@router.delete("/services/{service_id}")
async def delete_service(
    service_id: str,
    ctx: RequestContext = Depends(require_capability(CATALOG_WRITE)),
    service: CatalogService = Depends(get_catalog_service),
):
    """Soft delete a service"""
    return service.deactivate_service(ctx.tenant_id, service_id)


# ============================================================================
# STAFF
# ============================================================================


@router.get("/staff")
async def list_staff(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    includeInactive: bool = Query(False),
    ctx: RequestContext = Depends(require_capability(BOOKINGS_READ)),
    service: CatalogService = Depends(get_catalog_service),
):
    staff, meta = service.list_staff(ctx.tenant_id, page, limit, includeInactive)
    return {"data": [StaffResponse.from_model(s) for s in staff], "meta": meta}


@router.get("/staff/{staff_id}", response_model=StaffResponse)
async def get_staff(
    staff_id: str,
    ctx: RequestContext = Depends(require_capability(BOOKINGS_READ)),
    service: CatalogService = Depends(get_catalog_service),
):
    return StaffResponse.from_model(service.get_staff(ctx.tenant_id, staff_id))


@router.post("/staff", response_model=StaffResponse, status_code=201)
async def create_staff(
    data: StaffCreate,
    ctx: RequestContext = Depends(require_capability(CATALOG_WRITE)),
    service: CatalogService = Depends(get_catalog_service),
):
    return StaffResponse.from_model(service.create_staff(ctx.tenant_id, data))


@router.patch("/staff/{staff_id}", response_model=StaffResponse)
async def update_staff(
    staff_id: str,
    data: StaffUpdate,
    ctx: RequestContext = Depends(require_capability(CATALOG_WRITE)),
    service: CatalogService = Depends(get_catalog_service),
):
    return StaffResponse.from_model(service.update_staff(ctx.tenant_id, staff_id, data))


@router.delete("/staff/{staff_id}")
async def delete_staff(
    staff_id: str,
    ctx: RequestContext = Depends(require_capability(CATALOG_WRITE)),
    service: CatalogService = Depends(get_catalog_service),
):
    """Soft delete a staff member"""
    return service.deactivate_staff(ctx.tenant_id, staff_id)
