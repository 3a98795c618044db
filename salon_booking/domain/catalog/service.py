"""Catalog service - Read access to services and staff used by bookings"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...models import SalonService, Staff
from ...shared.errors import InvalidServicesError, InvalidStaffError, NotFoundError
from ...shared.pagination import build_meta, clamp_page
from ..tenancy import require_tenant
from .repository import CatalogRepository
from .schemas import ServiceCreate, ServiceSnapshot, ServiceUpdate, StaffCreate, StaffUpdate

logger = logging.getLogger(__name__)


class CatalogService:
    """Service layer for the salon catalog (services and staff)"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    def resolve_services(self, tenant_id: str, service_ids: list[str]) -> list[ServiceSnapshot]:
        """
        Resolve requested service ids into snapshots, in request order.

        Every id must name an active service of the tenant; otherwise nothing
        is returned and InvalidServicesError is raised.
        """
        tenant_id = require_tenant(tenant_id)
        if not service_ids:
            raise InvalidServicesError("At least one service is required")

        found = {
            s.id: s for s in self.repo.get_active_services_by_ids(self.db, tenant_id, service_ids)
        }
        missing = [sid for sid in service_ids if sid not in found]
        if missing:
            raise InvalidServicesError()

        return [
            ServiceSnapshot(
                service_id=found[sid].id,
                name=found[sid].name,
                price=found[sid].price,
                duration_minutes=found[sid].duration_minutes,
            )
            for sid in service_ids
        ]

    def get_staff(self, tenant_id: str, staff_id: str) -> Staff:
        """Get a staff member of the tenant"""
        staff = self.repo.get_staff(self.db, tenant_id, staff_id)
        if not staff:
            raise NotFoundError("Staff member not found")
        return staff

    def get_active_staff(self, tenant_id: str, staff_id: str) -> Staff:
        """Get a staff member who can take new bookings"""
        staff = self.repo.get_staff(self.db, tenant_id, staff_id)
        if not staff:
            raise InvalidStaffError("Staff member not found")
        if not staff.is_active:
            raise InvalidStaffError()
        return staff

    # Service administration
    def list_services(
        self,
        tenant_id: str,
        category: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
        include_inactive: bool = False,
    ) -> tuple[list[SalonService], dict]:
        page, limit = clamp_page(page, limit)
        services, total = self.repo.list_services(
            self.db, tenant_id, category, page, limit, include_inactive
        )
        return services, build_meta(total, page, limit)

    def get_service(self, tenant_id: str, service_id: str) -> SalonService:
        service = self.repo.get_service(self.db, tenant_id, service_id)
        if not service:
            raise NotFoundError("Service not found")
        return service

    def get_categories(self, tenant_id: str) -> list[str]:
        return self.repo.get_categories(self.db, tenant_id)

    def create_service(self, tenant_id: str, data: ServiceCreate) -> SalonService:
        tenant_id = require_tenant(tenant_id)
        service = self.repo.create_service(
            self.db,
            tenant_id,
            name=data.name.strip(),
            description=data.description,
            category=data.category.strip(),
            duration_minutes=data.durationMinutes,
            price=data.price,
            display_order=data.displayOrder,
        )
        logger.info(f"💅 Service created: {service.name} for tenant: {tenant_id}")
        return service

    def update_service(self, tenant_id: str, service_id: str, data: ServiceUpdate) -> SalonService:
        """Update a service; existing bookings keep their snapshots"""
        service = self.get_service(tenant_id, service_id)

        updates = {
            "name": data.name,
            "description": data.description,
            "category": data.category,
            "duration_minutes": data.durationMinutes,
            "price": data.price,
            "display_order": data.displayOrder,
            "is_active": data.isActive,
        }
        return self.repo.update(self.db, service, **updates)

    def deactivate_service(self, tenant_id: str, service_id: str) -> dict:
        service = self.get_service(tenant_id, service_id)
        self.repo.update(self.db, service, is_active=False)
        logger.info(f"🗃️ Service {service_id} deactivated for tenant: {tenant_id}")
        return {"success": True, "message": "Service deleted"}

    # Staff administration
    def list_staff(
        self, tenant_id: str, page: int = 1, limit: int = 20, include_inactive: bool = False
    ) -> tuple[list[Staff], dict]:
        page, limit = clamp_page(page, limit)
        staff, total = self.repo.list_staff(self.db, tenant_id, page, limit, include_inactive)
        return staff, build_meta(total, page, limit)

    def create_staff(self, tenant_id: str, data: StaffCreate) -> Staff:
        tenant_id = require_tenant(tenant_id)
        staff = self.repo.create_staff(
            self.db,
            tenant_id,
            first_name=data.firstName.strip(),
            last_name=data.lastName.strip(),
            nickname=data.nickname,
            email=data.email,
            phone=data.phone,
            specialties=data.specialties,
        )
        logger.info(f"👩 Staff created: {staff.first_name} {staff.last_name} for tenant: {tenant_id}")
        return staff

    def update_staff(self, tenant_id: str, staff_id: str, data: StaffUpdate) -> Staff:
        staff = self.get_staff(tenant_id, staff_id)

        updates = {
            "first_name": data.firstName,
            "last_name": data.lastName,
            "nickname": data.nickname,
            "email": data.email,
            "phone": data.phone,
            "specialties": data.specialties,
            "is_active": data.isActive,
        }
        return self.repo.update(self.db, staff, **updates)

    def deactivate_staff(self, tenant_id: str, staff_id: str) -> dict:
        """Soft delete; bookings keep referencing the row"""
        staff = self.get_staff(tenant_id, staff_id)
        self.repo.update(self.db, staff, is_active=False)
        logger.info(f"🗃️ Staff {staff_id} deactivated for tenant: {tenant_id}")
        return {"success": True, "message": "Staff member deleted"}
