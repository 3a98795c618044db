"""Catalog repository - Database operations for services and staff"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import SalonService, Staff
from ..tenancy import scoped


class CatalogRepository:
    """Repository for service and staff database operations"""

    # Services
    @staticmethod
    def get_active_services_by_ids(
        db: Session, tenant_id: str, service_ids: list[str]
    ) -> list[SalonService]:
        """Get active services of a tenant matching any of the ids"""
        if not service_ids:
            return []
        return (
            scoped(db.query(SalonService), SalonService, tenant_id)
            .filter(SalonService.id.in_(set(service_ids)), SalonService.is_active.is_(True))
            .all()
        )

    @staticmethod
    def get_service(db: Session, tenant_id: str, service_id: str) -> Optional[SalonService]:
        return (
            scoped(db.query(SalonService), SalonService, tenant_id)
            .filter(SalonService.id == service_id)
            .first()
        )

    @staticmethod
    def list_services(
        db: Session,
        tenant_id: str,
        category: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
        include_inactive: bool = False,
    ) -> tuple[list[SalonService], int]:
        """List services ordered by category, display order and name"""
        query = scoped(db.query(SalonService), SalonService, tenant_id)

        if not include_inactive:
            query = query.filter(SalonService.is_active.is_(True))

        if category:
            query = query.filter(SalonService.category == category)

        total = query.count()
        services = (
            query.order_by(
                SalonService.category.asc(),
                SalonService.display_order.asc(),
                SalonService.name.asc(),
            )
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return services, total

    @staticmethod
    def get_categories(db: Session, tenant_id: str) -> list[str]:
        rows = (
            scoped(db.query(SalonService.category), SalonService, tenant_id)
            .filter(SalonService.is_active.is_(True))
            .distinct()
            .order_by(SalonService.category.asc())
            .all()
        )
        return [row[0] for row in rows]

    @staticmethod
    def create_service(db: Session, tenant_id: str, **service_data) -> SalonService:
        service = SalonService(tenant_id=tenant_id, **service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    # Staff
    @staticmethod
    def get_staff(db: Session, tenant_id: str, staff_id: str) -> Optional[Staff]:
        return scoped(db.query(Staff), Staff, tenant_id).filter(Staff.id == staff_id).first()

    @staticmethod
    def list_staff(
        db: Session,
        tenant_id: str,
        page: int = 1,
        limit: int = 20,
        include_inactive: bool = False,
    ) -> tuple[list[Staff], int]:
        query = scoped(db.query(Staff), Staff, tenant_id)

        if not include_inactive:
            query = query.filter(Staff.is_active.is_(True))

        total = query.count()
        staff = (
            query.order_by(Staff.first_name.asc(), Staff.last_name.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return staff, total

    @staticmethod
    def create_staff(db: Session, tenant_id: str, **staff_data) -> Staff:
        staff = Staff(tenant_id=tenant_id, **staff_data)
        db.add(staff)
        db.commit()
        db.refresh(staff)
        return staff

    # Shared
    @staticmethod
    def update(db: Session, record, **updates):
        """Update a service or staff row with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(record, key):
                setattr(record, key, value)

        db.commit()
        db.refresh(record)
        return record
