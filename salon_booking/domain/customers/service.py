"""Customer service - Business logic for salon customers"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Customer
from ...shared.errors import NotFoundError, ValidationError
from ...shared.pagination import build_meta, clamp_page
from ...shared.validators import normalize_phone, salon_now
from ..tenancy import require_tenant
from .repository import CustomerRepository
from .schemas import CustomerCreate, CustomerUpdate

logger = logging.getLogger(__name__)

DELETED_FIRST_NAME = "Deleted"
DELETED_LAST_NAME = "Customer"


def _duplicate_error() -> ValidationError:
    return ValidationError(
        "Customer with this phone number already exists", code="DUPLICATE_CUSTOMER"
    )


class CustomerService:
    """Service layer for customer business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CustomerRepository()

    def _normalize(self, phone: str) -> str:
        try:
            return normalize_phone(phone)
        except ValueError as e:
            raise ValidationError(str(e)) from e

    def find_by_phone(self, tenant_id: str, phone: str) -> Optional[Customer]:
        """Find a customer by phone (any format normalizable to E.164)"""
        tenant_id = require_tenant(tenant_id)
        if not phone:
            return None
        return self.repo.find_by_phone(self.db, tenant_id, self._normalize(phone))

    def get_customer(self, tenant_id: str, customer_id: str) -> Customer:
        customer = self.repo.get_customer(self.db, tenant_id, customer_id)
        if not customer:
            raise NotFoundError("Customer not found")
        return customer

    def list_customers(
        self, tenant_id: str, search: Optional[str] = None, page: int = 1, limit: int = 20
    ) -> tuple[list[Customer], dict]:
        page, limit = clamp_page(page, limit)
        customers, total = self.repo.list_customers(self.db, tenant_id, search, page, limit)
        return customers, build_meta(total, page, limit)

    def create_customer(self, tenant_id: str, data: CustomerCreate) -> Customer:
        """Create a customer; the phone must be unused within the tenant"""
        tenant_id = require_tenant(tenant_id)

        if self.repo.find_by_phone(self.db, tenant_id, data.phone):
            raise _duplicate_error()

        try:
            customer = self.repo.create_customer(
                self.db,
                tenant_id,
                first_name=data.firstName.strip(),
                last_name=data.lastName.strip(),
                phone=data.phone,
                email=data.email,
                notes=data.notes,
            )
        except IntegrityError as e:
            # Another request registered the same phone first
            self.db.rollback()
            logger.warning(f"⚠️ Duplicate customer phone for tenant {tenant_id}: {e.orig}")
            raise _duplicate_error() from e

        logger.info(f"👤 Customer created: {customer.id} for tenant: {tenant_id}")
        return customer

    def find_or_create(self, tenant_id: str, data: CustomerCreate) -> Customer:
        """Return the customer owning data.phone, creating one if needed"""
        existing = self.find_by_phone(tenant_id, data.phone)
        if existing:
            return existing

        try:
            return self.create_customer(tenant_id, data)
        except ValidationError as e:
            if e.code != "DUPLICATE_CUSTOMER":
                raise
            existing = self.find_by_phone(tenant_id, data.phone)
            if not existing:
                raise
            return existing

    def update_customer(self, tenant_id: str, customer_id: str, data: CustomerUpdate) -> Customer:
        customer = self.get_customer(tenant_id, customer_id)

        updates = {}
        if data.firstName is not None:
            updates["first_name"] = data.firstName.strip()
        if data.lastName is not None:
            updates["last_name"] = data.lastName.strip()
        if data.email is not None:
            updates["email"] = data.email
        if data.notes is not None:
            updates["notes"] = data.notes
        if data.phone is not None and data.phone != customer.phone:
            if self.repo.find_by_phone(self.db, customer.tenant_id, data.phone):
                raise _duplicate_error()
            updates["phone"] = data.phone

        try:
            return self.repo.update_customer(self.db, customer, **updates)
        except IntegrityError as e:
            self.db.rollback()
            raise _duplicate_error() from e

    def delete_customer(self, tenant_id: str, customer_id: str) -> dict:
        """
        Soft delete a customer.

        Personal data is redacted in place; bookings keep pointing at the
        row so history and totals stay intact.
        """
        customer = self.get_customer(tenant_id, customer_id)

        self.repo.update_customer(
            self.db,
            customer,
            first_name=DELETED_FIRST_NAME,
            last_name=DELETED_LAST_NAME,
            email=None,
            notes=None,
            phone=f"deleted-{customer.id[:8]}",
            is_deleted=True,
            deleted_at=salon_now(),
        )
        logger.info(f"🗑️ Customer {customer_id} deleted for tenant: {tenant_id}")
        return {"success": True, "message": "Customer deleted"}
