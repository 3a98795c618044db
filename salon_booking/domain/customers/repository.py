"""Customer repository - Database operations for salon customers"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Customer
from ..tenancy import scoped


class CustomerRepository:
    """Repository for customer database operations"""

    @staticmethod
    def get_customer(
        db: Session, tenant_id: str, customer_id: str, include_deleted: bool = False
    ) -> Optional[Customer]:
        query = scoped(db.query(Customer), Customer, tenant_id).filter(Customer.id == customer_id)
        if not include_deleted:
            query = query.filter(Customer.is_deleted.is_(False))
        return query.first()

    @staticmethod
    def find_by_phone(db: Session, tenant_id: str, phone: str) -> Optional[Customer]:
        """Find a live customer by normalized phone"""
        return (
            scoped(db.query(Customer), Customer, tenant_id)
            .filter(Customer.phone == phone, Customer.is_deleted.is_(False))
            .first()
        )

    @staticmethod
    def list_customers(
        db: Session,
        tenant_id: str,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Customer], int]:
        """List live customers, optionally matching name, phone or email"""
        query = scoped(db.query(Customer), Customer, tenant_id).filter(
            Customer.is_deleted.is_(False)
        )

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Customer.first_name.ilike(pattern),
                    Customer.last_name.ilike(pattern),
                    Customer.phone.ilike(pattern),
                    Customer.email.ilike(pattern),
                )
            )

        total = query.count()
        customers = (
            query.order_by(Customer.created_at.desc(), Customer.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return customers, total

    @staticmethod
    def create_customer(db: Session, tenant_id: str, **customer_data) -> Customer:
        customer = Customer(tenant_id=tenant_id, **customer_data)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    @staticmethod
    def update_customer(db: Session, customer: Customer, **updates) -> Customer:
        """Update customer with provided fields"""
        for key, value in updates.items():
            if hasattr(customer, key):
                setattr(customer, key, value)

        db.commit()
        db.refresh(customer)
        return customer
