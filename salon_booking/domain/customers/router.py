"""Customer router - FastAPI endpoints for customer operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import CUSTOMERS_READ, CUSTOMERS_WRITE, RequestContext, require_capability
from ...database import get_db
from ...shared.errors import NotFoundError
from .schemas import CustomerCreate, CustomerResponse, CustomerUpdate
from .service import CustomerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["Customers"])


def get_customer_service(db: Session = Depends(get_db)) -> CustomerService:
    """Dependency injection for CustomerService"""
    return CustomerService(db)


@router.get("")
async def list_customers(
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    ctx: RequestContext = Depends(require_capability(CUSTOMERS_READ)),
    service: CustomerService = Depends(get_customer_service),
):
    customers, meta = service.list_customers(ctx.tenant_id, search, page, limit)
    return {"data": [CustomerResponse.from_model(c) for c in customers], "meta": meta}


@router.get("/phone/{phone}", response_model=CustomerResponse)
async def get_customer_by_phone(
    phone: str,
    ctx: RequestContext = Depends(require_capability(CUSTOMERS_READ)),
    service: CustomerService = Depends(get_customer_service),
):
    """Look up a customer by phone number"""
    customer = service.find_by_phone(ctx.tenant_id, phone)
    if not customer:
        raise NotFoundError("Customer not found")
    return CustomerResponse.from_model(customer)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: str,
    ctx: RequestContext = Depends(require_capability(CUSTOMERS_READ)),
    service: CustomerService = Depends(get_customer_service),
):
    return CustomerResponse.from_model(service.get_customer(ctx.tenant_id, customer_id))


@router.post("", response_model=CustomerResponse, status_code=201)
async def create_customer(
    data: CustomerCreate,
    ctx: RequestContext = Depends(require_capability(CUSTOMERS_WRITE)),
    service: CustomerService = Depends(get_customer_service),
):
    return CustomerResponse.from_model(service.create_customer(ctx.tenant_id, data))


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: str,
    data: CustomerUpdate,
    ctx: RequestContext = Depends(require_capability(CUSTOMERS_WRITE)),
    service: CustomerService = Depends(get_customer_service),
):
    return CustomerResponse.from_model(service.update_customer(ctx.tenant_id, customer_id, data))


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: str,
    ctx: RequestContext = Depends(require_capability(CUSTOMERS_WRITE)),
    service: CustomerService = Depends(get_customer_service),
):
    """Soft delete a customer (personal data is redacted)"""
    return service.delete_customer(ctx.tenant_id, customer_id)
