"""Customer endpoints backed by the cache-aside service.

Reads go to Redis first and fall back to the database. Created customers
are cached under their own key; deleting one evicts that key.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from cacheside.api.deps import get_customer_service
from cacheside.api.errors import NotFoundError
from cacheside.core.model import Customer
from cacheside.services.customers import CustomerService

router = APIRouter(prefix="/api/customer", tags=["Customers"])


@router.get("/customers", response_model=list[Customer], response_model_by_alias=True)
async def get_customers(
    service: CustomerService = Depends(get_customer_service),
) -> list[Customer]:
    """All customers, served from the "customers" cache key when it is populated."""
    return await service.list_customers()


@router.get("/customers/{customer_id}", response_model=Customer, response_model_by_alias=True)
async def get_customer(
    customer_id: int,
    service: CustomerService = Depends(get_customer_service),
) -> Customer:
    customer = await service.get_customer(customer_id)
    if customer is None:
        raise NotFoundError("Customer", customer_id)
    return customer


@router.post("/AddCustomer", response_model=Customer, response_model_by_alias=True)
async def add_customer(
    customer: Customer,
    service: CustomerService = Depends(get_customer_service),
) -> Customer:
    """Persist a customer and cache it under "customer{id}"."""
    return await service.add_customer(customer)


@router.delete("/DeleteCustomer", status_code=204)
async def delete_customer(
    customer_id: int = Query(alias="id"),
    service: CustomerService = Depends(get_customer_service),
) -> Response:
    if not await service.remove_customer(customer_id):
        raise NotFoundError("Customer", customer_id)
    return Response(status_code=204)
