"""Repository pattern for Cacheside persistence.

Repositories are the record store behind the cache-aside layer. They work
on a request-scoped AsyncSession and convert rows to pydantic models. By
default writes are only flushed and the caller owns the transaction; with
``autocommit`` each write is committed before it returns, so anything cached
afterwards is already durable.

Connectivity failures are raised as StoreUnavailableError. Constraint
violations (IntegrityError) propagate unchanged.

``customer_store_scope`` opens a repository on its own session for cache loads
that several requests wait on.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from cacheside.core.errors import StoreUnavailableError
from cacheside.core.model import Customer
from cacheside.persistence.db import session_context
from cacheside.persistence.tables import CustomerTable

T = TypeVar("T")
TableT = TypeVar("TableT")


class BaseRepository(Generic[T, TableT]):
    """Base repository with shared session handling."""

    def __init__(self, session: AsyncSession, *, autocommit: bool = False):
        self.session = session
        self.autocommit = autocommit

    async def _write(self) -> None:
        if self.autocommit:
            await self.session.commit()
        else:
            await self.session.flush()

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[None]:
        """Translate connectivity failures into StoreUnavailableError."""
        try:
            yield
        except (OperationalError, InterfaceError) as e:
            raise StoreUnavailableError(operation, e) from e
        except DBAPIError as e:
            if e.connection_invalidated:
                raise StoreUnavailableError(operation, e) from e
            raise
        except OSError as e:
            raise StoreUnavailableError(operation, e) from e


class CustomerRepository(BaseRepository[Customer, CustomerTable]):
    """Repository for Customer records."""

    async def list_all(self) -> list[Customer]:
        """Every persisted customer, in identifier order."""
        async with self._guard("list_all"):
            result = await self.session.execute(select(CustomerTable).order_by(CustomerTable.id))
            rows = result.scalars().all()
        return [Customer.model_validate(row) for row in rows]

    async def insert(self, record: Customer) -> Customer:
        """Persist a new customer and return it with its generated identifier.

        The identifier from the incoming record is ignored.
        """
        row = CustomerTable(customer_name=record.customer_name, customer_no=record.customer_no)
        async with self._guard("insert"):
            self.session.add(row)
            await self._write()
        return Customer.model_validate(row)

    async def find_by_id(self, record_id: int) -> Customer | None:
        """Get one customer, or None if it does not exist."""
        async with self._guard("find_by_id"):
            row = await self.session.get(CustomerTable, record_id)
        if row is None:
            return None
        return Customer.model_validate(row)

    async def delete_by_id(self, record_id: int) -> bool:
        """Delete a customer.

        Returns:
            True if deleted, False if not found.
        """
        async with self._guard("delete_by_id"):
            row = await self.session.get(CustomerTable, record_id)
            if row is None:
                return False
            await self.session.delete(row)
            await self._write()
        return True


@asynccontextmanager
async def customer_store_scope() -> AsyncIterator[CustomerRepository]:
    """Customer repository on a session of its own, outliving any one request."""
    async with session_context() as session:
        yield CustomerRepository(session)
