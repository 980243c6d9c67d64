"""Customer record model.

JSON uses camelCase field names (``customerName``, ``customerNo``); Python
code uses snake_case. The identifier is ``None`` until the record store
assigns one.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class Customer(BaseModel):
    """A persisted customer."""

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        from_attributes=True,
    )

    id: int | None = None
    customer_name: Annotated[str, Field(min_length=3, max_length=250)] = Field(
        alias="customerName"
    )
    customer_no: int = Field(alias="customerNo")
