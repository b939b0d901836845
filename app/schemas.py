from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Bodies accept loosely typed values; the services own the validation rules so
# that direct callers and the HTTP layer fail the same way.
Scalar = int | str | None


class StockRequestIn(BaseModel):
    site_worker: str | None = None
    request_date: str | None = None
    delivery_location: str | None = None
    urgency: str | None = None
    item_code: str | None = None
    item_name: str | None = None
    quantity: Scalar = None
    requestor_email: str | None = None
    job_id: Scalar = None


class DecisionIn(BaseModel):
    decision_by: str | None = None
    decision_time: str | None = None


class InventoryEntryIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_code: Scalar = Field(default=None, alias='itemCode')
    item_name: str | None = Field(default=None, alias='itemName')
    quantity: Scalar = None
    description: str | None = None
    stock_entry_time: str | None = Field(default=None, alias='stockEntryTime')


class DispatchIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    manager_id: Scalar = Field(default=None, alias='managerId')
    request_id: Scalar = Field(default=None, alias='requestId')
    driver_id: Scalar = Field(default=None, alias='driverId')
    dispatch_date: str | None = Field(default=None, alias='dispatchDate')
    items_dispatched: Scalar = Field(default=None, alias='itemsDispatched')
    dispatched_qty: Scalar = Field(default=None, alias='dispatchedQty')


class DeliveryConfirmIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Scalar = None
    role: str | None = None
    confirmation_time: str | None = Field(default=None, alias='confirmationTime')


class PermissionsIn(BaseModel):
    permissions: Any = None
