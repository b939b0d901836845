from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import InsufficientStockError, NotFoundError
from app.models import DeliveryConfirmation, Dispatch, DispatchStatus, InventoryItem, StockRequest
from app.services import alert_service
from app.services.field_utils import (
    parse_datetime,
    parse_int,
    parse_optional_int,
    parse_positive_int,
    require_fields,
    trim_and_limit,
)
from app.services.inventory_service import aggregate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchResult:
    dispatch: Dispatch
    total_remaining: int


def _inventory_rows_newest_first(db: Session, item_code: str, *, lock: bool) -> list[InventoryItem]:
    query = (
        select(InventoryItem)
        .where(InventoryItem.item_code == item_code)
        .order_by(InventoryItem.stock_entry_time.desc(), InventoryItem.id.desc())
    )
    if lock:
        query = query.with_for_update()
    return db.execute(query).scalars().all()


def _deduct(rows: list[InventoryItem], quantity: int) -> int:
    """Draw ``quantity`` down across ``rows`` in order; returns what could not be covered."""
    remaining = quantity
    for row in rows:
        if remaining <= 0:
            break
        deduct = min(row.quantity, remaining)
        if deduct <= 0:
            continue
        row.quantity -= deduct
        remaining -= deduct
    return remaining


def _record_dispatch(
    db: Session,
    *,
    manager_id: int | None,
    request_id: int | None,
    driver_id: int,
    dispatch_date: datetime,
    item_code: str,
    dispatched_qty: int,
) -> Dispatch:
    dispatch = Dispatch(
        manager_id=manager_id,
        request_id=request_id,
        driver_id=driver_id,
        dispatch_date=dispatch_date,
        items_dispatched=item_code,
        dispatched_qty=dispatched_qty,
        status=DispatchStatus.DISPATCHED,
    )
    db.add(dispatch)
    db.flush()
    logger.info('Dispatch %s recorded: %s x %s to driver %s', dispatch.id, dispatched_qty, item_code, driver_id)
    return dispatch


def _refresh_low_stock_alert(db: Session, item_code: str) -> int:
    remaining = aggregate(db, item_code)
    if remaining < settings.low_stock_threshold:
        alert_service.upsert_low_stock(db, item_code=item_code, remaining=remaining)
    else:
        alert_service.settle(db, item_code=item_code)
    return remaining


def dispatch_stock(
    db: Session,
    *,
    driver_id: int | str | None,
    dispatch_date: datetime | str | None,
    item_code: str | None,
    dispatched_qty: int | str | None,
    manager_id: int | str | None = None,
    request_id: int | str | None = None,
    atomic: bool | None = None,
) -> DispatchResult:
    require_fields(
        {
            'driverId': driver_id,
            'dispatchDate': dispatch_date,
            'itemsDispatched': item_code,
            'dispatchedQty': dispatched_qty,
        }
    )
    atomic = settings.atomic_dispatch if atomic is None else atomic

    code = trim_and_limit(item_code)
    qty = parse_positive_int(dispatched_qty, field='dispatchedQty')
    valid_driver_id = parse_int(driver_id, field='driverId')
    valid_manager_id = parse_optional_int(manager_id, field='managerId')
    valid_request_id = parse_optional_int(request_id, field='requestId')
    parsed_date = parse_datetime(dispatch_date, field='dispatchDate')

    if valid_request_id is not None:
        exists = db.execute(select(StockRequest.id).where(StockRequest.id == valid_request_id)).scalar_one_or_none()
        if exists is None:
            raise NotFoundError('Stock request not found')

    record_kwargs = dict(
        manager_id=valid_manager_id,
        request_id=valid_request_id,
        driver_id=valid_driver_id,
        dispatch_date=parsed_date,
        item_code=code,
        dispatched_qty=qty,
    )

    dispatch = None
    if not atomic:
        # Written before the stock check and left in place if the check fails.
        dispatch = _record_dispatch(db, **record_kwargs)

    rows = _inventory_rows_newest_first(db, code, lock=atomic)
    available = sum(row.quantity for row in rows)
    if available < qty:
        logger.warning('Insufficient stock for %s: requested %s, available %s', code, qty, available)
        raise InsufficientStockError(
            'Insufficient stock for the requested dispatch quantity.',
            item_code=code,
            requested=qty,
            available=available,
            dispatch_id=dispatch.id if dispatch is not None else None,
        )

    if dispatch is None:
        dispatch = _record_dispatch(db, **record_kwargs)

    _deduct(rows, qty)
    db.flush()

    remaining = _refresh_low_stock_alert(db, code)
    logger.info('Dispatch %s deducted %s x %s, %s remaining', dispatch.id, qty, code, remaining)
    return DispatchResult(dispatch=dispatch, total_remaining=remaining)


def _delivery_query() -> Select:
    return (
        select(
            Dispatch,
            StockRequest.delivery_location,
            StockRequest.item_name,
            DeliveryConfirmation.driver_confirmation,
            DeliveryConfirmation.site_worker_confirmation,
            DeliveryConfirmation.delivery_status,
        )
        .outerjoin(StockRequest, StockRequest.id == Dispatch.request_id)
        .outerjoin(DeliveryConfirmation, DeliveryConfirmation.dispatch_id == Dispatch.id)
        .where(Dispatch.status == DispatchStatus.DISPATCHED)
        .order_by(Dispatch.dispatch_date.desc(), Dispatch.id.desc())
    )


def _delivery_rows(db: Session, query: Select) -> list[dict]:
    rows = []
    for dispatch, delivery_location, item_name, driver_confirmation, site_worker_confirmation, delivery_status in db.execute(
        query
    ).all():
        payload = dispatch_payload(dispatch)
        payload.update(
            {
                'delivery_location': delivery_location,
                'itemName': item_name,
                'driver_confirmation': driver_confirmation,
                'site_worker_confirmation': site_worker_confirmation,
                'delivery_status': delivery_status.value if delivery_status else None,
            }
        )
        rows.append(payload)
    return rows


def list_pending_delivery(db: Session) -> list[dict]:
    return _delivery_rows(db, _delivery_query())


def list_for_driver(db: Session, driver_id: int) -> list[dict]:
    return _delivery_rows(db, _delivery_query().where(Dispatch.driver_id == driver_id))


def dispatch_payload(dispatch: Dispatch) -> dict:
    return {
        'id': dispatch.id,
        'manager_id': dispatch.manager_id,
        'request_id': dispatch.request_id,
        'driver_id': dispatch.driver_id,
        'dispatch_date': dispatch.dispatch_date,
        'items_dispatched': dispatch.items_dispatched,
        'dispatched_qty': dispatch.dispatched_qty,
        'status': dispatch.status.value,
    }
