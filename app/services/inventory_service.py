from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import NotFoundError, ValidationError
from app.models import InventoryItem
from app.services import alert_service
from app.services.field_utils import (
    is_blank,
    now_utc,
    parse_datetime,
    parse_int,
    require_fields,
    trim_and_limit,
)

logger = logging.getLogger(__name__)


def aggregate(db: Session, item_code: str) -> int:
    total = db.execute(
        select(func.coalesce(func.sum(InventoryItem.quantity), 0)).where(InventoryItem.item_code == item_code)
    ).scalar_one()
    return int(total)


def settle_if_restocked(db: Session, *, item_code: str) -> bool:
    if aggregate(db, item_code) < settings.low_stock_threshold:
        return False
    return alert_service.settle(db, item_code=item_code) > 0


def add_entry(
    db: Session,
    *,
    item_code: str | None,
    item_name: str | None,
    quantity: int | str | None,
    description: str | None,
    stock_entry_time: datetime | str | None = None,
) -> InventoryItem:
    entry_time = now_utc() if is_blank(stock_entry_time) else parse_datetime(stock_entry_time, field='stockEntryTime')
    require_fields(
        {
            'item_code': item_code,
            'item_name': item_name,
            'quantity': quantity,
            'description': description,
        }
    )
    parsed_quantity = parse_int(quantity, field='Quantity')
    if parsed_quantity <= 0:
        raise ValidationError('Quantity must be greater than zero')

    row = InventoryItem(
        item_code=trim_and_limit(item_code),
        item_name=trim_and_limit(item_name),
        quantity=parsed_quantity,
        description=trim_and_limit(description),
        stock_entry_time=entry_time,
    )
    db.add(row)
    db.flush()
    logger.info('Added %s x %s (%s) to inventory', row.quantity, row.item_code, row.item_name)

    settle_if_restocked(db, item_code=row.item_code)
    return row


def list_aggregated(db: Session) -> list[dict]:
    rows = db.execute(
        select(
            func.min(InventoryItem.id).label('id'),
            InventoryItem.item_code,
            InventoryItem.item_name,
            func.sum(InventoryItem.quantity).label('quantity'),
            InventoryItem.description,
            func.max(InventoryItem.stock_entry_time).label('latest_entry'),
        )
        .group_by(InventoryItem.item_code, InventoryItem.item_name, InventoryItem.description)
        .order_by(InventoryItem.item_code.asc())
    ).all()
    return [
        {
            'id': row.id,
            'item_code': row.item_code,
            'item_name': row.item_name,
            'quantity': int(row.quantity or 0),
            'description': row.description,
            'latest_entry': row.latest_entry,
        }
        for row in rows
    ]


def list_low(db: Session, *, threshold: int | None = None) -> list[dict]:
    limit = settings.low_stock_threshold if threshold is None else threshold
    total = func.sum(InventoryItem.quantity)
    rows = db.execute(
        select(
            InventoryItem.item_code,
            func.max(InventoryItem.item_name).label('item_name'),
            total.label('quantity'),
            func.max(InventoryItem.description).label('description'),
        )
        .group_by(InventoryItem.item_code)
        .having(total < limit)
        .order_by(InventoryItem.item_code.asc())
    ).all()
    return [
        {
            'item_code': row.item_code,
            'item_name': row.item_name,
            'quantity': int(row.quantity or 0),
            'description': row.description,
        }
        for row in rows
    ]


def list_low_rows(db: Session, *, threshold: int | None = None) -> list[InventoryItem]:
    limit = settings.low_stock_threshold if threshold is None else threshold
    return db.execute(
        select(InventoryItem)
        .where(InventoryItem.quantity < limit)
        .order_by(InventoryItem.item_code.asc(), InventoryItem.stock_entry_time.desc())
    ).scalars().all()


def list_levels(db: Session) -> list[dict]:
    rows = db.execute(
        select(
            InventoryItem.item_name,
            func.sum(InventoryItem.quantity).label('quantity'),
            InventoryItem.description,
        )
        .group_by(InventoryItem.item_name, InventoryItem.description)
        .order_by(InventoryItem.item_name.asc())
    ).all()
    return [
        {'item_name': row.item_name, 'quantity': int(row.quantity or 0), 'description': row.description}
        for row in rows
    ]


def get_item_details(db: Session, item_code: str) -> dict:
    row = db.execute(
        select(InventoryItem)
        .where(InventoryItem.item_code == item_code.strip())
        .order_by(InventoryItem.stock_entry_time.desc(), InventoryItem.id.desc())
        .limit(1)
    ).scalar_one_or_none()
    if not row:
        raise NotFoundError('Item not found')
    return {'item_code': row.item_code, 'item_name': row.item_name, 'description': row.description}


def get_item_quantity(db: Session, item_code: str) -> dict:
    code = item_code.strip()
    exists = db.execute(select(InventoryItem.id).where(InventoryItem.item_code == code).limit(1)).scalar_one_or_none()
    if exists is None:
        raise NotFoundError('Item not found')
    return {'quantity': aggregate(db, code)}


def inventory_payload(row: InventoryItem) -> dict:
    return {
        'id': row.id,
        'item_code': row.item_code,
        'item_name': row.item_name,
        'quantity': row.quantity,
        'description': row.description,
        'stock_entry_time': row.stock_entry_time,
    }
