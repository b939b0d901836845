from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.auth import require_permission
from app.db import get_db
from app.dependencies import get_client_ip
from app.schemas import InventoryEntryIn
from app.services.audit_service import log_audit
from app.services.inventory_service import (
    add_entry,
    get_item_details,
    get_item_quantity,
    inventory_payload,
    list_aggregated,
    list_levels,
    list_low,
    list_low_rows,
)

router = APIRouter(prefix='/api/inventory', tags=['inventory'])


@router.post('', status_code=status.HTTP_201_CREATED)
def add_inventory_entry(
    body: InventoryEntryIn,
    request: Request,
    db: Session = Depends(get_db),
    _: object = Depends(require_permission('canAddStockEntry')),
):
    row = add_entry(
        db,
        item_code=body.item_code,
        item_name=body.item_name,
        quantity=body.quantity,
        description=body.description,
        stock_entry_time=body.stock_entry_time,
    )
    log_audit(
        db,
        actor=request.headers.get('x-user-id'),
        action='INVENTORY_ENTRY_ADDED',
        ip=get_client_ip(request),
        metadata={'inventory_id': row.id, 'item_code': row.item_code, 'quantity': row.quantity},
    )
    db.commit()
    return {'message': 'Item added successfully', 'data': inventory_payload(row)}


@router.get('')
def aggregated_inventory(db: Session = Depends(get_db)):
    return list_aggregated(db)


@router.get('/lowstock')
def low_stock_rows(db: Session = Depends(get_db)):
    return [inventory_payload(row) for row in list_low_rows(db)]


@router.get('/low')
def low_stock_items(db: Session = Depends(get_db)):
    return list_low(db)


@router.get('/levels')
def inventory_levels(db: Session = Depends(get_db)):
    return list_levels(db)


@router.get('/details/{item_code}')
def inventory_item_details(item_code: str, db: Session = Depends(get_db)):
    return get_item_details(db, item_code)


@router.get('/item/{item_code}')
def inventory_item_quantity(item_code: str, db: Session = Depends(get_db)):
    return get_item_quantity(db, item_code)
