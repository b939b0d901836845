from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.auth import require_permission
from app.db import get_db
from app.dependencies import get_client_ip
from app.errors import InsufficientStockError
from app.schemas import DispatchIn
from app.services.audit_service import log_audit
from app.services.dispatch_service import (
    dispatch_payload,
    dispatch_stock,
    list_for_driver,
    list_pending_delivery,
)

router = APIRouter(prefix='/api/dispatches', tags=['dispatches'])


@router.post('', status_code=status.HTTP_201_CREATED)
def create_dispatch(
    body: DispatchIn,
    request: Request,
    db: Session = Depends(get_db),
    _: object = Depends(require_permission('canDispatchStock')),
):
    try:
        result = dispatch_stock(
            db,
            manager_id=body.manager_id,
            request_id=body.request_id,
            driver_id=body.driver_id,
            dispatch_date=body.dispatch_date,
            item_code=body.items_dispatched,
            dispatched_qty=body.dispatched_qty,
        )
    except InsufficientStockError as exc:
        if exc.dispatch_id is None:
            db.rollback()
        else:
            # Record-before-check ordering keeps the dispatch row.
            log_audit(
                db,
                actor=body.manager_id,
                action='DISPATCH_RECORDED_WITHOUT_STOCK',
                ip=get_client_ip(request),
                metadata={'dispatch_id': exc.dispatch_id, **exc.details},
            )
            db.commit()
        raise

    log_audit(
        db,
        actor=result.dispatch.manager_id,
        action='DISPATCH_CREATED',
        ip=get_client_ip(request),
        metadata={
            'dispatch_id': result.dispatch.id,
            'item_code': result.dispatch.items_dispatched,
            'dispatched_qty': result.dispatch.dispatched_qty,
            'total_remaining': result.total_remaining,
        },
    )
    db.commit()
    return {
        'dispatch': dispatch_payload(result.dispatch),
        'updatedInventory': {'totalRemaining': result.total_remaining},
    }


@router.get('/delivery')
def dispatches_pending_delivery(db: Session = Depends(get_db)):
    return list_pending_delivery(db)


@router.get('/driver/{driver_id}')
def driver_dispatches(driver_id: int, db: Session = Depends(get_db)):
    return list_for_driver(db, driver_id)
