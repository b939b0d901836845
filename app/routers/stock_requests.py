from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.auth import require_permission
from app.db import get_db
from app.dependencies import get_client_ip
from app.models import ApprovalStatus
from app.schemas import DecisionIn, StockRequestIn
from app.services.audit_service import log_audit
from app.services.notification_service import send_stock_request_notification_stub
from app.services.stock_request_service import (
    decide,
    list_requests,
    overview,
    stock_request_payload,
    submit,
)

router = APIRouter(prefix='/api/request_stock', tags=['stock-requests'])


@router.post('', status_code=status.HTTP_201_CREATED)
def submit_stock_request(
    body: StockRequestIn,
    request: Request,
    db: Session = Depends(get_db),
    _: object = Depends(require_permission('canRequestStock')),
):
    stock_request = submit(
        db,
        site_worker=body.site_worker,
        request_date=body.request_date,
        delivery_location=body.delivery_location,
        urgency=body.urgency,
        item_code=body.item_code,
        item_name=body.item_name,
        quantity=body.quantity,
        requestor_email=body.requestor_email,
        job_id=body.job_id,
    )
    send_stock_request_notification_stub(db, stock_request=stock_request, ip=get_client_ip(request))
    db.commit()
    return {'message': 'Request added successfully', 'data': stock_request_payload(stock_request)}


@router.get('')
def list_stock_requests(approval_status: ApprovalStatus | None = None, db: Session = Depends(get_db)):
    return [stock_request_payload(row) for row in list_requests(db, approval_status=approval_status)]


@router.get('/overview')
def stock_request_overview(db: Session = Depends(get_db)):
    return overview(db)


def _decide(request_id: int, decision: ApprovalStatus, body: DecisionIn | None, request: Request, db: Session) -> dict:
    body = body or DecisionIn()
    stock_request = decide(
        db,
        request_id=request_id,
        decision=decision,
        decision_by=body.decision_by,
        decision_time=body.decision_time,
    )
    log_audit(
        db,
        actor=stock_request.decision_by,
        action=f'STOCK_REQUEST_{decision.value.upper()}',
        ip=get_client_ip(request),
        metadata={'request_id': stock_request.id, 'item_code': stock_request.item_code},
    )
    db.commit()
    return stock_request_payload(stock_request)


@router.put('/{request_id}/approve')
def approve_stock_request(
    request_id: int,
    request: Request,
    body: DecisionIn | None = None,
    db: Session = Depends(get_db),
    _: object = Depends(require_permission('canApproveStockRequests')),
):
    return _decide(request_id, ApprovalStatus.APPROVED, body, request, db)


@router.put('/{request_id}/reject')
def reject_stock_request(
    request_id: int,
    request: Request,
    body: DecisionIn | None = None,
    db: Session = Depends(get_db),
    _: object = Depends(require_permission('canApproveStockRequests')),
):
    return _decide(request_id, ApprovalStatus.REJECTED, body, request, db)
