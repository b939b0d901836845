from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import NotFoundError, ValidationError
from app.models import ApprovalStatus, StockRequest
from app.services.field_utils import (
    is_blank,
    now_utc,
    parse_date,
    parse_datetime,
    parse_positive_int,
    require_fields,
    trim_and_limit,
)
from app.services.inventory_service import settle_if_restocked

logger = logging.getLogger(__name__)

DEFAULT_URGENCY = 'Normal'


def submit(
    db: Session,
    *,
    site_worker: str | None,
    request_date: date | str | None,
    delivery_location: str | None,
    item_code: str | None,
    item_name: str | None,
    quantity: int | str | None,
    requestor_email: str | None,
    job_id: int | str | None,
    urgency: str | None = None,
) -> StockRequest:
    require_fields(
        {
            'site_worker': site_worker,
            'request_date': request_date,
            'delivery_location': delivery_location,
            'item_code': item_code,
            'item_name': item_name,
            'quantity': quantity,
            'requestor_email': requestor_email,
            'job_id': job_id,
        }
    )

    stock_request = StockRequest(
        site_worker=trim_and_limit(site_worker),
        request_date=parse_date(request_date, field='request_date'),
        delivery_location=trim_and_limit(delivery_location),
        urgency=DEFAULT_URGENCY if is_blank(urgency) else trim_and_limit(urgency),
        item_code=trim_and_limit(item_code),
        item_name=trim_and_limit(item_name),
        quantity=parse_positive_int(quantity, field='Quantity'),
        requestor_email=trim_and_limit(requestor_email),
        job_id=trim_and_limit(job_id),
        status=ApprovalStatus.PENDING,
        approval_status=ApprovalStatus.PENDING,
    )
    db.add(stock_request)
    db.flush()
    logger.info(
        'Stock request %s submitted by %s for %s x %s',
        stock_request.id,
        stock_request.site_worker,
        stock_request.quantity,
        stock_request.item_code,
    )

    # Settles on current stock even though the request is still pending.
    if settings.settle_alerts_on_request:
        settle_if_restocked(db, item_code=stock_request.item_code)
    return stock_request


def get_request(db: Session, request_id: int) -> StockRequest:
    stock_request = db.execute(select(StockRequest).where(StockRequest.id == request_id)).scalar_one_or_none()
    if not stock_request:
        raise NotFoundError('Stock request not found')
    return stock_request


def decide(
    db: Session,
    *,
    request_id: int,
    decision: ApprovalStatus,
    decision_by: str | None,
    decision_time: datetime | str | None = None,
) -> StockRequest:
    if decision not in {ApprovalStatus.APPROVED, ApprovalStatus.REJECTED}:
        raise ValidationError(f'Invalid decision: {decision}')

    stock_request = get_request(db, request_id)
    if stock_request.approval_status != ApprovalStatus.PENDING:
        raise ValidationError('Stock request has already been decided')

    stock_request.status = decision
    stock_request.approval_status = decision
    stock_request.decision_by = None if is_blank(decision_by) else trim_and_limit(decision_by)
    stock_request.decision_time = (
        now_utc() if is_blank(decision_time) else parse_datetime(decision_time, field='decision_time')
    )
    db.flush()
    logger.info('Stock request %s %s by %s', stock_request.id, decision.value.lower(), stock_request.decision_by)
    return stock_request


def list_requests(db: Session, *, approval_status: ApprovalStatus | None = None) -> list[StockRequest]:
    query = select(StockRequest).order_by(StockRequest.request_date.desc(), StockRequest.id.desc())
    if approval_status:
        query = query.where(StockRequest.approval_status == approval_status)
    return db.execute(query).scalars().all()


def overview(db: Session) -> list[dict]:
    def _count(status: ApprovalStatus):
        return func.sum(case((StockRequest.approval_status == status, 1), else_=0))

    rows = db.execute(
        select(
            StockRequest.urgency,
            _count(ApprovalStatus.PENDING).label('pending'),
            _count(ApprovalStatus.APPROVED).label('approved'),
            _count(ApprovalStatus.REJECTED).label('rejected'),
        )
        .group_by(StockRequest.urgency)
        .order_by(StockRequest.urgency.asc())
    ).all()
    return [
        {
            'urgency': row.urgency,
            'pending': int(row.pending or 0),
            'approved': int(row.approved or 0),
            'rejected': int(row.rejected or 0),
        }
        for row in rows
    ]


def stock_request_payload(stock_request: StockRequest) -> dict:
    return {
        'id': stock_request.id,
        'site_worker': stock_request.site_worker,
        'request_date': stock_request.request_date,
        'delivery_location': stock_request.delivery_location,
        'urgency': stock_request.urgency,
        'item_code': stock_request.item_code,
        'item_name': stock_request.item_name,
        'quantity': stock_request.quantity,
        'requestor_email': stock_request.requestor_email,
        'job_id': stock_request.job_id,
        'status': stock_request.status.value,
        'approval_status': stock_request.approval_status.value,
        'decision_by': stock_request.decision_by,
        'decision_time': stock_request.decision_time,
    }
