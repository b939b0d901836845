from __future__ import annotations

from sqlalchemy.orm import Session

from app.models import StockRequest
from app.services.audit_service import log_audit


def send_stock_request_notification_stub(
    db: Session,
    *,
    stock_request: StockRequest,
    ip: str | None,
) -> None:
    payload = {
        'request_id': stock_request.id,
        'requestor_email': stock_request.requestor_email,
        'item_code': stock_request.item_code,
        'quantity': stock_request.quantity,
        'urgency': stock_request.urgency,
        'status': 'STUB_SENT',
    }
    log_audit(
        db,
        actor=stock_request.site_worker,
        action='STOCK_REQUEST_NOTIFICATION_STUB_SENT',
        ip=ip,
        metadata=payload,
    )
