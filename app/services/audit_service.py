from __future__ import annotations

from sqlalchemy.orm import Session

from app.models import AuditLog


def log_audit(
    db: Session,
    *,
    actor: str | int | None,
    action: str,
    ip: str | None = None,
    metadata: dict | None = None,
) -> None:
    db.add(
        AuditLog(
            actor=str(actor) if actor is not None else None,
            action=action,
            ip=ip,
            meta=metadata or {},
        )
    )

