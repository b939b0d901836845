from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
PrimaryKey = BigInteger().with_variant(Integer, 'sqlite')


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Base(DeclarativeBase):
    pass


class UserRole(str, Enum):
    ADMINISTRATOR = 'Administrator'
    SITE_WORKER = 'SiteWorker'
    MANAGER = 'Manager'
    INVENTORY_MANAGER = 'InventoryManager'
    DRIVER = 'Driver'


class ApprovalStatus(str, Enum):
    PENDING = 'Pending'
    APPROVED = 'Approved'
    REJECTED = 'Rejected'


class DispatchStatus(str, Enum):
    DISPATCHED = 'Dispatched'


class DeliveryStatus(str, Enum):
    DRIVER_CONFIRMED = 'Driver Confirmed'
    DELIVERED = 'Delivered'


class AlertType(str, Enum):
    LOW_STOCK = 'Low Stock Alert'


class User(Base):
    __tablename__ = 'users'

    id: Mapped[int] = mapped_column(PrimaryKey, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, name='user_role', values_callable=_enum_values), nullable=False
    )
    status: Mapped[str] = mapped_column(String(32), nullable=False, default='Active', server_default='Active')
    permissions: Mapped[list] = mapped_column(JSON, nullable=False, default=list, server_default='[]')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class InventoryItem(Base):
    __tablename__ = 'inventory'
    __table_args__ = (
        CheckConstraint('quantity >= 0', name='inventory_quantity_non_negative_ck'),
    )

    id: Mapped[int] = mapped_column(PrimaryKey, primary_key=True)
    item_code: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    item_name: Mapped[str] = mapped_column(String(64), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(String(64), nullable=False)
    stock_entry_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class StockRequest(Base):
    __tablename__ = 'request_stock'

    id: Mapped[int] = mapped_column(PrimaryKey, primary_key=True)
    site_worker: Mapped[str] = mapped_column(String(64), nullable=False)
    request_date: Mapped[date] = mapped_column(Date, nullable=False)
    delivery_location: Mapped[str] = mapped_column(String(64), nullable=False)
    urgency: Mapped[str] = mapped_column(String(64), nullable=False, default='Normal', server_default='Normal')
    item_code: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    item_name: Mapped[str] = mapped_column(String(64), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    requestor_email: Mapped[str] = mapped_column(String(64), nullable=False)
    job_id: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[ApprovalStatus] = mapped_column(
        SQLEnum(ApprovalStatus, name='request_status', values_callable=_enum_values), nullable=False
    )
    approval_status: Mapped[ApprovalStatus] = mapped_column(
        SQLEnum(ApprovalStatus, name='request_approval_status', values_callable=_enum_values), nullable=False
    )
    decision_by: Mapped[str | None] = mapped_column(String(64))
    decision_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Dispatch(Base):
    __tablename__ = 'dispatches'
    __table_args__ = (
        CheckConstraint('dispatched_qty > 0', name='dispatches_qty_positive_ck'),
    )

    id: Mapped[int] = mapped_column(PrimaryKey, primary_key=True)
    manager_id: Mapped[int | None] = mapped_column(BigInteger)
    request_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey('request_stock.id'))
    driver_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    dispatch_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    items_dispatched: Mapped[str] = mapped_column(String(64), nullable=False)
    dispatched_qty: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[DispatchStatus] = mapped_column(
        SQLEnum(DispatchStatus, name='dispatch_status', values_callable=_enum_values),
        nullable=False,
        default=DispatchStatus.DISPATCHED,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class DeliveryConfirmation(Base):
    __tablename__ = 'delivery_confirmations'
    __table_args__ = (
        UniqueConstraint('dispatch_id', name='delivery_confirmations_dispatch_id_key'),
    )

    id: Mapped[int] = mapped_column(PrimaryKey, primary_key=True)
    dispatch_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('dispatches.id', ondelete='CASCADE'), nullable=False)
    driver_confirmation: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    site_worker_confirmation: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    delivery_status: Mapped[DeliveryStatus] = mapped_column(
        SQLEnum(DeliveryStatus, name='delivery_status', values_callable=_enum_values), nullable=False
    )


class Alert(Base):
    __tablename__ = 'alerts'
    __table_args__ = (
        UniqueConstraint('type', 'item_code', name='alerts_type_item_code_uniq'),
    )

    id: Mapped[int] = mapped_column(PrimaryKey, primary_key=True)
    type: Mapped[AlertType] = mapped_column(
        SQLEnum(AlertType, name='alert_type', values_callable=_enum_values), nullable=False
    )
    item_code: Mapped[str] = mapped_column(String(64), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default='false')
    settled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default='false')
    settled_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class AuditLog(Base):
    __tablename__ = 'audit_log'

    id: Mapped[int] = mapped_column(PrimaryKey, primary_key=True)
    actor: Mapped[str | None] = mapped_column(Text)
    action: Mapped[str] = mapped_column(Text, nullable=False)
    ip: Mapped[str | None] = mapped_column(String(64))
    meta: Mapped[dict] = mapped_column('metadata', JSON, nullable=False, default=dict, server_default='{}')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
