"""SQLAlchemy models for payment session records."""

import uuid
import json
import enum
from datetime import datetime
from typing import Optional, Dict, Any, List

from sqlalchemy import (
    String,
    Float,
    Boolean,
    DateTime,
    ForeignKey,
    Text,
    Index,
)
from sqlalchemy.orm import DeclarativeBase, relationship, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class SessionStatus(str, enum.Enum):
    """Statuses a session record may be in."""
    PENDING = "pending"
    RESOLVE = "resolve"
    REJECT = "reject"


PENDING = SessionStatus.PENDING.value
RESOLVE = SessionStatus.RESOLVE.value
REJECT = SessionStatus.REJECT.value

_STATUS_VALUES = (PENDING, RESOLVE, REJECT)


def is_valid_status(status: Any) -> bool:
    """Return True if ``status`` is one of the session statuses."""
    return status in _STATUS_VALUES


def _new_id() -> str:
    return str(uuid.uuid4())


def _load_json(value: Optional[str]) -> Optional[Any]:
    if value is None:
        return None
    return json.loads(value)


def _dump_json(value: Optional[Any]) -> Optional[str]:
    if value is None:
        return None
    # Strict JSON: NaN and infinity raise ValueError
    return json.dumps(value, allow_nan=False)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class PaymentSession(Base):
    """A payment proposed to the app, with its refunds, captures and void."""
    __tablename__ = "payment_sessions"

    id: Mapped[str] = mapped_column(String(255), primary_key=True, default=_new_id)
    gid: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    group: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)
    test: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    kind: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    cancel_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=PENDING)

    # Nested objects are kept as serialized JSON text
    payment_method_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    customer_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    proposed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    refunds: Mapped[List["RefundSession"]] = relationship(
        "RefundSession",
        back_populates="payment",
        order_by="RefundSession.proposed_at",
    )
    captures: Mapped[List["CaptureSession"]] = relationship(
        "CaptureSession",
        back_populates="payment",
        order_by="CaptureSession.proposed_at",
    )
    void: Mapped[Optional["VoidSession"]] = relationship(
        "VoidSession",
        back_populates="payment",
        uselist=False,
    )

    __table_args__ = (
        Index("ix_payment_sessions_proposed_at", "proposed_at"),
        Index("ix_payment_sessions_status", "status"),
    )

    @property
    def payment_method(self) -> Optional[Any]:
        """Get the payment method as decoded JSON."""
        return _load_json(self.payment_method_json)

    @payment_method.setter
    def payment_method(self, value: Optional[Any]) -> None:
        self.payment_method_json = _dump_json(value)

    @property
    def customer(self) -> Optional[Any]:
        """Get the customer as decoded JSON."""
        return _load_json(self.customer_json)

    @customer.setter
    def customer(self, value: Optional[Any]) -> None:
        self.customer_json = _dump_json(value)

    def to_dict(self, include_relations: bool = False) -> Dict[str, Any]:
        """Convert the payment session to a dictionary.

        Relations are only included on request, since they must already be
        loaded when running under asyncio.
        """
        result = {
            "id": self.id,
            "gid": self.gid,
            "group": self.group,
            "amount": self.amount,
            "currency": self.currency,
            "test": self.test,
            "kind": self.kind,
            "cancel_url": self.cancel_url,
            "status": self.status,
            "payment_method": self.payment_method,
            "customer": self.customer,
            "proposed_at": _isoformat(self.proposed_at),
        }
        if include_relations:
            result["refunds"] = [refund.to_dict() for refund in self.refunds]
            result["captures"] = [capture.to_dict() for capture in self.captures]
            result["void"] = self.void.to_dict() if self.void else None
        return result


class RefundSession(Base):
    """A refund requested against a payment session."""
    __tablename__ = "refund_sessions"

    id: Mapped[str] = mapped_column(String(255), primary_key=True, default=_new_id)
    gid: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    payment_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("payment_sessions.id"), nullable=False, index=True
    )
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=PENDING)
    proposed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    payment: Mapped["PaymentSession"] = relationship("PaymentSession", back_populates="refunds")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "gid": self.gid,
            "payment_id": self.payment_id,
            "amount": self.amount,
            "currency": self.currency,
            "status": self.status,
            "proposed_at": _isoformat(self.proposed_at),
        }


class CaptureSession(Base):
    """A capture of funds authorized by a payment session."""
    __tablename__ = "capture_sessions"

    id: Mapped[str] = mapped_column(String(255), primary_key=True, default=_new_id)
    gid: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    payment_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("payment_sessions.id"), nullable=False, index=True
    )
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=PENDING)
    proposed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    payment: Mapped["PaymentSession"] = relationship("PaymentSession", back_populates="captures")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "gid": self.gid,
            "payment_id": self.payment_id,
            "amount": self.amount,
            "currency": self.currency,
            "status": self.status,
            "proposed_at": _isoformat(self.proposed_at),
        }


class VoidSession(Base):
    """Cancellation of a payment session; at most one per payment."""
    __tablename__ = "void_sessions"

    id: Mapped[str] = mapped_column(String(255), primary_key=True, default=_new_id)
    gid: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    payment_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("payment_sessions.id"), nullable=False, unique=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=PENDING)
    proposed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    payment: Mapped["PaymentSession"] = relationship("PaymentSession", back_populates="void")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "gid": self.gid,
            "payment_id": self.payment_id,
            "status": self.status,
            "proposed_at": _isoformat(self.proposed_at),
        }


class Configuration(Base):
    """Per-session configuration with free-form settings."""
    __tablename__ = "configurations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    session_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("payment_sessions.id"), nullable=False, unique=True
    )
    settings_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    @property
    def settings(self) -> Dict[str, Any]:
        """Get the configuration fields as a dictionary."""
        return _load_json(self.settings_json) or {}

    @settings.setter
    def settings(self, value: Optional[Dict[str, Any]]) -> None:
        self.settings_json = self.encode_settings(value)

    @staticmethod
    def encode_settings(value: Optional[Dict[str, Any]]) -> Optional[str]:
        """Serialize configuration fields for the settings_json column."""
        return _dump_json(value) if value else None

    def to_dict(self) -> Dict[str, Any]:
        """Flatten the settings alongside the session id."""
        return {
            **self.settings,
            "id": self.id,
            "session_id": self.session_id,
            "created_at": _isoformat(self.created_at),
        }
