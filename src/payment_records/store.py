"""Data-access facade for payment, refund, capture and void sessions."""

import logging
from typing import Optional, Dict, Any, List, Mapping, Type, TypeVar, Union

import pydantic
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .database import (
    PaymentSession,
    RefundSession,
    CaptureSession,
    VoidSession,
    Configuration,
    PaymentSessionRepository,
    RefundSessionRepository,
    CaptureSessionRepository,
    VoidSessionRepository,
    ConfigurationRepository,
    SessionStatus,
    is_valid_status,
)
from .errors import ValidationError, ConflictError, NotFoundError
from .schemas import (
    PaymentSessionCreate,
    RefundSessionCreate,
    CaptureSessionCreate,
    VoidSessionCreate,
    ConfigurationSettings,
)

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=pydantic.BaseModel)


def _parse(schema: Type[SchemaT], data: Union[SchemaT, Mapping[str, Any]]) -> SchemaT:
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            f"Invalid {schema.__name__} data: {exc.error_count()} error(s)",
            errors=exc.errors(include_url=False),
        ) from exc


def _is_foreign_key_violation(exc: IntegrityError) -> bool:
    # asyncpg reports SQLSTATE 23503; SQLite only has the message
    if getattr(exc.orig, "sqlstate", None) == "23503":
        return True
    return "FOREIGN KEY" in str(exc.orig).upper()


def _conflicting_key(model, exc: IntegrityError) -> str:
    """Name the unique column an IntegrityError refers to, defaulting to ``id``."""
    message = str(exc.orig)
    for column in model.__table__.columns:
        if column.unique and column.name in message:
            return column.name
    return "id"


class PaymentRecordStore:
    """Create, update and read session records over one database session.

    Operations flush but never commit; the transaction belongs to the
    caller's session context (``get_db_context()``, ``DatabaseManager.session()``).

    Status updates with a value other than ``pending``, ``resolve`` or
    ``reject`` are ignored: nothing is written and ``None`` is returned.
    """

    def __init__(self, session: AsyncSession):
        """Initialize the store with a database session.

        Args:
            session: AsyncSession instance for database operations.
        """
        self.session = session
        self.payments = PaymentSessionRepository(session)
        self.refunds = RefundSessionRepository(session)
        self.captures = CaptureSessionRepository(session)
        self.voids = VoidSessionRepository(session)
        self.configurations = ConfigurationRepository(session)

    async def _require_payment_session(self, payment_id: str) -> None:
        if not await self.payments.exists(payment_id):
            raise NotFoundError("PaymentSession", payment_id)

    async def _create(self, repository, fields: Dict[str, Any]):
        entity = repository.model.__name__
        record_id = fields.get("id")
        if record_id is not None and await repository.exists(record_id):
            logger.warning(f"Refusing to create duplicate {entity} {record_id}")
            raise ConflictError(entity, record_id)
        try:
            # A failed insert only unwinds its savepoint; the session stays usable
            async with self.session.begin_nested():
                return await repository.create(**fields)
        except IntegrityError as exc:
            logger.warning(f"Integrity error creating {entity} {record_id}: {exc.orig}")
            if _is_foreign_key_violation(exc):
                raise NotFoundError("PaymentSession", fields.get("payment_id")) from exc
            key = _conflicting_key(repository.model, exc)
            raise ConflictError(entity, fields.get(key), key=key) from exc

    async def _update_status(self, repository, record_id: str, status: Any):
        if not is_valid_status(status):
            logger.debug(
                f"Ignoring status {status!r} for {repository.model.__name__} {record_id}"
            )
            return None
        record = await repository.get_by_id(record_id)
        if record is None:
            raise NotFoundError(repository.model.__name__, record_id)
        return await repository.update_status(record, SessionStatus(status).value)

    # Payment sessions

    async def create_payment_session(
        self,
        data: Union[PaymentSessionCreate, Mapping[str, Any]],
    ) -> PaymentSession:
        """Create a payment session.

        ``amount`` is parsed to a float; ``payment_method`` and ``customer``
        are stored as JSON text.

        Args:
            data: Payment session fields.

        Returns:
            Created PaymentSession instance.

        Raises:
            ValidationError: If the data cannot be coerced (e.g. non-numeric amount).
            ConflictError: If a payment session with the same id exists.
        """
        payload = _parse(PaymentSessionCreate, data)
        return await self._create(self.payments, payload.to_record_fields())

    async def update_payment_session_status(
        self,
        payment_id: str,
        status: str,
    ) -> Optional[PaymentSession]:
        """Update the status of a payment session.

        Returns:
            The updated PaymentSession, or None if the status was not valid.

        Raises:
            NotFoundError: If the payment session does not exist.
        """
        return await self._update_status(self.payments, payment_id, status)

    async def get_payment_session(self, payment_id: str) -> PaymentSession:
        """Get a payment session with its refunds, captures and void.

        Raises:
            NotFoundError: If the payment session does not exist.
        """
        payment_session = await self.payments.get_with_relations(payment_id)
        if payment_session is None:
            raise NotFoundError("PaymentSession", payment_id)
        return payment_session

    async def get_payment_sessions(self) -> List[PaymentSession]:
        """Get the 25 most recently proposed payment sessions with their relations."""
        return await self.payments.list_recent()

    # Refund sessions

    async def create_refund_session(
        self,
        data: Union[RefundSessionCreate, Mapping[str, Any]],
    ) -> RefundSession:
        """Create a refund session for an existing payment session.

        Raises:
            ValidationError: If the data cannot be coerced.
            NotFoundError: If the referenced payment session does not exist.
            ConflictError: If a refund session with the same id exists.
        """
        payload = _parse(RefundSessionCreate, data)
        await self._require_payment_session(payload.payment_id)
        return await self._create(self.refunds, payload.to_record_fields())

    async def update_refund_session_status(
        self,
        refund_id: str,
        status: str,
    ) -> Optional[RefundSession]:
        return await self._update_status(self.refunds, refund_id, status)

    # Capture sessions

    async def create_capture_session(
        self,
        data: Union[CaptureSessionCreate, Mapping[str, Any]],
    ) -> CaptureSession:
        """Create a capture session for an existing payment session.

        Raises:
            ValidationError: If the data cannot be coerced.
            NotFoundError: If the referenced payment session does not exist.
            ConflictError: If a capture session with the same id exists.
        """
        payload = _parse(CaptureSessionCreate, data)
        await self._require_payment_session(payload.payment_id)
        return await self._create(self.captures, payload.to_record_fields())

    async def update_capture_session_status(
        self,
        capture_id: str,
        status: str,
    ) -> Optional[CaptureSession]:
        return await self._update_status(self.captures, capture_id, status)

    # Void sessions

    async def create_void_session(
        self,
        data: Union[VoidSessionCreate, Mapping[str, Any]],
    ) -> VoidSession:
        """Create the void session of a payment session.

        Raises:
            ValidationError: If the data does not match the void session fields.
            NotFoundError: If the referenced payment session does not exist.
            ConflictError: If the id is taken or the payment already has a void
                (``key`` is ``payment_id`` in the latter case).
        """
        payload = _parse(VoidSessionCreate, data)
        await self._require_payment_session(payload.payment_id)
        existing = await self.voids.get_by_payment_id(payload.payment_id)
        if existing is not None:
            logger.warning(f"PaymentSession {payload.payment_id} already has void {existing.id}")
            raise ConflictError("VoidSession", payload.payment_id, key="payment_id")
        return await self._create(self.voids, payload.to_record_fields())

    async def update_void_session_status(
        self,
        void_id: str,
        status: str,
    ) -> Optional[VoidSession]:
        return await self._update_status(self.voids, void_id, status)

    # Configuration

    async def get_configuration(self, session_id: str) -> Optional[Configuration]:
        """Return the configuration of a session, or None if it has none."""
        return await self.configurations.get_by_session_id(session_id)

    async def get_or_create_configuration(
        self,
        session_id: str,
        config: Optional[Mapping[str, Any]] = None,
    ) -> Configuration:
        """Return the session's configuration, creating it from ``config`` if absent.

        An existing configuration is returned as stored; ``config`` is
        ignored in that case.

        Raises:
            ValidationError: If a new configuration would get non-JSON fields.
            NotFoundError: If the payment session does not exist.
        """
        existing = await self.configurations.get_by_session_id(session_id)
        if existing is not None:
            return existing
        await self._require_payment_session(session_id)
        try:
            settings = ConfigurationSettings.validate_python(dict(config or {}))
        except pydantic.ValidationError as exc:
            raise ValidationError(
                f"Invalid configuration for session {session_id}",
                errors=exc.errors(include_url=False),
            ) from exc
        settings.pop("session_id", None)
        settings.pop("sessionId", None)
        return await self.configurations.insert_if_absent(session_id, settings)
