"""Repository layer for payment session persistence operations."""

import logging
from typing import Optional, Dict, Any, List, Type

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .models import (
    Base,
    PaymentSession,
    RefundSession,
    CaptureSession,
    VoidSession,
    Configuration,
)

logger = logging.getLogger(__name__)

# Number of payment sessions returned by list_recent()
RECENT_SESSIONS_LIMIT = 25

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class _SessionRecordRepository:
    """Shared lookups and status updates for the session record tables."""

    model: Type[Base]

    def __init__(self, session: AsyncSession):
        """Initialize the repository with a database session.

        Args:
            session: AsyncSession instance for database operations.
        """
        self.session = session

    async def get_by_id(self, record_id: str):
        """Get a record by primary key, or None if it does not exist."""
        return await self.session.get(self.model, record_id)

    async def exists(self, record_id: str) -> bool:
        return await self.get_by_id(record_id) is not None

    async def _add(self, record):
        self.session.add(record)
        await self.session.flush()
        logger.info(f"Created {self.model.__name__} {record.id} with status {record.status}")
        return record

    async def update_status(self, record, new_status: str):
        """Set the status of a record.

        Args:
            record: Loaded model instance to update.
            new_status: New status value, already validated by the caller.

        Returns:
            The updated instance.
        """
        previous_status = record.status
        record.status = new_status
        await self.session.flush()
        logger.info(
            f"Updated {self.model.__name__} {record.id} status "
            f"from {previous_status} to {new_status}"
        )
        return record


class PaymentSessionRepository(_SessionRecordRepository):
    """Repository for PaymentSession operations."""

    model = PaymentSession

    @staticmethod
    def _with_relations(statement):
        return statement.options(
            selectinload(PaymentSession.refunds),
            selectinload(PaymentSession.captures),
            selectinload(PaymentSession.void),
        ).execution_options(populate_existing=True)

    async def create(
        self,
        amount: float,
        payment_method: Optional[Any] = None,
        customer: Optional[Any] = None,
        **fields: Any,
    ) -> PaymentSession:
        """Create a new payment session.

        Args:
            amount: Amount as a float.
            payment_method: Payment method, stored as JSON text.
            customer: Customer details, stored as JSON text.
            **fields: Remaining column values (id, status, proposed_at, ...).

        Returns:
            Created PaymentSession instance.
        """
        payment_session = PaymentSession(amount=amount, **fields)
        payment_session.payment_method = payment_method
        payment_session.customer = customer
        return await self._add(payment_session)

    async def get_with_relations(self, payment_id: str) -> Optional[PaymentSession]:
        """Get a payment session with refunds, captures and void loaded.

        Args:
            payment_id: Payment session ID.

        Returns:
            PaymentSession instance if found, None otherwise.
        """
        result = await self.session.execute(
            self._with_relations(
                select(PaymentSession).where(PaymentSession.id == payment_id)
            )
        )
        return result.scalar_one_or_none()

    async def list_recent(self, limit: int = RECENT_SESSIONS_LIMIT) -> List[PaymentSession]:
        """List the most recently proposed payment sessions.

        Args:
            limit: Maximum number of results.

        Returns:
            List of PaymentSession instances, newest first, relations loaded.
        """
        result = await self.session.execute(
            self._with_relations(
                select(PaymentSession)
                .order_by(PaymentSession.proposed_at.desc())
                .limit(limit)
            )
        )
        return list(result.scalars().all())


class RefundSessionRepository(_SessionRecordRepository):
    """Repository for RefundSession operations."""

    model = RefundSession

    async def create(self, **fields: Any) -> RefundSession:
        return await self._add(RefundSession(**fields))


class CaptureSessionRepository(_SessionRecordRepository):
    """Repository for CaptureSession operations."""

    model = CaptureSession

    async def create(self, **fields: Any) -> CaptureSession:
        return await self._add(CaptureSession(**fields))


class VoidSessionRepository(_SessionRecordRepository):
    """Repository for VoidSession operations."""

    model = VoidSession

    async def create(self, **fields: Any) -> VoidSession:
        return await self._add(VoidSession(**fields))

    async def get_by_payment_id(self, payment_id: str) -> Optional[VoidSession]:
        result = await self.session.execute(
            select(VoidSession).where(VoidSession.payment_id == payment_id)
        )
        return result.scalar_one_or_none()


class ConfigurationRepository:
    """Repository for Configuration operations."""

    def __init__(self, session: AsyncSession):
        """Initialize the repository with a database session.

        Args:
            session: AsyncSession instance for database operations.
        """
        self.session = session

    async def get_by_session_id(self, session_id: str) -> Optional[Configuration]:
        """Get the configuration of a payment session.

        Args:
            session_id: Payment session ID.

        Returns:
            Configuration instance if found, None otherwise.
        """
        result = await self.session.execute(
            select(Configuration).where(Configuration.session_id == session_id)
        )
        return result.scalar_one_or_none()

    async def insert_if_absent(
        self,
        session_id: str,
        settings: Optional[Dict[str, Any]] = None,
    ) -> Configuration:
        """Insert a configuration unless one already exists for the session.

        An existing row is returned unchanged; ``settings`` only apply to a
        newly created row.

        Args:
            session_id: Payment session ID.
            settings: Configuration fields for a new row.

        Returns:
            The existing or newly created Configuration instance.
        """
        dialect_name = self.session.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect_name)

        if insert is None:
            existing = await self.get_by_session_id(session_id)
            if existing is not None:
                return existing
            configuration = Configuration(session_id=session_id)
            configuration.settings = settings
            self.session.add(configuration)
            await self.session.flush()
            logger.info(f"Created configuration for session {session_id}")
            return configuration

        statement = (
            insert(Configuration.__table__)
            .values(
                session_id=session_id,
                settings_json=Configuration.encode_settings(settings),
            )
            .on_conflict_do_nothing(index_elements=["session_id"])
        )
        result = await self.session.execute(statement)
        if result.rowcount:
            logger.info(f"Created configuration for session {session_id}")
        else:
            logger.debug(f"Configuration for session {session_id} already exists")

        result = await self.session.execute(
            select(Configuration).where(Configuration.session_id == session_id)
        )
        return result.scalar_one()
