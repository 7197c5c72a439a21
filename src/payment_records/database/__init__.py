"""Database module for payment record persistence."""

from .models import (
    Base,
    PaymentSession,
    RefundSession,
    CaptureSession,
    VoidSession,
    Configuration,
    SessionStatus,
    PENDING,
    RESOLVE,
    REJECT,
    is_valid_status,
)
from .session import (
    get_db,
    get_database_url,
    get_database_echo,
    init_db,
    close_db,
    create_async_engine,
    create_all_tables,
    get_async_session_factory,
    get_db_context,
    DatabaseManager,
)
from .repository import (
    RECENT_SESSIONS_LIMIT,
    PaymentSessionRepository,
    RefundSessionRepository,
    CaptureSessionRepository,
    VoidSessionRepository,
    ConfigurationRepository,
)

__all__ = [
    # Models
    "Base",
    "PaymentSession",
    "RefundSession",
    "CaptureSession",
    "VoidSession",
    "Configuration",
    "SessionStatus",
    "PENDING",
    "RESOLVE",
    "REJECT",
    "is_valid_status",
    # Session management
    "get_db",
    "get_database_url",
    "get_database_echo",
    "init_db",
    "close_db",
    "create_async_engine",
    "create_all_tables",
    "get_async_session_factory",
    "get_db_context",
    "DatabaseManager",
    # Repositories
    "RECENT_SESSIONS_LIMIT",
    "PaymentSessionRepository",
    "RefundSessionRepository",
    "CaptureSessionRepository",
    "VoidSessionRepository",
    "ConfigurationRepository",
]
