# payment_records package
__version__ = "0.1.0"

from .database import (
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
    init_db,
    close_db,
    get_db,
    get_db_context,
    DatabaseManager,
)
from .errors import (
    PaymentRecordError,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from .schemas import (
    PaymentSessionCreate,
    RefundSessionCreate,
    CaptureSessionCreate,
    VoidSessionCreate,
)
from .store import PaymentRecordStore
