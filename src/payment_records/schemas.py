"""Input models that coerce caller data into storable session records."""

import math
from datetime import datetime, timezone
from typing import Annotated, Optional, Dict, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    JsonValue,
    TypeAdapter,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .database.models import SessionStatus


def _reject_bool(value: Any) -> Any:
    # bool is an int subclass and would otherwise coerce to 1.0 / 0.0
    if isinstance(value, bool):
        raise ValueError("amount must be a number or numeric string, not a boolean")
    return value


def _require_finite(value: Any) -> Any:
    """Reject NaN and infinity anywhere inside a JSON value."""
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("JSON numbers must be finite")
    if isinstance(value, dict):
        for item in value.values():
            _require_finite(item)
    elif isinstance(value, list):
        for item in value:
            _require_finite(item)
    return value


Amount = Annotated[float, BeforeValidator(_reject_bool), Field(allow_inf_nan=False)]


class _RecordInput(BaseModel):
    """Common parsing rules.

    Keys may be given in snake_case or camelCase (``paymentMethod``,
    ``proposedAt``). Unknown keys are rejected.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        use_enum_values=True,
        validate_default=True,
    )

    id: Optional[str] = None
    gid: Optional[str] = None
    status: SessionStatus = SessionStatus.PENDING
    proposed_at: Optional[datetime] = None

    @field_validator("proposed_at")
    @classmethod
    def _naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Timestamp columns are naive UTC
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def to_record_fields(self) -> Dict[str, Any]:
        """Column values for the record; unset optionals fall back to column defaults."""
        return {key: value for key, value in self.model_dump().items() if value is not None}


class PaymentSessionCreate(_RecordInput):
    amount: Amount = Field(..., description="Amount, parsed from a number or numeric string")
    currency: Optional[str] = Field(None, max_length=3)
    group: Optional[str] = None
    test: bool = False
    kind: Optional[str] = None
    cancel_url: Optional[str] = None
    payment_method: Optional[JsonValue] = None
    customer: Optional[JsonValue] = None

    @field_validator("payment_method", "customer")
    @classmethod
    def _finite_json(cls, value: Optional[JsonValue]) -> Optional[JsonValue]:
        return _require_finite(value)


class RefundSessionCreate(_RecordInput):
    payment_id: str
    amount: Amount
    currency: Optional[str] = Field(None, max_length=3)


class CaptureSessionCreate(_RecordInput):
    payment_id: str
    amount: Amount
    currency: Optional[str] = Field(None, max_length=3)


class VoidSessionCreate(_RecordInput):
    payment_id: str


ConfigurationSettings = TypeAdapter(Annotated[Dict[str, JsonValue], AfterValidator(_require_finite)])
