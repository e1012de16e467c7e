"""
Inbound Socket.IO event payloads.

Field aliases are the camelCase keys the browser client sends. Payloads that
fail validation are logged and the event is ignored.
"""

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ErrorContext, ValidationError

PayloadT = TypeVar("PayloadT", bound=BaseModel)


def parse_payload(model: type[PayloadT], data: Any, context: ErrorContext) -> PayloadT:
    """
    Validate raw event data against a payload model.

    Args:
        model: Payload model for the event
        data: Raw data as received from the transport
        context: Connection and event the data arrived on

    Returns:
        The validated payload

    Raises:
        ValidationError: If the data does not match the model
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        errors = e.errors(include_url=False, include_input=False)
        field = ".".join(str(part) for part in errors[0]["loc"]) if errors else None
        raise ValidationError(
            f"Malformed {context.event} payload",
            context,
            field=field or None,
            details={"errors": errors},
        ) from e


class InboundPayload(BaseModel):
    """Base for every inbound payload."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )


class SessionReferencePayload(InboundPayload):
    """
    A payload that only names a session.

    The voting control events send the bare session id string rather than an
    object, so a plain string is accepted too.
    """

    session_id: str = Field(..., alias="sessionId", min_length=1)

    @model_validator(mode="before")
    @classmethod
    def accept_bare_session_id(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"sessionId": data}
        return data


class HealthCheckPayload(SessionReferencePayload):
    """health-check"""


class CreateSessionPayload(InboundPayload):
    """create-session"""

    admin_username: str | None = Field(default=None, alias="adminUsername")

    @model_validator(mode="before")
    @classmethod
    def accept_missing_payload(cls, data: Any) -> Any:
        if data is None:
            return {}
        return data


class JoinSessionPayload(InboundPayload):
    """join-session"""

    session_id: str = Field(..., alias="sessionId", min_length=1)
    username: str = Field(..., min_length=1)


class HistoryEventPayload(InboundPayload):
    """add-history-event"""

    session_id: str = Field(..., alias="sessionId", min_length=1)
    history_event: Any = Field(..., alias="historyEvent")


class SizingTechniquePayload(InboundPayload):
    """change-sizing-technique"""

    session_id: str = Field(..., alias="sessionId", min_length=1)
    technique: str = Field(..., min_length=1)


class AdminInputPayload(InboundPayload):
    """admin-input"""

    session_id: str = Field(..., alias="sessionId", min_length=1)
    text: Any = None


class KickUserPayload(InboundPayload):
    """kick-user"""

    session_id: str = Field(..., alias="sessionId", min_length=1)
    username: str = Field(..., min_length=1)


class UsernameChangedPayload(InboundPayload):
    """username-changed"""

    session_id: str = Field(..., alias="sessionId", min_length=1)
    username: str = Field(..., min_length=1)
    old_username: str | None = Field(default=None, alias="oldUsername")
