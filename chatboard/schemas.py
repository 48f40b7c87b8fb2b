"""
Pydantic schemas for request/response validation.

This module contains:
- Request models for incoming data validation
- Response models for API responses
- The tagged failure returned by the service layer
- Validators that turn raw request bodies into a typed ValidationResult
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator


T = TypeVar("T")

INVALID_REQUEST = "Invalid request"
INVALID_MESSAGE_BODY = "Invalid message body"
INVALID_USER_BODY = "Invalid user body"


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from the store."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =============================================================================
# Pydantic Request Models
# =============================================================================

class MessageIn(BaseModel):
    """
    A message as posted by a client in `messageToAdd`.

    Validates:
    - msg: non-empty string
    - msgFrom: non-empty string
    - msgDateTime: present, non-null date-time
    """
    msg: str = Field(..., min_length=1, description="Message text")
    msg_from: str = Field(
        ...,
        alias="msgFrom",
        min_length=1,
        description="Username of the author"
    )
    msg_date_time: datetime = Field(
        ...,
        alias="msgDateTime",
        description="When the message was written (ISO-8601)"
    )
    type: Literal["global", "direct"] = Field(
        default="global",
        description="Board the message belongs to"
    )

    model_config = {"populate_by_name": True}


class UserCredentials(BaseModel):
    """Username and password pair used by signup, login and password reset."""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class NewUser(UserCredentials):
    """A user about to be persisted, with its server-side join date."""
    date_joined: datetime


# =============================================================================
# Pydantic Response Models
# =============================================================================

class StoredMessage(BaseModel):
    """A message as persisted, including its store-assigned identifier."""
    id: str = Field(..., serialization_alias="_id")
    msg: str
    msg_from: str = Field(..., serialization_alias="msgFrom")
    msg_date_time: datetime = Field(..., serialization_alias="msgDateTime")
    type: str = "global"

    model_config = {"from_attributes": True}

    @field_validator("msg_date_time")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class SafeUser(BaseModel):
    """A user record without its password hash."""
    id: str = Field(..., serialization_alias="_id")
    username: str
    date_joined: datetime = Field(..., serialization_alias="dateJoined")

    model_config = {"from_attributes": True}

    @field_validator("date_joined")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class ServiceError(BaseModel):
    """Tagged failure returned by the service layer instead of raising."""
    error: str


class ErrorResponse(BaseModel):
    """Response model for JSON error responses."""
    error: str = Field(..., description="Error description")


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""
    status: str = Field(..., description="Health status")
    reason: Optional[str] = Field(None, description="Reason if not ready")


# =============================================================================
# Request Validation
# =============================================================================

@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    """Outcome of validating a request body: a parsed value or a reason."""
    value: Optional[T] = None
    reason: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.reason is None


def validate_add_message_request(body: Any) -> ValidationResult[MessageIn]:
    """
    Validate an add-message request body.

    A missing or null `messageToAdd` is a malformed request; a present one
    that fails MessageIn validation is an invalid message body.
    """
    if not isinstance(body, dict) or body.get("messageToAdd") is None:
        return ValidationResult(reason=INVALID_REQUEST)
    try:
        message = MessageIn.model_validate(body["messageToAdd"])
    except ValidationError:
        return ValidationResult(reason=INVALID_MESSAGE_BODY)
    return ValidationResult(value=message)


def validate_user_body(body: Any) -> ValidationResult[UserCredentials]:
    """Validate that a body carries a non-empty username and password."""
    if not isinstance(body, dict):
        return ValidationResult(reason=INVALID_USER_BODY)
    try:
        credentials = UserCredentials.model_validate(body)
    except ValidationError:
        return ValidationResult(reason=INVALID_USER_BODY)
    return ValidationResult(value=credentials)
