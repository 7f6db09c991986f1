"""
Satchel shared data models.

These models define the request and response bodies of the session API.
"""

import re
from datetime import UTC, datetime
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field, field_validator

from ..session.expiration import is_end_of_visit, parse_relative

NAME_PATTERN = r"^[A-Za-z0-9_.:-]{1,100}$"

# Request Models (API Input)


class ExpirationRequest(BaseModel):
    """Request to set a section expiration."""

    expiration: Union[int, str] = Field(
        ...,
        description="Seconds, an absolute Unix timestamp, a duration like '20 minutes', "
        "an ISO-8601 datetime, or 0 to expire when the browser closes",
    )

    @field_validator("expiration")
    @classmethod
    def validate_expiration(cls, v):
        """Reject values the session layer cannot interpret."""
        return check_expiration(v)


class SetVariableRequest(BaseModel):
    """Request to set a session variable."""

    value: Any = Field(..., description="JSON value to store")
    expiration: Optional[Union[int, str]] = Field(
        default=None, description="Optional expiration for this variable"
    )
    reset_expiration: bool = Field(
        default=False, description="Drop an expiration previously set for this variable"
    )

    @field_validator("expiration")
    @classmethod
    def validate_expiration(cls, v):
        if v is None:
            return v
        return check_expiration(v)


# Response Models (API Output)


class VariableResponse(BaseModel):
    """A single session variable."""

    section: str
    key: str
    value: Any
    expires_at: Optional[datetime] = Field(
        default=None, description="Effective expiration; null when bound to the browser visit"
    )


class SectionResponse(BaseModel):
    """Contents of a session section."""

    section: str
    variables: Dict[str, Any] = Field(default_factory=dict)
    expires_at: Optional[datetime] = None


class SessionResponse(BaseModel):
    """Result of an explicit session start."""

    session_id: str
    new_visit: bool = Field(..., description="True when the previous browser visit had ended")


class CounterResponse(BaseModel):
    """Visit counter."""

    count: int
    session_id: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check result."""

    status: str
    storage: str


# Error Models


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error message")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error details")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


# Validation Helpers


def validate_name(name: str) -> str:
    """
    Validate a section or variable name used in a URL.

    Rules:
    - Letters, digits, underscore, dot, colon and hyphen
    - 1 to 100 characters
    """
    if not re.match(NAME_PATTERN, name):
        raise ValueError(
            f"Invalid name: {name}. Use 1-100 letters, digits, '_', '.', ':' or '-'."
        )
    return name


def check_expiration(value: Union[int, str]) -> Union[int, str]:
    """Reject expiration values the session layer cannot interpret."""
    if isinstance(value, int):
        if value < 0:
            raise ValueError("Expiration must not be negative")
        return value
    if is_end_of_visit(value) or parse_relative(value) is not None:
        return value
    try:
        datetime.fromisoformat(value.strip())
    except ValueError:
        raise ValueError(f"Invalid expiration: {value}") from None
    return value


def to_datetime(timestamp: Optional[float]) -> Optional[datetime]:
    """Convert a Unix timestamp to an aware UTC datetime."""
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=UTC)
