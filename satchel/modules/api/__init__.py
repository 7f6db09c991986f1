"""
API Module - Black Box Interface

Purpose: HTTP request and response models
Interface: Pydantic models for the session endpoints
Hidden: Field validation rules

The API module only describes data - it contains no session logic.
"""

from .models import (
    CounterResponse,
    ErrorResponse,
    ExpirationRequest,
    HealthResponse,
    SectionResponse,
    SessionResponse,
    SetVariableRequest,
    VariableResponse,
    to_datetime,
    validate_name,
)

__all__ = [
    "CounterResponse",
    "ErrorResponse",
    "ExpirationRequest",
    "HealthResponse",
    "SectionResponse",
    "SessionResponse",
    "SetVariableRequest",
    "VariableResponse",
    "to_datetime",
    "validate_name",
]
