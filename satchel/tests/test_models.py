"""
Unit tests for Satchel API models.
"""

import os
import sys
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

sys.path.append(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from satchel.modules.api.models import (
    ErrorResponse,
    ExpirationRequest,
    SetVariableRequest,
    to_datetime,
    validate_name,
)


class TestExpirationRequest:
    """Test section expiration request model."""

    @pytest.mark.parametrize(
        "value", [0, 600, "0", "20 minutes", "+3 hours", "2030-01-01T00:00:00+00:00"]
    )
    def test_valid_expirations(self, value):
        assert ExpirationRequest(expiration=value).expiration == value

    @pytest.mark.parametrize("value", [-1, "soon", "3 fortnights"])
    def test_invalid_expirations(self, value):
        with pytest.raises(ValidationError) as exc_info:
            ExpirationRequest(expiration=value)
        assert "expiration" in str(exc_info.value)

    def test_expiration_required(self):
        with pytest.raises(ValidationError):
            ExpirationRequest()


class TestSetVariableRequest:
    """Test variable write request model."""

    def test_defaults(self):
        request = SetVariableRequest(value={"items": [1, 2]})
        assert request.value == {"items": [1, 2]}
        assert request.expiration is None
        assert request.reset_expiration is False

    def test_null_value_is_allowed(self):
        assert SetVariableRequest(value=None).value is None

    def test_value_required(self):
        with pytest.raises(ValidationError):
            SetVariableRequest()

    def test_expiration_validated(self):
        assert SetVariableRequest(value=1, expiration="5 min").expiration == "5 min"
        with pytest.raises(ValidationError):
            SetVariableRequest(value=1, expiration="later")


class TestValidation:
    """Test validation helpers."""

    @pytest.mark.parametrize("name", ["cart", "user.profile", "app:flash", "a-b_c", "x" * 100])
    def test_valid_names(self, name):
        assert validate_name(name) == name

    @pytest.mark.parametrize("name", ["", "bad name", "semi;colon", "x" * 101, "slash/ed"])
    def test_invalid_names(self, name):
        with pytest.raises(ValueError) as exc_info:
            validate_name(name)
        assert "Invalid name" in str(exc_info.value)

    def test_to_datetime(self):
        assert to_datetime(None) is None
        assert to_datetime(0) == datetime(1970, 1, 1, tzinfo=UTC)


def test_error_response_timestamp():
    response = ErrorResponse(error="boom")
    assert response.details is None
    assert response.timestamp.tzinfo is not None
