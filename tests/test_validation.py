"""
Form validation tests
"""

import pytest

from user_directory.models.user import UserFields
from user_directory.utils.errors import ValidationFailure
from user_directory.utils.error_handling import ErrorHandlingConfig
from user_directory.utils.validation import validate_user_form


class TestValidateUserForm:
    """Required fields and email shape, checked in form order"""

    def test_valid_form_passes(self):
        fields = UserFields(name="Ada", email="ada@example.com", phone="123")
        assert validate_user_form(fields) is fields

    @pytest.mark.parametrize("fields,field,message", [
        (UserFields(email="a@b.c", phone="1"), "name", "Name is required"),
        (UserFields(name="Ada", phone="1"), "email", "Email is required"),
        (UserFields(name="Ada", email="ada.example.com", phone="1"), "email", "Please enter a valid email address"),
        (UserFields(name="Ada", email="ada@example.com", phone=" "), "phone", "Phone is required"),
        (UserFields(), "name", "Name is required"),
    ])
    def test_first_failure_reported(self, fields, field, message):
        with pytest.raises(ValidationFailure) as exc_info:
            validate_user_form(fields)

        assert exc_info.value.field == field
        assert exc_info.value.message == message


class TestLogSanitizing:
    """Structured error logs redact sensitive keys"""

    def test_nested_sensitive_keys_redacted(self):
        data = {"email": "a@b.c", "auth": {"api_key": "k", "password": "p"}, "items": [{"token": "t"}]}

        sanitized = ErrorHandlingConfig.sanitize_data(data)

        assert sanitized["email"] == "a@b.c"
        assert sanitized["auth"]["api_key"] == "***REDACTED***"
        assert sanitized["auth"]["password"] == "***REDACTED***"
        assert sanitized["items"][0]["token"] == "***REDACTED***"
