"""
Client-side form checks run before a create/update reaches the reconciliation service
"""

from user_directory.models.user import UserFields
from user_directory.utils.errors import ValidationFailure

REQUIRED_FIELDS = (
    ("name", "Name is required"),
    ("email", "Email is required"),
)


def validate_user_form(fields: UserFields) -> UserFields:
    """Raise ValidationFailure on the first failing check, otherwise return the fields unchanged"""
    for field_name, message in REQUIRED_FIELDS:
        value = getattr(fields, field_name)
        if not value or not value.strip():
            raise ValidationFailure(field_name, message)

    if "@" not in fields.email:
        raise ValidationFailure("email", "Please enter a valid email address")

    if not fields.phone or not fields.phone.strip():
        raise ValidationFailure("phone", "Phone is required")

    return fields
