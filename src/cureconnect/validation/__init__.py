"""Form validation: composable rules, clean results.

Usage::

    from cureconnect.validation import validate, required, email, matches

    result = validate(request.form, {
        "patient_name": [required, max_length(120)],
        "patient_email": [required, email],
        "patient_phone": [required, matches(r"^\\+?[0-9\\s\\-()]+$")],
    })
    if not result:
        ...  # result.errors maps field -> messages
"""

from collections.abc import Mapping

from cureconnect.validation.result import ValidationResult
from cureconnect.validation.rules import (
    Validator,
    date_format,
    email,
    matches,
    max_length,
    min_length,
    not_past,
    one_of,
    optional,
    required,
    time_format,
)

__all__ = [
    "ValidationResult",
    "Validator",
    "date_format",
    "email",
    "matches",
    "max_length",
    "min_length",
    "not_past",
    "one_of",
    "optional",
    "required",
    "time_format",
    "validate",
]


def validate(
    data: Mapping[str, object],
    rules: dict[str, list[Validator]],
) -> ValidationResult:
    """Validate data against a set of rules.

    Args:
        data: Any mapping of field names to values: ``Params``, or a
            plain ``dict``. Non-string values are stringified.
        rules: A dict mapping field names to lists of validator
            functions. Each validator returns an error message string
            on failure, or ``None`` on success.

    Returns:
        A ``ValidationResult`` with ``.data`` (cleaned values) and
        ``.errors`` (field → list of error messages).
    """
    errors: dict[str, list[str]] = {}
    cleaned: dict[str, str] = {}

    for field_name, validators in rules.items():
        raw = data.get(field_name)
        value = "" if raw is None else str(raw)

        field_errors: list[str] = []
        for validator in validators:
            error = validator(value)
            if error is not None:
                field_errors.append(error)
                # A missing value makes every later rule noise
                if validator is required:
                    break

        if field_errors:
            errors[field_name] = field_errors
        else:
            cleaned[field_name] = value

    return ValidationResult(data=cleaned, errors=errors)
