"""Validation result: immutable container for validated data or errors."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """The outcome of validating submitted data against a set of rules.

    The result is falsy when invalid, so you can write::

        result = validate(form, rules)
        if not result:
            return self.render("appointments/create.html", {"errors": result.first_errors()})

    ``errors`` maps field names to lists of error messages::

        {"patient_name": ["This field is required"],
         "patient_email": ["Must be a valid email address"]}
    """

    data: dict[str, str]
    errors: dict[str, list[str]]

    @property
    def is_valid(self) -> bool:
        """True if validation passed with no errors."""
        return not self.errors

    def __bool__(self) -> bool:
        """Falsy when invalid; enables ``if not result:`` pattern."""
        return self.is_valid

    def first_errors(self) -> dict[str, str]:
        """One message per field, for templates that show a single line."""
        return {name: messages[0] for name, messages in self.errors.items() if messages}
