from __future__ import annotations

from typing import Any

class TemplateError(ValueError):
    pass

class ExternalModelError(RuntimeError):
    """The model call failed, timed out or was cancelled."""

    def __init__(self, reason: str, message: str = "") -> None:
        self.reason = reason  # failed | timeout | cancelled
        super().__init__(f"model call {reason}" + (f": {message}" if message else ""))

class SchemaValidationError(ValueError):
    """Model output (or flow input) does not match its declared schema."""

    def __init__(
        self,
        field: str,
        constraint: str,
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        self.field = field
        self.constraint = constraint
        self.errors = errors or []
        super().__init__(f"{field}: {constraint}")

class CompositionError(ValueError):
    """A generated exam set breaks the composition policy."""

    def __init__(self, constraint: str, message: str, question_id: str | None = None) -> None:
        self.constraint = constraint  # count | mix | uniqueness | shape
        self.question_id = question_id
        super().__init__(f"{constraint}: {message}")
