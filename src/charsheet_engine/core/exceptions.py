"""Custom exception hierarchy for the character sheet engine.

Every error raised by the engine inherits from CharsheetError and carries
a ``status_code`` so the request-handling layer can map it onto a response
without inspecting the message. ``details`` holds what a caller needs to
correct the request, or to refetch and retry after a conflict.

Example:
    >>> from charsheet_engine.core.exceptions import ConflictError
    >>> raise ConflictError("Stale value", field_name="current", expected=16, actual=18)
"""

from __future__ import annotations

from typing import Any, ClassVar


def _with_context(details: dict[str, Any] | None, **context: Any) -> dict[str, Any]:
    """Merge keyword context into ``details``, skipping values that are None."""
    merged = dict(details or {})
    merged.update({key: value for key, value in context.items() if value is not None})
    return merged


class CharsheetError(Exception):
    """Base exception for all character sheet engine errors.

    Attributes:
        message: Human-readable error description.
        details: Context for the caller, such as expected vs. actual values.
        status_code: HTTP-style status code for the request boundary.
    """

    status_code: ClassVar[int] = 500

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"

    def to_dict(self) -> dict[str, Any]:
        """Error body for the request boundary."""
        return {
            "error": self.__class__.__name__,
            "status_code": self.status_code,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# Caller Errors (4xx)
# =============================================================================


class ValidationError(CharsheetError):
    """Raised when input is malformed or out of range.

    Validation runs before any state is touched, so a caller can correct
    the request and resubmit it.

    Args:
        message: Human-readable error description.
        field_name: Request field that failed validation.
        invalid_value: The rejected value.
        details: Additional context.
    """

    status_code: ClassVar[int] = 400

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            details=_with_context(details, field_name=field_name, invalid_value=invalid_value),
        )


class InvalidPointsError(ValidationError):
    """Raised when a requested point delta is zero or negative."""


class InvalidLearningMethodError(ValidationError):
    """Raised when an activation or increase omits its learning method."""


class InvalidEffectError(ValidationError):
    """Raised when a level-up effect is unknown or not currently allowed."""


class InsufficientBudgetError(ValidationError):
    """Raised when the price of an operation exceeds the available points.

    The whole operation is rejected; nothing is debited.
    """

    def __init__(
        self,
        message: str,
        *,
        required: float | None = None,
        available: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, required=required, available=available))


class DiceRollError(ValidationError):
    """Raised when a dice expression or a supplied roll is invalid."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, expression=expression))


class ConflictError(CharsheetError):
    """Raised when the caller's view of the record is stale.

    The stored value matches neither the caller's initial value nor the
    requested target. The caller must refetch and retry.

    Args:
        message: Human-readable error description.
        field_name: Field group whose stored value diverged.
        expected: Value the caller passed as its initial value.
        actual: Value currently stored.
        details: Additional context.
    """

    status_code: ClassVar[int] = 409

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        expected: Any | None = None,
        actual: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            details=_with_context(details, field_name=field_name, expected=expected, actual=actual),
        )


class NotFoundError(CharsheetError):
    """Raised when a character, user pairing or history record is absent."""

    status_code: ClassVar[int] = 404

    def __init__(
        self,
        message: str,
        *,
        user_id: str | None = None,
        character_id: str | None = None,
        record_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            details=_with_context(details, user_id=user_id, character_id=character_id, record_id=record_id),
        )


# =============================================================================
# Server Errors (5xx)
# =============================================================================


class RuleConfigurationError(CharsheetError):
    """Raised when compiled rule data is inconsistent.

    Examples are a cost category shifted past the maximum tier or an
    advantage bonus target outside its allow-list.
    """

    def __init__(
        self,
        message: str,
        *,
        rule: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, rule=rule))


class ConfigurationError(CharsheetError):
    """Raised when application settings are invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, config_key=config_key))


class StorageError(CharsheetError):
    """Raised when the persistence layer holds unreadable data."""


__all__ = [
    "CharsheetError",
    "ValidationError",
    "InvalidPointsError",
    "InvalidLearningMethodError",
    "InvalidEffectError",
    "InsufficientBudgetError",
    "DiceRollError",
    "ConflictError",
    "NotFoundError",
    "RuleConfigurationError",
    "ConfigurationError",
    "StorageError",
]
