"""Base exception classes for the Electorate domain layer."""

from __future__ import annotations

from typing import Any


class ElectorateError(Exception):
    """Base exception for all domain errors.

    All domain-specific exceptions MUST inherit from this class so the
    transport layer can report any rejection uniformly.

    Class attributes describe the problem type for RFC 7807 style
    responses; subclasses override them and add their own context
    fields through ``_problem_extensions``.
    """

    problem_type: str = "urn:electorate:error"
    title: str = "Election Error"
    status: int = 400

    def __init__(self, message: str = "") -> None:
        """Initialize the exception with an optional message.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)

    def _problem_extensions(self) -> dict[str, Any]:
        return {}

    def to_rfc7807_dict(self) -> dict[str, Any]:
        """Serialize to RFC 7807 problem details.

        Returns:
            Dictionary with type, title, status, detail and any
            error-specific extension members.
        """
        result: dict[str, Any] = {
            "type": self.problem_type,
            "title": self.title,
            "status": self.status,
            "detail": str(self),
        }
        result.update(self._problem_extensions())
        return result

    def to_dict(self) -> dict[str, Any]:
        """Problem-details dictionary for the transport edge."""
        return self.to_rfc7807_dict()
