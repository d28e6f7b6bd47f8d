"""Unified exception taxonomy.

Every domain exception inherits from ``RenamerError`` and carries
structured context fields so that the HTTP layer can map failures to
status codes and return a stable error payload.

Taxonomy categories
-------------------
- ``ValidationError``   — bad input (malformed XML, bad upload, bad prefix).
- ``PermanentError``    — unexpected failures that retrying will not fix.
- ``ContractError``     — request shape violations at the ingress boundary.

Every exception exposes ``to_error_dict()`` for a structured payload
suitable for logging and HTTP error bodies.
"""

from __future__ import annotations


class RenamerError(Exception):
    """Base exception for all renamer-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Stage where the error occurred
            (e.g. ``"rename_placemarks"``, ``"upload"``).
        code: Machine-readable error code (e.g. ``"KML_PARSE_FAILED"``).
        fatal: Whether the operation had to stop. Diagnostics such as
            missing expected folders are raised with ``fatal=False``.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        fatal: bool = True,
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.fatal = fatal
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        return "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "fatal": self.fatal,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(RenamerError):
    """Input or domain validation failure."""


class PermanentError(RenamerError):
    """Unrecoverable failure that should not happen for valid input."""


class ContractError(RenamerError):
    """Request payload does not match the expected shape."""
