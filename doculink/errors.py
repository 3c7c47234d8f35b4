"""Typed failures raised across the extraction pipeline.

Every exit path of an extractor or of the document service is one of three
kinds:

    - ValidationError: caller input is malformed or breaks a declared rule.
    - NotFoundError: a referenced entity (usually the client) does not exist.
    - ProcessingError: extraction or persistence failed on well-formed input.

The HTTP layer maps each kind to a status code; nothing here knows about HTTP.
"""


class DocuLinkError(Exception):
    """Base class for all typed pipeline failures.

    Attributes:
        message: Human readable description.
        reason: Short machine readable code (e.g. "corrupted", "timeout").
        cause: Original exception, kept for diagnostics.
    """

    def __init__(
        self,
        message: str,
        *,
        reason: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason
        self.cause = cause


class ValidationError(DocuLinkError):
    """Raised when caller-supplied input is invalid."""

    def __init__(
        self,
        message: str,
        *,
        reason: str | None = "invalid_input",
        violations: list[str] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, reason=reason, cause=cause)
        self.violations = list(violations or [])


class NotFoundError(DocuLinkError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, resource: str, identifier: object) -> None:
        super().__init__(
            f"{resource.capitalize()} with ID {identifier} not found",
            reason="not_found",
        )
        self.resource = resource
        self.identifier = identifier


class ProcessingError(DocuLinkError):
    """Raised when extraction or persistence fails despite valid input."""

    def __init__(
        self,
        message: str,
        *,
        reason: str | None = "processing_failed",
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, reason=reason, cause=cause)


class ConflictError(DocuLinkError):
    """Raised when a uniqueness rule would be broken."""

    def __init__(self, message: str) -> None:
        super().__init__(message, reason="conflict")


class DatabaseError(DocuLinkError):
    """Raised by repositories for unexpected storage failures."""

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        super().__init__(f"Database operation failed: {operation}", reason="database", cause=cause)
        self.operation = operation
