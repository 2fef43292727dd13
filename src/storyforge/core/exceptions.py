"""
storyforge.core.exceptions - Custom Exception Hierarchy
=========================================================

This module defines the closed set of errors StoryForge raises. Each error
carries structured fields, so callers never have to parse message strings
to find out what went wrong.

Exception Hierarchy:
    StoryForgeError (base)
        ├── InvalidInputError      - Empty/malformed caller input (no I/O attempted)
        ├── ValidationError        - Artifact fails its required-field schema
        ├── ConflictError          - expected_version_id does not match current
        ├── StorageError           - Object-store I/O or chain-integrity failure
        ├── CompletionError        - Completion engine failed (auth/rate/network/...)
        ├── SubstitutionError      - Template placeholders left unresolved
        ├── ParseError             - Completion response is not artifact JSON
        ├── TemplateNotFoundError  - Unknown template id
        └── ConfigurationError     - Invalid configuration

Propagation Policy:
    Every error is raised to the immediate caller. Nothing inside StoryForge
    retries or swallows these. ConflictError is the one callers are expected
    to handle specially (reload current state and re-present it).

Usage:
    >>> from storyforge.core.exceptions import ConflictError
    >>> raise ConflictError(
    ...     expected_version_id="v1",
    ...     actual_version_id="v2",
    ...     correlation_id="req-123",
    ... )
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


# =============================================================================
# Base Exception
# =============================================================================
# All StoryForge exceptions inherit from this base class, so the HTTP layer
# can render any of them with a single except clause:
#
#   try:
#       await forge.story_root.commit(ctx, artifact, expected_version_id)
#   except StoryForgeError as e:
#       return JSONResponse(e.to_dict(), status_code=...)
# =============================================================================
class StoryForgeError(Exception):
    """Base exception for all StoryForge errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code for programmatic handling.
            Convention: UPPER_SNAKE_CASE (e.g., "VERSION_CONFLICT").
        details: Structured debugging context.
        correlation_id: Request id of the request that failed, when known.
            Rendered next to the message so users can quote it.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.correlation_id = correlation_id

    def to_dict(self) -> dict[str, Any]:
        """Serialize this exception to a dictionary.

        Returns:
            Dictionary with error_type, message, error_code, details and
            correlation_id. Safe to pass straight to a JSON encoder.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
            "correlation_id": self.correlation_id,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


# =============================================================================
# Invalid Input Error
# =============================================================================
# Raised before any I/O when the caller hands us something unusable: blank
# raw input, a blank version id, a user id that would break the path scheme.
# =============================================================================
class InvalidInputError(StoryForgeError):
    """Raised when caller-supplied input is empty or malformed.

    Attributes:
        field: Name of the offending input, if there is a single one.

    Example:
        >>> raise InvalidInputError("raw_input cannot be empty", field="raw_input")
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: str = "INVALID_INPUT",
        details: Optional[dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        enriched_details = details or {}
        if field:
            enriched_details["field"] = field

        super().__init__(
            message=message,
            error_code=error_code,
            details=enriched_details,
            correlation_id=correlation_id,
        )

        self.field = field


# =============================================================================
# Validation Error
# =============================================================================
class ValidationError(StoryForgeError):
    """Raised when an artifact is missing one or more required fields.

    When the artifact came from the completion engine, the raw response is
    attached so the failing output can be inspected.

    Attributes:
        kind: Artifact kind that failed validation (e.g., "story_root").
        missing_fields: Required fields that were absent or blank, in
            declaration order.
        raw_response: The completion engine output, if any.

    Example:
        >>> raise ValidationError(
        ...     "genre is required",
        ...     kind="story_root",
        ...     missing_fields=["genre"],
        ... )
    """

    def __init__(
        self,
        message: str,
        kind: str,
        missing_fields: Optional[list[str]] = None,
        raw_response: Optional[str] = None,
        error_code: str = "VALIDATION_FAILED",
        details: Optional[dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["kind"] = kind
        enriched_details["missing_fields"] = list(missing_fields or [])
        if raw_response is not None:
            enriched_details["raw_response"] = raw_response

        super().__init__(
            message=message,
            error_code=error_code,
            details=enriched_details,
            correlation_id=correlation_id,
        )

        self.kind = kind
        self.missing_fields = list(missing_fields or [])
        self.raw_response = raw_response

    def with_raw_response(self, raw_response: str) -> ValidationError:
        """Return a copy of this error that carries the raw engine response."""
        return ValidationError(
            f"{self.message}. Response: {raw_response}",
            kind=self.kind,
            missing_fields=self.missing_fields,
            raw_response=raw_response,
            error_code=self.error_code,
            correlation_id=self.correlation_id,
        )


# =============================================================================
# Conflict Error
# =============================================================================
# The optimistic-concurrency failure. Someone committed since the caller
# loaded the artifact, or the caller expected a version in an empty chain.
# =============================================================================
class ConflictError(StoryForgeError):
    """Raised when expected_version_id does not match the current version.

    Attributes:
        expected_version_id: The version the caller believed was current.
        actual_version_id: The version that is actually current, or None
            when the chain is empty.

    Example:
        >>> raise ConflictError(expected_version_id="v1", actual_version_id="v2")
    """

    def __init__(
        self,
        expected_version_id: Optional[str],
        actual_version_id: Optional[str],
        message: Optional[str] = None,
        error_code: str = "VERSION_CONFLICT",
        details: Optional[dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        if message is None:
            message = (
                f"Version conflict: Expected version '{expected_version_id}' "
                f"but current version is '{actual_version_id or '(none)'}'. "
                f"Reload the current version and try again."
            )

        enriched_details = details or {}
        enriched_details["expected_version_id"] = expected_version_id
        enriched_details["actual_version_id"] = actual_version_id

        super().__init__(
            message=message,
            error_code=error_code,
            details=enriched_details,
            correlation_id=correlation_id,
        )

        self.expected_version_id = expected_version_id
        self.actual_version_id = actual_version_id


# =============================================================================
# Storage Error
# =============================================================================
class StorageError(StoryForgeError):
    """Raised when the object store fails or the version chain is inconsistent.

    Always fatal to the in-flight call. Chain integrity violations (a
    pointer that references a missing version) use error_code
    "CHAIN_INTEGRITY".

    Attributes:
        path: Storage location involved in the failure, if known.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        error_code: str = "STORAGE_ERROR",
        details: Optional[dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        enriched_details = details or {}
        if path is not None:
            enriched_details["path"] = path

        super().__init__(
            message=message,
            error_code=error_code,
            details=enriched_details,
            correlation_id=correlation_id,
        )

        self.path = path


# =============================================================================
# Completion Error
# =============================================================================
# The completion engine is invoked exactly once per proposal. Whatever goes
# wrong is classified into one of these reasons and surfaced as-is.
# =============================================================================
class CompletionFailureReason(str, Enum):
    """Why a completion engine call failed."""

    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    TIMEOUT = "timeout"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"


class CompletionError(StoryForgeError):
    """Raised when the completion engine call fails.

    Attributes:
        reason: Classified failure reason.
        status_code: HTTP status code, when the engine is HTTP-based.

    Example:
        >>> raise CompletionError(
        ...     "OpenAI API rate limit exceeded",
        ...     reason=CompletionFailureReason.RATE_LIMIT,
        ...     status_code=429,
        ... )
    """

    def __init__(
        self,
        message: str,
        reason: CompletionFailureReason = CompletionFailureReason.UNKNOWN,
        status_code: Optional[int] = None,
        error_code: str = "COMPLETION_FAILED",
        details: Optional[dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["reason"] = reason.value
        if status_code is not None:
            enriched_details["status_code"] = status_code

        super().__init__(
            message=message,
            error_code=error_code,
            details=enriched_details,
            correlation_id=correlation_id,
        )

        self.reason = reason
        self.status_code = status_code


# =============================================================================
# Substitution Error
# =============================================================================
class SubstitutionError(StoryForgeError):
    """Raised when a template still contains placeholders after substitution.

    Attributes:
        missing_variables: Every placeholder name with no matching variable,
            in order of first appearance.
        template_id: Template being assembled, if known.
    """

    def __init__(
        self,
        missing_variables: list[str],
        template_id: Optional[str] = None,
        provided_variables: Optional[list[str]] = None,
        message: Optional[str] = None,
        error_code: str = "SUBSTITUTION_FAILED",
        details: Optional[dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        if message is None:
            message = (
                f"Missing required variables: {', '.join(missing_variables)}. "
                f"Provided variables: {', '.join(provided_variables or [])}"
            )

        enriched_details = details or {}
        enriched_details["missing_variables"] = list(missing_variables)
        if template_id is not None:
            enriched_details["template_id"] = template_id

        super().__init__(
            message=message,
            error_code=error_code,
            details=enriched_details,
            correlation_id=correlation_id,
        )

        self.missing_variables = list(missing_variables)
        self.template_id = template_id


# =============================================================================
# Parse Error
# =============================================================================
class ParseError(StoryForgeError):
    """Raised when a completion response cannot be read as artifact JSON.

    Attributes:
        raw_response: The completion engine output that failed to parse.
    """

    def __init__(
        self,
        message: str,
        raw_response: str,
        error_code: str = "PARSE_FAILED",
        details: Optional[dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["raw_response"] = raw_response

        super().__init__(
            message=message,
            error_code=error_code,
            details=enriched_details,
            correlation_id=correlation_id,
        )

        self.raw_response = raw_response


# =============================================================================
# Template Not Found Error
# =============================================================================
class TemplateNotFoundError(StoryForgeError):
    """Raised by a template provider for an unknown template id."""

    def __init__(
        self,
        template_id: str,
        error_code: str = "TEMPLATE_NOT_FOUND",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["template_id"] = template_id

        super().__init__(
            message=f"Template not found: {template_id}",
            error_code=error_code,
            details=enriched_details,
        )

        self.template_id = template_id


# =============================================================================
# Configuration Error
# =============================================================================
# Raised during startup when configuration is invalid. Fail fast.
# =============================================================================
class ConfigurationError(StoryForgeError):
    """Raised when StoryForge configuration is invalid or missing.

    Example:
        >>> raise ConfigurationError(
        ...     message="OpenAI API key is not configured",
        ...     error_code="MISSING_API_KEY",
        ...     details={"provider": "openai"},
        ... )
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)
