"""
Exceptions raised while sanitizing records.
Text-safe: messages carry field paths and policy names, never field values.
"""
from enum import Enum
from typing import Optional


class SanitizeErrorCode(str, Enum):
    """Error codes for structural sanitization failures."""
    INVALID_PROPERTY_TYPE = "INVALID_PROPERTY_TYPE"
    INVALID_TAG_VALUE = "INVALID_TAG_VALUE"
    POLICY_NOT_CONFIGURED = "POLICY_NOT_CONFIGURED"


class SanitizeError(Exception):
    """
    Base exception for sanitization errors.

    All kinds are deterministic: re-running without a code or config
    change fails the same way, so none of them is retryable.

    Attributes:
        error_code: Code identifying the error kind
        message: Human readable message (no field values)
        field_path: Dotted path of the offending field, e.g. "profile.user.name"
    """

    def __init__(
        self,
        error_code: SanitizeErrorCode,
        message: str = "Sanitization failed",
        field_path: Optional[str] = None,
    ):
        self.error_code = error_code
        self.message = message
        self.field_path = field_path
        super().__init__(f"{message} (field: {field_path})" if field_path else message)


class InvalidPropertyTypeError(SanitizeError):
    """Raised when a tagged field is not a string or a sequence of strings."""

    def __init__(self, type_name: str = "unknown", field_path: Optional[str] = None):
        super().__init__(
            error_code=SanitizeErrorCode.INVALID_PROPERTY_TYPE,
            message=f"Invalid property type: expected string or list of strings, got {type_name}",
            field_path=field_path,
        )


class UnresolvedAnnotationError(InvalidPropertyTypeError):
    """Raised when a field's annotation carries a Sanitize marker that cannot be evaluated."""

    def __init__(self, annotation: str = "unknown", field_path: Optional[str] = None):
        self.annotation = annotation
        SanitizeError.__init__(
            self,
            error_code=SanitizeErrorCode.INVALID_PROPERTY_TYPE,
            message=f"Unresolved annotation with sanitize marker: {annotation}",
            field_path=field_path,
        )


class InvalidTagValueError(SanitizeError):
    """Raised when a declared policy name is not a recognized identifier."""

    def __init__(self, tag: object = None, field_path: Optional[str] = None):
        self.tag = tag
        super().__init__(
            error_code=SanitizeErrorCode.INVALID_TAG_VALUE,
            message=f"Invalid tag value: {tag!r}",
            field_path=field_path,
        )


class UnknownPolicyError(InvalidTagValueError):
    """Raised by the policy registry when asked for an unrecognized policy."""


class PolicyNotConfiguredError(SanitizeError):
    """Raised when a policy is resolved before its sanitize function was set up."""

    def __init__(self, policy: str = "unknown", field_path: Optional[str] = None):
        self.policy = policy
        super().__init__(
            error_code=SanitizeErrorCode.POLICY_NOT_CONFIGURED,
            message=f"Sanitize policy not configured: {policy}",
            field_path=field_path,
        )
