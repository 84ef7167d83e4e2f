#!/usr/bin/env python3
"""
Exception hierarchy for the iSCSI audit.

Fetch errors abort an audit. Probe, session and cleanup errors are handled
where they occur and only reported.
"""

from typing import Any, Optional


class AuditError(Exception):
    """Base class for all audit errors."""


class ConfigError(AuditError):
    """Raised when the audit configuration is invalid."""


class APIError(AuditError):
    """Raised when a call to the storage control API fails."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeError(AuditError):
    """Raised when an API record cannot be decoded into a typed record."""

    def __init__(self, kind: str, field: str, value: Any, reason: str = "missing or invalid") -> None:
        super().__init__(f"Cannot decode {kind}: field '{field}' is {reason} (got {value!r})")
        self.kind = kind
        self.field = field
        self.value = value


class FetchError(AuditError):
    """Raised when one of the primary resource lists cannot be fetched."""

    def __init__(self, resource: str, cause: Exception) -> None:
        super().__init__(f"Failed to get {resource}: {cause}")
        self.resource = resource
        self.cause = cause


class ProbeError(AuditError):
    """Raised when an existence probe cannot be answered."""

    def __init__(self, path: str, cause: Exception) -> None:
        super().__init__(f"Could not check {path}: {cause}")
        self.path = path
        self.cause = cause
