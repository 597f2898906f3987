"""
Repository error taxonomy.

Every error raised by the stores or the repository facade derives from
RepositoryError, which carries a category, a severity, structured details
and a recoverable flag so that API handlers and logs can report it
uniformly.
"""

from datetime import datetime
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Error categories."""
    NETWORK = "network"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    STORAGE = "storage"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


class RepositoryError(Exception):
    """Base exception for repository errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.details = details or {}
        self.recoverable = recoverable
        self.timestamp = datetime.now()

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "details": self.details,
            "recoverable": self.recoverable,
            "timestamp": self.timestamp.isoformat(),
        }


class RemoteUnavailable(RepositoryError):
    """Transport or service-side failure of the remote store."""

    def __init__(
        self,
        message: str,
        entity: str | None = None,
        url: str | None = None,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {}) or {}
        if entity:
            details["entity"] = entity
        if url:
            details["url"] = url
        if status_code:
            details["status_code"] = status_code

        super().__init__(
            message=message,
            category=ErrorCategory.NETWORK,
            severity=ErrorSeverity.HIGH,
            details=details,
            **kwargs,
        )


class NotFound(RepositoryError):
    """The target record does not exist in the consulted source(s)."""

    def __init__(
        self,
        entity: str,
        record_id: str,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.entity = entity
        self.record_id = record_id
        details = kwargs.pop("details", {}) or {}
        details.update({"entity": entity, "id": record_id})

        super().__init__(
            message=message or f"{entity} record not found: {record_id}",
            category=ErrorCategory.NOT_FOUND,
            severity=ErrorSeverity.LOW,
            details=details,
            recoverable=False,
            **kwargs,
        )


class StorageWriteError(RepositoryError):
    """The local durable medium rejected a write or could not be read for one."""

    def __init__(
        self,
        message: str,
        entity: str | None = None,
        operation: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {}) or {}
        if entity:
            details["entity"] = entity
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            category=ErrorCategory.STORAGE,
            severity=ErrorSeverity.HIGH,
            details=details,
            recoverable=False,
            **kwargs,
        )


class ValidationError(RepositoryError):
    """Caller-supplied fields failed basic shape checks."""

    def __init__(
        self,
        message: str,
        entity: str | None = None,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {}) or {}
        if entity:
            details["entity"] = entity
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)

        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            details=details,
            recoverable=False,
            **kwargs,
        )


class ConfigurationError(RepositoryError):
    """Invalid or inconsistent configuration."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {}) or {}
        if config_key:
            details["config_key"] = config_key

        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.HIGH,
            recoverable=False,
            details=details,
            **kwargs,
        )
