"""
Core Abstraction Layer.

This module provides:
- Error taxonomy shared by stores and the repository facade
- HTTP client abstraction for the remote store
- Retry policy for remote reads
- Unified configuration
"""

from .exceptions import (
    ConfigurationError,
    ErrorCategory,
    ErrorSeverity,
    NotFound,
    RemoteUnavailable,
    RepositoryError,
    StorageWriteError,
    ValidationError,
)
from .http_client import (
    HttpClient,
    HttpClientError,
    HttpMethod,
    HttpRequest,
    HttpResponse,
)
from .retry import RetryPolicy, retry_remote
from .config import (
    DebtDeskConfig,
    EntityPolicySettings,
    LocalStoreSettings,
    LoggingSettings,
    RemoteSettings,
    RetrySettings,
    get_config,
    load_config,
    set_config,
)

__all__ = [
    "ConfigurationError",
    "ErrorCategory",
    "ErrorSeverity",
    "NotFound",
    "RemoteUnavailable",
    "RepositoryError",
    "StorageWriteError",
    "ValidationError",
    "HttpClient",
    "HttpClientError",
    "HttpMethod",
    "HttpRequest",
    "HttpResponse",
    "RetryPolicy",
    "retry_remote",
    "DebtDeskConfig",
    "EntityPolicySettings",
    "LocalStoreSettings",
    "LoggingSettings",
    "RemoteSettings",
    "RetrySettings",
    "get_config",
    "load_config",
    "set_config",
]
