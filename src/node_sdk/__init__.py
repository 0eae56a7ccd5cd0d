"""
Node SDK - Minimal Python node execution semantics.

This package provides the plugin interface nodes are written against:
- NodeExecutionContext: parameters, credentials, input items, HTTP
- BaseNode: Abstract base class for node implementations
- CredentialType / OAuth2ApiCredential: credential declarations
- BinaryData: binary attachments on items

All nodes execute synchronously (sync-Celery safe).
"""

from .items import BinaryData
from .basenode import (
    BaseNode,
    NodeExecutionContext,
    NodeExecutionData,
    NodeParameter,
    NodeCredential,
    NodeParameterType,
    NodeOperationError,
    NodeApiError,
)
from .credentials import (
    BearerTokenCredential,
    CredentialType,
    OAuth2ApiCredential,
    TokenRefreshError,
)
from .http import HttpApiError, HttpClient, HttpResponse, NodeTimeoutError, RequestOptions
from .settings import SdkSettings, get_settings, reset_settings

__all__ = [
    # Items
    "BinaryData",
    "NodeExecutionData",
    # Context
    "NodeExecutionContext",
    # Base class
    "BaseNode",
    "NodeParameter",
    "NodeCredential",
    "NodeParameterType",
    # Credentials
    "CredentialType",
    "BearerTokenCredential",
    "OAuth2ApiCredential",
    # Errors
    "NodeOperationError",
    "NodeApiError",
    "TokenRefreshError",
    "NodeTimeoutError",
    "HttpApiError",
    # HTTP
    "HttpClient",
    "HttpResponse",
    "RequestOptions",
    # Settings
    "SdkSettings",
    "get_settings",
    "reset_settings",
]
