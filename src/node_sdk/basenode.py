"""
BaseNode - Abstract base class for Python node implementations.

All nodes inherit from BaseNode and implement the execute() method.
Dropdown callbacks are declared in `methods["loadOptions"]` and are
served through get_load_options().

SYNC-CELERY SAFE: execute() is synchronous.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import (
    Any, Callable, Dict, List, Literal, Optional, Type, TypedDict, Union, TYPE_CHECKING,
)

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .credentials import CredentialType, OAuth2ApiCredential, TokenRefreshError
from .http import HttpClient, HttpResponse, RequestOptions
from .items import BinaryData
from .settings import get_settings


if TYPE_CHECKING:
    from src.node_registry.registry import NodeRegistry


logger = logging.getLogger(__name__)


# ==============================================================================
# NodeParameterType
# ==============================================================================

NodeParameterType = Literal[
    "string", "number", "boolean", "options", "multiOptions",
    "color", "json", "collection", "fixedCollection", "dateTime",
    "resourceLocator", "notice", "hidden", "code",
]


# ==============================================================================
# NodeParameter - Pydantic model for defining parameters
# ==============================================================================

class NodeParameter(BaseModel):
    """
    A single parameter in the node's properties.

    Properties stay plain dicts on node classes; this model validates them
    at registration time.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = Field(..., description="Parameter key (internal name)")
    display_name: str = Field(..., alias="displayName", description="Human-readable label")
    type: NodeParameterType = Field(..., description="Parameter type")
    default: Any = Field(None, description="Default value")
    required: bool = Field(False, description="Is parameter required?")
    description: Optional[str] = Field(None, description="Help text")
    placeholder: Optional[str] = Field(None, description="Input placeholder")
    options: Optional[List[Dict[str, Any]]] = Field(
        None,
        description="Options for options/multiOptions type, or fixedCollection groups"
    )
    display_options: Optional[Dict[str, Any]] = Field(
        None,
        alias="displayOptions",
        description="Conditional visibility"
    )
    type_options: Optional[Dict[str, Any]] = Field(None, alias="typeOptions")

    @property
    def load_options_method(self) -> Optional[str]:
        """Name of the dropdown callback feeding this parameter, if any."""
        if not self.type_options:
            return None
        return self.type_options.get("loadOptionsMethod")


class NodeCredential(BaseModel):
    """Credential requirement definition."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = Field(..., description="Credential type name")
    required: bool = Field(True, description="Is credential required?")
    display_name: Optional[str] = Field(None, alias="displayName")
    display_options: Optional[Dict[str, Any]] = Field(None, alias="displayOptions")


# ==============================================================================
# NodeExecutionData - Output data format
# ==============================================================================

class NodeExecutionData(TypedDict, total=False):
    """
    Single item of execution output data.

    Format: {"json": {...}, "binary": {...}, "pairedItem": {"item": 0}}
    """
    json: Dict[str, Any]
    binary: Optional[Dict[str, Any]]
    pairedItem: Optional[Dict[str, int]]


LoadOptionsMethod = Callable[["BaseNode"], List[Dict[str, Any]]]


# ==============================================================================
# BaseNode - Abstract base class
# ==============================================================================

class BaseNode(ABC):
    """
    Abstract base class for all Python node implementations.

    Nodes define:
    - type: Unique identifier (e.g., "twakeDrive")
    - version: Node version number
    - description: Node metadata dict
    - properties: Parameters and credentials
    - methods: {"loadOptions": {name: callable(node)}} for dropdowns

    And implement execute() which processes input items.

    SYNC-CELERY SAFE: All execution is synchronous.
    """

    # Required class attributes (override in subclasses)
    type: str = "base"
    version: int = 1

    description: Dict[str, Any] = {
        "displayName": "Base Node",
        "name": "base",
        "description": "",
        "group": [],
        "version": 1,
        "inputs": ["main"],
        "outputs": ["main"],
    }

    properties: Dict[str, Any] = {
        "parameters": [],
        "credentials": [],
    }

    methods: Dict[str, Dict[str, LoadOptionsMethod]] = {}

    # Continue processing other items if one fails
    continue_on_fail: bool = False

    def __init__(self) -> None:
        """Initialize node instance."""
        self.logger = logging.getLogger(f"node.{self.type}")
        self._context: Optional[NodeExecutionContext] = None

    @abstractmethod
    def execute(self) -> List[List[NodeExecutionData]]:
        """
        Execute node operation.

        Returns:
            List[List[NodeExecutionData]]: Nested list of execution results.
            - Outer list represents output branches (usually 1)
            - Inner list represents items in that branch

        Raises:
            NodeOperationError: On operation failure
            NodeApiError: On API call failure
        """
        raise NotImplementedError

    # ==== Context Management ====

    def set_context(self, context: "NodeExecutionContext") -> None:
        """Set the execution context."""
        self._context = context

    @property
    def context(self) -> "NodeExecutionContext":
        if self._context is None:
            raise NodeOperationError("No context set", node=self)
        return self._context

    @property
    def name(self) -> str:
        """Node instance name, falling back to the display name."""
        if self._context is not None and self._context.node_name:
            return self._context.node_name
        return self.description.get("displayName", self.type)

    # ==== Helper methods for subclasses ====

    def get_node_parameter(
        self,
        name: str,
        item_index: int = 0,
        default: Any = None,
    ) -> Any:
        """
        Get parameter value.

        Args:
            name: Parameter name, dotted for nested collection values
            item_index: Index of item (for expression resolution)
            default: Default if not set
        """
        if self._context is None:
            return default
        return self._context.get_node_parameter(name, item_index, default)

    def get_current_node_parameter(self, name: str, default: Any = None) -> Any:
        """Parameter value as currently set in the editor (load options)."""
        return self.get_node_parameter(name, 0, default)

    def get_credentials(self, name: str) -> Dict[str, Any]:
        """
        Get credentials by type name.

        Args:
            name: Credential type name (e.g., "twakeDriveApi")

        Returns:
            Credentials dict with decrypted values
        """
        return self.context.get_credentials(name)

    def get_input_data(self) -> List[Dict[str, Any]]:
        """
        Get input items from previous node.

        Returns:
            List of input items, each with 'json' key.
        """
        if self._context is None:
            return []
        return self._context.get_input_data()

    def should_continue_on_fail(self) -> bool:
        """True when failed items should be emitted instead of raised."""
        if self.continue_on_fail:
            return True
        return self._context is not None and self._context.continue_on_fail

    def request_with_authentication(
        self,
        credential_type: str,
        options: Union[RequestOptions, Dict[str, Any]],
        oauth2_options: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Make an authenticated HTTP request through the context.

        This replaces n8n's this.helpers.requestWithAuthentication().
        SYNC-CELERY SAFE: Uses requests with timeout.
        """
        return self.context.request_with_authentication(credential_type, options, oauth2_options)

    def get_binary_buffer(self, item_index: int, key: str) -> bytes:
        """Decoded content of binary `key` on input item `item_index`."""
        return self.context.get_binary_buffer(item_index, key)

    def get_load_options(self, method_name: str) -> List[Dict[str, Any]]:
        """
        Run a dropdown callback declared in `methods["loadOptions"]`.

        Returns a list of {"name": ..., "value": ...} options.
        """
        load_options = self.methods.get("loadOptions", {})
        method = load_options.get(method_name)
        if method is None:
            raise NodeOperationError(
                f"Unknown load options method '{method_name}'",
                node=self,
            )
        return method(self)


# ==============================================================================
# NodeExecutionContext - Runtime context for node execution
# ==============================================================================

class NodeExecutionContext:
    """
    Runtime context provided to nodes during execution.

    Provides access to:
    - Parameters (dotted lookup into collections)
    - Credentials (and their persistence after an OAuth2 refresh)
    - Input data and binary buffers
    - Authenticated HTTP requests
    """

    def __init__(
        self,
        parameters: Dict[str, Any],
        credentials: Dict[str, Dict[str, Any]],
        input_data: List[Dict[str, Any]],
        workflow_id: Optional[str] = None,
        node_name: Optional[str] = None,
        continue_on_fail: bool = False,
        credential_types: Optional[Dict[str, Type[CredentialType]]] = None,
        on_credentials_updated: Optional[Callable[[str, Dict[str, Any]], None]] = None,
        registry: Optional["NodeRegistry"] = None,
        http_client: Optional[HttpClient] = None,
    ) -> None:
        self._parameters = parameters
        self._credentials = credentials
        self._input_data = input_data
        self.workflow_id = workflow_id
        self.node_name = node_name
        self.continue_on_fail = continue_on_fail
        self._credential_types = dict(credential_types or {})
        self._on_credentials_updated = on_credentials_updated
        self._registry = registry
        self._http = http_client or HttpClient(timeout=get_settings().http_timeout_s)

    # ==== Parameters ====

    def get_node_parameter(
        self,
        name: str,
        item_index: int = 0,
        default: Any = None,
    ) -> Any:
        """Get parameter value, following dotted paths into collections."""
        if name in self._parameters:
            return self._parameters[name]

        value: Any = self._parameters
        for part in name.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    # ==== Credentials ====

    def get_credentials(self, name: str) -> Dict[str, Any]:
        """Get credentials by type name, with declared defaults filled in."""
        if name not in self._credentials:
            raise NodeOperationError(f"Credentials '{name}' not found")
        credential_class = self._find_credential_class(name)
        if credential_class is None:
            return self._credentials[name]
        return credential_class().with_defaults(self._credentials[name])

    def update_credentials(self, name: str, data: Dict[str, Any]) -> None:
        """Store refreshed credential data and notify the host."""
        self._credentials[name] = data
        if self._on_credentials_updated is not None:
            self._on_credentials_updated(name, data)

    def _find_credential_class(self, name: str) -> Optional[Type[CredentialType]]:
        if name in self._credential_types:
            return self._credential_types[name]
        if self._registry is None:
            from src.node_registry.registry import get_global_registry
            self._registry = get_global_registry()
        return self._registry.get_credential_class(name)

    # ==== Input data ====

    def get_input_data(self) -> List[Dict[str, Any]]:
        """Get input items."""
        return self._input_data

    def get_binary_buffer(self, item_index: int, key: str) -> bytes:
        """Decoded binary content stored under `key` on an input item."""
        items = self._input_data
        if not 0 <= item_index < len(items):
            raise NodeOperationError(f"No input item at index {item_index}", item_index=item_index)
        entry = (items[item_index].get("binary") or {}).get(key)
        if not entry:
            raise NodeOperationError(
                f"Binary property '{key}' not found", item_index=item_index
            )
        try:
            return BinaryData.from_entry(entry).to_bytes()
        except (ValidationError, ValueError) as e:
            raise NodeOperationError(
                f"Binary property '{key}' could not be decoded: {e}", item_index=item_index
            ) from e

    # ==== HTTP ====

    def request_with_authentication(
        self,
        credential_type: str,
        options: Union[RequestOptions, Dict[str, Any]],
        oauth2_options: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Send a request authenticated with `credential_type`.

        OAuth2 credentials are refreshed ahead of expiry, and once more
        when the server answers with `token_expired_status_code`
        (default 401) in `oauth2_options`, after which the request is
        retried a single time.

        Returns:
            Parsed JSON body, raw bytes when options.encoding is
            "arraybuffer", or a dict with body/headers/statusCode when
            options.return_full_response is set.

        Raises:
            NodeApiError: On non-2xx responses
            TokenRefreshError: When an OAuth2 refresh fails
        """
        if isinstance(options, dict):
            options = RequestOptions.model_validate(options)
        oauth2_options = oauth2_options or {}

        credential_class = self._find_credential_class(credential_type)
        if credential_class is None:
            raise NodeOperationError(f"Unknown credential type '{credential_type}'")
        credential = credential_class()
        credentials = self.get_credentials(credential_type)

        is_oauth2 = isinstance(credential, OAuth2ApiCredential)
        include_on_body = bool(oauth2_options.get("includeCredentialsOnRefreshOnBody"))

        if is_oauth2 and credential.is_token_expired(credentials.get("oauthTokenData") or {}):
            credentials = self._refresh(credential_type, credential, credentials, include_on_body)

        response = self._http.send(credential.authenticate(credentials, options))

        expired_status = int(oauth2_options.get("tokenExpiredStatusCode", 401))
        if is_oauth2 and response.status_code == expired_status:
            logger.info(
                f"{options.method} {options.full_url()} returned {expired_status}, refreshing token"
            )
            try:
                credentials = self._refresh(credential_type, credential, credentials, include_on_body)
            except TokenRefreshError as e:
                # A 400 can be a genuine bad request rather than an expired token
                if expired_status != 401 and not e.needs_reauth:
                    raise self._api_error(options, response) from e
                raise
            response = self._http.send(credential.authenticate(credentials, options))

        if not response.ok:
            raise self._api_error(options, response)

        if options.return_full_response:
            return {
                "body": response.content if options.encoding == "arraybuffer" else response.parsed_body(),
                "headers": response.headers,
                "statusCode": response.status_code,
                "statusMessage": response.reason,
            }
        if options.encoding == "arraybuffer":
            return response.content
        return response.parsed_body()

    def _refresh(
        self,
        credential_type: str,
        credential: OAuth2ApiCredential,
        credentials: Dict[str, Any],
        include_on_body: bool,
    ) -> Dict[str, Any]:
        refreshed = credential.refresh_token(credentials, include_credentials_on_body=include_on_body)
        self.update_credentials(credential_type, refreshed)
        return refreshed

    @staticmethod
    def _api_error(options: RequestOptions, response: HttpResponse) -> "NodeApiError":
        detail = response.error_detail()
        return NodeApiError(
            f"{options.method.upper()} {options.full_url()} failed with HTTP "
            f"{response.status_code}: {detail if detail else response.reason}",
            status_code=response.status_code,
            response_body=response.parsed_body(),
            description=detail if isinstance(detail, str) else None,
        )


# ==============================================================================
# Errors
# ==============================================================================

class NodeOperationError(Exception):
    """Error during node operation."""

    def __init__(
        self,
        message: str,
        node: Optional[BaseNode] = None,
        item_index: Optional[int] = None,
        description: Optional[str] = None,
    ) -> None:
        self.message = message
        self.node = node
        self.item_index = item_index
        self.description = description
        super().__init__(message)


class NodeApiError(NodeOperationError):
    """Error from external API call."""

    def __init__(
        self,
        message: str,
        node: Optional[BaseNode] = None,
        status_code: Optional[int] = None,
        response_body: Any = None,
        item_index: Optional[int] = None,
        description: Optional[str] = None,
    ) -> None:
        super().__init__(message, node, item_index, description)
        self.status_code = status_code
        self.response_body = response_body


# ==============================================================================
# Exports
# ==============================================================================

__all__ = [
    "BaseNode",
    "NodeExecutionContext",
    "NodeExecutionData",
    "NodeParameter",
    "NodeCredential",
    "NodeParameterType",
    "NodeOperationError",
    "NodeApiError",
    "LoadOptionsMethod",
]
