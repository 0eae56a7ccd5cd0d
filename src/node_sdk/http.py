"""
HTTP Client - Timeout-bounded HTTP requests for nodes.

All HTTP calls MUST use timeouts (sync-Celery requirement).
Requests are described by RequestOptions, the Python form of the
option bags nodes hand to the host's request helpers, and sent
through requests with a structured response wrapper.
"""

from __future__ import annotations

import json as jsonlib
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

import requests
from pydantic import BaseModel, ConfigDict, Field
from requests.exceptions import RequestException, Timeout


logger = logging.getLogger(__name__)

# Default timeout in seconds (REQUIRED for sync-Celery)
DEFAULT_TIMEOUT = 30


class NodeTimeoutError(Exception):
    """Raised when an HTTP request times out."""

    def __init__(self, message: str, timeout: float, url: str):
        self.timeout = timeout
        self.url = url
        super().__init__(message)


class HttpApiError(Exception):
    """Transport-level failure (connection refused, DNS, TLS...)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        url: Optional[str] = None,
        method: Optional[str] = None,
    ):
        self.status_code = status_code
        self.response_body = response_body
        self.url = url
        self.method = method
        super().__init__(message)


class RequestOptions(BaseModel):
    """
    Description of one outgoing request.

    `body` is sent as JSON when it is a dict or list, and raw otherwise
    (bytes or text). `encoding="arraybuffer"` asks for the raw bytes of the
    response instead of parsed JSON.
    """
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    method: str = Field("GET", description="HTTP method")
    url: str = Field(..., description="Absolute URL or path relative to base_url")
    base_url: Optional[str] = Field(None, alias="baseURL")
    qs: Dict[str, Any] = Field(default_factory=dict, description="Query string")
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Any = Field(None, description="JSON-able object, bytes or text")
    encoding: Optional[str] = Field(None, description="'arraybuffer' for raw bytes")
    timeout: Optional[float] = Field(None, description="Timeout override in seconds")
    return_full_response: bool = Field(False, alias="returnFullResponse")

    def full_url(self) -> str:
        """Join base_url and url unless url is already absolute."""
        if self.base_url and not self.url.startswith(("http://", "https://")):
            return f"{self.base_url.rstrip('/')}/{self.url.lstrip('/')}"
        return self.url


class HttpResponse:
    """
    Wrapper for HTTP response with convenient accessors.
    """

    def __init__(self, response: requests.Response):
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def reason(self) -> str:
        return self._response.reason or ""

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._response.headers)

    @property
    def text(self) -> str:
        return self._response.text

    @property
    def content(self) -> bytes:
        return self._response.content

    @property
    def ok(self) -> bool:
        """True if status code is 2xx."""
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Parse response as JSON."""
        return self._response.json()

    def parsed_body(self) -> Any:
        """
        Body as JSON when it parses, text otherwise, None when empty.

        Drive endpoints answer with `application/vnd.api+json`, which
        requests does not treat as JSON by itself.
        """
        if not self.content:
            return None
        try:
            return self.json()
        except ValueError:
            return self.text

    def error_detail(self) -> Any:
        """
        Extract the most useful error detail from a failed response.

        Understands JSON:API `errors` arrays and OAuth2 style
        `error`/`error_description` bodies.
        """
        body = self.parsed_body()
        if isinstance(body, dict):
            errors = body.get("errors")
            if isinstance(errors, list) and errors:
                first = errors[0] if isinstance(errors[0], dict) else {}
                return first.get("detail") or first.get("title") or errors
            if body.get("error_description"):
                return body["error_description"]
            if body.get("error"):
                return body["error"]
            if body.get("message"):
                return body["message"]
        return body


class HttpClient:
    """
    HTTP client with timeout enforcement.

    SYNC-CELERY SAFE: All requests have explicit timeouts.

    Usage:
        client = HttpClient(timeout=10)
        response = client.send(RequestOptions(
            method="GET",
            url="/files/io.cozy.files.root-dir",
            base_url="https://alice.example.org",
        ))
        data = response.parsed_body()
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        default_headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize HTTP client.

        Args:
            timeout: Default timeout in seconds (REQUIRED)
            default_headers: Headers to include in all requests
        """
        self.timeout = timeout
        self.headers: Dict[str, str] = dict(default_headers or {})

    def request(
        self,
        method: str,
        url: str,
        params: Optional[Union[Dict[str, Any], List[Tuple[str, Any]]]] = None,
        json: Any = None,
        data: Optional[Union[Dict[str, Any], str, bytes]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        """
        Make HTTP request with timeout enforcement.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE, etc.)
            url: Absolute request URL
            params: Query parameters
            json: JSON body (auto-serialized)
            data: Form data or raw body
            headers: Additional headers (merged with defaults)
            timeout: Override default timeout

        Returns:
            HttpResponse wrapper (non-2xx responses are returned, not raised)

        Raises:
            NodeTimeoutError: If request times out
            HttpApiError: If the request could not be sent
        """
        request_headers = {**self.headers, **(headers or {})}
        request_timeout = timeout or self.timeout

        logger.debug(f"{method.upper()} {url}")

        try:
            response = requests.request(
                method=method.upper(),
                url=url,
                params=params or None,
                json=json,
                data=data,
                headers=request_headers,
                timeout=request_timeout,  # REQUIRED for sync-Celery
            )
            return HttpResponse(response)

        except Timeout as e:
            raise NodeTimeoutError(
                message=f"Request timed out after {request_timeout}s",
                timeout=request_timeout,
                url=url,
            ) from e

        except RequestException as e:
            raise HttpApiError(
                message=f"Request failed: {e}",
                url=url,
                method=method,
            ) from e

    def send(self, options: RequestOptions) -> HttpResponse:
        """Send a request described by RequestOptions."""
        json_body = None
        raw_body = None
        if isinstance(options.body, (dict, list)):
            json_body = options.body
        elif options.body is not None:
            raw_body = options.body

        headers = dict(options.headers)
        # requests only sets a JSON content type for dicts sent via json=,
        # an explicit one from the caller must win
        if json_body is not None and any(k.lower() == "content-type" for k in headers):
            raw_body = jsonlib.dumps(json_body)
            json_body = None

        return self.request(
            options.method,
            options.full_url(),
            params=options.qs,
            json=json_body,
            data=raw_body,
            headers=headers,
            timeout=options.timeout,
        )
