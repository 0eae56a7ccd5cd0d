"""
Credential types - declaration, request authentication and testing.

A credential type declares the fields the host renders for it, how it
authenticates an outgoing request, and how the host can test it.
OAuth2ApiCredential adds synchronous token refresh.

SYNC-CELERY SAFE: refresh and test requests go through HttpClient.
"""

from __future__ import annotations

import base64
import logging
import re
import time
from typing import Any, ClassVar, Dict, List, Optional
from urllib.parse import urlencode

from .http import HttpApiError, HttpClient, NodeTimeoutError, RequestOptions
from .settings import get_settings


logger = logging.getLogger(__name__)

_SELF_EXPRESSION = re.compile(r'\{\{\s*\$self\["([^"]+)"\]\s*\}\}')

# OAuth error codes after which only a new consent helps
REAUTH_ERROR_CODES = ("invalid_grant", "unauthorized_client", "access_denied", "invalid_client")


class TokenRefreshError(Exception):
    """Lightweight exception for token refresh failures"""

    def __init__(self, message: str, needs_reauth: bool = False, error_code: Optional[str] = None):
        super().__init__(message)
        self.needs_reauth = needs_reauth
        self.error_code = error_code  # e.g., "invalid_grant", "network_error"


def resolve_credential_expression(expression: Any, credential_data: Dict[str, Any]) -> Any:
    """
    Resolve expressions like ={{$self["instanceUrl"]}}/auth/authorize.

    Non-string values are returned untouched. Referenced fields have
    trailing slashes stripped so that templates can append paths.
    """
    if not expression or not isinstance(expression, str):
        return expression

    if expression.startswith("="):
        expression = expression[1:]

    def replacer(match: "re.Match[str]") -> str:
        value = credential_data.get(match.group(1), "")
        return str(value).rstrip("/") if value else ""

    return _SELF_EXPRESSION.sub(replacer, expression)


class CredentialType:
    """
    Base class for credential types.

    Subclasses set `name`, `display_name` and `properties` and override
    `authenticate()` to inject their secret into a request.
    """

    name: ClassVar[str] = ""
    display_name: ClassVar[str] = ""
    documentation_url: ClassVar[str] = ""
    icon: ClassVar[str] = ""
    extends: ClassVar[List[str]] = []

    properties: ClassVar[List[Dict[str, Any]]] = []

    # {"method": ..., "baseURL": <expression>, "url": <path>}
    test_request: ClassVar[Optional[Dict[str, Any]]] = None

    def authenticate(self, credentials: Dict[str, Any], options: RequestOptions) -> RequestOptions:
        """Return a copy of `options` carrying this credential's auth."""
        return options

    def with_defaults(self, credentials: Dict[str, Any]) -> Dict[str, Any]:
        """Fill in declared defaults for fields missing or blank in stored data."""
        data = dict(credentials)
        for prop in self.properties:
            name = prop.get("name")
            if "default" in prop and data.get(name) in (None, ""):
                data[name] = prop["default"]
        return data

    def build_test_request(self, credentials: Dict[str, Any]) -> Optional[RequestOptions]:
        """Resolve the declared test request against credential data."""
        if not self.test_request:
            return None
        base_url = resolve_credential_expression(self.test_request.get("baseURL"), credentials)
        return RequestOptions(
            method=self.test_request.get("method", "GET"),
            url=self.test_request["url"],
            base_url=base_url or None,
            headers=dict(self.test_request.get("headers", {})),
        )

    def test(self, credentials: Dict[str, Any]) -> Dict[str, Any]:
        """Send the declared test request and report the outcome."""
        options = self.build_test_request(credentials)
        if options is None:
            return {"success": True, "message": "No test request defined"}

        client = HttpClient(timeout=get_settings().http_timeout_s)
        try:
            response = client.send(self.authenticate(credentials, options))
        except (NodeTimeoutError, HttpApiError, TokenRefreshError) as e:
            return {"success": False, "message": str(e)}

        if response.ok:
            return {"success": True, "message": "Connection successful"}
        return {
            "success": False,
            "message": f"HTTP {response.status_code}: {response.error_detail() or response.reason}",
        }


class BearerTokenCredential(CredentialType):
    """Credential sending a static token as `Authorization: Bearer`."""

    token_field: ClassVar[str] = "apiToken"

    def authenticate(self, credentials: Dict[str, Any], options: RequestOptions) -> RequestOptions:
        token = credentials.get(self.token_field)
        if not token:
            raise TokenRefreshError(
                f"Credential '{self.name}' has no {self.token_field}",
                needs_reauth=True,
                error_code="missing_token",
            )
        headers = {**options.headers, "Authorization": f"Bearer {token}"}
        return options.model_copy(update={"headers": headers})


class OAuth2ApiCredential(CredentialType):
    """OAuth2 API credential implementation"""

    name = "oAuth2Api"
    display_name = "OAuth2 API"

    properties = [
        {
            "name": "clientId",
            "displayName": "Client ID",
            "type": "string",
            "required": True,
        },
        {
            "name": "clientSecret",
            "displayName": "Client Secret",
            "type": "password",
            "required": True,
        },
        {
            "name": "authUrl",
            "displayName": "Authorization URL",
            "type": "string",
            "required": True,
        },
        {
            "name": "accessTokenUrl",
            "displayName": "Access Token URL",
            "type": "string",
            "required": True,
        },
        {
            "name": "scope",
            "displayName": "Scope",
            "type": "string",
            "required": False,
        },
        {
            "name": "grantType",
            "displayName": "Grant Type",
            "type": "options",
            "options": [
                {"name": "Authorization Code", "value": "authorizationCode"},
                {"name": "Client Credentials", "value": "clientCredentials"},
            ],
            "default": "authorizationCode",
            "required": True,
        },
        {
            "name": "authentication",
            "displayName": "Authentication",
            "type": "options",
            "options": [
                {"name": "Header", "value": "header"},
                {"name": "Body", "value": "body"},
            ],
            "default": "header",
            "required": True,
        },
        {
            "name": "authQueryParameters",
            "displayName": "Auth Query Parameters",
            "type": "string",
            "required": False,
        },
        # OAuth token data (stored after successful auth)
        {
            "name": "oauthTokenData",
            "displayName": "OAuth Token Data",
            "type": "json",
            "required": False,
        },
    ]

    @staticmethod
    def has_access_token(credentials_data: Dict[str, Any]) -> bool:
        """Check if credentials carry an access token."""
        oauth_token_data = credentials_data.get("oauthTokenData")
        if not isinstance(oauth_token_data, dict):
            return False
        return bool(oauth_token_data.get("access_token"))

    @staticmethod
    def is_token_expired(oauth_data: Dict[str, Any], buffer_s: Optional[int] = None) -> bool:
        """Check expiry with clock skew tolerance; unknown expiry counts as valid."""
        if "expires_at" not in oauth_data:
            return False
        if buffer_s is None:
            buffer_s = get_settings().oauth_expiry_buffer_s
        return time.time() > (float(oauth_data["expires_at"]) - buffer_s)

    @staticmethod
    def _parse_oauth_error(error_data: Dict[str, Any], status_code: int) -> TokenRefreshError:
        """Parse OAuth error response into typed exception"""
        error = error_data.get("error", "")
        desc = error_data.get("error_description", "")

        if error in REAUTH_ERROR_CODES:
            return TokenRefreshError(
                desc or f"OAuth error: {error}",
                needs_reauth=True,
                error_code=error,
            )

        return TokenRefreshError(
            desc or f"OAuth error ({status_code}): {error}",
            needs_reauth=False,
            error_code=error or None,
        )

    def authenticate(self, credentials: Dict[str, Any], options: RequestOptions) -> RequestOptions:
        if not self.has_access_token(credentials):
            raise TokenRefreshError(
                "OAuth credentials not connected. Please connect your account first.",
                needs_reauth=True,
                error_code="no_access_token",
            )
        token = credentials["oauthTokenData"]["access_token"]
        headers = {**options.headers, "Authorization": f"Bearer {token}"}
        return options.model_copy(update={"headers": headers})

    def refresh_token(
        self,
        credentials: Dict[str, Any],
        include_credentials_on_body: bool = False,
    ) -> Dict[str, Any]:
        """
        Refresh the OAuth2 access token.

        Returns a new credentials dict with updated `oauthTokenData` and
        leaves the input untouched; the caller persists it.

        Args:
            credentials: Stored credential data
            include_credentials_on_body: Force client_id/client_secret into
                the form body even when `authentication` is "header"

        Raises:
            TokenRefreshError: On failure, with needs_reauth set for
                invalid_grant and friends
        """
        oauth_data = credentials.get("oauthTokenData") or {}
        refresh_token = oauth_data.get("refresh_token")
        if not refresh_token:
            raise TokenRefreshError(
                "No refresh token available", needs_reauth=True, error_code="no_refresh_token"
            )

        access_token_url = resolve_credential_expression(
            credentials.get("accessTokenUrl", ""), credentials
        )
        if not access_token_url:
            raise TokenRefreshError("Access token URL is not configured", error_code="config_error")

        body = {"grant_type": "refresh_token", "refresh_token": refresh_token}
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }

        client_id = credentials.get("clientId", "")
        client_secret = credentials.get("clientSecret", "")
        if include_credentials_on_body or credentials.get("authentication", "header") == "body":
            body["client_id"] = client_id
            body["client_secret"] = client_secret
        else:
            auth = base64.b64encode(f"{client_id}:{client_secret}".encode()).decode()
            headers["Authorization"] = f"Basic {auth}"

        client = HttpClient(timeout=get_settings().oauth_refresh_timeout_s)
        try:
            response = client.request(
                "POST", access_token_url, data=urlencode(body), headers=headers
            )
        except NodeTimeoutError as e:
            raise TokenRefreshError("Request timed out", error_code="timeout") from e
        except HttpApiError as e:
            raise TokenRefreshError(f"Network error: {e}", error_code="network_error") from e

        payload = response.parsed_body()
        if not response.ok or not isinstance(payload, dict) or "access_token" not in payload:
            err = payload if isinstance(payload, dict) else {"error": str(payload or "")[:200]}
            logger.warning(
                f"Token refresh for '{self.name}' failed with HTTP {response.status_code}"
            )
            raise self._parse_oauth_error(err, response.status_code)

        result = dict(oauth_data)
        result["access_token"] = payload["access_token"]
        result["expires_at"] = time.time() + int(payload.get("expires_in", 3600))

        # Handle refresh token rotation
        if payload.get("refresh_token"):
            result["refresh_token"] = payload["refresh_token"]

        for key, value in payload.items():
            if key not in ("access_token", "expires_in", "refresh_token"):
                result[key] = value

        logger.info(f"Refreshed OAuth2 token for '{self.name}'")
        return {**credentials, "oauthTokenData": result}

    def test(self, credentials: Dict[str, Any]) -> Dict[str, Any]:
        """Test the credential, refreshing an expired token first."""
        if not self.has_access_token(credentials):
            return {
                "success": False,
                "message": "OAuth credentials not connected. Please connect your account first.",
                "needsOAuth": True,
            }
        if self.is_token_expired(credentials["oauthTokenData"]):
            try:
                credentials = self.refresh_token(credentials)
            except TokenRefreshError as e:
                return {"success": False, "message": str(e), "needsOAuth": e.needs_reauth}
        return super().test(credentials)


__all__ = [
    "CredentialType",
    "BearerTokenCredential",
    "OAuth2ApiCredential",
    "TokenRefreshError",
    "resolve_credential_expression",
    "REAUTH_ERROR_CODES",
]
