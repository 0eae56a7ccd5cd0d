"""Tests for credential types and the Twake Drive credentials."""
import time
from unittest.mock import patch
from urllib.parse import parse_qs

import pytest

from nodepacks.twake_drive.credentials import (
    TwakeDriveApiCredential,
    TwakeDriveOAuth2ApiCredential,
)
from src.node_sdk.credentials import (
    OAuth2ApiCredential,
    TokenRefreshError,
    resolve_credential_expression,
)
from src.node_sdk.http import RequestOptions
from tests.helpers import INSTANCE_URL, make_response


def _props(credential_class):
    return {prop["name"]: prop for prop in credential_class.properties}


class TestCredentialExpressions:
    """Tests for ={{$self[...]}} resolution."""

    def test_resolves_self_reference(self):
        url = resolve_credential_expression(
            '={{$self["instanceUrl"]}}/auth/access_token',
            {"instanceUrl": INSTANCE_URL + "/"},
        )
        assert url == f"{INSTANCE_URL}/auth/access_token"

    def test_missing_field_becomes_empty(self):
        assert resolve_credential_expression('={{$self["nope"]}}/x', {}) == "/x"

    def test_non_string_untouched(self):
        assert resolve_credential_expression(None, {}) is None


class TestTwakeDriveOAuth2Properties:
    """Tests for the Twake OAuth2 credential declaration."""

    def test_instance_url_first(self):
        assert TwakeDriveOAuth2ApiCredential.properties[0]["name"] == "instanceUrl"

    def test_fixed_fields_hidden(self):
        props = _props(TwakeDriveOAuth2ApiCredential)
        assert props["grantType"]["type"] == "hidden"
        assert props["grantType"]["default"] == "authorizationCode"
        assert props["scope"]["default"] == "io.cozy.files"
        assert props["authentication"]["default"] == "body"
        assert "options" not in props["authentication"]

    def test_endpoints_derive_from_instance_url(self):
        props = _props(TwakeDriveOAuth2ApiCredential)
        assert props["authUrl"]["default"] == '={{$self["instanceUrl"]}}/auth/authorize'
        assert props["accessTokenUrl"]["default"] == '={{$self["instanceUrl"]}}/auth/access_token'

    def test_parent_properties_untouched(self):
        props = _props(OAuth2ApiCredential)
        assert props["grantType"]["type"] == "options"
        assert "default" not in props["authUrl"]

    def test_with_defaults_fills_blank_fields(self):
        data = TwakeDriveOAuth2ApiCredential().with_defaults(
            {"instanceUrl": INSTANCE_URL, "scope": ""}
        )
        assert data["scope"] == "io.cozy.files"
        assert data["authentication"] == "body"


class TestTwakeDriveApiCredential:
    """Tests for the API token credential."""

    def test_bearer_header(self):
        options = RequestOptions(url="/files/x", headers={"Accept": "application/vnd.api+json"})

        authenticated = TwakeDriveApiCredential().authenticate({"apiToken": "tok"}, options)

        assert authenticated.headers["Authorization"] == "Bearer tok"
        assert authenticated.headers["Accept"] == "application/vnd.api+json"
        assert "Authorization" not in options.headers

    def test_missing_token(self):
        with pytest.raises(TokenRefreshError) as exc_info:
            TwakeDriveApiCredential().authenticate({}, RequestOptions(url="/files/x"))
        assert exc_info.value.needs_reauth

    def test_token_is_password_field(self):
        assert _props(TwakeDriveApiCredential)["apiToken"]["typeOptions"] == {"password": True}

    @patch("requests.request")
    def test_connection_test_lists_root(self, mock_request):
        mock_request.return_value = make_response(payload={"data": {"id": "io.cozy.files.root-dir"}})

        result = TwakeDriveApiCredential().test({"instanceUrl": INSTANCE_URL + "/", "apiToken": "tok"})

        assert result["success"] is True
        kwargs = mock_request.call_args[1]
        assert kwargs["url"] == f"{INSTANCE_URL}/files/io.cozy.files.root-dir"
        assert kwargs["headers"]["Authorization"] == "Bearer tok"

    @patch("requests.request")
    def test_connection_test_reports_http_error(self, mock_request):
        mock_request.return_value = make_response(
            401, payload={"errors": [{"detail": "Invalid JWT token"}]}, reason="Unauthorized"
        )

        result = TwakeDriveApiCredential().test({"instanceUrl": INSTANCE_URL, "apiToken": "bad"})

        assert result == {"success": False, "message": "HTTP 401: Invalid JWT token"}


class TestOAuth2Refresh:
    """Tests for OAuth2 token refresh."""

    def _credentials(self, **overrides):
        data = TwakeDriveOAuth2ApiCredential().with_defaults({
            "instanceUrl": INSTANCE_URL,
            "clientId": "client-123",
            "clientSecret": "secret-456",
            "oauthTokenData": {"access_token": "old", "refresh_token": "r1", "expires_at": 0},
        })
        data.update(overrides)
        return data

    @patch("requests.request")
    def test_refresh_sends_client_credentials_in_body(self, mock_request):
        mock_request.return_value = make_response(
            payload={"access_token": "new", "expires_in": 3600, "token_type": "bearer"}
        )

        refreshed = TwakeDriveOAuth2ApiCredential().refresh_token(self._credentials())

        kwargs = mock_request.call_args[1]
        assert kwargs["method"] == "POST"
        assert kwargs["url"] == f"{INSTANCE_URL}/auth/access_token"
        form = parse_qs(kwargs["data"])
        assert form["grant_type"] == ["refresh_token"]
        assert form["refresh_token"] == ["r1"]
        assert form["client_id"] == ["client-123"]
        assert form["client_secret"] == ["secret-456"]
        assert "Authorization" not in kwargs["headers"]

        token = refreshed["oauthTokenData"]
        assert token["access_token"] == "new"
        assert token["refresh_token"] == "r1"
        assert token["token_type"] == "bearer"
        assert token["expires_at"] > time.time()

    @patch("requests.request")
    def test_refresh_uses_basic_auth_for_header_mode(self, mock_request):
        mock_request.return_value = make_response(payload={"access_token": "new"})

        OAuth2ApiCredential().refresh_token(self._credentials(authentication="header"))

        kwargs = mock_request.call_args[1]
        assert kwargs["headers"]["Authorization"].startswith("Basic ")
        assert "client_id" not in parse_qs(kwargs["data"])

    @patch("requests.request")
    def test_forced_body_credentials(self, mock_request):
        mock_request.return_value = make_response(payload={"access_token": "new"})

        OAuth2ApiCredential().refresh_token(
            self._credentials(authentication="header"), include_credentials_on_body=True
        )

        assert parse_qs(mock_request.call_args[1]["data"])["client_id"] == ["client-123"]

    @patch("requests.request")
    def test_rotated_refresh_token_kept(self, mock_request):
        mock_request.return_value = make_response(payload={"access_token": "new", "refresh_token": "r2"})

        refreshed = TwakeDriveOAuth2ApiCredential().refresh_token(self._credentials())

        assert refreshed["oauthTokenData"]["refresh_token"] == "r2"

    @patch("requests.request")
    def test_invalid_grant_needs_reauth(self, mock_request):
        mock_request.return_value = make_response(
            400, payload={"error": "invalid_grant", "error_description": "The refresh token is invalid"}
        )

        with pytest.raises(TokenRefreshError) as exc_info:
            TwakeDriveOAuth2ApiCredential().refresh_token(self._credentials())

        assert exc_info.value.needs_reauth is True
        assert exc_info.value.error_code == "invalid_grant"

    @patch("requests.request")
    def test_server_error_does_not_need_reauth(self, mock_request):
        mock_request.return_value = make_response(500, content=b"oops")

        with pytest.raises(TokenRefreshError) as exc_info:
            TwakeDriveOAuth2ApiCredential().refresh_token(self._credentials())

        assert exc_info.value.needs_reauth is False

    def test_missing_refresh_token(self):
        credentials = self._credentials(oauthTokenData={"access_token": "old"})
        with pytest.raises(TokenRefreshError) as exc_info:
            TwakeDriveOAuth2ApiCredential().refresh_token(credentials)
        assert exc_info.value.error_code == "no_refresh_token"

    def test_expiry_check_uses_buffer(self):
        assert OAuth2ApiCredential.is_token_expired({"expires_at": time.time() + 10}, buffer_s=60)
        assert not OAuth2ApiCredential.is_token_expired({"expires_at": time.time() + 600}, buffer_s=60)
        assert not OAuth2ApiCredential.is_token_expired({})
