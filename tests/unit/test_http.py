"""Tests for the timeout-bounded HTTP client."""
import json
from unittest.mock import patch

import pytest
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import Timeout

from src.node_sdk.http import (
    HttpApiError,
    HttpClient,
    HttpResponse,
    NodeTimeoutError,
    RequestOptions,
)
from tests.helpers import make_response


class TestRequestOptions:
    """Tests for URL building from request options."""

    def test_path_joined_to_base_url(self):
        options = RequestOptions(url="/files/abc", baseURL="https://alice.mycozy.cloud/")
        assert options.full_url() == "https://alice.mycozy.cloud/files/abc"

    def test_absolute_url_kept(self):
        options = RequestOptions(
            url="https://other.example.org/permissions?page[cursor]=x",
            baseURL="https://alice.mycozy.cloud",
        )
        assert options.full_url() == "https://other.example.org/permissions?page[cursor]=x"


class TestHttpClient:
    """Tests for HttpClient.send and request."""

    @patch("requests.request")
    def test_default_timeout_applied(self, mock_request):
        mock_request.return_value = make_response(payload={"ok": True})

        HttpClient(timeout=12).send(RequestOptions(url="https://x.example.org/a"))

        assert mock_request.call_args[1]["timeout"] == 12
        assert mock_request.call_args[1]["method"] == "GET"

    @patch("requests.request")
    def test_timeout_override(self, mock_request):
        mock_request.return_value = make_response(payload={})

        HttpClient(timeout=12).send(RequestOptions(url="https://x.example.org/a", timeout=99))

        assert mock_request.call_args[1]["timeout"] == 99

    @patch("requests.request")
    def test_dict_body_sent_as_json(self, mock_request):
        mock_request.return_value = make_response(payload={})

        HttpClient().send(RequestOptions(method="post", url="https://x.example.org/a", body={"a": 1}))

        kwargs = mock_request.call_args[1]
        assert kwargs["method"] == "POST"
        assert kwargs["json"] == {"a": 1}
        assert kwargs["data"] is None

    @patch("requests.request")
    def test_dict_body_with_content_type_serialized(self, mock_request):
        mock_request.return_value = make_response(payload={})

        HttpClient().send(RequestOptions(
            method="PATCH",
            url="https://x.example.org/a",
            headers={"Content-Type": "application/vnd.api+json"},
            body={"data": {"id": "x"}},
        ))

        kwargs = mock_request.call_args[1]
        assert kwargs["json"] is None
        assert json.loads(kwargs["data"]) == {"data": {"id": "x"}}
        assert kwargs["headers"]["Content-Type"] == "application/vnd.api+json"

    @patch("requests.request")
    def test_bytes_body_sent_raw(self, mock_request):
        mock_request.return_value = make_response(payload={})

        HttpClient().send(RequestOptions(method="PUT", url="https://x.example.org/a", body=b"\x00\x01"))

        assert mock_request.call_args[1]["data"] == b"\x00\x01"

    @patch("requests.request")
    def test_empty_query_string_dropped(self, mock_request):
        mock_request.return_value = make_response(payload={})

        HttpClient().send(RequestOptions(url="https://x.example.org/a"))

        assert mock_request.call_args[1]["params"] is None

    @patch("requests.request")
    def test_timeout_raises_node_timeout_error(self, mock_request):
        mock_request.side_effect = Timeout("slow")

        with pytest.raises(NodeTimeoutError) as exc_info:
            HttpClient(timeout=5).request("GET", "https://x.example.org/a")

        assert exc_info.value.timeout == 5
        assert exc_info.value.url == "https://x.example.org/a"

    @patch("requests.request")
    def test_connection_error_raises_http_api_error(self, mock_request):
        mock_request.side_effect = RequestsConnectionError("refused")

        with pytest.raises(HttpApiError) as exc_info:
            HttpClient().request("GET", "https://x.example.org/a")

        assert "refused" in str(exc_info.value)
        assert exc_info.value.method == "GET"

    @patch("requests.request")
    def test_non_2xx_returned_not_raised(self, mock_request):
        mock_request.return_value = make_response(404, payload={"errors": []}, reason="Not Found")

        response = HttpClient().request("GET", "https://x.example.org/a")

        assert response.status_code == 404
        assert not response.ok


class TestHttpResponse:
    """Tests for body parsing and error details."""

    def test_parsed_body_json(self):
        assert HttpResponse(make_response(payload={"a": 1})).parsed_body() == {"a": 1}

    def test_parsed_body_text(self):
        response = HttpResponse(make_response(content=b"plain text"))
        assert response.parsed_body() == "plain text"

    def test_parsed_body_empty(self):
        assert HttpResponse(make_response(204)).parsed_body() is None

    def test_error_detail_json_api(self):
        response = HttpResponse(make_response(
            409,
            payload={"errors": [{"status": "409", "title": "Conflict", "detail": "file already exists"}]},
        ))
        assert response.error_detail() == "file already exists"

    def test_error_detail_oauth(self):
        response = HttpResponse(make_response(
            400,
            payload={"error": "invalid_grant", "error_description": "The refresh token is invalid"},
        ))
        assert response.error_detail() == "The refresh token is invalid"
