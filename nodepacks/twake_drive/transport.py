"""
Requests against the Drive API of a Twake (Cozy Stack) instance.

Every call goes through the node's request_with_authentication() with
the credential picked by the `authentication` parameter. Cozy Stack
answers HTTP 400 for an expired OAuth2 token and wants the client
credentials in the refresh body, hence OAUTH2_OPTIONS.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, quote, urljoin, urlparse

from src.node_sdk.basenode import BaseNode, NodeOperationError

from .settings import get_settings


logger = logging.getLogger(__name__)

ROOT_DIR_ID = "io.cozy.files.root-dir"
DRIVE_ACCEPT = "application/vnd.api+json"
FILES_DOCTYPE = "io.cozy.files"
PERMISSIONS_DOCTYPE = "io.cozy.permissions"

OAUTH2_CREDENTIAL = "twakeDriveOAuth2Api"
API_TOKEN_CREDENTIAL = "twakeDriveApi"

CREDENTIAL_BY_AUTHENTICATION = {
    "oAuth2": OAUTH2_CREDENTIAL,
    "apiToken": API_TOKEN_CREDENTIAL,
}

OAUTH2_OPTIONS = {
    "tokenExpiredStatusCode": 400,
    "includeCredentialsOnRefreshOnBody": True,
}


def credential_type_for(node: BaseNode) -> str:
    """Credential type selected by the node's `authentication` parameter."""
    authentication = node.get_node_parameter("authentication", 0, "oAuth2") or "oAuth2"
    try:
        return CREDENTIAL_BY_AUTHENTICATION[authentication]
    except KeyError:
        raise NodeOperationError(
            f'Unknown authentication "{authentication}"', node=node
        ) from None


def get_base_url(node: BaseNode) -> str:
    """Instance URL from the credentials, without trailing slash."""
    credentials = node.get_credentials(credential_type_for(node))
    instance_url = str(credentials.get("instanceUrl") or "").strip().rstrip("/")
    if not instance_url:
        raise NodeOperationError("Instance URL is not set in the Twake Drive credentials", node=node)
    return instance_url


def files_path(file_id: str, *suffix: str) -> str:
    """`/files/<id>[/suffix...]` with the id percent-encoded."""
    path = f"/files/{quote(str(file_id), safe='')}"
    for part in suffix:
        path += f"/{part}"
    return path


def drive_request(
    node: BaseNode,
    method: str,
    path: str,
    qs: Optional[Dict[str, Any]] = None,
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    encoding: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Any:
    """
    Call the Drive API and return the parsed body.

    Args:
        node: Node whose context carries credentials and parameters
        method: HTTP method
        path: Path relative to the instance URL, or an absolute URL
        qs: Query string
        body: Dict/list sent as JSON, bytes/str sent raw
        headers: Extra headers; Accept defaults to the JSON:API type
        encoding: "arraybuffer" to get raw bytes back
        timeout: Per-request timeout override
    """
    credential_type = credential_type_for(node)
    request_headers = {"Accept": DRIVE_ACCEPT, **(headers or {})}
    options = {
        "method": method,
        "baseURL": get_base_url(node),
        "url": path,
        "qs": qs or {},
        "headers": request_headers,
        "body": body,
        "encoding": encoding,
        "timeout": timeout,
    }
    logger.debug(f"Drive request {method} {path}", extra={"qs": qs or {}})
    oauth2_options = OAUTH2_OPTIONS if credential_type == OAUTH2_CREDENTIAL else None
    return node.request_with_authentication(credential_type, options, oauth2_options)


def unwrap_data(response: Any) -> Any:
    """`response["data"]` for JSON:API documents, the response otherwise."""
    if isinstance(response, dict) and "data" in response:
        return response["data"]
    return response


def resource_id(response: Any) -> Optional[str]:
    """Id of the resource in a JSON:API document (data.id, then id)."""
    data = unwrap_data(response)
    if isinstance(data, dict) and data.get("id"):
        return data["id"]
    if isinstance(response, dict) and response.get("id"):
        return response["id"]
    return None


def next_cursor(response: Any, base_url: str) -> Optional[str]:
    """`page[cursor]` of the `links.next` URL, None on the last page."""
    if not isinstance(response, dict):
        return None
    next_link = (response.get("links") or {}).get("next")
    if not next_link:
        return None
    query = urlparse(urljoin(base_url + "/", next_link)).query
    values = parse_qs(query).get("page[cursor]")
    return values[0] if values else None


def list_directory(
    node: BaseNode,
    dir_id: str,
    max_items: Optional[int] = None,
) -> Tuple[List[Dict[str, Any]], bool]:
    """
    Collect the entries of a directory, following cursor pagination.

    Returns:
        (entries, capped) where capped is True when listing stopped at
        `max_items` rather than on the last page
    """
    settings = get_settings()
    base_url = get_base_url(node)
    entries: List[Dict[str, Any]] = []
    cursor: Optional[str] = None
    seen_cursors = set()

    while True:
        qs: Dict[str, Any] = {"page[limit]": settings.page_limit}
        if cursor:
            qs["page[cursor]"] = cursor

        response = drive_request(node, "GET", files_path(dir_id), qs=qs)
        included = response.get("included") if isinstance(response, dict) else None
        if isinstance(included, list):
            entries.extend(entry for entry in included if isinstance(entry, dict))

        if max_items is not None and len(entries) >= max_items:
            logger.info(f"Listing of {dir_id} capped at {len(entries)} entries")
            return entries, True

        cursor = next_cursor(response, base_url)
        if not cursor:
            return entries, False
        if cursor in seen_cursors:
            logger.warning(f"Listing of {dir_id} repeated cursor {cursor}, stopping")
            return entries, False
        seen_cursors.add(cursor)


def get_file(node: BaseNode, file_id: str) -> Dict[str, Any]:
    """Metadata document of a file or directory (`data` member)."""
    response = drive_request(node, "GET", files_path(file_id))
    data = unwrap_data(response)
    return data if isinstance(data, dict) else {}


def find_file_in_dir(node: BaseNode, dir_id: str, name: str) -> Optional[str]:
    """Id of the non-trashed file called `name` directly inside `dir_id`."""
    response = drive_request(
        node,
        "POST",
        "/files/_find",
        body={
            "selector": {
                "dir_id": dir_id,
                "name": name,
                "type": "file",
                "trashed": False,
            },
            "limit": 1,
        },
        headers={"Content-Type": "application/json"},
    )
    matches = unwrap_data(response)
    if isinstance(matches, list) and matches and isinstance(matches[0], dict):
        return matches[0].get("id")
    return None


def coerce_binary_body(body: Any) -> bytes:
    """
    Normalize a download body to bytes.

    Accepts bytes-like objects, latin-1 text, and the serialized
    `{"type": "Buffer", "data": [...]}` form.
    """
    if isinstance(body, bytes):
        return body
    if isinstance(body, (bytearray, memoryview)):
        return bytes(body)
    if isinstance(body, str):
        try:
            return body.encode("latin-1")
        except UnicodeEncodeError:
            return body.encode("utf-8")
    if isinstance(body, dict):
        if body.get("type") == "Buffer" and isinstance(body.get("data"), list):
            return bytes(body["data"])
        if "body" in body:
            return coerce_binary_body(body["body"])
    raise NodeOperationError(f"Unexpected binary response type: {type(body).__name__}")
