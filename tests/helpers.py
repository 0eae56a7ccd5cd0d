"""Mock responses and Drive payload builders shared by the tests."""
import json
from typing import Any, Dict, List, Optional
from unittest.mock import Mock

INSTANCE_URL = "https://alice.mycozy.cloud"
ROOT = "io.cozy.files.root-dir"
def make_response(
    status_code: int = 200,
    payload: Any = None,
    content: Optional[bytes] = None,
    headers: Optional[Dict[str, str]] = None,
    reason: str = "OK",
) -> Mock:
    """Mock of requests.Response with a JSON payload or raw content."""
    response = Mock()
    response.status_code = status_code
    response.reason = reason
    response.headers = headers or {"Content-Type": "application/vnd.api+json"}
    if content is None:
        content = b"" if payload is None else json.dumps(payload).encode("utf-8")
    response.content = content
    response.text = content.decode("utf-8", errors="replace")
    if payload is not None:
        response.json.return_value = payload
    else:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    return response


def listing(entries: List[Dict[str, Any]], next_cursor: Optional[str] = None, dir_id: str = ROOT) -> Mock:
    """Directory listing page as returned by GET /files/<dir>."""
    payload: Dict[str, Any] = {
        "data": {"id": dir_id, "type": "io.cozy.files", "attributes": {"type": "directory"}},
        "included": entries,
        "links": {},
    }
    if next_cursor:
        payload["links"]["next"] = f"/files/{dir_id}?page[cursor]={next_cursor}&page[limit]=30"
    return make_response(payload=payload)


def entry(entry_id: str, name: str, kind: str = "file", **attributes: Any) -> Dict[str, Any]:
    """One io.cozy.files document."""
    return {
        "id": entry_id,
        "type": "io.cozy.files",
        "attributes": {"type": kind, "name": name, **attributes},
    }


def sent(mock_request: Mock, index: int = -1) -> Dict[str, Any]:
    """Keyword arguments of one requests.request call."""
    return mock_request.call_args_list[index][1]
