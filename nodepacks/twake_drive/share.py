"""
Share-by-link operations of the Twake Drive node.

A share is a Cozy permission document on io.cozy.files. Each label of
the permission owns a long token (`codes`) and a short token
(`shortcodes`); links are built from the short ones against the
instance's Drive web app.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote, urlsplit

from src.node_sdk.basenode import BaseNode, NodeOperationError

from .resolvers import text_param
from .transport import (
    DRIVE_ACCEPT,
    FILES_DOCTYPE,
    PERMISSIONS_DOCTYPE,
    ROOT_DIR_ID,
    drive_request,
    get_base_url,
    unwrap_data,
)


logger = logging.getLogger(__name__)

READ_VERBS = ["GET"]
WRITE_VERBS = ["GET", "POST", "PATCH", "DELETE"]
DEFAULT_CODES = "link"
TTL_UNITS = ("s", "m", "h", "D", "M", "Y")

_LABEL_PREFIX = re.compile(r"^([a-zA-Z]+)\s*:\s*(.+)$")
_CODES_PREFIXES = ("codes", "code")
_SHORTCODES_PREFIXES = ("shortcodes", "shortcode", "short")


def resolve_drive_base(instance_url: str) -> str:
    """
    Drive web app origin for an instance URL.

    https://drive.alice.example.org -> https://alice-drive.example.org
    https://alice-drive.example.org -> unchanged
    https://alice.example.org      -> https://alice-drive.example.org
    """
    parts = urlsplit(instance_url)
    host = parts.hostname or ""
    port = f":{parts.port}" if parts.port else ""
    labels = host.split(".")

    if labels[0] == "drive" and len(labels) >= 2:
        hostname = ".".join([f"{labels[1]}-drive", *labels[2:]])
    elif labels[0].endswith("-drive"):
        hostname = host
    else:
        hostname = ".".join([f"{labels[0]}-drive", *labels[1:]])
    return f"{parts.scheme}://{hostname}{port}"


def share_url(drive_base: str, shortcode: str) -> str:
    return f"{drive_base}/public?sharecode={quote(str(shortcode), safe='')}"


def permission_labels(codes: Dict[str, Any], shortcodes: Dict[str, Any]) -> List[str]:
    """Sorted union of the labels of both maps."""
    return sorted({label for label in [*shortcodes, *codes] if label})


def _as_map(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}


# ==============================================================================
# shareByLink
# ==============================================================================

def _share_target(node: BaseNode, item_index: int) -> Tuple[str, str]:
    target_type = node.get_node_parameter("shareTargetType", item_index, "folder")
    by_id = node.get_node_parameter("fileSelectMode", item_index, "dropdown") == "byId"

    if target_type == "file":
        if by_id:
            names = ("fileIdByIdShare", "fileIdById")
        else:
            names = ("fileIdFromDropdownShare", "fileIdFromDropdown")
        fallback = ""
    else:
        if by_id:
            names = ("sourceFolderIdByIdShare", "sourceFolderIdById")
        else:
            names = ("parentDirIdFile",)
        fallback = ROOT_DIR_ID

    target_id = next(
        (value for value in (text_param(node, name, item_index) for name in names) if value),
        fallback,
    )
    if not target_id:
        raise NodeOperationError(
            "File or Directory ID is required", node=node, item_index=item_index
        )
    return target_type, target_id


def _share_ttl(node: BaseNode, item_index: int) -> Optional[str]:
    if not node.get_node_parameter("useTtl", item_index, False):
        return None
    amount = node.get_node_parameter("expiryDuration.duration.amount", item_index, 0)
    unit = node.get_node_parameter("expiryDuration.duration.unit", item_index, "")
    if not amount or not unit:
        raise NodeOperationError(
            "Duration amount and unit are required", node=node, item_index=item_index
        )
    if unit not in TTL_UNITS:
        raise NodeOperationError(
            f'Unsupported duration unit "{unit}"', node=node, item_index=item_index
        )
    if isinstance(amount, float) and amount.is_integer():
        amount = int(amount)
    try:
        count = int(str(amount).strip())
    except ValueError:
        raise NodeOperationError(
            f'Duration amount must be a whole number, got "{amount}"',
            node=node,
            item_index=item_index,
        ) from None
    if count <= 0:
        raise NodeOperationError(
            "Duration amount must be positive", node=node, item_index=item_index
        )
    return f"{count}{unit}"


def share_by_link(node: BaseNode, item_index: int) -> Dict[str, Any]:
    """Create a permission giving link access to a file or folder."""
    target_type, target_id = _share_target(node, item_index)

    access_level = node.get_node_parameter("accessLevel", item_index, "read")
    verbs = WRITE_VERBS if access_level == "write" else READ_VERBS

    labels = [
        label.strip()
        for label in text_param(node, "codes", item_index).split(",")
        if label.strip()
    ] or [DEFAULT_CODES]

    qs: Dict[str, Any] = {"codes": ",".join(labels)}
    ttl = _share_ttl(node, item_index)
    if ttl:
        qs["ttl"] = ttl

    attributes: Dict[str, Any] = {
        "permissions": {
            "files": {"type": FILES_DOCTYPE, "values": [target_id], "verbs": verbs},
        },
    }
    password = ""
    if node.get_node_parameter("usePassword", item_index, False):
        password = text_param(node, "sharePassword", item_index)
    if password:
        attributes["password"] = password

    response = drive_request(
        node,
        "POST",
        "/permissions",
        qs=qs,
        body={"data": {"type": PERMISSIONS_DOCTYPE, "attributes": attributes}},
        headers={"Content-Type": DRIVE_ACCEPT},
    )

    data = unwrap_data(response)
    data = data if isinstance(data, dict) else {}
    permission_attributes = data.get("attributes") or {}
    codes = permission_attributes.get("codes")
    shortcodes = permission_attributes.get("shortcodes")

    share_urls: Optional[Dict[str, str]] = None
    if isinstance(shortcodes, dict):
        drive_base = resolve_drive_base(get_base_url(node))
        share_urls = {label: share_url(drive_base, token) for label, token in shortcodes.items()}

    bag: Dict[str, Any] = {
        "targetId": target_id,
        "targetType": target_type,
        "permissionsId": data.get("id"),
        "codes": codes,
        "shortcodes": shortcodes,
        "shareUrls": share_urls,
        "passwordProtected": bool(password),
        "response": response,
    }
    if ttl:
        bag["expiresIn"] = ttl
    logger.info(f"Shared {target_type} {target_id} as permission {bag['permissionsId']}")
    return {"shareByLink": bag}


# ==============================================================================
# deleteShare
# ==============================================================================

def parse_permission_value(raw: Any) -> Dict[str, Any]:
    """
    Read the `permissionsId` parameter.

    The dropdown stores `{"id", "codes", "shortcodes"}` as JSON; an
    expression may give a bare id instead. Maps are None when unknown.
    """
    if isinstance(raw, dict):
        parsed: Any = raw
    else:
        text = str(raw or "").strip()
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = text
    if not isinstance(parsed, dict):
        return {"id": str(parsed or "").strip(), "codes": None, "shortcodes": None}
    return {
        "id": str(parsed.get("id") or "").strip(),
        "codes": parsed.get("codes") if isinstance(parsed.get("codes"), dict) else None,
        "shortcodes": parsed.get("shortcodes") if isinstance(parsed.get("shortcodes"), dict) else None,
    }


def parse_label(value: str) -> Tuple[str, str]:
    """
    Split a label into (target, label).

    "codes:x"/"code:x" -> ("codes", "x"), "shortcodes:x"/"shortcode:x"/
    "short:x" -> ("shortcodes", "x"), anything else -> ("any", value).
    """
    match = _LABEL_PREFIX.match(value)
    if match:
        kind = match.group(1).lower()
        label = match.group(2).strip()
        if kind in _CODES_PREFIXES:
            return "codes", label
        if kind in _SHORTCODES_PREFIXES:
            return "shortcodes", label
    return "any", value


def revoke_labels(
    codes: Dict[str, Any],
    shortcodes: Dict[str, Any],
    labels: List[str],
) -> Tuple[Dict[str, Any], Dict[str, Any], List[str], List[str]]:
    """
    Drop labels from the two maps.

    Returns:
        (remaining_codes, remaining_shortcodes, removed, remaining) where
        removed lists the labels present before and gone afterwards
    """
    remaining_codes = dict(codes)
    remaining_shorts = dict(shortcodes)
    wanted = [parse_label(label) for label in labels]

    for kind, label in wanted:
        if kind in ("codes", "any"):
            remaining_codes.pop(label, None)
        if kind in ("shortcodes", "any"):
            remaining_shorts.pop(label, None)

    before = set(codes) | set(shortcodes)
    remaining = permission_labels(remaining_codes, remaining_shorts)
    removed = sorted({label for _, label in wanted if label in before and label not in remaining})
    return remaining_codes, remaining_shorts, removed, remaining


def _requested_labels(node: BaseNode, item_index: int) -> List[str]:
    raw = node.get_node_parameter("labelsToRevoke", item_index, []) or []
    values = raw if isinstance(raw, list) else [raw]
    return [str(value).strip() for value in values if str(value).strip()]


def fetch_permission_maps(node: BaseNode, permission_id: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    response = drive_request(node, "GET", f"/permissions/{quote(permission_id, safe='')}")
    data = unwrap_data(response)
    attributes = (data.get("attributes") if isinstance(data, dict) else None) or {}
    return _as_map(attributes.get("codes")), _as_map(attributes.get("shortcodes"))


def delete_share(node: BaseNode, item_index: int) -> Dict[str, Any]:
    """Delete a permission, or revoke only some of its labels."""
    permission = parse_permission_value(node.get_node_parameter("permissionsId", item_index, ""))
    permission_id = permission["id"]
    if not permission_id:
        raise NodeOperationError("Permissions ID is required", node=node, item_index=item_index)

    path = f"/permissions/{quote(permission_id, safe='')}"
    use_labels = bool(node.get_node_parameter("useLabels", item_index, False))
    labels = _requested_labels(node, item_index) if use_labels else []

    if not labels:
        response = drive_request(node, "DELETE", path)
        logger.info(f"Deleted permission {permission_id}")
        return {
            "deleteShare": {
                "permissionsId": permission_id,
                "removed": "ALL",
                "remaining": [],
                "status": "deleted",
                "response": response,
            }
        }

    if permission["codes"] is None and permission["shortcodes"] is None:
        codes, shortcodes = fetch_permission_maps(node, permission_id)
    else:
        codes = _as_map(permission["codes"])
        shortcodes = _as_map(permission["shortcodes"])

    remaining_codes, remaining_shorts, removed, remaining = revoke_labels(codes, shortcodes, labels)
    if not removed:
        raise NodeOperationError(
            "No matching labels to remove for this permission.",
            node=node,
            item_index=item_index,
        )

    response = drive_request(
        node,
        "PATCH",
        path,
        body={
            "data": {
                "id": permission_id,
                "type": PERMISSIONS_DOCTYPE,
                "attributes": {"codes": remaining_codes, "shortcodes": remaining_shorts},
            }
        },
        headers={"Content-Type": DRIVE_ACCEPT},
    )
    logger.info(f"Revoked labels {removed} of permission {permission_id}")
    return {
        "deleteShare": {
            "permissionsId": permission_id,
            "removed": removed,
            "remaining": remaining,
            "status": "patched",
            "response": response,
        }
    }
