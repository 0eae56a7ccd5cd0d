"""
Dropdown callbacks of the Twake Drive node.

Folder pickers show a breadcrumb around the selected folder:

    🏠 Root · io.cozy.files.root-dir
    ⬆︎ Projects · <id>
    📍 2024 · <id>
    ↳ 📁 Invoices · <id>

so that the user can walk up and down the tree one selection at a time.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin

from src.node_sdk.basenode import BaseNode, NodeApiError, NodeOperationError
from src.node_sdk.credentials import TokenRefreshError
from src.node_sdk.http import HttpApiError, NodeTimeoutError

from .resolvers import text_param
from .share import parse_permission_value, permission_labels, fetch_permission_maps
from .transport import ROOT_DIR_ID, drive_request, get_base_url, get_file, list_directory, unwrap_data


logger = logging.getLogger(__name__)

ROOT_OPTION = {"name": f"🏠 Root · {ROOT_DIR_ID}", "value": ROOT_DIR_ID}
SHARED_BY_LINK_PATH = "/permissions/doctype/io.cozy.files/shared-by-link"

Folder = Tuple[str, str]


def _current(node: BaseNode, *names: str) -> str:
    for name in names:
        value = text_param(node, name, 0)
        if value:
            return value
    return ""


def _sort_key(option: Dict[str, Any]) -> str:
    return option["name"].casefold()


def _entry_name(entry: Dict[str, Any]) -> str:
    attributes = entry.get("attributes") or {}
    return str(attributes.get("name") or attributes.get("filename") or "")


def _is_directory(entry: Dict[str, Any]) -> bool:
    return str((entry.get("attributes") or {}).get("type") or "") == "directory"


def ancestor_chain(node: BaseNode, folder_id: str) -> List[Folder]:
    """
    (id, name) pairs from just below the root down to `folder_id`.

    Stops at the root, at a document without `dir_id`, and at a folder
    that claims to be its own parent.
    """
    chain: List[Folder] = []
    current: Optional[str] = folder_id
    while current and current != ROOT_DIR_ID:
        attributes = get_file(node, current).get("attributes") or {}
        chain.append((current, str(attributes.get("name") or "")))

        parent = attributes.get("dir_id")
        if not isinstance(parent, str) or not parent or parent == current:
            break
        current = parent
    chain.reverse()
    return chain


def _folder_breadcrumb(
    node: BaseNode,
    method_name: str,
    parent_id: str,
    direct_parent_only: bool,
) -> List[Dict[str, Any]]:
    options: List[Dict[str, Any]] = [dict(ROOT_OPTION)]

    def add(name: str, value: str) -> None:
        if not any(option["value"] == value for option in options):
            options.append({"name": name, "value": value})

    try:
        current: Folder = (parent_id, "root" if parent_id == ROOT_DIR_ID else "")
        ancestors: List[Folder] = []
        if parent_id != ROOT_DIR_ID:
            chain = ancestor_chain(node, parent_id)
            if chain:
                current, ancestors = chain[-1], chain[:-1]

        if direct_parent_only:
            ancestors = ancestors[-1:]
        for folder_id, name in ancestors:
            if folder_id != ROOT_DIR_ID:
                add(f"⬆︎ {name or folder_id} · {folder_id}", folder_id)

        add(f"📍 {current[1] or current[0]} · {current[0]}", parent_id)

        entries, _ = list_directory(node, parent_id)
        children = [
            (_entry_name(entry), entry["id"])
            for entry in entries
            if entry.get("id") and _is_directory(entry)
        ]
    except (NodeOperationError, TokenRefreshError, HttpApiError, NodeTimeoutError) as e:
        status = getattr(e, "status_code", None) or "unknown"
        detail = e.response_body if isinstance(e, NodeApiError) and e.response_body else str(e)
        raise NodeOperationError(
            f"{method_name}: GET /files/{parent_id} failed (HTTP {status}) · "
            f"{json.dumps(detail, ensure_ascii=False, default=str)}",
            node=node,
        ) from e

    children.sort(key=lambda pair: pair[0].casefold())
    options.extend({"name": f"↳ 📁 {name} · {folder_id}", "value": folder_id} for name, folder_id in children)
    return options


def load_folders_by_parent(node: BaseNode) -> List[Dict[str, Any]]:
    parent_id = _current(node, "parentDirIdFile", "parentDirIdDest", "parentDirId") or ROOT_DIR_ID
    return _folder_breadcrumb(node, "loadFoldersByParent", parent_id, direct_parent_only=False)


def load_folders_by_parent_source(node: BaseNode) -> List[Dict[str, Any]]:
    parent_id = _current(node, "parentDirIdFile") or ROOT_DIR_ID
    return _folder_breadcrumb(node, "loadFoldersByParentSource", parent_id, direct_parent_only=True)


def load_folders_by_parent_dest(node: BaseNode) -> List[Dict[str, Any]]:
    parent_id = _current(node, "parentDirIdDest") or ROOT_DIR_ID
    return _folder_breadcrumb(node, "loadFoldersByParentDest", parent_id, direct_parent_only=True)


def load_files_by_parent(node: BaseNode) -> List[Dict[str, Any]]:
    """Files (not folders) of `parentDirIdFile`."""
    parent_id = _current(node, "parentDirIdFile") or ROOT_DIR_ID
    entries, _ = list_directory(node, parent_id)
    files = [
        (_entry_name(entry), entry["id"])
        for entry in entries
        if entry.get("id") and not _is_directory(entry)
    ]
    files.sort(key=lambda pair: pair[0].casefold())
    return [{"name": f"📄 {name} · {file_id}", "value": file_id} for name, file_id in files]


def load_children_by_parent_and_type(node: BaseNode) -> List[Dict[str, Any]]:
    """Folders or files of `parentDirId`, depending on `targetType`."""
    parent_id = _current(node, "parentDirId") or ROOT_DIR_ID
    want_folders = (node.get_current_node_parameter("targetType") or "folder") == "folder"

    entries, _ = list_directory(node, parent_id)
    options = []
    for entry in entries:
        if not entry.get("id") or _is_directory(entry) != want_folders:
            continue
        icon = "📁" if want_folders else "📄"
        options.append({"name": f"{icon} {_entry_name(entry)} · {entry['id']}", "value": entry["id"]})
    options.sort(key=_sort_key)
    return options


def load_share_permissions(node: BaseNode) -> List[Dict[str, Any]]:
    """Link shares of files, following `links.next`."""
    base_url = get_base_url(node)
    options: List[Dict[str, Any]] = []
    seen = set()
    visited_paths = set()
    path: Optional[str] = SHARED_BY_LINK_PATH

    while path and path not in visited_paths:
        visited_paths.add(path)
        response = drive_request(node, "GET", path)
        data = unwrap_data(response)
        for permission in data if isinstance(data, list) else []:
            permission_id = str((permission or {}).get("id") or "").strip()
            if not permission_id or permission_id in seen:
                continue
            seen.add(permission_id)

            attributes = permission.get("attributes") or {}
            codes = attributes.get("codes") if isinstance(attributes.get("codes"), dict) else {}
            shortcodes = (
                attributes.get("shortcodes") if isinstance(attributes.get("shortcodes"), dict) else {}
            )
            labels = permission_labels(codes, shortcodes)
            options.append({
                "name": f"{', '.join(labels)} · {permission_id}" if labels else permission_id,
                "value": json.dumps(
                    {"id": permission_id, "codes": codes, "shortcodes": shortcodes},
                    separators=(",", ":"),
                    ensure_ascii=False,
                ),
            })

        next_link = (response.get("links") or {}).get("next") if isinstance(response, dict) else None
        path = urljoin(base_url + "/", next_link) if next_link else None

    logger.debug(f"Loaded {len(options)} link shares")
    return options


def load_share_labels(node: BaseNode) -> List[Dict[str, Any]]:
    """Labels of the permission selected in `permissionsId`."""
    permission = parse_permission_value(node.get_current_node_parameter("permissionsId", ""))
    if not permission["id"]:
        return []
    if permission["codes"] is None and permission["shortcodes"] is None:
        codes, shortcodes = fetch_permission_maps(node, permission["id"])
    else:
        codes = permission["codes"] or {}
        shortcodes = permission["shortcodes"] or {}
    return [{"name": label, "value": label} for label in permission_labels(codes, shortcodes)]


LOAD_OPTIONS = {
    "loadSharePermissions": load_share_permissions,
    "loadShareLabels": load_share_labels,
    "loadFoldersByParent": load_folders_by_parent,
    "loadFoldersByParentSource": load_folders_by_parent_source,
    "loadFoldersByParentDest": load_folders_by_parent_dest,
    "loadFilesByParent": load_files_by_parent,
    "loadChildrenByParentAndType": load_children_by_parent_and_type,
}
