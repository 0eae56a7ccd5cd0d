"""
File operations of the Twake Drive node.

Each handler takes the node and the item index and returns
{log_key: bag}; the dispatcher stores the bag in the item json.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

from src.node_sdk.basenode import BaseNode, NodeOperationError
from src.node_sdk.items import DEFAULT_MIME_TYPE, BinaryData

from .resolvers import resolve_destination, resolve_file_id, select_binary, text_param
from .settings import get_settings
from .transport import (
    DRIVE_ACCEPT,
    FILES_DOCTYPE,
    ROOT_DIR_ID,
    coerce_binary_body,
    drive_request,
    files_path,
    find_file_in_dir,
    get_base_url,
    get_file,
    list_directory,
    resource_id,
)


logger = logging.getLogger(__name__)

TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
FALLBACK_UPLOAD_NAME = "upload.bin"


def _input_item(node: BaseNode, item_index: int) -> Dict[str, Any]:
    items = node.get_input_data()
    if not 0 <= item_index < len(items):
        raise NodeOperationError(
            f"No input item at index {item_index}", node=node, item_index=item_index
        )
    return items[item_index]


def _rename(node: BaseNode, file_id: str, name: str) -> Any:
    return drive_request(
        node,
        "PATCH",
        files_path(file_id),
        body={"data": {"type": FILES_DOCTYPE, "id": file_id, "attributes": {"name": name}}},
        headers={"Content-Type": DRIVE_ACCEPT},
    )


def _put_content(node: BaseNode, file_id: str, content: bytes, mime_type: str) -> Any:
    return drive_request(
        node,
        "PUT",
        files_path(file_id),
        body=content,
        headers={"Content-Type": mime_type},
        timeout=get_settings().transfer_timeout_s,
    )


def _create_file(node: BaseNode, dir_id: str, name: str, content: bytes, mime_type: str) -> Any:
    return drive_request(
        node,
        "POST",
        files_path(dir_id),
        qs={"Name": name, "Type": "file"},
        body=content,
        headers={"Content-Type": mime_type},
        timeout=get_settings().transfer_timeout_s,
    )


def _write_file(
    node: BaseNode,
    dir_id: str,
    name: str,
    content: bytes,
    mime_type: str,
    overwrite: bool,
) -> Tuple[Any, Dict[str, Any]]:
    """Create `name` in `dir_id`, or replace its content when asked to and it exists."""
    existing_id: Optional[str] = None
    if overwrite:
        existing_id = find_file_in_dir(node, dir_id, name)

    if existing_id:
        logger.info(f"Overwriting existing file {existing_id} in {dir_id}")
        return _put_content(node, existing_id, content, mime_type), {
            "used": True,
            "existingFileId": existing_id,
        }
    return _create_file(node, dir_id, name, content, mime_type), {"used": False}


# ==============================================================================
# getFileFolder
# ==============================================================================

def get_file_folder(node: BaseNode, item_index: int) -> Dict[str, Any]:
    """List a folder, or download a single file onto the item."""
    target_type = node.get_node_parameter("targetType", item_index, "folder")
    by_id = node.get_node_parameter("inputMode", item_index, "dropdown") == "byId"

    if by_id:
        target_id = text_param(node, "targetIdById", item_index)
    else:
        target_id = text_param(node, "targetId", item_index)

    if target_type == "file":
        if not target_id:
            raise NodeOperationError("File ID is required", node=node, item_index=item_index)
        return {"getFile": _download_to_item(node, item_index, target_id)}

    if not target_id and not by_id:
        target_id = text_param(node, "parentDirId", item_index)
    dir_id = target_id or ROOT_DIR_ID

    max_items = get_settings().max_list_items
    entries, capped = list_directory(node, dir_id, max_items=max_items)

    bag: Dict[str, Any] = {
        "targetType": "folder",
        "targetId": dir_id,
        "total": len(entries),
        "files": entries,
    }
    if capped:
        bag["cappedAtMaxItems"] = {"maxItems": max_items, "current": len(entries)}
    return {"getFolder": bag}


def _download_to_item(node: BaseNode, item_index: int, file_id: str) -> Dict[str, Any]:
    metadata = get_file(node, file_id)
    attributes = metadata.get("attributes") or {}
    file_id = metadata.get("id") or file_id
    file_name = attributes.get("name") or str(file_id)
    mime_type = attributes.get("mime") or DEFAULT_MIME_TYPE

    download_path = f"/files/download/{quote(str(file_id), safe='')}"
    body = drive_request(
        node,
        "GET",
        download_path,
        headers={"Accept": "*/*"},
        encoding="arraybuffer",
        timeout=get_settings().transfer_timeout_s,
    )
    content = coerce_binary_body(body)
    entry = BinaryData.from_bytes(content, file_name, mime_type)

    item = _input_item(node, item_index)
    existing = item.get("binary") or {}

    requested = (item.get("json") or {}).get("binaryPropertyName")
    if isinstance(requested, str) and requested.strip():
        key, key_source = requested.strip(), "json"
    elif len(existing) == 1:
        key, key_source = next(iter(existing)), "binary"
    else:
        key, key_source = "data", "default"

    final_key = key
    if final_key in existing:
        suffix = 2
        while f"{key}_{suffix}" in existing:
            suffix += 1
        final_key = f"{key}_{suffix}"

    item["binary"] = {**existing, final_key: entry.to_entry()}

    return {
        "targetType": "file",
        "targetId": file_id,
        "file": metadata,
        "binary": {
            "filename": file_name,
            "mimeType": mime_type,
            "size": entry.size,
            "downloadUrl": f"{get_base_url(node)}{download_path}",
            "property": final_key,
            "keySource": key_source,
        },
    }


# ==============================================================================
# File operations
# ==============================================================================

def upload_file(node: BaseNode, item_index: int) -> Dict[str, Any]:
    """Upload a binary of the item into the destination directory."""
    dir_id, _ = resolve_destination(node, item_index)
    requested = text_param(node, "binaryPropertyName", item_index)
    overwrite = bool(node.get_node_parameter("overwriteIfExists", item_index, False))

    key, binary = select_binary(node, _input_item(node, item_index), requested, item_index)
    file_name = binary.file_name or FALLBACK_UPLOAD_NAME

    content = node.get_binary_buffer(item_index, key)
    response, overwrite_info = _write_file(
        node, dir_id, file_name, content, binary.mime_type, overwrite
    )
    return {
        "uploadFile": {
            "dirId": dir_id,
            "binaryPropertyName": key,
            "fileName": file_name,
            "overwrite": overwrite_info,
            "fileId": resource_id(response),
            "file": response,
        }
    }


def copy_file(node: BaseNode, item_index: int) -> Dict[str, Any]:
    """Copy a file, optionally into another directory and under a new name."""
    file_id = resolve_file_id(node, item_index)
    dir_id, explicit = resolve_destination(node, item_index)
    custom_name = bool(node.get_node_parameter("customName", item_index, False))
    new_name = text_param(node, "newName", item_index) if custom_name else ""

    qs: Dict[str, Any] = {}
    if explicit:
        qs["DirID"] = dir_id
    if new_name:
        qs["Name"] = new_name

    response = drive_request(
        node,
        "POST",
        files_path(file_id, "copy"),
        qs=qs,
        headers={"Content-Type": "application/json"},
    )
    return {
        "copyFile": {
            "dirId": dir_id,
            "customName": new_name or None,
            "copyId": resource_id(response),
            "file": response,
        }
    }


def delete_file(node: BaseNode, item_index: int) -> Dict[str, Any]:
    """Move a file to the trash."""
    file_id = resolve_file_id(node, item_index)
    response = drive_request(node, "DELETE", files_path(file_id))
    return {
        "deleteFile": {
            "deletedFileId": resource_id(response) or file_id,
            "deletedFile": response,
        }
    }


def create_file_from_text(node: BaseNode, item_index: int) -> Dict[str, Any]:
    """Create a UTF-8 text file from the `textContent` parameter."""
    dir_id, _ = resolve_destination(node, item_index)
    file_name = text_param(node, "newName", item_index)
    if not file_name:
        raise NodeOperationError("File name is required", node=node, item_index=item_index)

    text = node.get_node_parameter("textContent", item_index, "") or ""
    overwrite = bool(node.get_node_parameter("overwriteIfExists", item_index, False))

    response, overwrite_info = _write_file(
        node, dir_id, file_name, str(text).encode("utf-8"), TEXT_CONTENT_TYPE, overwrite
    )
    return {
        "createFileFromText": {
            "destinationDirId": dir_id,
            "filename": file_name,
            "textContentLength": len(str(text)),
            "overwrite": overwrite_info,
            "createdFileId": resource_id(response),
            "file": response,
        }
    }


def move_file(node: BaseNode, item_index: int) -> Dict[str, Any]:
    """Move a file into the destination directory."""
    file_id = resolve_file_id(node, item_index)
    dir_id, _ = resolve_destination(node, item_index)

    response = drive_request(
        node,
        "PATCH",
        files_path(file_id),
        body={"data": {"attributes": {"dir_id": dir_id}}},
        headers={"Content-Type": DRIVE_ACCEPT},
    )
    return {
        "moveFile": {
            "fileId": file_id,
            "destinationDirId": dir_id,
            "movedFileId": resource_id(response) or file_id,
            "file": response,
        }
    }


def update_file(node: BaseNode, item_index: int) -> Dict[str, Any]:
    """Replace a file's content with a binary of the item, then rename it if asked."""
    file_id = resolve_file_id(node, item_index)
    requested = text_param(node, "binaryPropertyName", item_index)
    key, binary = select_binary(node, _input_item(node, item_index), requested, item_index)
    content = node.get_binary_buffer(item_index, key)

    custom_name = bool(node.get_node_parameter("customName", item_index, False))
    new_name = text_param(node, "newName", item_index) if custom_name else ""

    bag: Dict[str, Any] = {
        "fileId": file_id,
        "binaryPropertyName": key,
        "byteLength": len(content),
    }
    bag["updatedFile"] = _put_content(node, file_id, content, binary.mime_type)

    if new_name:
        bag["newFilename"] = new_name
        bag["rename"] = _rename(node, file_id, new_name)

    return {"updateFile": bag}


def rename_file(node: BaseNode, item_index: int) -> Dict[str, Any]:
    """Give a file a new name."""
    file_id = resolve_file_id(node, item_index)
    new_name = text_param(node, "newName", item_index)
    if not new_name:
        raise NodeOperationError("New Name is required", node=node, item_index=item_index)

    response = _rename(node, file_id, new_name)
    return {"renameFile": {"fileId": file_id, "newName": new_name, "file": response}}
