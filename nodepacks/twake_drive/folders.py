"""Folder operations of the Twake Drive node."""

from __future__ import annotations

from typing import Any, Dict

from src.node_sdk.basenode import BaseNode, NodeOperationError

from .resolvers import resolve_destination, resolve_source_folder_id, text_param
from .transport import DRIVE_ACCEPT, FILES_DOCTYPE, ROOT_DIR_ID, drive_request, files_path, resource_id


def create_folder(node: BaseNode, item_index: int) -> Dict[str, Any]:
    """Create a directory under the destination directory."""
    parent_id, _ = resolve_destination(node, item_index)
    name = text_param(node, "dirName", item_index)
    if not name:
        raise NodeOperationError("Directory Name is required", node=node, item_index=item_index)

    response = drive_request(
        node,
        "POST",
        files_path(parent_id),
        qs={"Type": "directory", "Name": name},
        headers={"Content-Type": "application/json"},
    )
    folder_id = resource_id(response)
    if not folder_id:
        raise NodeOperationError(
            "Missing created folder id in response", node=node, item_index=item_index
        )
    return {
        "createFolder": {
            "parentDirId": parent_id,
            "createdFolderId": folder_id,
            "folder": response,
        }
    }


def delete_folder(node: BaseNode, item_index: int) -> Dict[str, Any]:
    """Move a directory to the trash."""
    folder_id = resolve_source_folder_id(node, item_index, "Directory ID is required")
    if folder_id == ROOT_DIR_ID:
        raise NodeOperationError("Cannot delete root directory", node=node, item_index=item_index)

    response = drive_request(node, "DELETE", files_path(folder_id))
    return {"deleteFolder": {"deletedFolderId": folder_id, "response": response}}


def move_folder(node: BaseNode, item_index: int) -> Dict[str, Any]:
    """Move a directory under the destination directory."""
    folder_id = resolve_source_folder_id(node, item_index)
    dest_id, _ = resolve_destination(node, item_index)

    if folder_id == ROOT_DIR_ID:
        raise NodeOperationError("Cannot move root directory", node=node, item_index=item_index)
    if folder_id == dest_id:
        raise NodeOperationError(
            "Destination directory cannot be the same as the folder being moved",
            node=node,
            item_index=item_index,
        )

    response = drive_request(
        node,
        "PATCH",
        files_path(folder_id),
        body={"data": {"attributes": {"dir_id": dest_id}}},
        headers={"Content-Type": DRIVE_ACCEPT},
    )
    return {
        "moveFolder": {
            "folderId": folder_id,
            "destinationDirId": dest_id,
            "folder": response,
        }
    }


def rename_folder(node: BaseNode, item_index: int) -> Dict[str, Any]:
    """Give a directory a new name."""
    folder_id = resolve_source_folder_id(node, item_index)
    if folder_id == ROOT_DIR_ID:
        raise NodeOperationError("Cannot rename root directory", node=node, item_index=item_index)

    new_name = text_param(node, "newFolderName", item_index)
    if not new_name:
        raise NodeOperationError("New Folder Name is required", node=node, item_index=item_index)

    response = drive_request(
        node,
        "PATCH",
        files_path(folder_id),
        body={"data": {"type": FILES_DOCTYPE, "id": folder_id, "attributes": {"name": new_name}}},
        headers={"Content-Type": DRIVE_ACCEPT},
    )
    return {
        "renameFolder": {
            "folderId": folder_id,
            "newFolderName": new_name,
            "folder": response,
        }
    }
