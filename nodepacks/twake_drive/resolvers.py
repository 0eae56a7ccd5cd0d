"""Resolve file and folder ids from the dropdown/by-id parameter pairs."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from src.node_sdk.basenode import BaseNode, NodeOperationError
from src.node_sdk.items import BinaryData

from .transport import ROOT_DIR_ID


def text_param(node: BaseNode, name: str, item_index: int, default: str = "") -> str:
    """String parameter, stripped; None becomes the default."""
    value = node.get_node_parameter(name, item_index, default)
    if value is None:
        return default
    return str(value).strip()


def resolve_file_id(node: BaseNode, item_index: int) -> str:
    """File picked via `fileSelectMode` (dropdown or manual id)."""
    if node.get_node_parameter("fileSelectMode", item_index, "dropdown") == "byId":
        file_id = text_param(node, "fileIdById", item_index)
    else:
        file_id = text_param(node, "fileIdFromDropdown", item_index)
    if not file_id:
        raise NodeOperationError("File ID is required", node=node, item_index=item_index)
    return file_id


def resolve_source_folder_id(
    node: BaseNode,
    item_index: int,
    missing_message: str = "Folder ID is required",
) -> str:
    """Folder picked via `fileSelectMode` for folder operations."""
    if node.get_node_parameter("fileSelectMode", item_index, "dropdown") == "byId":
        folder_id = text_param(node, "sourceFolderIdById", item_index)
    else:
        folder_id = text_param(node, "parentDirIdFile", item_index)
    if not folder_id:
        raise NodeOperationError(missing_message, node=node, item_index=item_index)
    return folder_id


def resolve_destination(node: BaseNode, item_index: int) -> Tuple[str, bool]:
    """
    Destination directory picked via `dirSelectMode`.

    Returns:
        (dir_id, explicit) where an empty dropdown falls back to the
        root directory with explicit=False
    """
    if node.get_node_parameter("dirSelectMode", item_index, "dropdown") == "byId":
        dir_id = text_param(node, "dirIdById", item_index)
        if not dir_id:
            raise NodeOperationError(
                "Destination directory is required", node=node, item_index=item_index
            )
        return dir_id, True

    dir_id = text_param(node, "parentDirIdDest", item_index)
    if not dir_id:
        return ROOT_DIR_ID, False
    return dir_id, True


def select_binary(
    node: BaseNode,
    item: Dict[str, Any],
    requested: str,
    item_index: int,
) -> Tuple[str, BinaryData]:
    """
    Choose the binary entry of an item to send.

    A requested key must exist. Without one, the only binary entry is
    used, then an entry named "data". The chosen entry is validated.
    """
    binaries: Dict[str, Any] = item.get("binary") or {}
    keys = list(binaries)

    chosen: Optional[str] = None
    if requested:
        if requested in binaries:
            chosen = requested
    elif len(keys) == 1:
        chosen = keys[0]
    elif "data" in binaries:
        chosen = "data"

    if chosen is None:
        present = ", ".join(keys) if keys else "none"
        raise NodeOperationError(
            f"Ambiguous binary selection. Present keys: {present}. "
            f'Set "Binary Property" to one of them.',
            node=node,
            item_index=item_index,
        )
    try:
        binary = BinaryData.from_entry(binaries[chosen] or {})
    except ValidationError as e:
        raise NodeOperationError(
            f"Binary property '{chosen}' is not a valid binary entry",
            node=node,
            item_index=item_index,
            description=str(e),
        ) from e
    return chosen, binary
