"""
Twake Drive Node - files, folders and link shares on a Twake (Cozy) Drive.

SYNC-CELERY SAFE: every request goes through the context's HttpClient
with a timeout.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List

from src.node_sdk.basenode import BaseNode, NodeExecutionData, NodeOperationError
from src.node_sdk.observability import with_node_context

from . import files, folders, share
from .load_options import LOAD_OPTIONS
from .properties import CREDENTIALS, PARAMETERS


logger = logging.getLogger(__name__)

Handler = Callable[[BaseNode, int], Dict[str, Any]]

OPERATIONS: Dict[str, Handler] = {
    # fileFolder
    "getFileFolder": files.get_file_folder,
    # file
    "uploadFile": files.upload_file,
    "copyFile": files.copy_file,
    "deleteFile": files.delete_file,
    "createFileFromText": files.create_file_from_text,
    "moveFile": files.move_file,
    "updateFile": files.update_file,
    "renameFile": files.rename_file,
    # folder
    "createFolder": folders.create_folder,
    "deleteFolder": folders.delete_folder,
    "moveFolder": folders.move_folder,
    "renameFolder": folders.rename_folder,
    # share
    "shareByLink": share.share_by_link,
    "deleteShare": share.delete_share,
}

# Share results replace the item instead of being merged into it
SHARE_OPERATIONS = frozenset({"shareByLink", "deleteShare"})


class TwakeDriveNode(BaseNode):
    """
    Twake Drive - manage files, folders and share links.

    Each input item runs the selected operation. File and folder
    operations forward the item with the operation's result stored
    under the operation name; share operations emit the result as a
    new item.
    """

    type = "twakeDrive"
    version = 1

    description = {
        "displayName": "Twake Drive",
        "name": "twakeDrive",
        "icon": "file:icon.svg",
        "group": ["transform"],
        "description": "Manage files, folders and share links on Twake Drive",
        "version": 1,
        "defaults": {"name": "Twake Drive"},
        "inputs": ["main"],
        "outputs": ["main"],
        "credentials": CREDENTIALS,
        "usableAsTool": True,
    }

    properties = {
        "parameters": PARAMETERS,
        "credentials": CREDENTIALS,
    }

    methods = {"loadOptions": LOAD_OPTIONS}

    def execute(self) -> List[List[NodeExecutionData]]:
        """Run the selected operation for every input item."""
        items = self.get_input_data()
        results: List[NodeExecutionData] = []

        for i, item in enumerate(items):
            operation = self.get_node_parameter("operation", i, "")
            extra = with_node_context(
                workflow_id=self.context.workflow_id,
                node_name=self.name,
                operation=operation,
                item_index=i,
            )

            try:
                handler = OPERATIONS.get(operation)
                if handler is None:
                    raise NodeOperationError(
                        f'The operation "{operation}" is not supported',
                        node=self,
                        item_index=i,
                    )

                output = handler(self, i)
                for key, bag in output.items():
                    self._ezlog(item, key, bag, extra)

                if operation in SHARE_OPERATIONS:
                    results.append({"json": output[operation], "pairedItem": {"item": i}})
                else:
                    results.append({**item, "pairedItem": {"item": i}})

            except Exception as e:
                self._ezlog(item, "errorMessage", str(e), extra)
                self._ezlog(item, "errorResponse", getattr(e, "response_body", None), extra)
                logger.error(f"Twake Drive - {operation} failed on item {i}: {e}", extra=extra)

                if self.should_continue_on_fail():
                    results.append({**item, "pairedItem": {"item": i}})
                    continue
                raise NodeOperationError(
                    str(e),
                    node=self,
                    item_index=i,
                    description=getattr(e, "description", None),
                ) from e

        return [results]

    @staticmethod
    def _ezlog(item: Dict[str, Any], key: str, value: Any, extra: Dict[str, Any]) -> None:
        """Store a debug value in the item json and log it."""
        if not isinstance(item.get("json"), dict):
            item["json"] = {}
        item["json"][key] = value
        logger.debug(f"Twake Drive - {key}", extra={**extra, "ezlog_key": key})
