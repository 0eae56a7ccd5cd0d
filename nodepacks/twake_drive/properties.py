"""
Parameters of the Twake Drive node.

Dropdown (browse) and by-id (manual) inputs exist side by side for every
file and folder reference; `fileSelectMode`, `dirSelectMode` and
`inputMode` decide which one is shown and read.
"""

from typing import Any, Dict, List


EXPRESSION_HINT = (
    'Choose from the list, or specify an ID using an '
    '<a href="https://docs.n8n.io/code/expressions/">expression</a>'
)

SELECT_MODE_OPTIONS = [
    {"name": "Dropdown (Browse)", "value": "dropdown"},
    {"name": "By ID (Manual)", "value": "byId"},
]

FILE_SOURCE_OPERATIONS = ["copyFile", "deleteFile", "moveFile", "renameFile", "updateFile"]
FOLDER_SOURCE_OPERATIONS = ["moveFolder", "deleteFolder", "renameFolder"]
SOURCE_OPERATIONS = FILE_SOURCE_OPERATIONS + FOLDER_SOURCE_OPERATIONS + ["shareByLink"]
DESTINATION_OPERATIONS = [
    "copyFile", "moveFile", "createFileFromText", "uploadFile", "createFolder", "moveFolder",
]


def _show(**conditions: List[Any]) -> Dict[str, Any]:
    return {"show": conditions}


RESOURCE_PARAMETERS: List[Dict[str, Any]] = [
    {
        "displayName": "Authentication",
        "name": "authentication",
        "type": "options",
        "default": "oAuth2",
        "options": [
            {"name": "OAuth2", "value": "oAuth2"},
            {"name": "API Token", "value": "apiToken"},
        ],
    },
    {
        "displayName": "Resource",
        "name": "resource",
        "type": "options",
        "noDataExpression": True,
        "default": "file",
        "options": [
            {"name": "File/Folder", "value": "fileFolder"},
            {"name": "File", "value": "file"},
            {"name": "Folder", "value": "folder"},
            {"name": "Share", "value": "share"},
        ],
        "description": "Select the type of item to operate on",
    },
    {
        "displayName": "Operation",
        "name": "operation",
        "type": "options",
        "noDataExpression": True,
        "default": "getFileFolder",
        "displayOptions": _show(resource=["fileFolder"]),
        "options": [
            {
                "name": "List Files",
                "value": "getFileFolder",
                "description": "List a folder content or fetch a single file depending on Target",
                "action": "Get files folder",
            },
        ],
    },
    {
        "displayName": "Operation",
        "name": "operation",
        "type": "options",
        "noDataExpression": True,
        "default": "copyFile",
        "displayOptions": _show(resource=["file"]),
        "options": [
            {"name": "Copy File", "value": "copyFile",
             "description": "Copy a file into the target directory if any", "action": "Copy file"},
            {"name": "Create File From Text", "value": "createFileFromText",
             "description": "Create a text file with provided content", "action": "Create file from text"},
            {"name": "Delete File", "value": "deleteFile",
             "description": "Delete a file by ID", "action": "Delete file"},
            {"name": "Move File", "value": "moveFile",
             "description": "Move the targeted file to another directory", "action": "Move file"},
            {"name": "Rename File", "value": "renameFile",
             "description": "Rename the targeted file", "action": "Rename file"},
            {"name": "Update File", "value": "updateFile",
             "description": "Update the targeted file", "action": "Update file"},
            {"name": "Upload File", "value": "uploadFile",
             "description": "Upload a received file in the Twake instance in designated directory",
             "action": "Upload file"},
        ],
    },
    {
        "displayName": "Operation",
        "name": "operation",
        "type": "options",
        "noDataExpression": True,
        "default": "createFolder",
        "displayOptions": _show(resource=["folder"]),
        "options": [
            {"name": "Create Folder", "value": "createFolder",
             "description": "Create a new directory in the Twake instance", "action": "Create folder"},
            {"name": "Delete Folder", "value": "deleteFolder",
             "description": "Delete the selected directory from the Twake instance",
             "action": "Delete folder"},
            {"name": "Move Folder", "value": "moveFolder",
             "description": "Move the selected folder to another directory", "action": "Move folder"},
            {"name": "Rename Folder", "value": "renameFolder",
             "description": "Rename the selected folder", "action": "Rename folder"},
        ],
    },
    {
        "displayName": "Operation",
        "name": "operation",
        "type": "options",
        "noDataExpression": True,
        "default": "shareByLink",
        "displayOptions": _show(resource=["share"]),
        "options": [
            {"name": "Delete Share (by Permissions ID)", "value": "deleteShare",
             "description": "Delete a share by its permissions ID, or revoke some of its labels",
             "action": "Delete share"},
            {"name": "Share by Link (File or Folder)", "value": "shareByLink",
             "description": "Create a share link for a file or a folder", "action": "Create share"},
        ],
    },
]


FILE_FOLDER_PARAMETERS: List[Dict[str, Any]] = [
    {
        "displayName": "Target",
        "name": "targetType",
        "type": "options",
        "default": "folder",
        "options": [
            {"name": "Folder", "value": "folder"},
            {"name": "File", "value": "file"},
        ],
        "description": "Choose whether to list a folder (its contents) or fetch a single file",
        "displayOptions": _show(resource=["fileFolder"], operation=["getFileFolder"]),
    },
    {
        "displayName": "Input Mode",
        "name": "inputMode",
        "type": "options",
        "default": "dropdown",
        "options": SELECT_MODE_OPTIONS,
        "description": "Browse with dropdown or paste an ID directly",
        "displayOptions": _show(resource=["fileFolder"], operation=["getFileFolder"]),
    },
    {
        "displayName": "Parent Folder Name or ID",
        "name": "parentDirId",
        "type": "options",
        "default": "",
        "description": f"Starting directory. Leave empty for root. {EXPRESSION_HINT}.",
        "typeOptions": {
            "loadOptionsMethod": "loadFoldersByParent",
            "loadOptionsDependsOn": ["parentDirId"],
        },
        "displayOptions": _show(
            resource=["fileFolder"], operation=["getFileFolder"], inputMode=["dropdown"]
        ),
    },
    {
        "displayName": "Target (in This Folder) Name or ID",
        "name": "targetId",
        "type": "options",
        "default": "",
        "description": f"Select the file. The value is its ID. {EXPRESSION_HINT}.",
        "typeOptions": {
            "loadOptionsMethod": "loadChildrenByParentAndType",
            "loadOptionsDependsOn": ["parentDirId", "targetType"],
        },
        "displayOptions": _show(
            resource=["fileFolder"], operation=["getFileFolder"],
            inputMode=["dropdown"], targetType=["file"],
        ),
    },
    {
        "displayName": "Target ID (Manual)",
        "name": "targetIdById",
        "type": "string",
        "default": "",
        "placeholder": "file-or-directory-ID",
        "description": "Paste the target file/folder ID",
        "displayOptions": _show(
            resource=["fileFolder"], operation=["getFileFolder"], inputMode=["byId"]
        ),
    },
]


SOURCE_PARAMETERS: List[Dict[str, Any]] = [
    {
        "displayName": "Target Type",
        "name": "shareTargetType",
        "type": "options",
        "default": "folder",
        "options": [
            {"name": "Folder", "value": "folder"},
            {"name": "File", "value": "file"},
        ],
        "description": "Choose whether to share a file or a folder",
        "displayOptions": _show(operation=["shareByLink"]),
    },
    {
        "displayName": "File Select Mode",
        "name": "fileSelectMode",
        "type": "options",
        "default": "dropdown",
        "options": SELECT_MODE_OPTIONS,
        "displayOptions": _show(operation=SOURCE_OPERATIONS),
    },
    {
        "displayName": "Target Folder (Source) Name or ID",
        "name": "parentDirIdFile",
        "type": "options",
        "default": "",
        "description": f"Leave empty for root. {EXPRESSION_HINT}.",
        "typeOptions": {
            "loadOptionsMethod": "loadFoldersByParentSource",
            "loadOptionsDependsOn": ["parentDirIdFile", "fileSelectMode"],
        },
        "displayOptions": _show(operation=SOURCE_OPERATIONS, fileSelectMode=["dropdown"]),
    },
    {
        "displayName": "File (in This Folder) Name or ID",
        "name": "fileIdFromDropdown",
        "type": "options",
        "default": "",
        "description": EXPRESSION_HINT,
        "typeOptions": {
            "loadOptionsMethod": "loadFilesByParent",
            "loadOptionsDependsOn": ["parentDirIdFile"],
        },
        "displayOptions": _show(operation=FILE_SOURCE_OPERATIONS, fileSelectMode=["dropdown"]),
    },
    {
        "displayName": "File (in This Folder) Name or ID",
        "name": "fileIdFromDropdownShare",
        "type": "options",
        "default": "",
        "description": EXPRESSION_HINT,
        "typeOptions": {
            "loadOptionsMethod": "loadFilesByParent",
            "loadOptionsDependsOn": ["parentDirIdFile"],
        },
        "displayOptions": _show(
            operation=["shareByLink"], fileSelectMode=["dropdown"], shareTargetType=["file"]
        ),
    },
    {
        "displayName": "File ID (Manual)",
        "name": "fileIdById",
        "type": "string",
        "default": "",
        "placeholder": "file-ID",
        "displayOptions": _show(operation=FILE_SOURCE_OPERATIONS, fileSelectMode=["byId"]),
    },
    {
        "displayName": "File ID (Manual)",
        "name": "fileIdByIdShare",
        "type": "string",
        "default": "",
        "placeholder": "file-ID",
        "displayOptions": _show(
            operation=["shareByLink"], fileSelectMode=["byId"], shareTargetType=["file"]
        ),
    },
    {
        "displayName": "Source Folder ID (Manual)",
        "name": "sourceFolderIdById",
        "type": "string",
        "default": "",
        "placeholder": "directory-ID",
        "displayOptions": _show(operation=FOLDER_SOURCE_OPERATIONS, fileSelectMode=["byId"]),
    },
    {
        "displayName": "Source Folder ID (Manual)",
        "name": "sourceFolderIdByIdShare",
        "type": "string",
        "default": "",
        "placeholder": "directory-ID",
        "displayOptions": _show(
            operation=["shareByLink"], fileSelectMode=["byId"], shareTargetType=["folder"]
        ),
    },
]


DESTINATION_PARAMETERS: List[Dict[str, Any]] = [
    {
        "displayName": "Destination Select Mode",
        "name": "dirSelectMode",
        "type": "options",
        "default": "dropdown",
        "options": SELECT_MODE_OPTIONS,
        "displayOptions": _show(operation=DESTINATION_OPERATIONS),
    },
    {
        "displayName": "Parent Folder (Destination) Name or ID",
        "name": "parentDirIdDest",
        "type": "options",
        "default": "",
        "description": f"Leave empty for root. {EXPRESSION_HINT}.",
        "typeOptions": {
            "loadOptionsMethod": "loadFoldersByParentDest",
            "loadOptionsDependsOn": ["parentDirIdDest", "dirSelectMode"],
        },
        "displayOptions": _show(operation=DESTINATION_OPERATIONS, dirSelectMode=["dropdown"]),
    },
    {
        "displayName": "Destination Folder ID (Manual)",
        "name": "dirIdById",
        "type": "string",
        "default": "",
        "placeholder": "directory-ID",
        "displayOptions": _show(operation=DESTINATION_OPERATIONS, dirSelectMode=["byId"]),
    },
]


SHARE_PARAMETERS: List[Dict[str, Any]] = [
    {
        "displayName": "Permissions Name or ID",
        "name": "permissionsId",
        "type": "options",
        "default": "",
        "required": True,
        "description": f"Select the share to delete (labels · ID). {EXPRESSION_HINT}.",
        "typeOptions": {"loadOptionsMethod": "loadSharePermissions"},
        "displayOptions": _show(operation=["deleteShare"]),
    },
    {
        "displayName": "Revoke Only Selected Labels",
        "name": "useLabels",
        "type": "boolean",
        "default": False,
        "description": "Whether to revoke only selected labels. When disabled, the entire share is deleted.",
        "displayOptions": _show(operation=["deleteShare"]),
    },
    {
        "displayName": "Labels to Revoke (Optional)",
        "name": "labelsToRevoke",
        "type": "multiOptions",
        "default": [],
        "placeholder": "Leave empty to delete the entire share",
        "description": (
            "Select labels to revoke. Prefix with codes: or shortcodes: to revoke "
            "only one kind of token. If empty, the entire share is deleted."
        ),
        "typeOptions": {
            "loadOptionsMethod": "loadShareLabels",
            "loadOptionsDependsOn": ["permissionsId"],
        },
        "displayOptions": _show(operation=["deleteShare"], useLabels=[True]),
    },
    {
        "displayName": "Access Level",
        "name": "accessLevel",
        "type": "options",
        "default": "read",
        "options": [
            {"name": "Read-Only", "value": "read"},
            {"name": "Can Edit", "value": "write"},
        ],
        "displayOptions": _show(operation=["shareByLink"]),
    },
    {
        "displayName": "Use Expiry",
        "name": "useTtl",
        "type": "boolean",
        "default": False,
        "description": "Whether to set an expiry for the share",
        "displayOptions": _show(operation=["shareByLink"]),
    },
    {
        "displayName": "Expiry (Duration)",
        "name": "expiryDuration",
        "type": "fixedCollection",
        "default": {},
        "typeOptions": {"multipleValues": False},
        "displayOptions": _show(operation=["shareByLink"], useTtl=[True]),
        "options": [
            {
                "displayName": "Duration",
                "name": "duration",
                "values": [
                    {
                        "displayName": "Amount",
                        "name": "amount",
                        "type": "number",
                        "default": 1,
                        "typeOptions": {"minValue": 1},
                    },
                    {
                        "displayName": "Unit",
                        "name": "unit",
                        "type": "options",
                        "default": "s",
                        "options": [
                            {"name": "Days", "value": "D"},
                            {"name": "Hours", "value": "h"},
                            {"name": "Minutes", "value": "m"},
                            {"name": "Months", "value": "M"},
                            {"name": "Seconds", "value": "s"},
                            {"name": "Years", "value": "Y"},
                        ],
                    },
                ],
            },
        ],
    },
    {
        "displayName": "Protect with Password",
        "name": "usePassword",
        "type": "boolean",
        "default": False,
        "description": "Whether to protect the share with a password",
        "displayOptions": _show(operation=["shareByLink"]),
    },
    {
        "displayName": "Password",
        "name": "sharePassword",
        "type": "string",
        "default": "",
        "typeOptions": {"password": True},
        "displayOptions": _show(operation=["shareByLink"], usePassword=[True]),
    },
    {
        "displayName": "Codes (Comma-Separated Labels)",
        "name": "codes",
        "type": "string",
        "default": "",
        "placeholder": "e.g. link or clientA,clientB ...",
        "description": (
            "Comma-separated labels, one link per label, each revocable on its own. "
            "Defaults to a single label named link."
        ),
        "displayOptions": _show(operation=["shareByLink"]),
    },
]


FILE_PARAMETERS: List[Dict[str, Any]] = [
    {
        "displayName": "Binary Property",
        "name": "binaryPropertyName",
        "type": "string",
        "default": "",
        "placeholder": "data",
        "description": (
            "Binary property of the input item holding the file. Leave empty to "
            "use the only binary of the item."
        ),
        "displayOptions": _show(operation=["uploadFile", "updateFile"]),
    },
    {
        "displayName": "Overwrite if Exists",
        "name": "overwriteIfExists",
        "type": "boolean",
        "default": False,
        "description": "Whether to overwrite a file with the same name in the destination directory",
        "displayOptions": _show(operation=["uploadFile", "createFileFromText"]),
    },
    {
        "displayName": "Name of the New File",
        "name": "customName",
        "type": "boolean",
        "default": False,
        "description": "Whether to set a custom name",
        "displayOptions": _show(operation=["copyFile", "updateFile"]),
    },
    {
        "displayName": "New Name",
        "name": "newName",
        "type": "string",
        "default": "",
        "placeholder": "file(copy).pdf",
        "description": "New name for the copied or updated file",
        "displayOptions": _show(operation=["copyFile", "updateFile"], customName=[True]),
    },
    {
        "displayName": "New Name",
        "name": "newName",
        "type": "string",
        "default": "",
        "placeholder": "myNewFile.txt",
        "description": "Name of the created or renamed file",
        "displayOptions": _show(operation=["createFileFromText", "renameFile"]),
    },
    {
        "displayName": "Text",
        "name": "textContent",
        "type": "string",
        "default": "",
        "description": "Text content of the new file",
        "typeOptions": {"rows": 5},
        "displayOptions": _show(operation=["createFileFromText"]),
    },
]


FOLDER_PARAMETERS: List[Dict[str, Any]] = [
    {
        "displayName": "Directory Name",
        "name": "dirName",
        "type": "string",
        "default": "",
        "placeholder": "My new folder",
        "description": "Name of the directory to create",
        "displayOptions": _show(operation=["createFolder"]),
    },
    {
        "displayName": "New Folder Name",
        "name": "newFolderName",
        "type": "string",
        "default": "",
        "placeholder": "My renamed folder",
        "description": "New name for the folder",
        "displayOptions": _show(operation=["renameFolder"]),
    },
]


PARAMETERS: List[Dict[str, Any]] = (
    RESOURCE_PARAMETERS
    + FILE_FOLDER_PARAMETERS
    + SOURCE_PARAMETERS
    + DESTINATION_PARAMETERS
    + SHARE_PARAMETERS
    + FILE_PARAMETERS
    + FOLDER_PARAMETERS
)

CREDENTIALS: List[Dict[str, Any]] = [
    {
        "name": "twakeDriveOAuth2Api",
        "required": True,
        "displayOptions": _show(authentication=["oAuth2"]),
    },
    {
        "name": "twakeDriveApi",
        "required": True,
        "displayOptions": _show(authentication=["apiToken"]),
    },
]
