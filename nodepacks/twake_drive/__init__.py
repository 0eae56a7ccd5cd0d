"""
Twake Drive Node Pack - files, folders and share links on Twake Drive.

This pack provides:
- TwakeDriveNode: getFileFolder, file, folder and share operations
- TwakeDriveApiCredential: static API token
- TwakeDriveOAuth2ApiCredential: OAuth2 against the Cozy Stack

All nodes are SYNC-CELERY SAFE.
"""

from .credentials import TwakeDriveApiCredential, TwakeDriveOAuth2ApiCredential
from .node import TwakeDriveNode
from .manifest import CREDENTIAL_CLASSES, MANIFEST, NODE_CLASSES, register_nodes

__all__ = [
    "TwakeDriveNode",
    "TwakeDriveApiCredential",
    "TwakeDriveOAuth2ApiCredential",
    "MANIFEST",
    "NODE_CLASSES",
    "CREDENTIAL_CLASSES",
    "register_nodes",
]
