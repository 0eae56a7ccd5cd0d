"""
Twake Drive Node Pack Manifest - Registration function for entry-points.
"""

from src.node_registry.models import NodePackManifest

from .credentials import TwakeDriveApiCredential, TwakeDriveOAuth2ApiCredential
from .node import TwakeDriveNode


MANIFEST = NodePackManifest(
    name="twake_drive",
    version="1.0.0",
    description="File, folder and share-by-link operations on Twake Drive",
    author="twake-drive-nodes",
    license="MIT",
    nodes=["twakeDrive"],
    credentials=["twakeDriveApi", "twakeDriveOAuth2Api"],
    entry_point="nodepacks.twake_drive",
)


# Node classes by type
NODE_CLASSES = {
    "twakeDrive": TwakeDriveNode,
}

# Credential classes by name
CREDENTIAL_CLASSES = {
    "twakeDriveApi": TwakeDriveApiCredential,
    "twakeDriveOAuth2Api": TwakeDriveOAuth2ApiCredential,
}


def register_nodes():
    """
    Entry point function for node pack discovery.

    Returns tuple of (manifest, node_classes, credential_classes).
    """
    return MANIFEST, NODE_CLASSES, CREDENTIAL_CLASSES


__all__ = [
    "MANIFEST",
    "NODE_CLASSES",
    "CREDENTIAL_CLASSES",
    "register_nodes",
]
