"""
Twake Drive node pack host SDK

Python plugin interface for workflow nodes, shipped with the Twake Drive
node pack that is written against it.

Architecture:
- node_sdk/: Node execution semantics (BaseNode, context, credentials, HTTP)
- node_registry/: Plugin discovery + validation
"""

__version__ = "1.0.0"
