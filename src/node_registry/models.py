"""
Node Registry Models - Metadata structures for nodes, credentials and node packs.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field


class NodeDefinition(BaseModel):
    """
    Metadata about a registered node.

    Contains everything needed to instantiate and use a node.
    """
    model_config = ConfigDict(extra="allow")

    # Identity
    node_type: str = Field(..., description="Unique node type identifier")
    version: int = Field(1, description="Node version")

    # Display
    display_name: str = Field(..., description="Human-readable name")
    description: str = Field("", description="Node description")
    icon: str = Field("file:icon.svg", description="Node icon")
    group: List[str] = Field(default_factory=list, description="Categories")

    # Technical
    node_class: Optional[str] = Field(None, description="Fully qualified class name")
    node_pack: Optional[str] = Field(None, description="Source node pack")

    # Runtime
    inputs: List[str] = Field(default_factory=lambda: ["main"])
    outputs: List[str] = Field(default_factory=lambda: ["main"])
    credentials: List[Dict[str, Any]] = Field(default_factory=list)
    parameters: List[Dict[str, Any]] = Field(default_factory=list)
    load_options_methods: List[str] = Field(default_factory=list)

    @classmethod
    def from_node_class(cls, node_class: Type) -> "NodeDefinition":
        """
        Create definition from a BaseNode class.

        Every parameter and credential entry is validated, and every
        `loadOptionsMethod` a parameter references must exist in the
        class's `methods["loadOptions"]`.
        """
        from src.node_sdk.basenode import NodeCredential, NodeParameter

        node_type = getattr(node_class, "type", node_class.__name__.lower())
        version = getattr(node_class, "version", 1)
        description = getattr(node_class, "description", {})
        properties = getattr(node_class, "properties", {})
        methods = getattr(node_class, "methods", {}) or {}

        parameters = list(properties.get("parameters", []))
        credentials = list(description.get("credentials", []) or properties.get("credentials", []))

        load_options = sorted(methods.get("loadOptions", {}))
        for raw in parameters:
            parameter = NodeParameter.model_validate(raw)
            method = parameter.load_options_method
            if method and method not in load_options:
                raise ValueError(
                    f"Parameter '{parameter.name}' of '{node_type}' uses unknown "
                    f"load options method '{method}'"
                )
        for raw in credentials:
            NodeCredential.model_validate(raw)

        return cls(
            node_type=node_type,
            version=version,
            display_name=description.get("displayName", node_type),
            description=description.get("description", ""),
            icon=description.get("icon", "file:icon.svg"),
            group=description.get("group", []),
            node_class=f"{node_class.__module__}.{node_class.__name__}",
            inputs=description.get("inputs", ["main"]),
            outputs=description.get("outputs", ["main"]),
            credentials=credentials,
            parameters=parameters,
            load_options_methods=load_options,
        )


class NodePackManifest(BaseModel):
    """
    Manifest for a node pack (collection of nodes).

    Used for discovery and registration of bundled nodes.
    """
    model_config = ConfigDict(extra="allow")

    # Identity
    name: str = Field(..., description="Pack name (e.g., 'twake-drive')")
    version: str = Field("1.0.0", description="Pack version")
    description: str = Field("", description="Pack description")

    # Author
    author: str = Field("", description="Author name")
    license: str = Field("MIT", description="License type")

    # Contents
    nodes: List[str] = Field(
        default_factory=list,
        description="List of node types in this pack"
    )
    credentials: List[str] = Field(
        default_factory=list,
        description="List of credential types in this pack"
    )

    # Technical
    entry_point: str = Field(
        "",
        description="Module path for node discovery (e.g., 'mypack.nodes')"
    )


class CredentialDefinition(BaseModel):
    """
    Definition of a credential type.
    """
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Credential type name")
    display_name: str = Field(..., description="Human-readable name")
    documentation_url: str = Field("", description="Link to credential docs")
    extends: List[str] = Field(default_factory=list, description="Parent credential types")

    # Fields
    properties: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Credential properties/fields"
    )

    # Authentication
    auth_type: str = Field("generic", description="Auth type: generic, oauth2")
    credential_class: Optional[str] = Field(None, description="Fully qualified class name")

    @classmethod
    def from_credential_class(cls, credential_class: Type) -> "CredentialDefinition":
        """Create definition from a CredentialType class."""
        from src.node_sdk.credentials import OAuth2ApiCredential

        return cls(
            name=credential_class.name,
            display_name=credential_class.display_name,
            documentation_url=getattr(credential_class, "documentation_url", ""),
            extends=list(getattr(credential_class, "extends", [])),
            properties=list(credential_class.properties),
            auth_type="oauth2" if issubclass(credential_class, OAuth2ApiCredential) else "generic",
            credential_class=f"{credential_class.__module__}.{credential_class.__name__}",
        )


__all__ = [
    "NodeDefinition",
    "NodePackManifest",
    "CredentialDefinition",
]
