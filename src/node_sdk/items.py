"""
Node Items - Binary attachments flowing through workflows.

Items travel between nodes as plain dicts:

    {"json": {...}, "binary": {"data": {...}}, "pairedItem": {"item": 0}}

Binary entries hold base64 content plus metadata in camelCase keys so
they stay compatible with what the host stores.
"""

from __future__ import annotations

import base64
import binascii
import mimetypes
import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_MIME_TYPE = "application/octet-stream"


class BinaryData(BaseModel):
    """
    Binary attachment for a node item.

    Binary data is stored base64-encoded and referenced by key.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    data: str = Field(..., description="Base64-encoded content")
    mime_type: str = Field(DEFAULT_MIME_TYPE, alias="mimeType")
    file_name: Optional[str] = Field(None, alias="fileName")
    file_extension: Optional[str] = Field(None, alias="fileExtension")
    file_size: Optional[int] = Field(None, alias="fileSize")

    @classmethod
    def from_bytes(
        cls,
        content: bytes,
        file_name: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> "BinaryData":
        """Build an entry from raw bytes, guessing the MIME type from the name."""
        if not mime_type and file_name:
            mime_type = mimetypes.guess_type(file_name)[0]
        extension = None
        if file_name:
            extension = os.path.splitext(file_name)[1].lstrip(".") or None
        return cls(
            data=base64.b64encode(content).decode("ascii"),
            mime_type=mime_type or DEFAULT_MIME_TYPE,
            file_name=file_name,
            file_extension=extension,
            file_size=len(content),
        )

    @classmethod
    def from_entry(cls, entry: Dict[str, Any]) -> "BinaryData":
        """Validate an item's binary entry dict."""
        return cls.model_validate(entry)

    def to_bytes(self) -> bytes:
        """Decode the base64 payload."""
        try:
            return base64.b64decode(self.data, validate=False)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Binary data for '{self.file_name}' is not valid base64") from e

    def to_entry(self) -> Dict[str, Any]:
        """Dump as an item binary entry (camelCase keys)."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @property
    def size(self) -> int:
        """Size of the decoded content."""
        if self.file_size is not None:
            return self.file_size
        return len(self.to_bytes())
