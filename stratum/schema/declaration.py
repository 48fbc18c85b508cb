"""
Schema Declaration Descriptor.

JSON/YAML-serializable descriptor for declaring configuration keys at
process start, one entry per key.

Design Principle:
    The declaration specifies WHAT keys exist. Turning it into registered
    SchemaEntry objects is a one-shot step; there is no runtime mutation API.

Format:
    {
        "service": {"type": "nested", "visibility": "public"},
        "service.baseUrl": {
            "type": "string",
            "default": "https://api.example.com",
            "visibility": "public",
            "description": "Base URL handed to the browser"
        },
        "apiKey": {"type": "string", "visibility": "private"}
    }

Usage:
    declaration = load_declaration("config/schema.yaml")
    registry = declaration.to_registry()
"""

from __future__ import annotations

import json
import logging
from pathlib import Path as FilePath
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from stratum.errors import SchemaError

from .entry import ABSENT, SchemaEntry, parse_path
from .registry import SchemaRegistry

logger = logging.getLogger(__name__)


class KeyDeclaration(BaseModel):
    """
    Declaration of a single key.

    Visibility defaults to private: a key is only exposed to the public
    view when the declaration says so.
    """

    type: Literal["string", "number", "boolean", "nested"] = Field(
        default="string",
        description="Declared value type",
    )
    default: Any = Field(default=None, description="Default value; omit for required keys")
    visibility: Literal["public", "private"] = Field(
        default="private",
        description="Whether the key may cross the public boundary",
    )
    description: str = Field(default="", description="Human-readable description")

    model_config = {"extra": "forbid"}

    def to_entry(self, key: str) -> SchemaEntry:
        # An explicit null default is still a default; only an omitted one is ABSENT.
        default = self.default if "default" in self.model_fields_set else ABSENT
        return SchemaEntry(
            key=parse_path(key),
            type=self.type,
            default=default,
            visibility=self.visibility,
            description=self.description,
        )


class SchemaDeclaration(BaseModel):
    """Mapping-based schema descriptor."""

    keys: dict[str, KeyDeclaration] = Field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> SchemaDeclaration:
        """Build a declaration from a {dotted_key: descriptor} mapping."""
        return cls.model_validate({"keys": data})

    def to_entries(self) -> list[SchemaEntry]:
        return [declaration.to_entry(key) for key, declaration in self.keys.items()]

    def to_registry(self) -> SchemaRegistry:
        return SchemaRegistry(self.to_entries())


def load_declaration(path: str | FilePath) -> SchemaDeclaration:
    """
    Load a schema declaration from a YAML or JSON file.

    Args:
        path: File path ending in .yaml, .yml or .json

    Raises:
        SchemaError: If the file type is unsupported or the top level
            is not a mapping
    """
    file = FilePath(path)
    with file.open("r", encoding="utf-8") as handle:
        if file.suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(handle) or {}
        elif file.suffix == ".json":
            data = json.load(handle)
        else:
            raise SchemaError(str(file), f"unsupported declaration file type '{file.suffix}'")

    if not isinstance(data, dict):
        raise SchemaError(str(file), "declaration file must contain a mapping")

    declaration = SchemaDeclaration.from_mapping(data)
    logger.info(f"[schema] Loaded {len(declaration.keys)} key declarations from {file}")
    return declaration
