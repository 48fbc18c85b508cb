"""
Pytest configuration and fixtures for Stratum tests.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to path for imports
# This allows `from stratum import ...` to work without installing
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from stratum.schema import SchemaDeclaration, SchemaEntry, SchemaRegistry, ValueType, Visibility


@pytest.fixture
def sample_declaration():
    """Declaration mixing public, private and nested keys."""
    return {
        "service": {"type": "nested", "visibility": "public"},
        "service.baseUrl": {
            "type": "string",
            "visibility": "public",
            "default": "https://api.example.com",
        },
        "service.token": {"type": "string", "visibility": "private", "default": "dev-token"},
        "port": {"type": "number", "visibility": "public", "default": 8080},
        "debug": {"type": "boolean", "visibility": "public", "default": False},
        "apiKey": {"type": "string", "visibility": "private"},
    }


@pytest.fixture
def sample_registry(sample_declaration):
    """Registry built from the sample declaration."""
    return SchemaDeclaration.from_mapping(sample_declaration).to_registry()


@pytest.fixture
def simple_registry():
    """Registry with one public and one private string key."""
    return SchemaRegistry(
        [
            SchemaEntry(key=("title",), visibility=Visibility.PUBLIC, default="hello"),
            SchemaEntry(key=("secret",), visibility=Visibility.PRIVATE, default="hello"),
        ]
    )


@pytest.fixture
def number_entry():
    """Required public number key."""
    return SchemaEntry(key=("port",), type=ValueType.NUMBER, visibility=Visibility.PUBLIC)
