"""
Stratum Sources

Ordered value sources: in-memory mappings and the process environment.
"""

from .base import MappingSource, Source, flatten
from .env import EnvironmentNaming, EnvironmentSource, external_name
from .layer import SourceLayer, SourceProvider

__all__ = [
    "Source",
    "MappingSource",
    "flatten",
    "EnvironmentNaming",
    "EnvironmentSource",
    "external_name",
    "SourceLayer",
    "SourceProvider",
]
