"""Manifest parsers for supported build systems."""

from .base import BaseManifestParser, ManifestParseError
from .dotnet import DotNetProjectParser
from .maven import MavenPomParser
from .registry import ParserRegistry

# Register built-in parsers
registry = ParserRegistry()
registry.register("maven", "pom", MavenPomParser())
registry.register("dotnet", "project", DotNetProjectParser())

# Convenience exports
ManifestParser = registry
__all__ = [
    "BaseManifestParser",
    "DotNetProjectParser",
    "ManifestParseError",
    "ManifestParser",
    "MavenPomParser",
    "ParserRegistry",
    "registry",
]
