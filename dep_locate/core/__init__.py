"""Manifest parsing and dependency location resolution for DepLocate."""

from .confidence import Confidence
from .identifiers import PackageReference, VulnerableComponent, parse_package_url
from .models import DeclaredDependencyLocation, ManifestModel, ResolvedLocation, TextRange
from .parsers import ManifestParseError, ManifestParser
from .resolver import DependencyLocationResolver, create_resolver

__all__ = [
    "Confidence",
    "DeclaredDependencyLocation",
    "DependencyLocationResolver",
    "ManifestModel",
    "ManifestParseError",
    "ManifestParser",
    "PackageReference",
    "ResolvedLocation",
    "TextRange",
    "VulnerableComponent",
    "create_resolver",
    "parse_package_url",
]
