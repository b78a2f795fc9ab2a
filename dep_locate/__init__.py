"""DepLocate - locate vulnerable components inside dependency manifests."""

__version__ = "0.1.0"

from .config import LocatorConfig
from .core.confidence import Confidence
from .core.identifiers import VulnerableComponent, parse_package_url
from .core.models import DeclaredDependencyLocation, ManifestModel, ResolvedLocation, TextRange
from .core.parsers import ManifestParseError, ManifestParser
from .core.resolver import DependencyLocationResolver, create_resolver

__all__ = [
    "Confidence",
    "DeclaredDependencyLocation",
    "DependencyLocationResolver",
    "LocatorConfig",
    "ManifestModel",
    "ManifestParseError",
    "ManifestParser",
    "ResolvedLocation",
    "TextRange",
    "VulnerableComponent",
    "create_resolver",
    "parse_package_url",
]
