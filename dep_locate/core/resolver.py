"""Locate flagged components inside a dependency manifest."""

import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..config import DEFAULT_CONFIG, LocatorConfig
from ..utils.logging import get_logger
from ..utils.performance import PerformanceMonitor
from .confidence import Confidence
from .identifiers import VulnerableComponent
from .matching import Candidate, IdentityMatcher, get_matcher
from .models import DeclaredDependencyLocation, ManifestModel, ResolvedLocation, TextRange
from .parsers.base import BaseManifestParser, ManifestParseError
from .parsers.registry import ParserRegistry


class DependencyLocationResolver:
    """Finds the best text range for flagged components in one manifest.

    The manifest is read and parsed once, at construction. A manifest that
    cannot be read or parsed leaves the resolver "not reasonable", but
    :meth:`best_location` keeps answering with the first-line fallback.
    Results are memoized per component.
    """

    def __init__(
        self,
        manifest_path: Path,
        parser: BaseManifestParser,
        config: Optional[LocatorConfig] = None,
        content: Optional[Union[str, bytes]] = None
    ) -> None:
        """Initialize the resolver.

        Args:
            manifest_path: Manifest file to search
            parser: Parser for the manifest's format
            config: Size limits and other settings
            content: Manifest content, to skip reading ``manifest_path``
        """
        self.manifest_path = Path(manifest_path)
        self.parser = parser
        self.config = config or DEFAULT_CONFIG
        self.ecosystem = parser.ecosystem
        self.matcher: Optional[IdentityMatcher] = get_matcher(parser.ecosystem)
        self.logger = get_logger("dep_locate.resolver")
        self.performance_monitor = PerformanceMonitor()

        self._cache: Dict[VulnerableComponent, ResolvedLocation] = {}
        self._lock = threading.Lock()
        self._scans = 0
        self._lines: List[str] = []
        self.model: Optional[ManifestModel] = None

        try:
            with self.performance_monitor.measure("parse_manifest"):
                raw = parser.read_file(self.manifest_path) if content is None else content
                self._lines = self._split_lines(raw)
                self.model = parser.parse(raw, source_file=self.manifest_path)
        except ManifestParseError as e:
            self.logger.warning("Parsing %s failed", self.manifest_path)
            self.logger.debug("%s", e, exc_info=e)

    @staticmethod
    def _split_lines(raw: Union[str, bytes]) -> List[str]:
        text = raw.decode("utf-8-sig", errors="replace") if isinstance(raw, bytes) else raw
        return [line.rstrip("\r") for line in text.split("\n")]

    def is_reasonable(self) -> bool:
        """True when the manifest was read and parsed successfully."""
        return self.model is not None

    @property
    def dependencies(self) -> List[DeclaredDependencyLocation]:
        return list(self.model.dependencies) if self.model is not None else []

    def best_location(self, component: VulnerableComponent) -> ResolvedLocation:
        """Return the best location of ``component`` in this manifest.

        Never raises. Falls back to the first line with ``Confidence.LOW``
        when nothing matches or the manifest is unusable.

        Args:
            component: Flagged component to locate

        Returns:
            Resolved text range and its confidence
        """
        with self._lock:
            cached = self._cache.get(component)
            if cached is None:
                cached = self._resolve(component)
                self._cache[component] = cached
            return cached

    def _resolve(self, component: VulnerableComponent) -> ResolvedLocation:
        self._scans += 1
        best: Optional[Candidate] = None

        if self.model is not None and self.matcher is not None:
            reference = component.reference_for(self.ecosystem)
            if reference is not None:
                best = self.matcher.best_match(reference, self.model.dependencies, best)
            else:
                self.logger.debug(
                    "No %s identifier found for %s", self.ecosystem, component.display_name
                )

            for included_by in component.inclusion_references(self.ecosystem):
                best = self.matcher.best_match(included_by, self.model.dependencies, best)

        if best is None:
            return self._first_line()

        location, confidence = best
        self.logger.debug(
            "Found %s match for %s in %s (%d - %d)",
            confidence.name, component.display_name, self.manifest_path,
            location.start_line, location.end_line,
        )
        return ResolvedLocation(self._line_range(location.start_line, location.end_line), confidence)

    def _line_length(self, line: int) -> int:
        if 1 <= line <= len(self._lines):
            return len(self._lines[line - 1])
        return 0

    def _line_range(self, start_line: int, end_line: int) -> TextRange:
        return TextRange(start_line, 0, end_line, self._line_length(end_line))

    def _first_line(self) -> ResolvedLocation:
        return ResolvedLocation(self._line_range(1, 1), Confidence.LOW)

    def line_text(self, line: int) -> str:
        """Return the text of a 1-based manifest line, or '' when out of range."""
        if 1 <= line <= len(self._lines):
            return self._lines[line - 1]
        return ""

    def clear_cache(self) -> None:
        """Forget every memoized resolution."""
        with self._lock:
            self._cache.clear()

    def get_statistics(self) -> Dict[str, Any]:
        """Get resolver statistics.

        Returns:
            Dictionary with cache size, number of full matching runs and
            manifest details
        """
        return {
            "cache_size": len(self._cache),
            "scans": self._scans,
            "declared_dependencies": len(self.model) if self.model is not None else 0,
            "reasonable": self.is_reasonable(),
            "performance": self.performance_monitor.get_summary(),
        }


def create_resolver(
    manifest_path: Path,
    registry: Optional[ParserRegistry] = None,
    config: Optional[LocatorConfig] = None
) -> DependencyLocationResolver:
    """Build a resolver using the parser registered for the manifest's file name.

    Args:
        manifest_path: Manifest file to search
        registry: Parser registry (the built-in one when None)
        config: Size limits and other settings

    Returns:
        Resolver for the manifest

    Raises:
        ValueError: If no registered parser handles the file
    """
    if registry is None:
        from .parsers import registry as default_registry
        registry = default_registry

    manifest_path = Path(manifest_path)
    parser = registry.find_parser_for_file(manifest_path)
    if parser is None:
        raise ValueError(f"Unsupported manifest: {manifest_path}")
    if config is not None and parser.config != config:
        parser = type(parser)(config)
    return DependencyLocationResolver(manifest_path, parser, config=config)
