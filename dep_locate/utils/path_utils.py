"""Path utilities for finding manifest files and filtering paths."""

import fnmatch
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple


@dataclass
class ManifestFile:
    """A manifest discovered on disk."""

    path: Path
    ecosystem: str
    parser_type: str


DEFAULT_IGNORE_PATTERNS = [
    "**/node_modules/**",
    "**/.git/**",
    "**/__pycache__/**",
    "**/.venv/**",
    "**/venv/**",
    "**/bin/**",
    "**/obj/**",
    "**/target/**",
    "**/build/**",
    "**/dist/**",
]


class PathFilter:
    """Filters paths based on glob patterns."""

    def __init__(self, ignore_patterns: Optional[List[str]] = None) -> None:
        """Initialize path filter.

        Args:
            ignore_patterns: Extra glob patterns, added to the defaults
        """
        self.ignore_patterns = DEFAULT_IGNORE_PATTERNS + list(ignore_patterns or [])

    def is_ignored(self, path: Path) -> bool:
        """Match ``path``, taken relative to the search root, against the patterns."""
        path_str = "/" + path.as_posix()
        return any(fnmatch.fnmatch(path_str, pattern) for pattern in self.ignore_patterns)


class ManifestFileFinder:
    """Finds supported manifests in a project directory."""

    MANIFEST_PATTERNS: Dict[str, Tuple[str, str]] = {
        "pom.xml": ("maven", "pom"),
        "*.csproj": ("dotnet", "project"),
        "*.vbproj": ("dotnet", "project"),
        "*.fsproj": ("dotnet", "project"),
        "project.json": ("dotnet", "project"),
    }

    def __init__(self, ignore_patterns: Optional[List[str]] = None) -> None:
        self.path_filter = PathFilter(ignore_patterns)

    def find_manifest_files(self, root_path: Path) -> List[ManifestFile]:
        """Find all manifests below ``root_path``.

        A file given as ``root_path`` is returned on its own when supported.

        Args:
            root_path: Directory (or single manifest) to search

        Returns:
            Manifests sorted by path

        Raises:
            ValueError: If ``root_path`` does not exist
        """
        if not root_path.exists():
            raise ValueError(f"Root path does not exist: {root_path}")

        if root_path.is_file():
            candidates: Iterator[Path] = iter([root_path])
        else:
            candidates = self._walk_files(root_path)

        manifests = []
        for file_path in candidates:
            ecosystem, parser_type = self.get_file_type(file_path)
            if ecosystem and parser_type:
                manifests.append(ManifestFile(file_path, ecosystem, parser_type))
        return sorted(manifests, key=lambda manifest: manifest.path)

    def _walk_files(self, root_path: Path) -> Iterator[Path]:
        for file_path in root_path.rglob("*"):
            if file_path.is_file() and not self.path_filter.is_ignored(file_path.relative_to(root_path)):
                yield file_path

    def get_file_type(self, file_path: Path) -> Tuple[Optional[str], Optional[str]]:
        """Get ecosystem and parser type for a file, or ``(None, None)``."""
        filename = file_path.name
        if filename in self.MANIFEST_PATTERNS:
            return self.MANIFEST_PATTERNS[filename]
        for pattern, (ecosystem, parser_type) in self.MANIFEST_PATTERNS.items():
            if fnmatch.fnmatch(filename.lower(), pattern):
                return ecosystem, parser_type
        return None, None


def find_manifest_files(
    root_path: Path,
    ignore_patterns: Optional[List[str]] = None
) -> List[ManifestFile]:
    """Convenience function to find manifest files.

    Args:
        root_path: Root directory to search
        ignore_patterns: Additional ignore patterns

    Returns:
        List of found manifest files
    """
    return ManifestFileFinder(ignore_patterns).find_manifest_files(root_path)
