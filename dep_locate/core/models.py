"""Data models for parsed manifests and resolved locations."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from .confidence import Confidence


@dataclass(frozen=True)
class DeclaredDependencyLocation:
    """One dependency declared in a manifest, with its source line span.

    Equality is structural on ``(name, group, version)``; the line span is
    carried along but does not take part in identity.
    """

    name: str
    group: Optional[str] = None
    version: Optional[str] = None
    start_line: int = field(default=1, compare=False)
    end_line: int = field(default=1, compare=False)

    def __post_init__(self) -> None:
        """Validate the line span."""
        if self.start_line < 1:
            raise ValueError(f"start_line must be >= 1, got {self.start_line}")
        if self.end_line < self.start_line:
            raise ValueError(
                f"end_line ({self.end_line}) must not precede start_line ({self.start_line})"
            )

    @property
    def coordinates(self) -> str:
        """Human-readable coordinates, e.g. ``group:name@version``."""
        text = f"{self.group}:{self.name}" if self.group else self.name
        if self.version:
            text = f"{text}@{self.version}"
        return text


@dataclass(frozen=True)
class ManifestModel:
    """Immutable list of declarations parsed from one manifest."""

    dependencies: Tuple[DeclaredDependencyLocation, ...] = ()
    ecosystem: str = ""
    source_file: Optional[Path] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "dependencies", tuple(self.dependencies or ()))

    def __iter__(self) -> Iterator[DeclaredDependencyLocation]:
        return iter(self.dependencies)

    def __len__(self) -> int:
        return len(self.dependencies)

    def find(self, name: str, group: Optional[str] = None) -> List[DeclaredDependencyLocation]:
        """Find declarations by name (and group, when given).

        Args:
            name: Declared name or artifactId
            group: Optional groupId to narrow the search

        Returns:
            Declarations in manifest order
        """
        return [
            dep for dep in self.dependencies
            if dep.name == name and (group is None or dep.group == group)
        ]


@dataclass(frozen=True)
class TextRange:
    """Line/column span inside a manifest file (1-based lines, 0-based offsets)."""

    start_line: int
    start_offset: int
    end_line: int
    end_offset: int


@dataclass(frozen=True)
class ResolvedLocation:
    """Best location found for a component and how confident the match is."""

    text_range: TextRange
    confidence: Confidence

    @property
    def start_line(self) -> int:
        return self.text_range.start_line

    @property
    def end_line(self) -> int:
        return self.text_range.end_line
