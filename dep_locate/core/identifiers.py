"""Package identifiers of flagged components and their parsing."""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple
from urllib.parse import unquote


MAVEN = "maven"
DOTNET = "dotnet"
NPM = "npm"

# package-URL type -> ecosystem
ECOSYSTEM_TYPES = {
    "maven": MAVEN,
    "nuget": DOTNET,
    "dotnet": DOTNET,
    "npm": NPM,
}


@dataclass(frozen=True)
class PackageReference:
    """A component coordinate parsed out of a package identifier."""

    ecosystem: str
    name: str
    group: Optional[str] = None
    version: Optional[str] = None


def _split_version(path: str) -> Tuple[str, Optional[str]]:
    # npm scopes start with '@', so only an '@' after the last '/' is a version
    slash = path.rfind("/")
    at = path.rfind("@")
    if at > slash:
        return path[:at], path[at + 1:]
    return path, None


def parse_package_url(text: Optional[str]) -> Optional[PackageReference]:
    """Parse a package URL such as ``pkg:maven/org.example/lib@1.0``.

    Qualifiers and subpath are ignored. Malformed identifiers and types this
    tool does not know return ``None`` instead of raising.

    Args:
        text: Package identifier string

    Returns:
        Parsed reference or None
    """
    if not text or not isinstance(text, str):
        return None

    text = text.strip()
    scheme, sep, remainder = text.partition(":")
    if not sep or scheme.lower() != "pkg":
        return None

    remainder = remainder.lstrip("/")
    remainder = remainder.split("#", 1)[0].split("?", 1)[0]

    purl_type, sep, path = remainder.partition("/")
    if not sep:
        return None
    ecosystem = ECOSYSTEM_TYPES.get(purl_type.lower())
    if ecosystem is None:
        return None

    path, version = _split_version(path)
    if version is not None:
        version = unquote(version).strip()
        if not version:
            return None

    segments = [unquote(segment).strip() for segment in path.split("/")]
    if not segments or any(not segment for segment in segments):
        return None

    if ecosystem == MAVEN:
        if len(segments) != 2:
            return None
        return PackageReference(ecosystem, segments[1], segments[0], version)

    if ecosystem == DOTNET:
        if len(segments) != 1:
            return None
        return PackageReference(ecosystem, segments[0], None, version)

    group = "/".join(segments[:-1]) or None
    return PackageReference(ecosystem, segments[-1], group, version)


@dataclass(frozen=True)
class VulnerableComponent:
    """A component flagged by an external scanner.

    Equality and hashing are structural, so two descriptors built from the
    same identifiers share one cached resolution.
    """

    package_ids: Tuple[str, ...] = ()
    included_by: Tuple[str, ...] = ()
    file_name: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        # Accept any iterable but store tuples to stay hashable
        object.__setattr__(self, "package_ids", tuple(self.package_ids))
        object.__setattr__(self, "included_by", tuple(self.included_by))

    @classmethod
    def from_purl(
        cls,
        purl: str,
        included_by: Tuple[str, ...] = (),
        file_name: Optional[str] = None
    ) -> "VulnerableComponent":
        """Build a component from a single package identifier."""
        return cls(package_ids=(purl,), included_by=tuple(included_by), file_name=file_name)

    def reference_for(self, ecosystem: str) -> Optional[PackageReference]:
        """Return the first package id that parses into ``ecosystem``."""
        for package_id in self.package_ids:
            reference = parse_package_url(package_id)
            if reference is not None and reference.ecosystem == ecosystem:
                return reference
        return None

    def inclusion_references(self, ecosystem: str) -> Iterator[PackageReference]:
        """Yield the parsed ``included_by`` references of ``ecosystem``."""
        for reference_text in self.included_by:
            if not reference_text or not reference_text.strip():
                continue
            reference = parse_package_url(reference_text)
            if reference is not None and reference.ecosystem == ecosystem:
                yield reference

    @property
    def display_name(self) -> str:
        if self.package_ids:
            return self.package_ids[0]
        return self.file_name or "<unknown>"
