"""Identity rules deciding how well a reference matches a declaration."""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional, Tuple

from .confidence import Confidence
from .identifiers import DOTNET, MAVEN, PackageReference
from .models import DeclaredDependencyLocation

Candidate = Tuple[DeclaredDependencyLocation, Confidence]


def _versions_equal(left: Optional[str], right: Optional[str]) -> bool:
    return left is not None and right is not None and left == right


class IdentityMatcher(ABC):
    """Scores a declared dependency against a component reference."""

    ecosystem: str = ""

    @abstractmethod
    def match(
        self,
        reference: PackageReference,
        location: DeclaredDependencyLocation
    ) -> Optional[Confidence]:
        """Return the confidence of the match, or None if it is no candidate."""

    def best_match(
        self,
        reference: PackageReference,
        locations: Iterable[DeclaredDependencyLocation],
        current: Optional[Candidate] = None
    ) -> Optional[Candidate]:
        """Fold every candidate into ``current`` keeping the highest confidence.

        A later candidate only replaces the stored one when its confidence is
        strictly higher, so the first of equally good declarations wins.

        Args:
            reference: Component coordinates to look for
            locations: Declarations in manifest order
            current: Best candidate found so far, if any

        Returns:
            Best candidate after considering ``locations``
        """
        best = current
        for location in locations:
            confidence = self.match(reference, location)
            if confidence is None:
                continue
            if best is None or confidence > best[1]:
                best = (location, confidence)
        return best


class MavenIdentityMatcher(IdentityMatcher):
    """Matches on ``(groupId, artifactId)``, then on either one alone."""

    ecosystem = MAVEN

    def match(self, reference, location):
        same_artifact = reference.name == location.name
        same_group = reference.group is not None and reference.group == location.group

        if same_artifact and same_group:
            if _versions_equal(reference.version, location.version):
                return Confidence.HIGHEST
            return Confidence.HIGH
        if same_artifact or same_group:
            return Confidence.MEDIUM
        return None


class DotNetIdentityMatcher(IdentityMatcher):
    """Matches on the package id only."""

    ecosystem = DOTNET

    def match(self, reference, location):
        if reference.name != location.name:
            return None
        if _versions_equal(reference.version, location.version):
            return Confidence.HIGHEST
        return Confidence.HIGH


MATCHERS: Dict[str, IdentityMatcher] = {
    MAVEN: MavenIdentityMatcher(),
    DOTNET: DotNetIdentityMatcher(),
}


def get_matcher(ecosystem: str) -> Optional[IdentityMatcher]:
    """Return the identity matcher registered for ``ecosystem``."""
    return MATCHERS.get(ecosystem)
