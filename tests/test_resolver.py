"""Tests for dependency location resolution."""

import threading
from pathlib import Path
from unittest.mock import patch

import pytest

from dep_locate.core.confidence import Confidence
from dep_locate.core.identifiers import PackageReference, VulnerableComponent
from dep_locate.core.matching import DotNetIdentityMatcher, MavenIdentityMatcher, get_matcher
from dep_locate.core.models import DeclaredDependencyLocation, ResolvedLocation, TextRange
from dep_locate.core.parsers import DotNetProjectParser, MavenPomParser
from dep_locate.core.resolver import DependencyLocationResolver, create_resolver

LINE_NOT_FOUND = 1


def dotnet(purl, *included_by):
    return VulnerableComponent.from_purl(purl, included_by=included_by)


@pytest.fixture
def csproj_resolver(csproj_file):
    return DependencyLocationResolver(csproj_file, DotNetProjectParser())


@pytest.fixture
def pom_resolver(pom_file):
    return DependencyLocationResolver(pom_file, MavenPomParser())


def _resolver_for(tmp_path, name, content, parser):
    manifest = tmp_path / name
    manifest.write_text(content)
    return DependencyLocationResolver(manifest, parser)


class TestDotNetResolution:
    """Resolution against the example .NET project."""

    def test_is_reasonable(self, csproj_resolver):
        assert csproj_resolver.is_reasonable()
        assert len(csproj_resolver.dependencies) == 5

    def test_found_dependency(self, csproj_resolver):
        """Name and version match gives the highest tier on the declaring line."""
        location = csproj_resolver.best_location(dotnet("pkg:dotnet/IdentityServer@2.3.1"))

        assert location.text_range == TextRange(17, 0, 17, 65)
        assert location.confidence is Confidence.HIGHEST

    def test_found_dependency_only_with_name(self, csproj_resolver):
        """A version mismatch downgrades the tier but keeps the location."""
        location = csproj_resolver.best_location(dotnet("pkg:dotnet/IdentityServer@9.9.9"))

        assert location.text_range == TextRange(17, 0, 17, 65)
        assert location.confidence is Confidence.HIGH

    def test_found_dependency_without_version(self, csproj_resolver):
        location = csproj_resolver.best_location(dotnet("pkg:dotnet/IdentityServer"))

        assert location.text_range == TextRange(17, 0, 17, 65)
        assert location.confidence is Confidence.HIGH

    def test_found_no_dependency(self, csproj_resolver):
        """An undeclared component falls back to the first line with low confidence."""
        location = csproj_resolver.best_location(dotnet("pkg:dotnet/Dependency16@1.2.8"))

        assert location.start_line == LINE_NOT_FOUND
        assert location.text_range == TextRange(1, 0, 1, 37)
        assert location.confidence is Confidence.LOW

    def test_malformed_identifier_falls_back(self, csproj_resolver):
        location = csproj_resolver.best_location(dotnet("pkg:dotnet/Dependency16/@1.2.8"))
        assert location.start_line == LINE_NOT_FOUND
        assert location.confidence is Confidence.LOW

    def test_multi_line_entry(self, csproj_resolver):
        """A declaration spanning several lines is highlighted as a whole."""
        location = csproj_resolver.best_location(dotnet("pkg:dotnet/Microsoft.EntityFrameworkCore.Tools@6.0.3"))

        assert location.start_line == 20
        assert location.end_line == 23
        assert location.text_range.start_offset == 0
        assert location.text_range.end_offset == len("    </PackageReference>")
        assert location.confidence is Confidence.HIGHEST

    def test_nuget_identifier(self, csproj_resolver):
        location = csproj_resolver.best_location(dotnet("pkg:nuget/Dependency2@13.10.86"))
        assert location.start_line == 19
        assert location.confidence is Confidence.HIGHEST

    def test_other_ecosystem_identifier_is_ignored(self, csproj_resolver):
        location = csproj_resolver.best_location(
            VulnerableComponent.from_purl("pkg:maven/IdentityServer/IdentityServer@2.3.1")
        )
        assert location.confidence is Confidence.LOW

    def test_included_by_match(self, csproj_resolver):
        """A transitive component is located at the declaration that pulled it in."""
        component = dotnet("pkg:dotnet/System.Text.Encodings.Web@4.5.0", "pkg:dotnet/Dependency2@13.10.86")
        location = csproj_resolver.best_location(component)

        assert location.start_line == 19
        assert location.confidence is Confidence.HIGHEST

    def test_included_by_ignores_foreign_and_malformed(self, csproj_resolver):
        component = dotnet(
            "pkg:dotnet/Transitive@1.0",
            "", "not-a-purl", "pkg:maven/g/Dependency2@13.10.86",
        )
        assert csproj_resolver.best_location(component).confidence is Confidence.LOW

    def test_direct_and_included_by_keep_highest(self, csproj_resolver):
        """The direct name-only match loses to an exact match of an including package."""
        component = dotnet("pkg:dotnet/IdentityServer@9.9.9", "pkg:dotnet/Full.Qualified.Name.Dependency1@1.0.0")
        location = csproj_resolver.best_location(component)

        assert location.start_line == 18
        assert location.confidence is Confidence.HIGHEST

    def test_equal_tiers_keep_first_found(self, csproj_resolver):
        """With equal confidence the direct match, found first, is kept."""
        component = dotnet("pkg:dotnet/IdentityServer@2.3.1", "pkg:dotnet/Dependency2@13.10.86")
        assert csproj_resolver.best_location(component).start_line == 17


class TestMavenResolution:
    """Resolution against the example pom."""

    def test_group_artifact_version(self, pom_resolver):
        location = pom_resolver.best_location(
            VulnerableComponent.from_purl("pkg:maven/org.apache.struts/struts2-core@2.3.8")
        )
        assert location.text_range == TextRange(15, 0, 19, len("    </dependency>"))
        assert location.confidence is Confidence.HIGHEST

    def test_group_artifact_other_version(self, pom_resolver):
        location = pom_resolver.best_location(
            VulnerableComponent.from_purl("pkg:maven/org.apache.struts/struts2-core@2.5.0")
        )
        assert location.start_line == 15
        assert location.confidence is Confidence.HIGH

    def test_resolved_property_version(self, pom_resolver):
        location = pom_resolver.best_location(
            VulnerableComponent.from_purl("pkg:maven/com.fasterxml.jackson.core/jackson-databind@2.9.8")
        )
        assert location.start_line == 20
        assert location.confidence is Confidence.HIGHEST

    def test_declaration_without_version(self, pom_resolver):
        location = pom_resolver.best_location(
            VulnerableComponent.from_purl("pkg:maven/commons-collections/commons-collections@3.2.1")
        )
        assert (location.start_line, location.end_line) == (30, 39)
        assert location.confidence is Confidence.HIGH

    def test_artifact_only(self, pom_resolver):
        location = pom_resolver.best_location(
            VulnerableComponent.from_purl("pkg:maven/org.relocated/struts2-core@2.3.8")
        )
        assert location.start_line == 15
        assert location.confidence is Confidence.MEDIUM

    def test_group_only(self, pom_resolver):
        location = pom_resolver.best_location(
            VulnerableComponent.from_purl("pkg:maven/org.codehaus.plexus/plexus-archiver@4.2.0")
        )
        assert location.start_line == 49
        assert location.confidence is Confidence.MEDIUM

    def test_no_match(self, pom_resolver):
        location = pom_resolver.best_location(
            VulnerableComponent.from_purl("pkg:maven/org.unknown/unknown@1.0")
        )
        assert location.text_range == TextRange(1, 0, 1, 38)
        assert location.confidence is Confidence.LOW

    def test_dotnet_identifier_is_ignored(self, pom_resolver):
        location = pom_resolver.best_location(VulnerableComponent.from_purl("pkg:nuget/struts2-core@2.3.8"))
        assert location.confidence is Confidence.LOW

    def test_included_by_upgrades_partial_match(self, pom_resolver):
        component = VulnerableComponent.from_purl(
            "pkg:maven/org.relocated/struts2-core@2.3.8",
            included_by=("pkg:maven/org.codehaus.plexus/plexus-utils@3.0.24",),
        )
        location = pom_resolver.best_location(component)
        assert location.start_line == 49
        assert location.confidence is Confidence.HIGHEST


class TestMaxMerge:
    """Max-merge correctness regardless of declaration order."""

    @pytest.mark.parametrize("first,second,expected_line", [
        ('<PackageReference Include="Lib" Version="1.0.0" />',
         '<PackageReference Include="Lib" Version="2.0.0" />', 4),
        ('<PackageReference Include="Lib" Version="2.0.0" />',
         '<PackageReference Include="Lib" Version="1.0.0" />', 3),
    ])
    def test_higher_tier_wins(self, tmp_path, first, second, expected_line):
        content = f"<Project>\n<ItemGroup>\n{first}\n{second}\n</ItemGroup>\n</Project>\n"
        resolver = _resolver_for(tmp_path, "App.csproj", content, DotNetProjectParser())

        location = resolver.best_location(dotnet("pkg:dotnet/Lib@2.0.0"))
        assert location.start_line == expected_line
        assert location.confidence is Confidence.HIGHEST

    def test_matcher_keeps_first_of_equal_tier(self):
        matcher = DotNetIdentityMatcher()
        first = DeclaredDependencyLocation("Lib", None, "1", start_line=3, end_line=3)
        second = DeclaredDependencyLocation("Lib", None, "2", start_line=8, end_line=8)

        best = matcher.best_match(PackageReference("dotnet", "Lib", None, "9"), [first, second])
        assert best[0].start_line == 3
        assert best[1] is Confidence.HIGH


class TestMatchers:
    """Identity rules per manifest flavor."""

    @pytest.mark.parametrize("reference,expected", [
        (PackageReference("maven", "a", "g", "1"), Confidence.HIGHEST),
        (PackageReference("maven", "a", "g", "2"), Confidence.HIGH),
        (PackageReference("maven", "a", "g", None), Confidence.HIGH),
        (PackageReference("maven", "a", "other", "1"), Confidence.MEDIUM),
        (PackageReference("maven", "other", "g", "1"), Confidence.MEDIUM),
        (PackageReference("maven", "other", "other", "1"), None),
    ])
    def test_maven(self, reference, expected):
        location = DeclaredDependencyLocation("a", "g", "1", start_line=1, end_line=1)
        assert MavenIdentityMatcher().match(reference, location) == expected

    def test_maven_without_versions(self):
        location = DeclaredDependencyLocation("a", "g", None, start_line=1, end_line=1)
        assert MavenIdentityMatcher().match(PackageReference("maven", "a", "g"), location) is Confidence.HIGH

    @pytest.mark.parametrize("reference,expected", [
        (PackageReference("dotnet", "Lib", None, "1"), Confidence.HIGHEST),
        (PackageReference("dotnet", "Lib", None, "2"), Confidence.HIGH),
        (PackageReference("dotnet", "lib", None, "1"), None),
        (PackageReference("dotnet", "Other", None, "1"), None),
    ])
    def test_dotnet(self, reference, expected):
        location = DeclaredDependencyLocation("Lib", None, "1", start_line=1, end_line=1)
        assert DotNetIdentityMatcher().match(reference, location) == expected

    def test_registry(self):
        assert isinstance(get_matcher("maven"), MavenIdentityMatcher)
        assert isinstance(get_matcher("dotnet"), DotNetIdentityMatcher)
        assert get_matcher("npm") is None


class TestConfidenceMonotonicity:
    """An exact match never ranks below a name-only match."""

    @pytest.mark.parametrize("name,version", [
        ("IdentityServer", "2.3.1"),
        ("Full.Qualified.Name.Dependency1", "1.0.0"),
        ("Dependency2", "13.10.86"),
        ("Microsoft.EntityFrameworkCore.Tools", "6.0.3"),
    ])
    def test_exact_at_least_name_only(self, csproj_resolver, name, version):
        exact = csproj_resolver.best_location(dotnet(f"pkg:dotnet/{name}@{version}"))
        name_only = csproj_resolver.best_location(dotnet(f"pkg:dotnet/{name}@0.0.0-other"))
        assert exact.confidence >= name_only.confidence


class TestMemoization:
    """Idempotence of repeated lookups."""

    def test_same_component_same_location(self, csproj_resolver):
        component = dotnet("pkg:dotnet/IdentityServer@2.3.1")

        first = csproj_resolver.best_location(component)
        second = csproj_resolver.best_location(component)

        assert first == second
        assert csproj_resolver.get_statistics()["scans"] == 1
        assert csproj_resolver.get_statistics()["cache_size"] == 1

    def test_equal_components_share_cache_entry(self, csproj_resolver):
        csproj_resolver.best_location(dotnet("pkg:dotnet/IdentityServer@2.3.1"))
        csproj_resolver.best_location(dotnet("pkg:dotnet/IdentityServer@2.3.1"))
        csproj_resolver.best_location(dotnet("pkg:dotnet/Dependency2@13.10.86"))

        stats = csproj_resolver.get_statistics()
        assert stats["scans"] == 2
        assert stats["cache_size"] == 2

    def test_fallback_is_cached(self, csproj_resolver):
        component = dotnet("pkg:dotnet/Dependency16@1.2.8")
        assert csproj_resolver.best_location(component) == csproj_resolver.best_location(component)
        assert csproj_resolver.get_statistics()["scans"] == 1

    def test_recomputation_matches_cached_value(self, csproj_resolver):
        component = dotnet("pkg:dotnet/Microsoft.EntityFrameworkCore.Tools@6.0.3")
        cached = csproj_resolver.best_location(component)

        csproj_resolver.clear_cache()
        recomputed = csproj_resolver.best_location(component)

        assert recomputed == cached
        assert csproj_resolver.get_statistics()["scans"] == 2

    def test_concurrent_lookups_compute_once(self, csproj_resolver):
        component = dotnet("pkg:dotnet/IdentityServer@2.3.1")
        results = []

        def lookup():
            results.append(csproj_resolver.best_location(component))

        threads = [threading.Thread(target=lookup) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(set(results)) == 1
        assert csproj_resolver.get_statistics()["scans"] == 1


class TestTotality:
    """Lookups always return a location, even for unusable manifests."""

    def test_empty_content(self, tmp_path):
        resolver = _resolver_for(tmp_path, "Empty.csproj", "", DotNetProjectParser())

        assert not resolver.is_reasonable()
        location = resolver.best_location(dotnet("pkg:dotnet/IdentityServer@2.3.1"))
        assert location == ResolvedLocation(TextRange(1, 0, 1, 0), Confidence.LOW)

    def test_malformed_content(self, tmp_path):
        resolver = _resolver_for(tmp_path, "pom.xml", "<project>\n<dependencies>\n", MavenPomParser())

        assert not resolver.is_reasonable()
        assert resolver.dependencies == []
        location = resolver.best_location(VulnerableComponent.from_purl("pkg:maven/g/a@1"))
        assert location.text_range == TextRange(1, 0, 1, len("<project>"))
        assert location.confidence is Confidence.LOW

    def test_missing_file(self, tmp_path):
        resolver = DependencyLocationResolver(tmp_path / "missing.csproj", DotNetProjectParser())

        assert not resolver.is_reasonable()
        location = resolver.best_location(dotnet("pkg:dotnet/IdentityServer@2.3.1"))
        assert location == ResolvedLocation(TextRange(1, 0, 1, 0), Confidence.LOW)

    def test_io_error(self, csproj_file):
        with patch.object(Path, "read_bytes", side_effect=IOError("disk gone")):
            resolver = DependencyLocationResolver(csproj_file, DotNetProjectParser())

        assert not resolver.is_reasonable()
        assert resolver.best_location(dotnet("pkg:dotnet/IdentityServer@2.3.1")).confidence is Confidence.LOW

    def test_manifest_without_dependencies(self, tmp_path):
        resolver = _resolver_for(tmp_path, "App.csproj", "<Project>\n</Project>\n", DotNetProjectParser())

        assert resolver.is_reasonable()
        location = resolver.best_location(dotnet("pkg:dotnet/IdentityServer@2.3.1"))
        assert location == ResolvedLocation(TextRange(1, 0, 1, len("<Project>")), Confidence.LOW)

    def test_component_without_identifiers(self, csproj_resolver):
        location = csproj_resolver.best_location(VulnerableComponent(file_name="native.dll"))
        assert location.confidence is Confidence.LOW

    @pytest.mark.parametrize("content", [
        "[" * 100_000 + "]" * 100_000,
        '{"a":' * 700 + "1" + "}" * 700,
    ])
    def test_deeply_nested_json(self, tmp_path, content):
        resolver = _resolver_for(tmp_path, "project.json", content, DotNetProjectParser())

        location = resolver.best_location(dotnet("pkg:dotnet/IdentityServer@2.3.1"))
        assert location.confidence is Confidence.LOW
        assert location.start_line == 1

    def test_windows_line_endings(self, tmp_path):
        manifest = tmp_path / "App.csproj"
        manifest.write_bytes(
            b'<Project>\r\n<ItemGroup>\r\n<PackageReference Include="Lib" Version="1.0" />\r\n</ItemGroup>\r\n</Project>\r\n'
        )
        resolver = DependencyLocationResolver(manifest, DotNetProjectParser())

        location = resolver.best_location(dotnet("pkg:dotnet/Lib@1.0"))
        assert location.text_range == TextRange(3, 0, 3, len('<PackageReference Include="Lib" Version="1.0" />'))


class TestContentAndFactory:
    """Building resolvers."""

    def test_content_overrides_file(self, tmp_path):
        content = '{"PackageReference": {"Include": "Lib", "Version": "1.0"}}'
        resolver = DependencyLocationResolver(tmp_path / "project.json", DotNetProjectParser(), content=content)

        assert resolver.is_reasonable()
        assert resolver.best_location(dotnet("pkg:dotnet/Lib@1.0")).confidence is Confidence.HIGHEST

    def test_project_json(self, project_json_file):
        resolver = create_resolver(project_json_file)
        location = resolver.best_location(dotnet("pkg:dotnet/Microsoft.EntityFrameworkCore.Tools@6.0.3"))

        assert (location.start_line, location.end_line) == (14, 19)
        assert location.confidence is Confidence.HIGHEST

    def test_create_resolver_picks_parser(self, csproj_file, pom_file):
        assert isinstance(create_resolver(csproj_file).parser, DotNetProjectParser)
        assert isinstance(create_resolver(pom_file).parser, MavenPomParser)

    def test_create_resolver_unsupported(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported manifest"):
            create_resolver(tmp_path / "requirements.txt")

    def test_line_text(self, csproj_resolver):
        assert csproj_resolver.line_text(17).strip() == '<PackageReference Include="IdentityServer" Version="2.3.1" />'
        assert csproj_resolver.line_text(0) == ""
        assert csproj_resolver.line_text(10_000) == ""

    def test_statistics(self, csproj_resolver):
        stats = csproj_resolver.get_statistics()
        assert stats["reasonable"] is True
        assert stats["declared_dependencies"] == 5
        assert stats["performance"]["total_executions"] == 1
