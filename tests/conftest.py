"""Shared fixtures for DepLocate tests."""

from pathlib import Path

import pytest

RESOURCES = Path(__file__).parent / "resources"


@pytest.fixture
def csproj_file():
    """The example .NET project used across resolver tests."""
    return RESOURCES / "ExampleCSProj.csproj"


@pytest.fixture
def pom_file():
    """The example Maven pom."""
    return RESOURCES / "pom.xml"


@pytest.fixture
def project_json_file():
    """A JSON project description with PackageReference entries."""
    return RESOURCES / "project.json"
