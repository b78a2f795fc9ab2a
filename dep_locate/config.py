"""Runtime configuration for DepLocate."""

from dataclasses import dataclass

DEFAULT_MAX_MANIFEST_BYTES = 10 * 1024 * 1024
"""Manifests larger than this are rejected instead of parsed."""


@dataclass(frozen=True)
class LocatorConfig:
    """Configuration shared by parsers and resolvers."""

    max_manifest_bytes: int = DEFAULT_MAX_MANIFEST_BYTES
    verbose: bool = False

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.max_manifest_bytes <= 0:
            raise ValueError(
                f"max_manifest_bytes must be positive, got {self.max_manifest_bytes}"
            )


DEFAULT_CONFIG = LocatorConfig()
