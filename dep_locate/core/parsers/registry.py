"""Plugin registry for manifest parsers."""

from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..models import ManifestModel
from .base import BaseManifestParser


class ParserRegistry:
    """Registry of manifest parsers keyed by ecosystem and parser type."""

    def __init__(self) -> None:
        """Initialize the parser registry."""
        self._parsers: Dict[Tuple[str, str], BaseManifestParser] = {}
        self._ecosystem_parsers: Dict[str, List[BaseManifestParser]] = {}

    def register(self, ecosystem: str, parser_type: str, parser: BaseManifestParser) -> None:
        """Register a parser for an ecosystem and type.

        Args:
            ecosystem: Ecosystem name (e.g., 'maven', 'dotnet')
            parser_type: Parser type (e.g., 'pom', 'project')
            parser: Parser instance to register
        """
        self._parsers[(ecosystem, parser_type)] = parser
        self._ecosystem_parsers.setdefault(ecosystem, []).append(parser)

    def get_parser(self, ecosystem: str, parser_type: str) -> Optional[BaseManifestParser]:
        """Get a parser for the specified ecosystem and type."""
        return self._parsers.get((ecosystem, parser_type))

    def find_parser_for_file(self, file_path: Path) -> Optional[BaseManifestParser]:
        """Find a parser that can handle the given file.

        Args:
            file_path: Path to the file

        Returns:
            Parser that can handle the file or None
        """
        for parser in self._parsers.values():
            if parser.can_parse(file_path):
                return parser
        return None

    def get_supported_ecosystems(self) -> List[str]:
        return list(self._ecosystem_parsers.keys())

    def get_supported_parser_types(self) -> List[str]:
        return sorted({parser_type for _, parser_type in self._parsers.keys()})

    def parse_file(self, file_path: Path) -> Optional[ManifestModel]:
        """Parse a manifest using the appropriate parser.

        Args:
            file_path: Path to the manifest

        Returns:
            Parsed manifest or None if no parser handles the file

        Raises:
            ManifestParseError: If the matching parser fails
        """
        parser = self.find_parser_for_file(file_path)
        if parser:
            return parser.parse_file(file_path)
        return None
