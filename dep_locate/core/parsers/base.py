"""Base parser class for dependency manifests."""

import xml.sax
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Union

from defusedxml.common import DefusedXmlException
from defusedxml import sax as defused_sax

from ...config import DEFAULT_CONFIG, LocatorConfig
from ...utils.performance import benchmark
from ..models import ManifestModel


class ManifestParseError(Exception):
    """Raised when a manifest cannot be read or structurally parsed."""

    def __init__(self, message: str = "Could not parse manifest", source_file: Optional[Path] = None) -> None:
        super().__init__(message)
        self.source_file = source_file


class LocatingContentHandler(xml.sax.ContentHandler):
    """SAX handler that exposes the line of the event being handled."""

    def __init__(self) -> None:
        super().__init__()
        self._locator: Optional[xml.sax.xmlreader.Locator] = None

    def setDocumentLocator(self, locator: xml.sax.xmlreader.Locator) -> None:
        self._locator = locator

    @property
    def line(self) -> int:
        if self._locator is None:
            return 1
        return self._locator.getLineNumber() or 1


def local_name(tag: str) -> str:
    """Strip a namespace prefix or ``{uri}`` from an element name."""
    if "}" in tag:
        tag = tag.rsplit("}", 1)[1]
    return tag.rsplit(":", 1)[-1]


def parse_xml(content: Union[str, bytes], handler: xml.sax.ContentHandler) -> None:
    """Stream XML through ``handler`` using the hardened expat reader.

    Raises:
        ManifestParseError: On malformed XML or forbidden DTD constructs
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    try:
        defused_sax.parseString(content, handler)
    except (xml.sax.SAXException, DefusedXmlException, ValueError) as e:
        raise ManifestParseError() from e


class BaseManifestParser(ABC):
    """Abstract base class for manifest parsers."""

    def __init__(self, config: Optional[LocatorConfig] = None) -> None:
        """Initialize the parser.

        Args:
            config: Size limits and other settings
        """
        self.config = config or DEFAULT_CONFIG
        self.file_patterns: List[str] = []
        self.ecosystem: str = ""
        self.parser_type: str = ""

    @abstractmethod
    def can_parse(self, file_path: Path) -> bool:
        """Check if this parser can handle the given file.

        Args:
            file_path: Path to the file to check

        Returns:
            True if parser can handle the file
        """

    @abstractmethod
    def parse(self, content: Union[str, bytes], source_file: Optional[Path] = None) -> ManifestModel:
        """Parse manifest content.

        Args:
            content: Full manifest text
            source_file: Where the content came from, kept on the model

        Returns:
            Parsed manifest model

        Raises:
            ManifestParseError: If the content is not a well-formed manifest
        """

    @benchmark
    def parse_file(self, file_path: Path) -> ManifestModel:
        """Read a manifest fully into memory and parse it.

        Args:
            file_path: Path to the manifest

        Returns:
            Parsed manifest model

        Raises:
            ManifestParseError: If the file is missing, unreadable, too large or malformed
        """
        content = self.read_file(file_path)
        try:
            return self.parse(content, source_file=file_path)
        except ManifestParseError as e:
            e.source_file = file_path
            raise

    def read_file(self, file_path: Path) -> bytes:
        """Read raw manifest bytes, enforcing the configured size limit."""
        try:
            size = file_path.stat().st_size
            if size > self.config.max_manifest_bytes:
                raise ManifestParseError(
                    f"Manifest exceeds {self.config.max_manifest_bytes} bytes", file_path
                )
            return file_path.read_bytes()
        except OSError as e:
            raise ManifestParseError(source_file=file_path) from e
