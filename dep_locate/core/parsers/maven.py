"""Maven pom.xml parser."""

import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from ..identifiers import MAVEN
from ..models import DeclaredDependencyLocation, ManifestModel
from .base import BaseManifestParser, LocatingContentHandler, local_name, parse_xml

_PROP_RE = re.compile(r"\$\{([^}]+)\}")

_COORDINATES = ("groupId", "artifactId", "version")


def resolve_properties(value: Optional[str], props: Dict[str, str]) -> Optional[str]:
    """Replace ``${property}`` placeholders; unknown ones are kept verbatim."""
    if not value:
        return value

    def _replace(m: "re.Match[str]") -> str:
        return props.get(m.group(1), m.group(0))

    return _PROP_RE.sub(_replace, value)


class _PendingDependency:
    __slots__ = ("start_line", "fields")

    def __init__(self, start_line: int) -> None:
        self.start_line = start_line
        self.fields: Dict[str, str] = {}


class PomContentHandler(LocatingContentHandler):
    """Collects ``<dependency>`` elements and ``<properties>`` of a pom."""

    def __init__(self) -> None:
        super().__init__()
        self.stack: List[str] = []
        self.text: List[str] = []
        self.pending: Optional[_PendingDependency] = None
        self.raw: List[Tuple[Dict[str, str], int, int]] = []
        self.properties: Dict[str, str] = {}

    def startElement(self, name, attrs) -> None:
        tag = local_name(name)
        parent = self.stack[-1] if self.stack else None
        self.stack.append(tag)
        self.text = []

        if tag == "dependency" and parent == "dependencies" and self.pending is None:
            self.pending = _PendingDependency(self.line)

    def characters(self, content) -> None:
        self.text.append(content)

    def endElement(self, name) -> None:
        tag = self.stack.pop()
        value = "".join(self.text).strip()
        self.text = []
        parent = self.stack[-1] if self.stack else None

        if self.pending is not None:
            if tag == "dependency" and parent == "dependencies":
                self.raw.append((self.pending.fields, self.pending.start_line, self.line))
                self.pending = None
            elif parent == "dependency" and tag in _COORDINATES and value:
                self.pending.fields[tag] = value
            return

        if len(self.stack) == 2 and parent == "properties" and self.stack[0] == "project":
            self.properties[tag] = value
        elif len(self.stack) == 1 and parent == "project" and tag in ("groupId", "version") and value:
            self.properties[f"project.{tag}"] = value
        elif len(self.stack) == 2 and self.stack[1] == "parent" and tag in ("groupId", "version") and value:
            # inherited coordinates, overridden by the project's own
            self.properties.setdefault(f"project.{tag}", value)
            self.properties[f"project.parent.{tag}"] = value


class MavenPomParser(BaseManifestParser):
    """Parser for Maven ``pom.xml`` files."""

    def __init__(self, config=None) -> None:
        super().__init__(config)
        self.ecosystem = MAVEN
        self.parser_type = "pom"
        self.file_patterns = ["pom.xml", "*.pom"]

    def can_parse(self, file_path: Path) -> bool:
        return file_path.name == "pom.xml" or file_path.suffix == ".pom"

    def parse(self, content: Union[str, bytes], source_file: Optional[Path] = None) -> ManifestModel:
        handler = PomContentHandler()
        parse_xml(content, handler)

        props = dict(handler.properties)
        # pom.* aliases used by older poms
        for key in ("groupId", "version"):
            if f"project.{key}" in props:
                props.setdefault(f"pom.{key}", props[f"project.{key}"])

        dependencies = []
        for fields, start_line, end_line in handler.raw:
            artifact_id = fields.get("artifactId")
            if not artifact_id:
                continue
            dependencies.append(DeclaredDependencyLocation(
                name=artifact_id,
                group=resolve_properties(fields.get("groupId"), props),
                version=resolve_properties(fields.get("version"), props),
                start_line=start_line,
                end_line=end_line,
            ))

        return ManifestModel(dependencies=dependencies, ecosystem=self.ecosystem, source_file=source_file)
