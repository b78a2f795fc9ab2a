""".NET project file parsers (MSBuild XML and JSON project descriptions)."""

import json
import re
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Tuple, Union

from ..identifiers import DOTNET
from ..models import DeclaredDependencyLocation, ManifestModel
from .base import BaseManifestParser, LocatingContentHandler, ManifestParseError, local_name, parse_xml

REFERENCE_MARKER = "packagereference"
NAME_KEYS = ("include", "update", "name", "id")
VERSION_KEY = "version"

PROJECT_SUFFIXES = (".csproj", ".vbproj", ".fsproj")


class _Declaration(NamedTuple):
    name: Optional[str]
    version: Optional[str]
    start_line: int
    end_line: int


def _pick_name(fields: Dict[str, str]) -> Optional[str]:
    for key in NAME_KEYS:
        if fields.get(key):
            return fields[key]
    return None


class ProjectContentHandler(LocatingContentHandler):
    """Collects ``<PackageReference>`` elements of an MSBuild project."""

    def __init__(self) -> None:
        super().__init__()
        self.declarations: List[_Declaration] = []
        self._fields: Optional[Dict[str, str]] = None
        self._start_line = 0
        self._depth = 0
        self._text: List[str] = []

    def startElement(self, name, attrs) -> None:
        tag = local_name(name).lower()
        self._text = []
        if self._fields is not None:
            self._depth += 1
            return
        if tag == REFERENCE_MARKER:
            self._fields = {key.lower(): value.strip() for key, value in attrs.items()}
            self._start_line = self.line
            self._depth = 0

    def characters(self, content) -> None:
        self._text.append(content)

    def endElement(self, name) -> None:
        if self._fields is None:
            return
        if self._depth > 0:
            tag = local_name(name).lower()
            value = "".join(self._text).strip()
            if self._depth == 1 and value and (tag == VERSION_KEY or tag in NAME_KEYS):
                self._fields.setdefault(tag, value)
            self._depth -= 1
            self._text = []
            return
        self.declarations.append(_Declaration(
            name=_pick_name(self._fields),
            version=self._fields.get(VERSION_KEY) or None,
            start_line=self._start_line,
            end_line=self.line,
        ))
        self._fields = None


class _Token(NamedTuple):
    kind: str
    value: object
    line: int


_JSON_TOKEN_RE = re.compile(
    r'(?P<string>"(?:[^"\\]|\\.)*")'
    r'|(?P<punct>[{}\[\]:,])'
    r'|(?P<ws>\s+)'
    r'|(?P<literal>[^\s{}\[\]:,"]+)'
)


def tokenize_json(text: str) -> List[_Token]:
    """Split a validated JSON document into tokens carrying 1-based line numbers.

    Strings are decoded; numbers and other literals keep their source text.
    """
    tokens: List[_Token] = []
    line = 1
    for match in _JSON_TOKEN_RE.finditer(text):
        kind = match.lastgroup
        raw = match.group()
        if kind == "ws":
            line += raw.count("\n")
        elif kind == "string":
            tokens.append(_Token("string", json.loads(raw), line))
        elif kind == "punct":
            tokens.append(_Token(raw, raw, line))
        else:
            tokens.append(_Token("literal", raw, line))
    return tokens


class _JsonDeclarationScanner:
    """Walks JSON tokens looking for ``PackageReference`` keys.

    The walk is iterative over the flat token list.
    """

    def __init__(self, tokens: List[_Token]) -> None:
        self.tokens = tokens
        self.declarations: List[_Declaration] = []

    def scan(self) -> List[_Declaration]:
        i = 0
        while i < len(self.tokens):
            if self._is_reference_key(i):
                i = self._reference(self.tokens[i], i + 2)
            else:
                i += 1
        return self.declarations

    def _is_reference_key(self, i: int) -> bool:
        token = self.tokens[i]
        return (
            token.kind == "string"
            and i + 1 < len(self.tokens)
            and self.tokens[i + 1].kind == ":"
            and token.value.lower() == REFERENCE_MARKER
        )

    def _skip_value(self, i: int) -> int:
        """Consume the value starting at ``i`` and return the index after it."""
        depth = 0
        while True:
            kind = self.tokens[i].kind
            if kind in ("{", "["):
                depth += 1
            elif kind in ("}", "]"):
                depth -= 1
            i += 1
            if depth == 0:
                return i

    def _reference(self, key: _Token, i: int) -> int:
        token = self.tokens[i]
        if token.kind == "{":
            fields, end = self._fields(i)
            self._add(fields, key.line, self.tokens[end - 1].line)
            return end
        if token.kind == "[":
            i += 1
            while self.tokens[i].kind != "]":
                if self.tokens[i].kind == "{":
                    start_line = self.tokens[i].line
                    fields, i = self._fields(i)
                    self._add(fields, start_line, self.tokens[i - 1].line)
                else:
                    i = self._skip_value(i)
                if self.tokens[i].kind == ",":
                    i += 1
            return i + 1
        if token.kind == "string" and token.value:
            self._add({"name": token.value}, key.line, token.line)
        return i + 1

    def _fields(self, i: int) -> Tuple[Dict[str, str], int]:
        """Read the scalar members of the object at ``i``; nested values are skipped."""
        fields: Dict[str, str] = {}
        i += 1
        while self.tokens[i].kind != "}":
            key = self.tokens[i]
            value = self.tokens[i + 2]
            if value.kind == "string" or (value.kind == "literal" and value.value != "null"):
                fields.setdefault(key.value.lower(), value.value.strip())
            i = self._skip_value(i + 2)
            if self.tokens[i].kind == ",":
                i += 1
        return fields, i + 1

    def _add(self, fields: Dict[str, str], start_line: int, end_line: int) -> None:
        self.declarations.append(_Declaration(
            name=_pick_name(fields),
            version=fields.get(VERSION_KEY) or None,
            start_line=start_line,
            end_line=end_line,
        ))


class DotNetProjectParser(BaseManifestParser):
    """Parser for .NET project files.

    MSBuild projects (``.csproj``, ``.vbproj``, ``.fsproj``) are read as XML;
    JSON project descriptions such as ``project.json`` are scanned token by
    token. Either way every ``PackageReference`` becomes one declaration.
    """

    def __init__(self, config=None) -> None:
        super().__init__(config)
        self.ecosystem = DOTNET
        self.parser_type = "project"
        self.file_patterns = ["*.csproj", "*.vbproj", "*.fsproj", "project.json"]

    def can_parse(self, file_path: Path) -> bool:
        return file_path.suffix.lower() in PROJECT_SUFFIXES or file_path.name == "project.json"

    def parse(self, content: Union[str, bytes], source_file: Optional[Path] = None) -> ManifestModel:
        if self._looks_like_json(content):
            declarations = self._parse_json(content)
        else:
            handler = ProjectContentHandler()
            parse_xml(content, handler)
            declarations = handler.declarations

        dependencies = [
            DeclaredDependencyLocation(
                name=declaration.name,
                version=declaration.version,
                start_line=declaration.start_line,
                end_line=declaration.end_line,
            )
            for declaration in declarations
            if declaration.name
        ]
        return ManifestModel(dependencies=dependencies, ecosystem=self.ecosystem, source_file=source_file)

    @staticmethod
    def _looks_like_json(content: Union[str, bytes]) -> bool:
        head = content[:64].lstrip()
        if isinstance(head, bytes):
            head = head.lstrip(b"\xef\xbb\xbf").lstrip()
            return head[:1] in (b"{", b"[")
        return head.lstrip("\ufeff").lstrip()[:1] in ("{", "[")

    @staticmethod
    def _parse_json(content: Union[str, bytes]) -> List[_Declaration]:
        try:
            text = content.decode("utf-8-sig") if isinstance(content, bytes) else content.lstrip("\ufeff")
            json.loads(text)
        except (ValueError, RecursionError) as e:
            # JSONDecodeError and UnicodeDecodeError are both ValueErrors;
            # the decoder recurses once per nesting level
            raise ManifestParseError() from e
        return _JsonDeclarationScanner(tokenize_json(text)).scan()
