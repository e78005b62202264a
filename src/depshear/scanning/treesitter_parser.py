"""Tree-sitter parser wrapper.

The rest of depshear only sees the narrow ``SyntaxNode`` protocol below, so
the concrete tree-sitter node type never leaks into scanner or resolver
signatures.

Usage:
    registry = GrammarRegistry.default()
    parser = SourceParser(registry)
    parsed = parser.parse("src/index.ts", code_bytes)
    for node in walk_named(parsed.root):
        ...
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import Callable, Iterator, Optional, Protocol, Sequence

import tree_sitter
import tree_sitter_javascript
import tree_sitter_typescript

from ..exceptions import ParsingError, UnsupportedLanguageError
from .languages import LANGUAGES, detect_language


class SyntaxNode(Protocol):
    """The subset of a parser node the scanner relies on."""

    @property
    def type(self) -> str: ...

    @property
    def id(self) -> int: ...

    @property
    def start_byte(self) -> int: ...

    @property
    def end_byte(self) -> int: ...

    @property
    def start_point(self) -> tuple[int, int]: ...

    @property
    def has_error(self) -> bool: ...

    @property
    def parent(self) -> Optional["SyntaxNode"]: ...

    @property
    def children(self) -> Sequence["SyntaxNode"]: ...

    @property
    def named_children(self) -> Sequence["SyntaxNode"]: ...

    def child_by_field_name(self, name: str) -> Optional["SyntaxNode"]: ...


GRAMMAR_LOADERS: dict[str, Callable[[], object]] = {
    "javascript": tree_sitter_javascript.language,
    "typescript": tree_sitter_typescript.language_typescript,
    "tsx": tree_sitter_typescript.language_tsx,
}


class GrammarRegistry:
    """Maps grammar names to loaded tree-sitter languages.

    Built once per process (or per test) and handed to every ``SourceParser``
    that needs it.
    """

    def __init__(self, loaders: dict[str, Callable[[], object]]) -> None:
        self._loaders = dict(loaders)
        self._languages: dict[str, tree_sitter.Language] = {}

    @classmethod
    def default(cls) -> "GrammarRegistry":
        return cls({name: GRAMMAR_LOADERS[name] for name in LANGUAGES})

    @property
    def names(self) -> list[str]:
        return sorted(self._loaders)

    def language(self, name: str) -> tree_sitter.Language:
        """Return the tree-sitter Language for a grammar name.

        Raises:
            UnsupportedLanguageError: If no loader is registered for ``name``
        """
        lang = self._languages.get(name)
        if lang is not None:
            return lang
        loader = self._loaders.get(name)
        if loader is None:
            raise UnsupportedLanguageError(name, self.names)
        # tree-sitter >= 0.23 grammar packages return a capsule; wrap in Language()
        lang = tree_sitter.Language(loader())
        self._languages[name] = lang
        return lang


@dataclass(frozen=True)
class ParsedSource:
    """A parsed file: its syntax tree root plus the bytes it was parsed from."""

    path: str
    language: str
    content: bytes
    root: SyntaxNode

    @property
    def has_error(self) -> bool:
        return self.root.has_error

    def text(self, node: Optional[SyntaxNode]) -> str:
        return node_text(node, self.content)


class SourceParser:
    """Parses JS/TS source with the grammar matching the file extension."""

    def __init__(self, registry: Optional[GrammarRegistry] = None) -> None:
        self._registry = registry or GrammarRegistry.default()
        self._parsers: dict[str, tree_sitter.Parser] = {}

    def language_for_path(self, path: str | PurePath) -> str:
        """Grammar name for ``path``.

        Raises:
            UnsupportedLanguageError: If the extension has no grammar
        """
        language = detect_language(path)
        if language is None:
            raise UnsupportedLanguageError(PurePath(path).suffix or str(path), self._registry.names)
        return language

    def parse(self, path: str | PurePath, content: bytes) -> ParsedSource:
        """Parse ``content`` into a syntax tree.

        Syntax errors do not raise: tree-sitter returns a best-effort tree
        with ``has_error`` set.

        Raises:
            UnsupportedLanguageError: If the extension has no grammar
            ParsingError: If the parser rejects the input outright
        """
        language = self.language_for_path(path)
        parser = self._parsers.get(language)
        if parser is None:
            parser = tree_sitter.Parser(self._registry.language(language))
            self._parsers[language] = parser
        try:
            tree = parser.parse(content)
        except ValueError as e:
            raise ParsingError(PurePath(path), language, str(e))
        return ParsedSource(path=str(path), language=language, content=content, root=tree.root_node)


def node_text(node: Optional[SyntaxNode], content: bytes) -> str:
    """Source text covered by ``node`` (empty for None)."""
    if node is None:
        return ""
    return content[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def walk_named(node: SyntaxNode) -> Iterator[SyntaxNode]:
    """Yield every named descendant of ``node`` in pre-order.

    The starting node itself is not yielded. Uses an explicit stack so deeply
    nested (e.g. minified) sources do not hit the recursion limit.
    """
    stack: list[SyntaxNode] = list(reversed(node.named_children))
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.named_children))


def first_named_child(node: SyntaxNode, *types: str) -> Optional[SyntaxNode]:
    for child in node.named_children:
        if child.type in types:
            return child
    return None


def has_child_token(node: SyntaxNode, token: str) -> bool:
    """True when an anonymous child token (e.g. ``default``) is present."""
    return any(child.type == token for child in node.children)


def node_location(node: SyntaxNode) -> tuple[int, int]:
    """1-based (line, column) of the node start."""
    row, column = node.start_point
    return row + 1, column + 1
