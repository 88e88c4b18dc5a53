from __future__ import annotations

import re
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Any, Callable, Protocol

from requestsim.util import to_text

# Elements that never have children or an end tag.
_VOID_TAGS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "param", "source", "track", "wbr"}
)


class Document(Protocol):
    def find(self, conditions: dict[str, Any] | None = None, **kwargs: Any) -> Node | None: ...

    def find_all(self, conditions: dict[str, Any] | None = None, **kwargs: Any) -> list[Node]: ...


DocumentFactory = Callable[[Any], Document]


@dataclass(eq=False)
class Node:
    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    children: list[Node | str] = field(default_factory=list)
    parent: Node | None = None

    def __repr__(self) -> str:
        return f"<{self.tag} {self.attributes!r}>" if self.attributes else f"<{self.tag}>"

    @property
    def elements(self) -> list[Node]:
        return [child for child in self.children if isinstance(child, Node)]

    @property
    def text(self) -> str:
        parts: list[str] = []
        for child in self.children:
            parts.append(child.text if isinstance(child, Node) else child)
        return "".join(parts)

    def ancestors(self) -> list[Node]:
        out: list[Node] = []
        node = self.parent
        while node is not None and node.tag != "#document":
            out.append(node)
            node = node.parent
        return out

    def descendants(self) -> list[Node]:
        out: list[Node] = []
        for child in self.elements:
            out.append(child)
            out.extend(child.descendants())
        return out

    def match(self, conditions: dict[str, Any]) -> bool:
        for key, expected in conditions.items():
            if not _CONDITIONS[key](self, expected):
                return False
        return True


class HtmlDocument:
    """Parsed HTML body that can be queried with condition mappings.

    Conditions mirror what controller tests usually look for::

        doc.find(tag="a", attributes={"href": re.compile("/posts")})
        doc.find_all(tag="li", parent={"tag": "ul", "attributes": {"id": "items"}})

    Supported keys: ``tag``, ``attributes``, ``content``, ``parent``,
    ``ancestor``, ``child``, ``descendant`` and ``children`` (``count``,
    ``less_than``, ``greater_than``, ``only``).
    """

    def __init__(self, body: Any) -> None:
        parser = _TreeBuilder()
        parser.feed(to_text(body))
        parser.close()
        self.root = parser.root

    def find(self, conditions: dict[str, Any] | None = None, **kwargs: Any) -> Node | None:
        conds = _normalize_conditions(conditions, kwargs)
        for node in self.root.descendants():
            if node.match(conds):
                return node
        return None

    def find_all(self, conditions: dict[str, Any] | None = None, **kwargs: Any) -> list[Node]:
        conds = _normalize_conditions(conditions, kwargs)
        return [node for node in self.root.descendants() if node.match(conds)]


class DocumentCache:
    """Parses a response body at most once until invalidated."""

    def __init__(self, factory: DocumentFactory | None = None) -> None:
        self.factory: DocumentFactory = factory or HtmlDocument
        self._document: Document | None = None

    @property
    def cached(self) -> bool:
        return self._document is not None

    def get(self, body: Any) -> Document:
        if self._document is None:
            self._document = self.factory(body)
        return self._document

    def invalidate(self) -> None:
        self._document = None


class _TreeBuilder(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.root = Node(tag="#document")
        self._current = self.root

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        node = Node(tag=tag, attributes={k: v if v is not None else k for k, v in attrs}, parent=self._current)
        self._current.children.append(node)
        if tag not in _VOID_TAGS:
            self._current = node

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        node = Node(tag=tag, attributes={k: v if v is not None else k for k, v in attrs}, parent=self._current)
        self._current.children.append(node)

    def handle_endtag(self, tag: str) -> None:
        # Close up to the nearest matching open element; stray end tags are ignored.
        node: Node | None = self._current
        while node is not None and node is not self.root:
            if node.tag == tag:
                self._current = node.parent or self.root
                return
            node = node.parent

    def handle_data(self, data: str) -> None:
        self._current.children.append(data)


def _normalize_conditions(conditions: dict[str, Any] | None, kwargs: dict[str, Any]) -> dict[str, Any]:
    merged = {**(conditions or {}), **kwargs}
    unknown = sorted(set(merged) - set(_CONDITIONS))
    if unknown:
        raise ValueError(f"unknown tag conditions: {', '.join(unknown)}")
    return merged


def _match_value(expected: Any, actual: str | None) -> bool:
    if expected is True:
        return actual is not None
    if expected is False:
        return actual is None
    if actual is None:
        return False
    if isinstance(expected, re.Pattern):
        return expected.search(actual) is not None
    return str(expected) == actual


def _match_tag(node: Node, expected: Any) -> bool:
    return node.tag == str(expected).lower()


def _match_attributes(node: Node, expected: dict[str, Any]) -> bool:
    return all(_match_value(value, node.attributes.get(str(key).lower())) for key, value in expected.items())


def _match_content(node: Node, expected: Any) -> bool:
    text = node.text
    if isinstance(expected, re.Pattern):
        return expected.search(text) is not None
    return text.strip() == str(expected).strip()


def _match_parent(node: Node, expected: dict[str, Any]) -> bool:
    return node.parent is not None and node.parent.tag != "#document" and node.parent.match(expected)


def _match_ancestor(node: Node, expected: dict[str, Any]) -> bool:
    return any(a.match(expected) for a in node.ancestors())


def _match_child(node: Node, expected: dict[str, Any]) -> bool:
    return any(c.match(expected) for c in node.elements)


def _match_descendant(node: Node, expected: dict[str, Any]) -> bool:
    return any(d.match(expected) for d in node.descendants())


def _match_children(node: Node, expected: dict[str, Any]) -> bool:
    elements = node.elements
    only = expected.get("only")
    if only is not None:
        elements = [e for e in elements if e.match(only)]
    count = len(elements)
    if "count" in expected and count != int(expected["count"]):
        return False
    if "less_than" in expected and not count < int(expected["less_than"]):
        return False
    if "greater_than" in expected and not count > int(expected["greater_than"]):
        return False
    return True


_CONDITIONS: dict[str, Callable[[Node, Any], bool]] = {
    "tag": _match_tag,
    "attributes": _match_attributes,
    "content": _match_content,
    "parent": _match_parent,
    "ancestor": _match_ancestor,
    "child": _match_child,
    "descendant": _match_descendant,
    "children": _match_children,
}
