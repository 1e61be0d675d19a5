"""Canonical data structures shared by the span collector, compositor and splitter."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class SourceKind(str, Enum):
    """Annotator that produced a span."""

    ENTITY = "entity"
    ADJECTIVE = "adjective"
    SENTIMENT = "sentiment"
    CITATION = "citation"

    @classmethod
    def parse(cls, value: str) -> "SourceKind":
        normalized = value.strip().casefold()
        for kind in cls:
            if kind.value == normalized:
                return kind
        known = ", ".join(kind.value for kind in cls)
        raise ValueError(f"Unknown source kind '{value}' (expected one of: {known})")


ALL_SOURCE_KINDS: frozenset[SourceKind] = frozenset(SourceKind)


@dataclass(slots=True)
class AnnotationSources:
    """Raw annotator output for one article, as exported by the NLP pipeline.

    Records keep the exporter's field names (``start_char``, ``end_char``...).
    ``sentiment`` maps a sentiment label to its highest scoring sentence.
    """

    entities: list[Mapping[str, Any]] = field(default_factory=list)
    adjectives: list[Mapping[str, Any]] = field(default_factory=list)
    sentiment: dict[str, Mapping[str, Any]] = field(default_factory=dict)
    citations: list[Mapping[str, Any]] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class AnnotationSpan:
    """A validated `[start, end)` annotation over the article body."""

    id: str
    start: int
    end: int
    source_kind: SourceKind
    display_class: str
    label: object | None = None
    score: float | None = None


@dataclass(frozen=True, slots=True)
class TextNode:
    """Literal text with no annotation."""

    text: str
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class AnnotatedNode:
    """Annotation wrapper covering `text[start:end]` through its children.

    ``end`` is the span end after clamping to the enclosing container, so it
    can be smaller than ``span.end``.
    """

    span: AnnotationSpan
    start: int
    end: int
    children: tuple["RenderNode", ...] = ()

    @property
    def truncated(self) -> bool:
        return self.end < self.span.end


RenderNode = Union[TextNode, AnnotatedNode]


@dataclass(frozen=True, slots=True)
class ParagraphBlock:
    """One paragraph of rendered nodes with its offsets in the base text."""

    nodes: tuple[RenderNode, ...]
    start: int
    end: int

    @property
    def text(self) -> str:
        return nodes_text(self.nodes)

    @property
    def is_empty(self) -> bool:
        return not self.nodes


def node_text(node: RenderNode) -> str:
    """Recover the literal text covered by a node."""

    return nodes_text((node,))


def nodes_text(nodes: tuple[RenderNode, ...] | list[RenderNode]) -> str:
    pieces: list[str] = []
    pending = list(reversed(nodes))
    while pending:
        node = pending.pop()
        if isinstance(node, TextNode):
            pieces.append(node.text)
        else:
            pending.extend(reversed(node.children))
    return "".join(pieces)


def iter_annotated(nodes: tuple[RenderNode, ...] | list[RenderNode]) -> Iterator[AnnotatedNode]:
    """Yield every annotated node depth-first, parents before children."""

    pending = list(reversed(nodes))
    while pending:
        node = pending.pop()
        if isinstance(node, AnnotatedNode):
            yield node
            pending.extend(reversed(node.children))
