"""Paragraph splitting over a composited node sequence."""

from __future__ import annotations

from collections.abc import Sequence

from newsmarks.overlay.models import ParagraphBlock, RenderNode, TextNode

PARAGRAPH_SEPARATOR = "\n"


class _ParagraphBuilder:
    def __init__(self) -> None:
        self.blocks: list[ParagraphBlock] = []
        self._nodes: list[RenderNode] = []
        self._start: int | None = None
        self._end = 0

    def append(self, node: RenderNode) -> None:
        if self._start is None:
            self._start = node.start
        self._nodes.append(node)
        self._end = node.end

    def close(self) -> None:
        if self._nodes and self._start is not None:
            self.blocks.append(ParagraphBlock(nodes=tuple(self._nodes), start=self._start, end=self._end))
        self._nodes = []
        self._start = None


def split_paragraphs(nodes: Sequence[RenderNode]) -> list[ParagraphBlock]:
    """Group top-level nodes into paragraphs at newlines found in literal text.

    Annotated nodes are atomic: a newline inside one never splits the
    paragraph. Empty paragraphs are dropped; when nothing survives a single
    empty paragraph is returned.
    """

    builder = _ParagraphBuilder()

    for node in nodes:
        if not isinstance(node, TextNode):
            builder.append(node)
            continue

        offset = node.start
        parts = node.text.split(PARAGRAPH_SEPARATOR)
        for part_index, part in enumerate(parts):
            if part:
                builder.append(TextNode(text=part, start=offset, end=offset + len(part)))
            offset += len(part)
            if part_index < len(parts) - 1:
                builder.close()
                offset += len(PARAGRAPH_SEPARATOR)

    builder.close()
    if not builder.blocks:
        return [ParagraphBlock(nodes=(), start=0, end=0)]
    return builder.blocks


def rejoin_paragraphs(blocks: Sequence[ParagraphBlock], text_length: int) -> str:
    """Rebuild the base text, re-inserting the separators removed while splitting."""

    pieces: list[str] = []
    cursor = 0
    for block in blocks:
        gap = block.start - cursor
        if gap < 0:
            raise ValueError("Paragraph blocks overlap or are out of order")
        pieces.append(PARAGRAPH_SEPARATOR * gap)
        pieces.append(block.text)
        cursor = max(cursor, block.end)

    if text_length < cursor:
        raise ValueError("text_length is shorter than the paragraph blocks")
    pieces.append(PARAGRAPH_SEPARATOR * (text_length - cursor))
    return "".join(pieces)
