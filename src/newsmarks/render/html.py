"""HTML and JSON renderers for annotated paragraphs."""

from __future__ import annotations

from collections.abc import Sequence
from html import escape
from typing import Any

from newsmarks.overlay.models import AnnotationSpan, ParagraphBlock, RenderNode, TextNode


def tooltip_for(span: AnnotationSpan) -> str:
    """Tooltip text: the label when it is a string, otherwise the source kind."""

    if isinstance(span.label, str) and span.label:
        return span.label
    return span.source_kind.value


def _render_node_html(node: RenderNode) -> str:
    if isinstance(node, TextNode):
        return escape(node.text, quote=False)

    span = node.span
    attributes = (
        f'class="{escape(span.display_class)}" '
        f'title="{escape(tooltip_for(span))}" '
        f'data-span-id="{escape(span.id)}" '
        f'data-kind="{escape(span.source_kind.value)}"'
    )
    inner = "".join(_render_node_html(child) for child in node.children)
    return f"<mark {attributes}>{inner}</mark>"


def render_html(blocks: Sequence[ParagraphBlock]) -> str:
    """Render one ``<p>`` per paragraph with nested ``<mark>`` annotations."""

    return "\n".join(
        "<p>" + "".join(_render_node_html(node) for node in block.nodes) + "</p>" for block in blocks
    )


def span_to_dict(span: AnnotationSpan) -> dict[str, Any]:
    return {
        "id": span.id,
        "start": span.start,
        "end": span.end,
        "source_kind": span.source_kind.value,
        "display_class": span.display_class,
        "label": span.label,
        "score": span.score,
    }


def node_to_dict(node: RenderNode) -> dict[str, Any]:
    if isinstance(node, TextNode):
        return {"type": "text", "text": node.text, "start": node.start, "end": node.end}
    return {
        "type": "annotation",
        "start": node.start,
        "end": node.end,
        "truncated": node.truncated,
        "span": span_to_dict(node.span),
        "children": [node_to_dict(child) for child in node.children],
    }


def blocks_to_dict(blocks: Sequence[ParagraphBlock]) -> list[dict[str, Any]]:
    """JSON-serialisable paragraph tree."""

    return [
        {
            "start": block.start,
            "end": block.end,
            "nodes": [node_to_dict(node) for node in block.nodes],
        }
        for block in blocks
    ]
