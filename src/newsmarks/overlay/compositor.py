"""Interval compositor turning overlapping spans into one nested render tree.

Spans are ordered by ascending start, then descending end, with remaining
ties kept in input order. At a shared start the longer span is therefore the
container and shorter ones become its descendants; identical ranges are
double-wrapped rather than merged.

Each span claims the spans that start inside its own (clamped) range and
composes them over that range. A child that runs past its container is
truncated at the container's end. The cut-off remainder is not re-emitted as
a sibling, so its offsets are rendered without that annotation.

Composition walks an explicit stack of open ranges, so nesting depth is not
bounded by the interpreter's recursion limit.
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Sequence
from dataclasses import dataclass, field

from newsmarks.overlay.models import AnnotatedNode, AnnotationSpan, RenderNode, TextNode


@dataclass(slots=True)
class CompositionError(Exception):
    """Internal contract violation inside the compositor (a bug, not bad input)."""

    message: str
    range_start: int
    range_end: int

    def __str__(self) -> str:
        return f"{self.message} (range=[{self.range_start}, {self.range_end}))"


@dataclass(slots=True)
class _OpenRange:
    start: int
    end: int
    candidates: list[AnnotationSpan]
    span: AnnotationSpan | None = None
    index: int = 0
    cursor: int = 0
    nodes: list[RenderNode] = field(default_factory=list)


def sort_spans(spans: Sequence[AnnotationSpan]) -> list[AnnotationSpan]:
    """Return spans in container-first order."""

    return sorted(spans, key=_sort_key)


def compose(text: str, spans: Sequence[AnnotationSpan]) -> list[RenderNode]:
    """Composite spans over ``text`` into sibling nodes covering it exactly once."""

    if not text:
        return []
    if not spans:
        return [TextNode(text=text, start=0, end=len(text))]
    return _compose_range(text, 0, len(text), sort_spans(spans))


def _compose_range(
    text: str,
    range_start: int,
    range_end: int,
    candidates: list[AnnotationSpan],
) -> list[RenderNode]:
    stack = [_open_range(range_start, range_end, candidates)]

    while True:
        frame = stack[-1]

        if frame.index < len(frame.candidates):
            span = frame.candidates[frame.index]
            if span.start < frame.start or span.start >= frame.end:
                raise CompositionError(f"Span {span.id} starts outside its range", frame.start, frame.end)

            clipped_end = min(span.end, frame.end)
            if span.start > frame.cursor:
                frame.nodes.append(_text_node(text, frame.cursor, span.start))

            # candidates are sorted by start: the ones starting before
            # clipped_end are exactly this span's inner candidates
            inner_start = frame.index + 1
            inner_end = bisect_left(frame.candidates, clipped_end, lo=inner_start, key=_start_of)
            stack.append(_open_range(span.start, clipped_end, frame.candidates[inner_start:inner_end], span))
            frame.index = inner_end
            frame.cursor = clipped_end
            continue

        if frame.cursor < frame.end:
            frame.nodes.append(_text_node(text, frame.cursor, frame.end))
        stack.pop()
        if frame.span is None:
            return frame.nodes
        stack[-1].nodes.append(
            AnnotatedNode(span=frame.span, start=frame.start, end=frame.end, children=tuple(frame.nodes))
        )


def _open_range(
    start: int,
    end: int,
    candidates: list[AnnotationSpan],
    span: AnnotationSpan | None = None,
) -> _OpenRange:
    if start > end:
        raise CompositionError("Inverted composition range", start, end)
    return _OpenRange(start=start, end=end, candidates=candidates, span=span, cursor=start)


def _sort_key(span: AnnotationSpan) -> tuple[int, int]:
    return span.start, -span.end


def _start_of(span: AnnotationSpan) -> int:
    return span.start


def _text_node(text: str, start: int, end: int) -> TextNode:
    return TextNode(text=text[start:end], start=start, end=end)
