"""Annotation overlay engine interfaces."""

from .collector import SpanRecord, SpanSource, build_default_span_sources, collect_spans
from .compositor import CompositionError, compose, sort_spans
from .config import OverlaySettings, parse_source_kinds
from .engine import OverlayEngine, OverlayResult, RenderCache, plain_paragraphs
from .models import (
    ALL_SOURCE_KINDS,
    AnnotatedNode,
    AnnotationSources,
    AnnotationSpan,
    ParagraphBlock,
    RenderNode,
    SourceKind,
    TextNode,
    node_text,
    nodes_text,
)
from .paragraphs import rejoin_paragraphs, split_paragraphs

__all__ = [
    "ALL_SOURCE_KINDS",
    "AnnotatedNode",
    "AnnotationSources",
    "AnnotationSpan",
    "CompositionError",
    "OverlayEngine",
    "OverlayResult",
    "OverlaySettings",
    "ParagraphBlock",
    "RenderCache",
    "RenderNode",
    "SourceKind",
    "SpanRecord",
    "SpanSource",
    "TextNode",
    "build_default_span_sources",
    "collect_spans",
    "compose",
    "node_text",
    "nodes_text",
    "parse_source_kinds",
    "plain_paragraphs",
    "rejoin_paragraphs",
    "sort_spans",
    "split_paragraphs",
]
