"""Span collection from per-annotator output with provenance tagging."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
import logging
from typing import Any, Protocol, runtime_checkable

from newsmarks.overlay.models import AnnotationSources, AnnotationSpan, SourceKind

logger = logging.getLogger(__name__)

SENTIMENT_LABELS: tuple[str, ...] = ("POS", "NEU", "NEG")
DEFAULT_CITATION_LABEL = "Fuente citada"

DISPLAY_CLASSES: dict[str, str] = {
    "entity": "bg-cyan-100 text-cyan-800 px-1 py-0.5 rounded mx-px",
    "adjective": "bg-purple-100 text-purple-800 px-1 py-0.5 rounded mx-px",
    "sentiment-POS": "bg-green-50 text-green-800 px-1 py-0.5 rounded mx-px",
    "sentiment-NEU": "bg-gray-100 text-gray-800 px-1 py-0.5 rounded mx-px",
    "sentiment-NEG": "bg-red-50 text-red-800 px-1 py-0.5 rounded mx-px",
    "citation": (
        "block my-2 p-2 border-l-4 border-amber-300 bg-amber-50 "
        "text-amber-900 text-sm rounded-r-md shadow-sm"
    ),
}


@dataclass(slots=True)
class SpanRecord:
    """Unvalidated span as read from one annotator's output."""

    local_id: str
    start: Any
    end: Any
    display_class: str
    label: object | None = None
    score: float | None = None


@runtime_checkable
class SpanSource(Protocol):
    """Protocol every annotator-specific span source implements."""

    kind: SourceKind

    def iter_records(self, sources: AnnotationSources) -> Iterable[SpanRecord]:
        """Yield raw records in the annotator's own order."""


def _as_offset(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _as_score(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


class EntitySpanSource:
    """Named entities; the label is the entity type."""

    kind = SourceKind.ENTITY

    def iter_records(self, sources: AnnotationSources) -> Iterable[SpanRecord]:
        for index, entity in enumerate(sources.entities):
            yield SpanRecord(
                local_id=str(index),
                start=entity.get("start_char"),
                end=entity.get("end_char"),
                display_class=DISPLAY_CLASSES["entity"],
                label=entity.get("type"),
                score=_as_score(entity.get("sentiment")),
            )


class AdjectiveSpanSource:
    """Adjectives; the label is the morphological feature mapping."""

    kind = SourceKind.ADJECTIVE

    def iter_records(self, sources: AnnotationSources) -> Iterable[SpanRecord]:
        for index, adjective in enumerate(sources.adjectives):
            features = adjective.get("features")
            yield SpanRecord(
                local_id=str(index),
                start=adjective.get("start_char"),
                end=adjective.get("end_char"),
                display_class=DISPLAY_CLASSES["adjective"],
                label=dict(features) if isinstance(features, Mapping) else None,
            )


class SentimentSpanSource:
    """Highest scoring sentence per sentiment label, at most one span each."""

    kind = SourceKind.SENTIMENT

    def iter_records(self, sources: AnnotationSources) -> Iterable[SpanRecord]:
        for label in SENTIMENT_LABELS:
            sentence = sources.sentiment.get(label)
            if not isinstance(sentence, Mapping):
                continue
            yield SpanRecord(
                local_id=label,
                start=sentence.get("start_char"),
                end=sentence.get("end_char"),
                display_class=DISPLAY_CLASSES[f"sentiment-{label}"],
                label=label,
                score=_as_score(sentence.get("score")),
            )


class CitationSpanSource:
    """Source citations; the label is the cited referent when known."""

    kind = SourceKind.CITATION

    def iter_records(self, sources: AnnotationSources) -> Iterable[SpanRecord]:
        for index, citation in enumerate(sources.citations):
            yield SpanRecord(
                local_id=str(index),
                start=citation.get("start_char"),
                end=citation.get("end_char"),
                display_class=DISPLAY_CLASSES["citation"],
                label=_citation_referent(citation),
            )


def _citation_referent(citation: Mapping[str, Any]) -> str:
    components = citation.get("components")
    if isinstance(components, Mapping):
        referent = components.get("referenciado")
        if isinstance(referent, Mapping):
            text = referent.get("text")
            if isinstance(text, str) and text:
                return text
    return DEFAULT_CITATION_LABEL


def build_default_span_sources() -> dict[SourceKind, SpanSource]:
    """Return the built-in span source map, keyed by kind in display order."""

    return {
        SourceKind.ENTITY: EntitySpanSource(),
        SourceKind.ADJECTIVE: AdjectiveSpanSource(),
        SourceKind.SENTIMENT: SentimentSpanSource(),
        SourceKind.CITATION: CitationSpanSource(),
    }


def collect_spans(
    text: str,
    sources: AnnotationSources,
    enabled: Iterable[SourceKind],
    *,
    span_sources: Mapping[SourceKind, SpanSource] | None = None,
) -> list[AnnotationSpan]:
    """Flatten enabled annotator output into validated, provenance-tagged spans.

    Records with non-integer offsets, ``start >= end``, ``start < 0`` or
    ``end > len(text)`` are dropped. Ids are ``<kind>-<local id>`` where the
    local id counts records in source order, dropped ones included.
    """

    registry = build_default_span_sources() if span_sources is None else span_sources
    enabled_kinds = frozenset(enabled)
    text_length = len(text)
    spans: list[AnnotationSpan] = []

    for kind, source in registry.items():
        if kind not in enabled_kinds:
            continue

        for record in source.iter_records(sources):
            span_id = f"{kind.value}-{record.local_id}"
            start = _as_offset(record.start)
            end = _as_offset(record.end)
            if start is None or end is None or start < 0 or start >= end or end > text_length:
                logger.debug(
                    "Dropping malformed span %s: start=%r end=%r text_length=%d",
                    span_id,
                    record.start,
                    record.end,
                    text_length,
                )
                continue

            spans.append(
                AnnotationSpan(
                    id=span_id,
                    start=start,
                    end=end,
                    source_kind=kind,
                    display_class=record.display_class,
                    label=record.label,
                    score=record.score,
                )
            )

    return spans
