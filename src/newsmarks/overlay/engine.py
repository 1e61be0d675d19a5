"""Entry point wiring span collection, composition and paragraph splitting."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
import hashlib
import json
import logging

from newsmarks.overlay.config import OverlaySettings
from newsmarks.overlay.collector import SpanSource, build_default_span_sources, collect_spans
from newsmarks.overlay.compositor import CompositionError, compose
from newsmarks.overlay.models import AnnotationSources, AnnotationSpan, ParagraphBlock, SourceKind
from newsmarks.overlay.paragraphs import split_paragraphs

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OverlayResult:
    """Paragraphs ready for presentation plus the spans that produced them."""

    paragraphs: tuple[ParagraphBlock, ...]
    spans: tuple[AnnotationSpan, ...]
    enabled_sources: frozenset[SourceKind]
    degraded: bool = False


def plain_paragraphs(text: str) -> list[ParagraphBlock]:
    """Unannotated paragraphs of ``text``."""

    return split_paragraphs(compose(text, []))


def fingerprint_request(text: str, sources: AnnotationSources, enabled: frozenset[SourceKind]) -> str:
    """Stable cache key for one (text, annotations, enabled kinds) request."""

    payload = json.dumps(
        {
            "text": text,
            "sources": asdict(sources),
            "enabled": sorted(kind.value for kind in enabled),
        },
        sort_keys=True,
        ensure_ascii=True,
        default=str,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class RenderCache:
    """Bounded in-memory LRU cache of overlay results."""

    def __init__(self, max_entries: int) -> None:
        if max_entries < 0:
            raise ValueError("max_entries cannot be negative")
        self._max_entries = max_entries
        self._entries: OrderedDict[str, OverlayResult] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def enabled(self) -> bool:
        return self._max_entries > 0

    def get(self, key: str) -> OverlayResult | None:
        result = self._entries.get(key)
        if result is not None:
            self._entries.move_to_end(key)
        return result

    def put(self, key: str, result: OverlayResult) -> None:
        if not self.enabled:
            return
        self._entries[key] = result
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()


class OverlayEngine:
    """Render article bodies into annotated paragraphs."""

    def __init__(
        self,
        settings: OverlaySettings | None = None,
        *,
        span_sources: Mapping[SourceKind, SpanSource] | None = None,
    ) -> None:
        self._settings = settings or OverlaySettings()
        self._span_sources: dict[SourceKind, SpanSource] = (
            build_default_span_sources() if span_sources is None else dict(span_sources)
        )
        self._cache = RenderCache(self._settings.cache_size)

    @property
    def cache(self) -> RenderCache:
        return self._cache

    def register_span_source(self, source: SpanSource) -> None:
        """Register or replace the span source serving ``source.kind``."""

        if not isinstance(source, SpanSource):
            raise TypeError("span source must provide 'kind' and 'iter_records'")
        self._span_sources[source.kind] = source
        self._cache.clear()

    def render(
        self,
        text: str | None,
        sources: AnnotationSources | None = None,
        enabled: Iterable[SourceKind] | None = None,
    ) -> OverlayResult:
        """Composite enabled annotations over ``text`` and split into paragraphs.

        In strict mode a compositor contract violation propagates; otherwise it
        is logged and the text is returned as plain paragraphs.
        """

        body = text or ""
        annotations = sources or AnnotationSources()
        enabled_kinds = self._settings.enabled_sources if enabled is None else frozenset(enabled)

        key = fingerprint_request(body, annotations, enabled_kinds) if self._cache.enabled else None
        if key is not None:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        spans = collect_spans(body, annotations, enabled_kinds, span_sources=self._span_sources)
        try:
            paragraphs = split_paragraphs(compose(body, spans))
        except CompositionError:
            if self._settings.strict:
                raise
            logger.exception("Annotation compositing failed; rendering %d chars as plain text", len(body))
            return OverlayResult(
                paragraphs=tuple(plain_paragraphs(body)),
                spans=(),
                enabled_sources=enabled_kinds,
                degraded=True,
            )

        result = OverlayResult(
            paragraphs=tuple(paragraphs),
            spans=tuple(spans),
            enabled_sources=enabled_kinds,
        )
        if key is not None:
            self._cache.put(key, result)
        return result
