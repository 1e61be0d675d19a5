from __future__ import annotations

import logging

import pytest

import newsmarks.overlay.engine as engine_module
from newsmarks.overlay.compositor import CompositionError
from newsmarks.overlay.config import OverlaySettings
from newsmarks.overlay.engine import OverlayEngine, RenderCache, plain_paragraphs
from newsmarks.overlay.models import AnnotatedNode, AnnotationSources, SourceKind, TextNode, iter_annotated

TEXT = "The quick fox\njumps."


def _sources() -> AnnotationSources:
    return AnnotationSources(
        adjectives=[{"start_char": 4, "end_char": 9, "features": {}}],
        sentiment={"POS": {"start_char": 0, "end_char": 13, "score": 0.8}},
    )


def test_render_without_annotations_returns_plain_paragraph() -> None:
    result = OverlayEngine().render("Hello world")

    assert len(result.paragraphs) == 1
    assert result.paragraphs[0].nodes == (TextNode(text="Hello world", start=0, end=11),)
    assert result.spans == ()
    assert not result.degraded


def test_missing_text_renders_single_empty_paragraph() -> None:
    result = OverlayEngine().render(None, _sources())

    assert len(result.paragraphs) == 1
    assert result.paragraphs[0].is_empty


def test_render_nests_adjective_inside_sentiment() -> None:
    result = OverlayEngine().render(TEXT, _sources())

    assert [block.text for block in result.paragraphs] == ["The quick fox", "jumps."]
    outer = result.paragraphs[0].nodes[0]
    assert isinstance(outer, AnnotatedNode)
    assert outer.span.id == "sentiment-POS"
    assert [child.span.id for child in outer.children if isinstance(child, AnnotatedNode)] == ["adjective-0"]


def test_enabled_sources_default_to_settings() -> None:
    engine = OverlayEngine(OverlaySettings(enabled_sources=frozenset({SourceKind.ADJECTIVE})))

    result = engine.render(TEXT, _sources())

    assert [span.id for span in result.spans] == ["adjective-0"]
    assert result.enabled_sources == frozenset({SourceKind.ADJECTIVE})


def test_explicit_enabled_sources_override_settings() -> None:
    result = OverlayEngine().render(TEXT, _sources(), enabled={SourceKind.SENTIMENT})

    assert [span.id for span in result.spans] == ["sentiment-POS"]


def test_results_are_cached_per_request() -> None:
    engine = OverlayEngine(OverlaySettings(cache_size=4))

    first = engine.render(TEXT, _sources())
    second = engine.render(TEXT, _sources())
    other = engine.render(TEXT, _sources(), enabled={SourceKind.ADJECTIVE})

    assert first is second
    assert other is not first
    assert len(engine.cache) == 2


def test_cache_can_be_disabled() -> None:
    engine = OverlayEngine(OverlaySettings(cache_size=0))

    first = engine.render(TEXT, _sources())
    second = engine.render(TEXT, _sources())

    assert first == second
    assert first is not second
    assert len(engine.cache) == 0


def test_render_cache_evicts_least_recently_used() -> None:
    cache = RenderCache(2)
    results = {key: OverlayEngine().render(key) for key in ("a", "b", "c")}

    cache.put("a", results["a"])
    cache.put("b", results["b"])
    assert cache.get("a") is results["a"]
    cache.put("c", results["c"])

    assert cache.get("b") is None
    assert cache.get("a") is results["a"]
    assert cache.get("c") is results["c"]


def _break_on_spans(monkeypatch: pytest.MonkeyPatch) -> None:
    real_compose = engine_module.compose

    def _compose(text, spans):
        if spans:
            raise CompositionError("Inverted composition range", 5, 2)
        return real_compose(text, spans)

    monkeypatch.setattr(engine_module, "compose", _compose)


def test_composition_failure_falls_back_to_plain_text(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    _break_on_spans(monkeypatch)
    engine = OverlayEngine()

    with caplog.at_level(logging.ERROR, logger="newsmarks.overlay.engine"):
        result = engine.render(TEXT, _sources())

    assert result.degraded
    assert result.spans == ()
    assert list(result.paragraphs) == plain_paragraphs(TEXT)
    assert "plain text" in caplog.text
    assert len(engine.cache) == 0


def test_composition_failure_propagates_in_strict_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    _break_on_spans(monkeypatch)
    engine = OverlayEngine(OverlaySettings(strict=True))

    with pytest.raises(CompositionError, match="range=\\[5, 2\\)"):
        engine.render(TEXT, _sources())


def test_register_span_source_rejects_non_conforming_objects() -> None:
    with pytest.raises(TypeError):
        OverlayEngine().register_span_source(object())


def test_deeply_nested_entities_render_without_degrading() -> None:
    depth = 1500
    text = "a" * (depth + 1)
    sources = AnnotationSources(entities=[{"start_char": index, "end_char": depth + 1} for index in range(depth)])

    result = OverlayEngine().render(text, sources)

    assert not result.degraded
    assert len(result.spans) == depth
    assert len(result.paragraphs) == 1
    assert result.paragraphs[0].text == text
    assert sum(1 for _ in iter_annotated(result.paragraphs[0].nodes)) == depth


def test_disabled_cache_skips_request_fingerprint(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fingerprint(*_args: object) -> str:
        raise AssertionError("fingerprint computed with the cache disabled")

    monkeypatch.setattr(engine_module, "fingerprint_request", _fingerprint)

    result = OverlayEngine(OverlaySettings(cache_size=0)).render(TEXT, _sources())

    assert [span.id for span in result.spans] == ["adjective-0", "sentiment-POS"]
