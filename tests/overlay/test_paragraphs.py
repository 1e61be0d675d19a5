from __future__ import annotations

import random

from newsmarks.overlay.compositor import compose
from newsmarks.overlay.models import AnnotatedNode, AnnotationSpan, ParagraphBlock, SourceKind, TextNode
from newsmarks.overlay.paragraphs import rejoin_paragraphs, split_paragraphs


def _span(span_id: str, start: int, end: int, kind: SourceKind = SourceKind.CITATION) -> AnnotationSpan:
    return AnnotationSpan(id=span_id, start=start, end=end, source_kind=kind, display_class="hl")


def test_text_without_newline_is_one_paragraph() -> None:
    blocks = split_paragraphs(compose("Hello world", []))

    assert blocks == [ParagraphBlock(nodes=(TextNode(text="Hello world", start=0, end=11),), start=0, end=11)]


def test_newline_inside_annotation_does_not_split() -> None:
    text = "A [quote\nwith break] B"
    start = text.index("quote")
    end = text.index("]")
    citation = _span("citation-0", start, end)

    blocks = split_paragraphs(compose(text, [citation]))

    assert len(blocks) == 1
    nodes = blocks[0].nodes
    assert nodes[0] == TextNode(text="A [", start=0, end=3)
    assert isinstance(nodes[1], AnnotatedNode)
    assert nodes[1].span is citation
    assert "\n" in blocks[0].text
    assert nodes[2] == TextNode(text="] B", start=end, end=len(text))


def test_newlines_in_literal_text_split_and_drop_empty_paragraphs() -> None:
    text = "First\n\nSecond\n"

    blocks = split_paragraphs(compose(text, []))

    assert [block.text for block in blocks] == ["First", "Second"]
    assert [(block.start, block.end) for block in blocks] == [(0, 5), (7, 13)]
    assert rejoin_paragraphs(blocks, len(text)) == text


def test_annotation_stays_in_paragraph_before_break() -> None:
    text = "Hello world\nBye"
    entity = _span("entity-0", 6, 11, SourceKind.ENTITY)

    blocks = split_paragraphs(compose(text, [entity]))

    assert len(blocks) == 2
    assert blocks[0].nodes[0] == TextNode(text="Hello ", start=0, end=6)
    assert isinstance(blocks[0].nodes[1], AnnotatedNode)
    assert blocks[1].nodes == (TextNode(text="Bye", start=12, end=15),)


def test_empty_text_yields_single_empty_paragraph() -> None:
    blocks = split_paragraphs(compose("", []))

    assert blocks == [ParagraphBlock(nodes=(), start=0, end=0)]
    assert blocks[0].is_empty
    assert rejoin_paragraphs(blocks, 0) == ""


def test_only_newlines_yield_single_empty_paragraph() -> None:
    blocks = split_paragraphs(compose("\n\n", []))

    assert len(blocks) == 1
    assert blocks[0].is_empty
    assert rejoin_paragraphs(blocks, 2) == "\n\n"


def test_random_inputs_round_trip_through_paragraphs() -> None:
    rng = random.Random(4)
    for _ in range(300):
        length = rng.randint(0, 40)
        text = "".join(rng.choice("ab \n") for _ in range(length))
        spans = []
        if length:
            for index in range(rng.randint(0, 8)):
                start = rng.randint(0, length - 1)
                spans.append(_span(f"s-{index}", start, rng.randint(start + 1, length)))

        blocks = split_paragraphs(compose(text, spans))

        assert blocks
        assert rejoin_paragraphs(blocks, len(text)) == text
        for previous, current in zip(blocks, blocks[1:]):
            assert set(text[previous.end : current.start]) == {"\n"}
