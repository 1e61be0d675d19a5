"""Load and merge the article metadata export with the NLP analysis export."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Any

from charset_normalizer import from_bytes

from newsmarks.articles.models import Article
from newsmarks.overlay.collector import SENTIMENT_LABELS
from newsmarks.overlay.models import AnnotationSources

logger = logging.getLogger(__name__)

DEFAULT_MEDIUM = "desconocido"


@dataclass(slots=True)
class ArticleLoadError(Exception):
    """Domain error for unreadable or malformed article exports."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"{self.message} (path={self.path})"


@dataclass(slots=True)
class AnalysisRecord:
    """Analysis export fields relevant to one article."""

    annotations: AnnotationSources
    status: str | None = None


def _clean_str(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _record_list(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _resolve_status(raw: Mapping[str, Any]) -> str | None:
    status = _clean_str(raw.get("status"))
    if status:
        return status.lower()
    reviewed = raw.get("reviewed")
    if isinstance(reviewed, bool):
        return "reviewed" if reviewed else "unreviewed"
    return None


def map_input(raw: Mapping[str, Any]) -> Article:
    """Map one metadata export row onto an Article without annotations."""

    date_time = raw.get("fecha_hora")
    if isinstance(date_time, str) and date_time:
        date_part, _, time_part = date_time.partition(",")
        date, time = _clean_str(date_part), _clean_str(time_part)
    else:
        date, time = _clean_str(raw.get("fecha")), _clean_str(raw.get("hora"))

    section = raw.get("seccion") if isinstance(raw.get("seccion"), str) else None
    categories = [part.strip() for part in section.split("/") if part.strip()] if section else []
    tags = raw.get("etiquetas")

    return Article(
        id=str(raw.get("id", "")),
        title=_text(raw.get("titulo")),
        body=_text(raw.get("cuerpo")),
        author=_clean_str(raw.get("autor")),
        date=date,
        time=time,
        section=section,
        categories=categories,
        tags=[str(tag) for tag in tags] if isinstance(tags, list) else [],
        medium=_clean_str(raw.get("medio")) or DEFAULT_MEDIUM,
        status=_resolve_status(raw),
    )


def _unwrap(value: Any, key: str) -> Any:
    if isinstance(value, Mapping) and key in value:
        return value[key]
    return value


def map_output(raw: Mapping[str, Any]) -> AnalysisRecord:
    """Map one analysis export row onto annotator sources.

    Adjective and entity payloads are accepted both bare and nested one level
    deeper under their own key.
    """

    adjectives = _unwrap(raw.get("adjectives"), "adjectives")
    entities = _unwrap(raw.get("entities"), "entities")
    sentiment = raw.get("sentiment")

    sentences: dict[str, Mapping[str, Any]] = {}
    if isinstance(sentiment, Mapping):
        per_label = sentiment.get("highest_scoring_sentence_per_label")
        if isinstance(per_label, Mapping):
            sentences = {
                label: per_label[label]
                for label in SENTIMENT_LABELS
                if isinstance(per_label.get(label), Mapping)
            }

    annotations = AnnotationSources(
        entities=_record_list(entities.get("entities_list")) if isinstance(entities, Mapping) else [],
        adjectives=_record_list(adjectives.get("adjectives_list")) if isinstance(adjectives, Mapping) else [],
        sentiment=sentences,
        citations=_record_list(raw.get("sources")),
    )
    return AnalysisRecord(annotations=annotations, status=_clean_str(raw.get("status")))


def _detect_encoding(raw: bytes) -> str:
    try:
        raw.decode("utf-8-sig")
        return "utf-8-sig"
    except UnicodeDecodeError:
        pass

    best = from_bytes(raw).best()
    if best and best.encoding:
        return best.encoding
    raise ValueError("Could not detect export encoding")


def read_json_export(path: str | Path) -> list[Mapping[str, Any]]:
    """Read a JSON array export, detecting its text encoding."""

    source = Path(path)
    try:
        raw = source.read_bytes()
    except OSError as exc:
        raise ArticleLoadError(source, f"Failed to read export file: {exc}") from exc

    try:
        payload = json.loads(raw.decode(_detect_encoding(raw)))
    except ValueError as exc:
        raise ArticleLoadError(source, f"Export is not valid JSON: {exc}") from exc

    if isinstance(payload, Mapping) and isinstance(payload.get("default"), list):
        payload = payload["default"]
    if not isinstance(payload, list):
        raise ArticleLoadError(source, "Export must contain a JSON array of articles")
    return [row for row in payload if isinstance(row, Mapping)]


def load_articles(input_path: str | Path, output_path: str | Path | None = None) -> list[Article]:
    """Load metadata rows and attach analysis rows by article id.

    An analysis ``status`` overrides the metadata status only when present.
    """

    articles = [map_input(row) for row in read_json_export(input_path)]
    if output_path is None:
        return articles

    analysis_by_id = {str(row.get("id")): map_output(row) for row in read_json_export(output_path)}
    known_ids = {article.id for article in articles}
    unmatched = [article_id for article_id in analysis_by_id if article_id not in known_ids]
    if unmatched:
        logger.warning("Ignoring %d analysis rows without matching article: %s", len(unmatched), unmatched[:5])

    for article in articles:
        analysis = analysis_by_id.get(article.id)
        if analysis is None:
            continue
        article.annotations = analysis.annotations
        if analysis.status is not None:
            article.status = analysis.status.lower()
    return articles
