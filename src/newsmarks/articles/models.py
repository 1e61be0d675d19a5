"""Article records assembled from the metadata and analysis exports."""

from __future__ import annotations

from dataclasses import dataclass, field

from newsmarks.overlay.models import AnnotationSources


@dataclass(slots=True)
class Article:
    """One news article with its annotator output."""

    id: str
    title: str = ""
    body: str = ""
    author: str | None = None
    date: str | None = None
    time: str | None = None
    section: str | None = None
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    medium: str = "desconocido"
    status: str | None = None
    annotations: AnnotationSources = field(default_factory=AnnotationSources)
