"""CLI entrypoint rendering one article with its annotation overlay."""

from __future__ import annotations

import argparse
from dataclasses import replace
import json
import logging

from dotenv import load_dotenv

from newsmarks.articles.loader import ArticleLoadError, load_articles
from newsmarks.overlay.config import OverlaySettings, parse_source_kinds
from newsmarks.overlay.engine import OverlayEngine
from newsmarks.render.html import blocks_to_dict, render_html


load_dotenv()

LOGGER = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render an article body with annotator highlights")
    parser.add_argument("--input", required=True, help="Article metadata export (JSON array)")
    parser.add_argument("--analysis", default=None, help="NLP analysis export (JSON array)")
    parser.add_argument("--article-id", required=True, help="Id of the article to render")
    parser.add_argument(
        "--sources",
        default=None,
        help="Comma-separated source kinds to highlight, or 'none' (default: NEWSMARKS_ENABLED_SOURCES or all)",
    )
    parser.add_argument("--format", choices=("html", "json"), default="html", help="Output format")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on compositor errors instead of falling back to plain text",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = OverlaySettings.from_env()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(message)s")

    if args.strict:
        settings = replace(settings, strict=True)
    if args.sources is not None:
        try:
            settings = replace(settings, enabled_sources=parse_source_kinds(args.sources))
        except ValueError as exc:
            LOGGER.error("Invalid --sources value: %s", exc)
            return 2

    try:
        articles = load_articles(args.input, args.analysis)
    except ArticleLoadError as exc:
        LOGGER.error("Could not load articles: %s", exc)
        return 2

    article = next((item for item in articles if item.id == args.article_id), None)
    if article is None:
        LOGGER.error("Article not found: %s", args.article_id)
        return 2

    result = OverlayEngine(settings).render(article.body, article.annotations)
    if result.degraded:
        LOGGER.warning("Rendered article %s without annotations", article.id)

    if args.format == "html":
        print(render_html(result.paragraphs))
        return 0

    payload = {
        "article_id": article.id,
        "title": article.title,
        "enabled_sources": sorted(kind.value for kind in result.enabled_sources),
        "degraded": result.degraded,
        "paragraphs": blocks_to_dict(result.paragraphs),
    }
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
