"""Article export loading."""

from .loader import ArticleLoadError, load_articles, map_input, map_output, read_json_export
from .models import Article

__all__ = ["Article", "ArticleLoadError", "load_articles", "map_input", "map_output", "read_json_export"]
