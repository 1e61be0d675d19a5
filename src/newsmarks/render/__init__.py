"""Presentation renderers for overlay results."""

from .html import blocks_to_dict, node_to_dict, render_html, span_to_dict, tooltip_for

__all__ = ["blocks_to_dict", "node_to_dict", "render_html", "span_to_dict", "tooltip_for"]
