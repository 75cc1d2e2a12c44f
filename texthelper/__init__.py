"""texthelper - explain, summarize and rewrite text with an AI service."""

from texthelper.utils.markdown_render import render_markdown_to_html

__all__ = ["render_markdown_to_html"]
__version__ = "0.1.0"
