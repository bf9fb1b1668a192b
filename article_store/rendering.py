"""Markdown → HTML rendering applied on every content write."""
import markdown

from article_store.config import settings


def render(raw: str) -> str:
    """
    Return the HTML rendering of the markdown source *raw*.

    A fresh ``Markdown`` instance is built per call: instances keep state
    between conversions (footnotes, abbreviations) and are not safe to share
    across concurrent requests.
    """
    return markdown.markdown(raw, extensions=settings.MARKDOWN_EXTENSIONS)
