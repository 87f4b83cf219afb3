"""Markdown clean-up for MDX: drop HTML comments, self-close void tags."""

from __future__ import annotations

import re
from pathlib import PurePosixPath

MARKUP_SUFFIXES = frozenset({".md", ".mdx"})

_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_BR_RE = re.compile(r"<br>")
_HR_RE = re.compile(r"<hr>")
# <img ...> not already ending in "/>"
_IMG_RE = re.compile(r"<img\s+([^>]*?[^/>\s])\s*>")


def is_markup_output(output: str) -> bool:
    """Return True when *output* will be rendered through the MDX pipeline."""
    return PurePosixPath(output).suffix.lower() in MARKUP_SUFFIXES


def clean_markdown_for_mdx(content: str) -> str:
    """Normalize Markdown so it compiles as MDX.

    Applied in order: strip ``<!-- ... -->`` comments (across lines),
    ``<br>`` → ``<br />``, ``<hr>`` → ``<hr />``, and ``<img attrs>`` →
    ``<img attrs />``. Already-clean content comes back unchanged.
    """
    # Removing one comment can splice the halves of another together.
    previous = None
    while previous != content:
        previous = content
        content = _COMMENT_RE.sub("", content)
    content = _BR_RE.sub("<br />", content)
    content = _HR_RE.sub("<hr />", content)
    return _IMG_RE.sub(r"<img \1 />", content)
