"""Document export - the assembled text as a downloadable Markdown file."""

import re

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


def export_document(text: str) -> bytes:
    """UTF-8 bytes of *text* with exactly one trailing newline."""
    return (text.rstrip("\n") + "\n").encode("utf-8")


def export_filename(project_title: str, version: int = 0) -> str:
    """``<slug>_srs.md``, or ``<slug>_srs_v<n>.md`` for a committed version."""
    slug = _UNSAFE_FILENAME.sub("_", project_title.strip()).strip("_").lower() or "document"
    suffix = f"_v{version}" if version else ""
    return f"{slug}_srs{suffix}.md"
