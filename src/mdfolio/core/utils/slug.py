"""Slug generation for document identifiers and heading anchors"""

import re


POST_NAME_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})-(.+)$')


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated URL-safe slug."""
    text = text.lower()
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[\s_]+', '-', text)
    return re.sub(r'-+', '-', text).strip('-')


def split_post_name(stem: str) -> tuple[str | None, str]:
    """Split a 'YYYY-MM-DD-title' filename stem into (iso_date, title); (None, stem) otherwise."""
    m = POST_NAME_RE.match(stem)
    if not m:
        return None, stem
    year, month, day, title = m.groups()
    return f"{year}-{month}-{day}", title
