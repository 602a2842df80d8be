"""Serialization: byte-identical round trip, normalized front-matter, metadata JSON"""

from typing import Any

import yaml

from mdfolio.core.frontmatter import parse_frontmatter
from mdfolio.core.models import Document, RenderedPage


def serialize(doc: Document) -> str:
    """Reassemble the exact file text from the kept header and body."""
    return doc.header + doc.body


def normalize_frontmatter(data: dict[str, Any], key_order: list[str]) -> dict[str, Any]:
    """Return a copy with known keys first (in key_order), then the rest in original order.

    A space-separated `tags` string becomes a list.
    """
    fm = dict(data)
    if isinstance(fm.get('tags'), str):
        fm['tags'] = list(dict.fromkeys(fm['tags'].split()))
    ordered = {k: fm[k] for k in key_order if k in fm}
    ordered.update((k, v) for k, v in fm.items() if k not in ordered)
    return ordered


def dump_frontmatter(data: dict[str, Any]) -> str:
    """Render a front-matter mapping as a delimited YAML block."""
    if not data:
        return "---\n---\n"
    header = yaml.safe_dump(
        data, default_flow_style=False, allow_unicode=True, sort_keys=False, width=1000
    )
    return f"---\n{header}---\n"


def normalize_text(raw: str, key_order: list[str], path: str | None = None) -> str:
    """Migration transform: rewrite the header canonically and keep the body untouched."""
    parsed = parse_frontmatter(raw, path)
    return dump_frontmatter(normalize_frontmatter(parsed.data, key_order)) + parsed.body


def emit_normalized(doc: Document, key_order: list[str]) -> str:
    return dump_frontmatter(normalize_frontmatter(doc.frontmatter, key_order)) + doc.body


def emit_metadata_json(doc: Document, rendered: RenderedPage | None = None) -> dict[str, Any]:
    """Sidecar/index entry for a document: identity, permalink, and front-matter."""
    entry = {
        "slug": doc.slug,
        "path": doc.path,
        "kind": doc.kind.value,
        "permalink": doc.permalink,
        "title": doc.title,
        "date": doc.date.isoformat() if doc.date else None,
        "layout": doc.layout,
        "tags": doc.tags,
        "hash": doc.hash,
        "frontmatter": doc.meta.model_dump(mode="json", exclude_none=True),
    }
    if rendered is not None:
        entry["excerpt"] = rendered.excerpt
    return entry


def normalization_loss(doc: Document, text: str, key_order: list[str]) -> str | None:
    """Describe what the normalized text fails to keep from doc, or None if nothing is lost."""
    reparsed = parse_frontmatter(text, doc.path)
    if reparsed.body != doc.body:
        return "body changes on normalization"
    if reparsed.data != normalize_frontmatter(doc.frontmatter, key_order):
        return "front-matter values change on normalization"
    return None
