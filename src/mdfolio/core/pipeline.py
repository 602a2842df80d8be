"""Pipeline step functions: check, migrate, and build orchestration"""

import json
import logging
import shutil
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Any

from markupsafe import Markup
from sqlmodel import Session

from mdfolio.config import Settings
from mdfolio.core.checks import run_checks
from mdfolio.core.emit import emit_metadata_json, emit_normalized, normalization_loss
from mdfolio.core.layout import LayoutResolver
from mdfolio.core.models import Document, DocumentKind, Issue, RenderedPage
from mdfolio.core.render import MarkupRenderer
from mdfolio.core.store import ContentStore, discover_static, load_store
from mdfolio.core.utils.diff import unified_diff
from mdfolio.core.utils.hashing import sha256
from mdfolio.crud.manifest import get_by_path, record_build, remove_missing


logger = logging.getLogger(__name__)

SITE_INDEX = "site.json"


def output_path(permalink: str) -> PurePosixPath:
    """Map a permalink to an output file relative to the output dir.

    '/a/b/' -> 'a/b/index.html', '/a/b' -> 'a/b/index.html', '/feed.xml' -> 'feed.xml'.
    """
    rel = PurePosixPath(permalink.split('#')[0].split('?')[0].lstrip('/'))
    if '..' in rel.parts:
        raise ValueError(f"Permalink escapes the output dir: {permalink!r}")
    if not rel.parts or permalink.endswith('/') or not rel.suffix:
        return rel / "index.html"
    return rel


def run_check(path: str, settings: Settings) -> tuple[ContentStore, list[Issue]]:
    """Load path tolerantly and run every integrity check."""
    root = Path(path)
    if not root.exists():
        raise RuntimeError(f"No such file or directory: {path}")
    store = load_store(root, settings, tolerant=True)
    return store, run_checks(store, settings)


def run_migrate(
    path: str,
    settings: Settings,
    output_dir: Path | None = None,
    diff_dir: Path | None = None,
    ) -> list[tuple[str, str, Path]]:
    """Normalize front-matter of every document.

    Writes a full normalized copy under output_dir, or rewrites changed files in
    place when output_dir is None. Nothing is written when any document would
    lose content. Returns (source_path, status, destination) with status
    'changed' or 'unchanged'.
    """
    root = Path(path)
    try:
        store = load_store(root, settings)
    except ValueError as e:
        raise RuntimeError(f"Failed to load {path}: {e}") from e

    planned = []
    for doc in store.documents:
        new = emit_normalized(doc, settings.key_order)
        if new != doc.raw:
            try:
                loss = normalization_loss(doc, new, settings.key_order)
            except ValueError as e:
                raise RuntimeError(f"Failed to migrate {doc.path}: {e}") from e
            if loss:
                raise RuntimeError(f"Failed to migrate {doc.path}: {loss}")
        planned.append((doc, new))

    results = []
    for doc, new in planned:
        status = "unchanged" if new == doc.raw else "changed"
        dest = (output_dir if output_dir is not None else store.root) / doc.path
        if output_dir is not None or status == "changed":
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(new.encode('utf-8'))
        if diff_dir is not None and status == "changed":
            # mirrors the source tree; slugs repeat across directories
            diff_path = diff_dir / f"{doc.path}.diff"
            diff_path.parent.mkdir(parents=True, exist_ok=True)
            lines = unified_diff(doc.raw, new, f"a/{doc.path}", f"b/{doc.path}")
            diff_path.write_text("".join(lines), encoding='utf-8')
        results.append((doc.path, status, dest))
    logger.info("Migrated %d document(s)", len(results))
    return results


def page_context(doc: Document, rendered: RenderedPage, layout: str) -> dict[str, Any]:
    """Template variables exposed as `page`."""
    ctx = doc.meta.model_dump()
    ctx.update(
        title=doc.title,
        date=doc.date,
        slug=doc.slug,
        path=doc.path,
        kind=doc.kind.value,
        permalink=doc.permalink,
        layout=layout,
        excerpt=Markup(rendered.excerpt),
    )
    return ctx


def _copy_static(root: Path, output_dir: Path, settings: Settings) -> int:
    """Copy static files that are missing or differ in size/mtime. Returns count copied."""
    copied = 0
    out = output_dir.resolve()
    for src in discover_static(root, settings):
        if src.resolve().is_relative_to(out):
            continue
        dest = output_dir / src.relative_to(root)
        if dest.exists():
            s, d = src.stat(), dest.stat()
            if s.st_size == d.st_size and int(s.st_mtime) <= int(d.st_mtime):
                continue
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dest)
        copied += 1
    return copied


def run_build(
    path: str,
    engine,
    output_dir: Path,
    settings: Settings,
    force: bool = False,
    ) -> tuple[dict[str, int], list[tuple[str, str]]]:
    """Render every document through its layout into output_dir and record it in the manifest.

    Returns (counts, changes) where changes lists (status, path) for created,
    updated, and removed documents.
    """
    root = Path(path)
    if not root.is_dir():
        raise RuntimeError(f"Not a content directory: {path}")
    try:
        store = load_store(root, settings)
    except ValueError as e:
        raise RuntimeError(f"Failed to load {path}: {e}") from e

    resolver = LayoutResolver(settings, store.root / settings.layouts_dir)
    renderer = MarkupRenderer(settings.parser_config)
    collections = store.collections()

    # render bodies first so listing layouts can show every page's excerpt
    pages: dict[str, tuple[Document, RenderedPage, str, dict]] = {}
    outputs: dict[PurePosixPath, str] = {}
    for doc in store.documents:
        try:
            rendered = renderer.render(doc)
            name, _ = resolver.resolve(doc)
            out = output_path(doc.permalink)
        except Exception as e:
            raise RuntimeError(f"Failed to build {doc.path}: {e}") from e
        if out in outputs:
            raise RuntimeError(f"Failed to build {doc.path}: output {out} already written by {outputs[out]}")
        outputs[out] = doc.path
        pages[doc.path] = (doc, rendered, name, page_context(doc, rendered, name))

    site = {
        "title": settings.site_title,
        **{
            f"{kind.value}s": [pages[d.path][3] for d in collections.get(kind, [])]
            for kind in DocumentKind
        },
    }

    output_dir.mkdir(parents=True, exist_ok=True)
    built_at = datetime.now()
    counts = {"created": 0, "updated": 0, "unchanged": 0, "removed": 0}
    changes: list[tuple[str, str]] = []
    index = []
    moved: set[str] = set()

    with Session(engine) as session:
        for doc in store.documents:
            _, rendered, name, ctx = pages[doc.path]
            _, template = resolver.resolve(doc)
            try:
                html = template.render(page=ctx, content=Markup(rendered.html), toc=rendered.toc, site=site)
            except Exception as e:
                raise RuntimeError(f"Failed to render {doc.path}: {e}") from e

            out = output_path(doc.permalink)
            dest = output_dir / out
            data = {
                "path": doc.path, "slug": doc.slug, "permalink": doc.permalink,
                "layout": name, "output": out.as_posix(), "hash": sha256(html),
            }
            previous = get_by_path(session, doc.path)
            if previous is not None and previous.output != data["output"]:
                moved.add(previous.output)
            _, status = record_build(session, data, built_at, output_exists=dest.is_file() and not force)
            if status != "unchanged":
                dest.parent.mkdir(parents=True, exist_ok=True)
                dest.write_bytes(html.encode('utf-8'))
                changes.append((status, doc.path))
            counts[status] += 1
            index.append(emit_metadata_json(doc, rendered))

        current = {o.as_posix() for o in outputs}
        for old in moved - current:
            # permalink changed; the page now lives elsewhere
            stale = output_dir / old
            if stale.is_file():
                stale.unlink()
        for record in remove_missing(session, {d.path for d in store.documents}):
            stale = output_dir / record.output
            if stale.is_file() and record.output not in current:
                stale.unlink()
            counts["removed"] += 1
            changes.append(("removed", record.path))
        session.commit()

    counts["static"] = _copy_static(store.root, output_dir, settings)
    (output_dir / SITE_INDEX).write_text(json.dumps(index, indent=2, ensure_ascii=False), encoding='utf-8')
    logger.info("Built %d document(s) into %s", len(store.documents), output_dir)
    return counts, changes
