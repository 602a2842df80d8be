"""Content store: file discovery, document loading, collections, permalinks"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path, PurePosixPath

from mdfolio.config import Settings
from mdfolio.core.errors import FrontmatterError
from mdfolio.core.frontmatter import parse_frontmatter, validate_frontmatter
from mdfolio.core.models import Collection, Document, DocumentKind
from mdfolio.core.utils.hashing import sha256
from mdfolio.core.utils.slug import slugify, split_post_name


logger = logging.getLogger(__name__)

PERMALINK_TOKEN_RE = re.compile(r':(year|month|day|title|slug|path|collection)\b')
DATE_TOKENS = {"year", "month", "day"}


def _skipped(rel: PurePosixPath, settings: Settings) -> bool:
    return any(part in settings.exclude or part.startswith('.') for part in rel.parts)


def discover_files(root: Path, settings: Settings) -> list[Path]:
    """Return sorted content files under root, or [root] if it is a single content file."""
    exts = {e.lower() for e in settings.extensions}
    if root.is_file():
        return [root] if root.suffix.lower() in exts else []
    return sorted(
        p for p in root.rglob('*')
        if p.is_file()
        and p.suffix.lower() in exts
        and not _skipped(PurePosixPath(p.relative_to(root).as_posix()), settings)
    )


def discover_static(root: Path, settings: Settings) -> list[Path]:
    """Return files copied verbatim on build: not content, not excluded, not under '_' directories."""
    exts = {e.lower() for e in settings.extensions}
    found = []
    for p in sorted(root.rglob('*')):
        if not p.is_file() or p.suffix.lower() in exts:
            continue
        rel = PurePosixPath(p.relative_to(root).as_posix())
        if _skipped(rel, settings) or any(part.startswith('_') for part in rel.parts):
            continue
        if rel.name == "config.yaml" and len(rel.parts) == 1:
            continue
        found.append(p)
    return found


def classify(rel: PurePosixPath, settings: Settings) -> tuple[DocumentKind, PurePosixPath]:
    """Return (kind, path within its collection directory) for a content-root relative path."""
    if len(rel.parts) > 1 and rel.parts[0] in settings.collections:
        kind = DocumentKind(settings.collections[rel.parts[0]])
        return kind, PurePosixPath(*rel.parts[1:])
    return DocumentKind.page, rel


def expand_permalink(
    pattern: str,
    collection: str,
    inner: PurePosixPath,
    slug: str,
    date: datetime | None,
    ) -> str:
    """Expand ':token' placeholders of a permalink pattern."""
    parts = list(inner.with_suffix('').parts)
    if parts and parts[-1] == "index":
        parts.pop()
    values = {
        "title": slug,
        "slug": slug,
        "path": "/".join(parts),
        "collection": collection.lstrip('_'),
    }
    if date is not None:
        values.update(year=f"{date.year:04d}", month=f"{date.month:02d}", day=f"{date.day:02d}")
    result = PERMALINK_TOKEN_RE.sub(lambda m: values[m.group(1)], pattern)
    return re.sub(r'/+', '/', '/' + result)


def build_document(rel_path: str, raw: str, settings: Settings) -> Document:
    """Build a Document from its content-root relative path and exact file text."""
    rel = PurePosixPath(rel_path)
    parsed = parse_frontmatter(raw, rel_path)
    meta = validate_frontmatter(parsed.data, rel_path)
    kind, inner = classify(rel, settings)

    file_date, title_part = split_post_name(rel.stem) if kind == DocumentKind.post else (None, rel.stem)
    date = meta.date
    if date is None and file_date:
        try:
            date = datetime.fromisoformat(file_date)
        except ValueError:
            logger.warning("%s: ignoring invalid filename date %s", rel_path, file_date)
    slug = meta.slug or slugify(title_part) or slugify(rel.stem)

    if meta.permalink:
        permalink = meta.permalink
    elif meta.url:
        permalink = meta.url
    else:
        pattern = settings.permalinks.get(kind.value, "/:path/")
        if date is None and DATE_TOKENS & set(PERMALINK_TOKEN_RE.findall(pattern)):
            logger.debug("%s has no date; using the page permalink pattern", rel_path)
            pattern = settings.permalinks.get(DocumentKind.page.value, "/:path/")
        collection = rel.parts[0] if inner != rel else ""
        permalink = expand_permalink(pattern, collection, inner, slug, date)

    return Document(
        path=rel_path,
        kind=kind,
        slug=slug,
        raw=raw,
        header=parsed.header,
        frontmatter=parsed.data,
        meta=meta,
        body=parsed.body,
        date=date,
        hash=sha256(raw),
        permalink=permalink,
    )


def read_text(path: Path) -> str:
    """Read a file as UTF-8 without newline translation."""
    return path.read_bytes().decode('utf-8')


def load_document(path: Path, root: Path, settings: Settings) -> Document:
    rel_path = path.relative_to(root).as_posix() if path != root else path.name
    return build_document(rel_path, read_text(path), settings)


@dataclass
class ContentStore:
    """All documents under a content root, in file order."""
    root:      Path
    documents: list[Document] = field(default_factory=list)
    errors:    list[FrontmatterError] = field(default_factory=list)

    def get(self, path: str) -> Document | None:
        return next((d for d in self.documents if d.path == path), None)

    def collections(self) -> dict[DocumentKind, Collection]:
        """Group documents by kind; each collection is date-ordered."""
        groups = {kind: Collection(kind=kind) for kind in DocumentKind}
        for doc in self.documents:
            groups[doc.kind].documents.append(doc)
        for c in groups.values():
            c.ordered()
        return {kind: c for kind, c in groups.items() if c.documents}

    def by_permalink(self) -> dict[str, list[Document]]:
        index: dict[str, list[Document]] = {}
        for doc in self.documents:
            index.setdefault(normalize_path(doc.permalink), []).append(doc)
        return index


def normalize_path(url_path: str) -> str:
    """Canonical form used to compare site paths: '/a/b/' == '/a/b' == '/a/b/index.html'."""
    p = url_path.split('#')[0].split('?')[0]
    if p.endswith('/index.html'):
        p = p[:-len('index.html')]
    return p.rstrip('/') or '/'


def load_store(root: Path, settings: Settings, tolerant: bool = False) -> ContentStore:
    """Load every content file under root.

    With tolerant=True malformed files are collected in ContentStore.errors
    instead of aborting the load.
    """
    base = root if root.is_dir() else root.parent
    store = ContentStore(root=base)
    for p in discover_files(root, settings):
        try:
            store.documents.append(load_document(p, base, settings))
        except FrontmatterError as e:
            if not tolerant:
                raise
            logger.warning("Skipping %s: %s", p, e)
            store.errors.append(e)
    logger.info("Loaded %d document(s) from %s", len(store.documents), base)
    return store
