"""Content integrity checks over a loaded store"""

import logging
import re

from markdown_it import MarkdownIt

from mdfolio.config import Settings
from mdfolio.core.emit import emit_normalized, normalization_loss, normalize_text, serialize
from mdfolio.core.errors import FrontmatterError, LayoutError
from mdfolio.core.layout import LayoutResolver
from mdfolio.core.links import LinkKind, classify_link, extract_links, resolve_internal
from mdfolio.core.models import Document, Issue, Severity
from mdfolio.core.render import make_parser
from mdfolio.core.store import ContentStore


logger = logging.getLogger(__name__)

WHITESPACE_RE = re.compile(r'\s')


def check_loading(store: ContentStore) -> list[Issue]:
    """Files that failed to parse (invalid YAML, duplicate keys, non-mapping header)."""
    return [
        Issue(path=e.path or "?", code="frontmatter", message=str(e).removeprefix(f"{e.path}: "))
        for e in store.errors
    ]


def check_paths(doc: Document) -> list[Issue]:
    """`permalink`/`url`, when present, must be site paths starting with '/'."""
    issues = []
    for key in ("permalink", "url"):
        if key not in doc.frontmatter:
            continue
        value = doc.frontmatter[key]
        if not isinstance(value, str) or not value.startswith('/'):
            problem = "must start with '/'"
        elif value.startswith('//'):
            problem = "must not start with '//'"
        elif WHITESPACE_RE.search(value):
            problem = "must not contain whitespace"
        else:
            continue
        issues.append(Issue(path=doc.path, code="path", message=f"{key} {value!r} {problem}"))
    return issues


def check_title(doc: Document) -> list[Issue]:
    if doc.meta.title:
        return []
    return [Issue(path=doc.path, code="title", severity=Severity.warning, message="missing title")]


def check_layout(doc: Document, resolver: LayoutResolver) -> list[Issue]:
    try:
        resolver.resolve(doc)
    except LayoutError as e:
        return [Issue(path=doc.path, code="layout", message=str(e).removeprefix(f"{doc.path}: "))]
    return []


def check_links(doc: Document, store: ContentStore, md: MarkdownIt, settings: Settings) -> list[Issue]:
    """Every internal target must resolve; external targets must use an allowed scheme."""
    issues = []
    for link in extract_links(doc, md):
        kind = classify_link(link.target, settings.external_schemes)
        where = f" (line {link.line})" if link.line else ""
        if kind == LinkKind.unsupported:
            issues.append(Issue(
                path=doc.path, code="link", severity=Severity.warning,
                message=f"unsupported scheme in {link.target!r}{where}",
            ))
        elif kind == LinkKind.internal and not resolve_internal(link.target, doc, store, settings.extensions):
            issues.append(Issue(path=doc.path, code="link", message=f"broken link {link.target!r}{where}"))
    return issues


def check_roundtrip(doc: Document, key_order: list[str]) -> list[Issue]:
    """Serialization must reproduce the file exactly; normalization must be lossless and idempotent."""
    if serialize(doc) != doc.raw:
        return [Issue(path=doc.path, code="roundtrip", message="re-serialized text differs from source")]
    try:
        once = emit_normalized(doc, key_order)
        loss = normalization_loss(doc, once, key_order)
        twice = normalize_text(once, key_order, doc.path)
    except FrontmatterError as e:
        return [Issue(path=doc.path, code="roundtrip", message=f"normalized header does not reparse: {e}")]
    if loss:
        return [Issue(path=doc.path, code="roundtrip", message=f"normalized document is lossy: {loss}")]
    if once != twice:
        return [Issue(path=doc.path, code="roundtrip", message="front-matter normalization is not idempotent")]
    return []


def check_collisions(store: ContentStore) -> list[Issue]:
    issues = []
    for permalink, docs in store.by_permalink().items():
        if len(docs) < 2:
            continue
        others = ", ".join(d.path for d in docs[1:])
        issues.append(Issue(
            path=docs[0].path, code="collision",
            message=f"permalink {permalink!r} also used by {others}",
        ))
    return issues


def run_checks(store: ContentStore, settings: Settings, resolver: LayoutResolver | None = None) -> list[Issue]:
    """Run every check; issues are grouped per document in file order."""
    resolver = resolver or LayoutResolver(settings, store.root / settings.layouts_dir)
    md = make_parser(settings.parser_config)
    issues = check_loading(store)
    for doc in store.documents:
        issues += check_paths(doc)
        issues += check_title(doc)
        issues += check_layout(doc, resolver)
        issues += check_links(doc, store, md, settings)
        issues += check_roundtrip(doc, settings.key_order)
    issues += check_collisions(store)
    logger.info("Checked %d document(s): %d issue(s)", len(store.documents), len(issues))
    return issues
