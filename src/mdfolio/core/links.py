"""Link extraction from document bodies and resolution against the content store"""

import re
from dataclasses import dataclass
from enum import Enum
from html import unescape
from pathlib import PurePosixPath
from urllib.parse import unquote, urljoin, urlparse

from markdown_it import MarkdownIt

from mdfolio.core.models import Document
from mdfolio.core.store import ContentStore, normalize_path


class LinkKind(str, Enum):
    external = "external"
    internal = "internal"
    fragment = "fragment"
    template = "template"       # Liquid/Jinja expression, resolved by the site engine
    unsupported = "unsupported"  # a scheme outside the allowed set


@dataclass(frozen=True)
class Link:
    target: str
    line:   int | None = None    # 1-based line in the source file
    image:  bool = False


HTML_LINK_RE = re.compile(r'<(a|img)\b[^>]*?\s(href|src)\s*=\s*(["\'])(.*?)\3', re.IGNORECASE | re.DOTALL)


def _html_links(html: str, line: int | None) -> list[Link]:
    links = []
    for m in HTML_LINK_RE.finditer(html):
        at = line + html.count('\n', 0, m.start()) if line else None
        links.append(Link(target=unescape(m.group(4)), line=at, image=m.group(1).lower() == 'img'))
    return links


def extract_links(doc: Document, md: MarkdownIt) -> list[Link]:
    """Return link and image targets in the document body, in source order.

    Raw HTML `<a href>` and `<img src>` count too.
    """
    offset = doc.header.count('\n')
    links = []
    for tok in md.parse(doc.body):
        line = tok.map[0] + 1 + offset if tok.map else None
        if tok.type == 'html_block':
            links += _html_links(tok.content, line)
            continue
        if tok.type != 'inline' or not tok.children:
            continue
        for child in tok.children:
            if child.type == 'link_open':
                href = child.attrGet('href')
                if href is not None:
                    links.append(Link(target=unquote(str(href)), line=line))
            elif child.type == 'image':
                src = child.attrGet('src')
                if src is not None:
                    links.append(Link(target=unquote(str(src)), line=line, image=True))
            elif child.type == 'html_inline':
                links += _html_links(child.content, line)
    return links


def classify_link(target: str, schemes: list[str]) -> LinkKind:
    if '{{' in target or '{%' in target:
        return LinkKind.template
    if target.startswith('#'):
        return LinkKind.fragment
    parsed = urlparse(target)
    if parsed.scheme:
        return LinkKind.external if parsed.scheme.lower() in schemes else LinkKind.unsupported
    if parsed.netloc:
        return LinkKind.external    # protocol-relative
    return LinkKind.internal


def resolve_internal(target: str, doc: Document, store: ContentStore, extensions: list[str]) -> bool:
    """True if an internal target names an existing document or static file."""
    path = target.split('#')[0].split('?')[0]
    if not path:
        return True

    # Links to source files (e.g. '../_posts/2020-01-01-x.md') resolve against the source tree
    if PurePosixPath(path).suffix.lower() in {e.lower() for e in extensions}:
        if path.startswith('/'):
            source = PurePosixPath(path.lstrip('/'))
        else:
            source = PurePosixPath(doc.path).parent / path
        return store.get(_collapse(source)) is not None

    absolute = path if path.startswith('/') else urljoin(doc.permalink, path)
    if normalize_path(absolute) in store.by_permalink():
        return True
    static = store.root / absolute.lstrip('/')
    return static.is_file() or (static / 'index.html').is_file()


def _collapse(p: PurePosixPath) -> str:
    """Resolve '.' and '..' segments without touching the filesystem."""
    parts: list[str] = []
    for part in p.parts:
        if part == '..':
            if parts:
                parts.pop()
        elif part not in ('.', ''):
            parts.append(part)
    return '/'.join(parts)
