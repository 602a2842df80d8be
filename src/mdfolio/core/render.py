"""Markdown body rendering with markdown-it: heading anchors, TOC, excerpts, math passthrough"""

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml
from mdit_py_plugins.dollarmath import dollarmath_plugin

from mdfolio.core.models import Document, RenderedPage
from mdfolio.core.utils.slug import slugify


def mathjax_delimiters(content: str, config: dict) -> str:
    """Re-delimit TeX the way MathJax expects it by default: \\( \\) inline, \\[ \\] display."""
    if config.get("display_mode"):
        return f"\\[{escapeHtml(content)}\\]"
    return f"\\({escapeHtml(content)}\\)"


def make_parser(preset: str = 'gfm-like', math: bool = False) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name.

    With math=True, `$...$` and `$$...$$` are kept out of inline parsing and
    emitted as MathJax-ready text.
    """
    md = MarkdownIt(preset, options_update={"linkify": False})
    if math:
        # prices like "$5 and $10" stay text
        md.use(dollarmath_plugin, allow_digits=False, double_inline=True, renderer=mathjax_delimiters)
    return md


def heading_level(token) -> int | None:
    """Return the heading level (1-6) for a heading_open token, else None."""
    if token.type == 'heading_open' and token.tag and token.tag[0] == 'h' and token.tag[1:].isdigit():
        return int(token.tag[1:])
    return None


def _inline_text(token) -> str:
    """Plain text of an inline token (text and code spans only)."""
    if not token.children:
        return token.content
    return ''.join(c.content for c in token.children if c.type in ('text', 'code_inline'))


def anchor_headings(tokens: list) -> list[tuple[int, str, str]]:
    """Give every heading a unique slug id; return (level, anchor, text) in document order."""
    used: set[str] = set()
    toc = []
    for i, tok in enumerate(tokens):
        level = heading_level(tok)
        if level is None or i + 1 >= len(tokens):
            continue
        text = _inline_text(tokens[i + 1]).strip()
        base = slugify(text) or "section"
        anchor, n = base, 0
        while anchor in used:
            n += 1
            anchor = f"{base}-{n}"
        used.add(anchor)
        tok.attrSet("id", anchor)
        toc.append((level, anchor, text))
    return toc


def first_paragraph(tokens: list) -> str:
    """Source text of the first paragraph, or '' when the body has none."""
    for i, tok in enumerate(tokens):
        if tok.type == 'paragraph_open' and i + 1 < len(tokens):
            return tokens[i + 1].content
    return ''


class MarkupRenderer:
    """Render document bodies to HTML fragments."""

    def __init__(self, preset: str = 'gfm-like'):
        self.md = make_parser(preset)
        self.math_md = make_parser(preset, math=True)

    def render(self, doc: Document) -> RenderedPage:
        md = self.math_md if doc.meta.mathjax else self.md
        env: dict = {}
        tokens = md.parse(doc.body, env)
        toc = anchor_headings(tokens)
        html = md.renderer.render(tokens, md.options, env)

        source = doc.meta.excerpt or doc.meta.summary or first_paragraph(tokens)
        excerpt = md.renderInline(source).strip() if source else ''
        return RenderedPage(html=html, excerpt=excerpt, toc=toc if doc.meta.toc else [])
