"""Unit tests for core/layout.py"""

import pytest
from markupsafe import Markup

from mdfolio.config import Settings
from mdfolio.core.errors import LayoutError
from mdfolio.core.layout import LayoutResolver


@pytest.fixture(name="resolver")
def resolver_fixture(settings):
    return LayoutResolver(settings)


def test_explicit_layout(resolver, make_doc):
    assert resolver.layout_name(make_doc("a.md", "---\nlayout: post\n---\n")) == "post"


def test_missing_layout_defaults_to_page(resolver, make_doc):
    """A document without `layout` gets the page template, posts included."""
    assert resolver.layout_name(make_doc("a.md", "Body\n")) == "page"
    assert resolver.layout_name(make_doc("_posts/2021-01-01-x.md", "Body\n")) == "page"


def test_per_kind_default(make_doc):
    resolver = LayoutResolver(Settings(layout_defaults={"post": "post"}))
    assert resolver.layout_name(make_doc("_posts/2021-01-01-x.md", "Body\n")) == "post"
    assert resolver.layout_name(make_doc("a.md", "Body\n")) == "page"


def test_builtin_layouts(resolver):
    assert resolver.known_layouts() == ["default", "page", "post"]


def test_unknown_layout_raises(resolver, make_doc):
    doc = make_doc("a.md", "---\nlayout: fancy\n---\n")
    with pytest.raises(LayoutError, match="a.md: Unknown layout 'fancy'"):
        resolver.resolve(doc)


def test_resolve_returns_name_and_template(resolver, make_doc):
    name, template = resolver.resolve(make_doc("a.md", "---\nlayout: post\n---\n"))
    assert name == "post"
    assert template is resolver.template("post")


def test_site_layouts_override_builtins(tmp_path, settings):
    (tmp_path / "page.html").write_text("CUSTOM {{ content }}")
    (tmp_path / "gallery.html").write_text("GALLERY")
    resolver = LayoutResolver(settings, tmp_path)
    assert resolver.template("page").render(content=Markup("<p>x</p>")) == "CUSTOM <p>x</p>"
    assert resolver.template("gallery").render() == "GALLERY"
    assert "gallery" in resolver.known_layouts()


def test_missing_layouts_dir_uses_builtins(tmp_path, settings):
    resolver = LayoutResolver(settings, tmp_path / "nope")
    assert resolver.known_layouts() == ["default", "page", "post"]


def test_broken_layout_raises(tmp_path, settings):
    (tmp_path / "broken.html").write_text("{% if %}")
    resolver = LayoutResolver(settings, tmp_path)
    with pytest.raises(LayoutError, match="Broken layout 'broken'"):
        resolver.template("broken")


def test_content_is_not_escaped_but_values_are(resolver):
    html = resolver.template("page").render(
        page={"title": "<Pointers & refs>"},
        content=Markup("<p>body</p>"),
        site={"title": ""},
        toc=[],
    )
    assert "<p>body</p>" in html
    assert "&lt;Pointers &amp; refs&gt;" in html
