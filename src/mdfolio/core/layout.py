"""Layout resolution: map a document's layout name to a Jinja2 template"""

import logging
from pathlib import Path

from jinja2 import (
    ChoiceLoader, DictLoader, Environment, FileSystemLoader, Template,
    TemplateError, TemplateNotFound, select_autoescape,
)

from mdfolio.config import Settings
from mdfolio.core.errors import LayoutError
from mdfolio.core.models import Document


logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".html"

BUILTIN_LAYOUTS: dict[str, str] = {
    "default.html": """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{% if page.title %}{{ page.title }}{% if site.title %} | {% endif %}{% endif %}{{ site.title }}</title>
  {% if page.excerpt %}<meta name="description" content="{{ page.excerpt | striptags }}">{% endif %}
  {% if page.mathjax %}<script async src="https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js"></script>{% endif %}
</head>
<body{% if page.classes %} class="{{ page.classes }}"{% endif %}>
{% block body %}{{ content }}{% endblock %}
</body>
</html>
""",
    "page.html": """\
{% extends "default.html" %}
{% block body %}
<article class="page">
  {% if page.title %}<h1>{{ page.title }}</h1>{% endif %}
  {% if page.toc %}{% include "_toc.html" %}{% endif %}
  {{ content }}
  {% if page.stack %}<ul class="stack">{% for item in page.stack %}<li>{{ item }}</li>{% endfor %}</ul>{% endif %}
  {% if page.links %}<ul class="links">{% for link in page.links %}<li><a href="{{ link.url }}" class="icon-{{ link.icon }}">{{ link.icon or link.url }}</a></li>{% endfor %}</ul>{% endif %}
</article>
{% if page.sidebar %}<aside>{% for item in page.sidebar %}<section>{% if item.title %}<h3>{{ item.title }}</h3>{% endif %}{% if item.text %}<p>{{ item.text }}</p>{% endif %}</section>{% endfor %}</aside>{% endif %}
{% endblock %}
""",
    "post.html": """\
{% extends "default.html" %}
{% block body %}
<article class="post">
  <h1>{{ page.title }}</h1>
  {% if page.date %}<time datetime="{{ page.date.isoformat() }}">{{ page.date.strftime("%B %d, %Y") }}</time>{% endif %}
  {% if page.toc %}{% include "_toc.html" %}{% endif %}
  {{ content }}
  {% if page.tags and page.showtags is not false %}<ul class="tags">{% for tag in page.tags %}<li>{{ tag }}</li>{% endfor %}</ul>{% endif %}
</article>
{% endblock %}
""",
    "_toc.html": """\
<nav class="toc"><ul>{% for level, anchor, text in toc %}<li class="toc-h{{ level }}"><a href="#{{ anchor }}">{{ text }}</a></li>{% endfor %}</ul></nav>
""",
}


def make_environment(layouts_dir: Path | None) -> Environment:
    """Jinja2 environment searching the site's layouts first, then the built-in ones."""
    loaders = []
    if layouts_dir is not None and layouts_dir.is_dir():
        loaders.append(FileSystemLoader(str(layouts_dir)))
    loaders.append(DictLoader(BUILTIN_LAYOUTS))
    return Environment(
        loader=ChoiceLoader(loaders),
        autoescape=select_autoescape(["html", "xml"]),
        keep_trailing_newline=True,
    )


class LayoutResolver:
    """Selects the template that wraps a document's rendered body."""

    def __init__(self, settings: Settings, layouts_dir: Path | None = None):
        self.settings = settings
        self.env = make_environment(layouts_dir)
        self._cache: dict[str, Template] = {}

    def layout_name(self, doc: Document) -> str:
        """The document's own layout, else the per-kind default, else the site default ('page')."""
        return (
            doc.layout
            or self.settings.layout_defaults.get(doc.kind.value)
            or self.settings.default_layout
        )

    def template(self, name: str) -> Template:
        """Return the compiled template for a layout name; raise LayoutError if unresolved."""
        if name not in self._cache:
            try:
                self._cache[name] = self.env.get_template(f"{name}{TEMPLATE_SUFFIX}")
            except TemplateNotFound as e:
                raise LayoutError(f"Unknown layout '{name}'") from e
            except TemplateError as e:
                raise LayoutError(f"Broken layout '{name}': {e}") from e
            logger.debug("Resolved layout %s", name)
        return self._cache[name]

    def resolve(self, doc: Document) -> tuple[str, Template]:
        name = self.layout_name(doc)
        try:
            return name, self.template(name)
        except LayoutError as e:
            raise LayoutError(f"{doc.path}: {e}") from e

    def known_layouts(self) -> list[str]:
        return sorted(
            n[:-len(TEMPLATE_SUFFIX)] for n in self.env.list_templates()
            if n.endswith(TEMPLATE_SUFFIX) and not n.startswith('_')
        )
