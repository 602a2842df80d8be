"""Front-matter splitting and YAML parsing with duplicate-key detection"""

import re
from dataclasses import dataclass
from typing import Any

import yaml
from pydantic import ValidationError

from mdfolio.core.errors import FrontmatterError
from mdfolio.core.models import Frontmatter


# Optional BOM, opening '---' line, lazily matched YAML, closing '---' line.
FRONTMATTER_RE = re.compile(
    r'\A\ufeff?---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)',
    re.DOTALL,
)


class UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that refuses mappings with repeated keys."""

    def construct_mapping(self, node, deep=False):
        self.flatten_mapping(node)
        seen = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            try:
                duplicate = key in seen
            except TypeError:
                continue    # unhashable; reported by the base constructor
            if duplicate:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping", node.start_mark,
                    f"found duplicate key {key!r}", key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


@dataclass(frozen=True)
class ParsedFrontmatter:
    header: str                 # exact block text, '' when absent
    data:   dict[str, Any]
    body:   str

    def serialize(self) -> str:
        return self.header + self.body


def split_frontmatter(text: str) -> tuple[str, str, str]:
    """Return (header, yaml_text, body); header is '' and body is text when no block is present."""
    m = FRONTMATTER_RE.match(text)
    if not m:
        return "", "", text
    return m.group(0), m.group(1) or "", text[m.end():]


def load_yaml(yaml_text: str, path: str | None = None) -> dict[str, Any]:
    """Load a front-matter YAML block into a dict with unique keys."""
    try:
        data = yaml.load(yaml_text, Loader=UniqueKeyLoader) if yaml_text.strip() else {}
    except (yaml.YAMLError, ValueError) as e:    # bad timestamps raise ValueError
        raise FrontmatterError(f"Invalid YAML frontmatter: {e}", path) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FrontmatterError(
            f"Invalid YAML frontmatter: expected a mapping, got {type(data).__name__}", path
        )
    return data


def parse_frontmatter(text: str, path: str | None = None) -> ParsedFrontmatter:
    """Split text into header and body and parse the header mapping."""
    header, yaml_text, body = split_frontmatter(text)
    return ParsedFrontmatter(header=header, data=load_yaml(yaml_text, path), body=body)


def validate_frontmatter(data: dict[str, Any], path: str | None = None) -> Frontmatter:
    """Build the typed Frontmatter view; unknown keys pass through as extras.

    Keys that only differ by type (`1` and `"1"`) are rejected.
    """
    fields, seen = {}, {}
    for k, v in data.items():
        if str(k) in seen:
            raise FrontmatterError(f"Invalid frontmatter: keys {seen[str(k)]!r} and {k!r} collide", path)
        seen[str(k)] = k
        fields[str(k)] = v
    try:
        return Frontmatter.model_validate(fields)
    except ValidationError as e:
        raise FrontmatterError(f"Invalid frontmatter values: {e}", path) from e
