"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator


CONFIG_FILE = "config.yaml"

# Mapping fields are only read from config.yaml.
_ENV_SKIP = {"collections", "permalinks", "layout_defaults"}

DEFAULT_KEY_ORDER = [
    "layout", "title", "excerpt", "summary", "date", "permalink", "url",
    "tags", "toc", "mathjax", "classes", "showtags", "links", "stack", "sidebar",
]


class Settings(BaseModel):
    app_name:       str = "mdfolio"
    db_url:         str = "sqlite:///.mdfolio/manifest.db"
    content_dir:    str = Field(default=".",        description="Root of the content store")
    output_dir:     str = Field(default="_site",    description="Directory for rendered HTML")
    parser_config:  str = Field(default="gfm-like", description="MarkdownIt parser preset name")
    layouts_dir:    str = Field(default="_layouts", description="Site layout templates, relative to content_dir")
    default_layout: str = Field(default="page",     description="Layout used when a document names none")
    layout_defaults: dict[str, str] = Field(default_factory=dict, description="Per-kind default layout")
    collections:    dict[str, str] = Field(
        default_factory=lambda: {"_posts": "post", "_projects": "project", "_pages": "page"},
        description="Top-level directory -> document kind; anything else is a page",
    )
    permalinks:     dict[str, str] = Field(
        default_factory=lambda: {
            "post": "/:year/:month/:day/:title/",
            "project": "/projects/:title/",
            "page": "/:path/",
        },
        description="Per-kind permalink pattern",
    )
    exclude:        list[str] = Field(
        default_factory=lambda: ["_site", "_layouts", "_includes", ".git", ".mdfolio", "README.md"],
        description="Names skipped during discovery",
    )
    extensions:     list[str] = Field(default_factory=lambda: [".md", ".markdown"])
    external_schemes: list[str] = Field(default_factory=lambda: ["http", "https"])
    key_order:      list[str] = Field(default_factory=lambda: list(DEFAULT_KEY_ORDER))
    site_title:     str = ""
    log_level:      str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    @field_validator("exclude", "extensions", "external_schemes", "key_order", mode="before")
    @classmethod
    def _split_csv(cls, v: Any) -> Any:
        """Accept comma-separated strings (env vars) for list fields."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDFOLIO_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping")

    for name in Settings.model_fields:
        if name in _ENV_SKIP:
            continue
        if val := os.getenv(f"MDFOLIO_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**data)
    except ValueError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
