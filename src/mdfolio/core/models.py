"""Content models: front-matter schema, documents, collections, check issues"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DocumentKind(str, Enum):
    """Which collection a document belongs to"""
    post = "post"
    page = "page"
    project = "project"


class Severity(str, Enum):
    error = "error"
    warning = "warning"


class LinkItem(BaseModel):
    """An icon link on a project page (e.g. github, demo)."""
    model_config = ConfigDict(extra="allow")
    icon: Optional[str] = None
    url: str


class SidebarItem(BaseModel):
    model_config = ConfigDict(extra="allow")
    title: Optional[str] = None
    text: Optional[str] = None


class Frontmatter(BaseModel):
    """Typed view over the recognized front-matter keys.

    Unknown keys are kept as extras and never rejected; each template reads
    the optional keys it cares about.
    """
    model_config = ConfigDict(extra="allow")

    title:     Optional[str] = None
    excerpt:   Optional[str] = None
    summary:   Optional[str] = None
    date:      Optional[datetime] = None
    layout:    Optional[str] = None
    permalink: Optional[str] = None
    url:       Optional[str] = None
    slug:      Optional[str] = None
    tags:      list[str] = Field(default_factory=list)
    toc:       bool = False
    mathjax:   bool = False
    showtags:  Optional[bool] = None
    classes:   Optional[str | list[str]] = None
    links:     list[LinkItem] = Field(default_factory=list)
    stack:     list[str] = Field(default_factory=list)
    sidebar:   list[SidebarItem] = Field(default_factory=list)

    @field_validator("title", "excerpt", "summary", "layout", "permalink", "url", "slug", mode="before")
    @classmethod
    def _scalar_to_str(cls, v: Any) -> Any:
        # YAML turns `title: 2048` or `title: yes` into non-strings.
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (int, float, bool, date)):
            return str(v)
        return v

    @field_validator("date", mode="before")
    @classmethod
    def _date_to_datetime(cls, v: Any) -> Any:
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime(v.year, v.month, v.day)
        return v

    @field_validator("tags", "stack", mode="before")
    @classmethod
    def _string_list(cls, v: Any) -> Any:
        """Accept a space-separated string or a list; drop duplicates, keep first occurrence."""
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split()
        if isinstance(v, list):
            return list(dict.fromkeys(str(item) for item in v if item is not None))
        return v

    @field_validator("links", "sidebar", mode="before")
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("toc", "mathjax", mode="before")
    @classmethod
    def _none_to_false(cls, v: Any) -> Any:
        return False if v is None else v


class Document(BaseModel):
    """A single content file: post, page, or project entry."""
    path:        str                 # POSIX path relative to the content root
    kind:        DocumentKind
    slug:        str
    raw:         str                 # exact file text
    header:      str = ""            # exact front-matter block, delimiters included
    frontmatter: dict[Any, Any] = {}   # raw parsed mapping, unknown keys included
    meta:        Frontmatter = Field(default_factory=Frontmatter)
    body:        str
    date:        Optional[datetime] = None
    hash:        str
    permalink:   str

    @property
    def title(self) -> str:
        return self.meta.title or self.slug

    @property
    def layout(self) -> Optional[str]:
        return self.meta.layout

    @property
    def tags(self) -> list[str]:
        return self.meta.tags

    def sort_key(self) -> tuple[bool, float]:
        """Dated documents first, newest first; undated ones keep their relative order."""
        if self.date is None:
            return True, 0.0
        d = self.date if self.date.tzinfo else self.date.replace(tzinfo=timezone.utc)
        return False, -d.timestamp()


@dataclass
class Collection:
    """Ordered grouping of documents of one kind."""
    kind:      DocumentKind
    documents: list[Document] = field(default_factory=list)

    def __iter__(self):
        return iter(self.documents)

    def __len__(self) -> int:
        return len(self.documents)

    def ordered(self) -> None:
        # sorted() is stable, so undated documents stay in file order
        self.documents = sorted(self.documents, key=lambda d: d.sort_key())


class Issue(BaseModel):
    """A single integrity-check finding."""
    path:     str
    code:     str
    severity: Severity = Severity.error
    message:  str

    def __str__(self) -> str:
        return f"{self.severity.value} [{self.code}] {self.path}: {self.message}"


@dataclass
class RenderedPage:
    """Renderer output for one document body; not persisted."""
    html:    str
    excerpt: str = ""
    toc:     list[tuple[int, str, str]] = field(default_factory=list)   # (level, anchor, text)
