"""CLI command implementations"""

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from mdfolio.config import Settings, load_config
from mdfolio.core.errors import ContentError
from mdfolio.core.models import DocumentKind, Severity
from mdfolio.core.pipeline import run_build, run_check, run_migrate
from mdfolio.core.emit import emit_metadata_json
from mdfolio.core.render import MarkupRenderer
from mdfolio.core.store import load_document, load_store
from mdfolio.crud.database import init_db, make_engine, reset_db


# set per invocation by the app callback; --verbose wins over log_level
_verbose = False


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    if not _verbose:
        logging.getLogger("mdfolio").setLevel(settings.log_level)
    return settings


def configure_logging(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log progress to stderr")] = False,
    ):
    """Markdown blog/portfolio content toolchain."""
    global _verbose
    _verbose = verbose
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("mdfolio").setLevel(logging.DEBUG if verbose else logging.NOTSET)


def check_cmd(
    path: Annotated[Optional[str], typer.Argument(help="Content directory or file (default: content_dir)")] = None,
    strict: Annotated[bool, typer.Option("--strict", help="Treat warnings as failures")] = False,
    ):
    """Check front-matter, permalinks, links, layouts, and round-trip serialization."""
    settings = _settings(overrides={"content_dir": path})
    try:
        store, issues = run_check(settings.content_dir, settings)
    except RuntimeError as e:
        _fail(str(e))

    for issue in issues:
        typer.echo(f"  {issue}")
    errors = sum(1 for i in issues if i.severity == Severity.error)
    warnings = len(issues) - errors
    typer.echo(
        f"Checked {len(store.documents) + len(store.errors)} document(s) - "
        f"{errors} error(s), {warnings} warning(s)"
    )
    if errors or (strict and warnings):
        raise typer.Exit(1)


def build_cmd(
    path: Annotated[Optional[str], typer.Argument(help="Content directory (default: content_dir)")] = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    parser: Annotated[Optional[str], typer.Option("--parser-config", help="MarkdownIt preset name")] = None,
    force: Annotated[bool, typer.Option("--force", help="Rewrite every page even if unchanged")] = False,
    ):
    """Render every document through its layout and write the site."""
    settings = _settings(overrides={"content_dir": path, "output_dir": out, "parser_config": parser})
    engine = make_engine(settings.db_url)
    init_db(engine)
    output_dir = Path(settings.output_dir)

    try:
        counts, changes = run_build(settings.content_dir, engine, output_dir, settings, force=force)
    except RuntimeError as e:
        _fail(str(e))

    for status, doc_path in changes:
        typer.echo(f"  {status}: {doc_path}")
    typer.echo(
        f"Build complete - "
        f"{counts['created']} created, "
        f"{counts['updated']} updated, "
        f"{counts['unchanged']} unchanged, "
        f"{counts['removed']} removed, "
        f"{counts['static']} static file(s) copied"
    )


def list_cmd(
    path: Annotated[Optional[str], typer.Argument(help="Content directory (default: content_dir)")] = None,
    kind: Annotated[Optional[DocumentKind], typer.Option("--kind", help="Only list this collection")] = None,
    ):
    """List collections and their documents in order."""
    settings = _settings(overrides={"content_dir": path})
    try:
        store = load_store(Path(settings.content_dir), settings)
    except ContentError as e:
        _fail("Could not load content", e)

    collections = store.collections()
    if kind is not None:
        collections = {k: c for k, c in collections.items() if k == kind}
    if not collections:
        typer.echo("No documents found.")
        raise typer.Exit(1)
    for k, collection in collections.items():
        typer.echo(f"{k.value}s ({len(collection)})")
        for doc in collection:
            date = doc.date.strftime("%Y-%m-%d") if doc.date else "----------"
            typer.echo(f"  {date}  {doc.permalink}  {doc.title}")


def show_cmd(
    path: Annotated[Path, typer.Argument(help="Content file")],
    root: Annotated[Optional[str], typer.Option("--root", help="Content root the file belongs to")] = None,
    ):
    """Print a document's parsed metadata as JSON."""
    settings = _settings(overrides={"content_dir": root})
    if not path.is_file():
        _fail(f"No such file: {path}")
    base = Path(settings.content_dir).resolve()
    resolved = path.resolve()
    if not resolved.is_relative_to(base):
        base = resolved.parent
    try:
        doc = load_document(resolved, base, settings)
    except ContentError as e:
        _fail("Could not parse document", e)
    rendered = MarkupRenderer(settings.parser_config).render(doc)
    typer.echo(json.dumps(emit_metadata_json(doc, rendered), indent=2, ensure_ascii=False))


def migrate_cmd(
    path: Annotated[Optional[str], typer.Argument(help="Content directory (default: content_dir)")] = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Write a normalized copy here")] = None,
    in_place: Annotated[bool, typer.Option("--in-place", help="Rewrite changed files in place")] = False,
    diff: Annotated[Optional[str], typer.Option("--diff-dir", help="Write unified diffs of changed files here")] = None,
    ):
    """Normalize front-matter key order and formatting; the body is left untouched."""
    if not out and not in_place:
        _fail("Pass --out-dir or --in-place")
    if out and in_place:
        _fail("--out-dir and --in-place are mutually exclusive")
    settings = _settings(overrides={"content_dir": path})
    try:
        results = run_migrate(
            settings.content_dir, settings,
            output_dir=Path(out) if out else None,
            diff_dir=Path(diff) if diff else None,
        )
    except RuntimeError as e:
        _fail(str(e))

    changed = 0
    for src, status, dest in results:
        if status == "changed":
            changed += 1
            typer.echo(f"  {src} -> {dest}")
    typer.echo(f"Migrated {len(results)} document(s) - {changed} changed")


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate the build manifest")] = False,
    ):
    """Initialize the build manifest. Use --reset to forget previous builds."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        reset_db(engine)
        typer.echo("Existing build records cleared.")
    else:
        init_db(engine)
    typer.echo(f"Manifest initialized at: {settings.db_url}")
