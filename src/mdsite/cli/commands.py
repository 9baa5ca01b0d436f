"""CLI command implementations"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from mdsite.cli.scaffold import DEFAULT_LAYOUT, INDEX_PAGE, POST_LAYOUT, SAMPLE_POST
from mdsite.config import Settings, load_config
from mdsite.core.errors import MdsiteError, MissingInputError
from mdsite.core.pipeline import clean_output_dir, load_index, run_build


LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _configure_logging(level: str) -> None:
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger("mdsite").setLevel(level)


def build_cmd(
    source: Annotated[Optional[str], typer.Option("--source", help="Content directory")] = None,
    layouts: Annotated[Optional[str], typer.Option("--layouts", help="Layouts directory")] = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    static: Annotated[Optional[str], typer.Option("--static", help="Static assets directory")] = None,
    clean: Annotated[bool, typer.Option("--clean", help="Remove the output directory first")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log per-file progress")] = False,
    ):
    """Render every content file into the output directory."""
    settings = _settings(overrides={
        "source_dir": source, "layouts_dir": layouts, "output_dir": out, "static_dir": static,
        "log_level": "DEBUG" if verbose else None,
    })
    _configure_logging(settings.log_level)

    output_dir = Path(settings.output_dir)
    if clean:
        try:
            clean_output_dir(output_dir, Path.cwd())
        except MdsiteError as e:
            _fail(str(e))

    try:
        result = run_build(settings)
    except MdsiteError as e:
        _fail(str(e))

    if result.total_failure:
        _fail(f"All {result.discovered} document(s) failed to build")
    for source_path, reason in result.failed:
        typer.echo(f"  skipped: {source_path} ({reason})", err=True)
    typer.echo(
        f"Build complete - "
        f"{len(result.written)} written, "
        f"{len(result.unchanged)} unchanged, "
        f"{len(result.failed)} skipped"
    )


def list_cmd(
    source: Annotated[Optional[str], typer.Option("--source", help="Content directory")] = None,
    ):
    """List posts in index order (newest first, undated last)."""
    settings = _settings(overrides={"source_dir": source})
    _configure_logging(settings.log_level)
    try:
        index = load_index(Path(settings.source_dir))
    except MissingInputError as e:
        _fail(str(e))
    if not index.posts:
        typer.echo("No posts found.")
        raise typer.Exit(1)
    for doc in index.posts:
        published = doc.date
        date = published.date().isoformat() if published else "-" * 10
        title = doc.metadata.get("title") or settings.default_title
        typer.echo(f"{date}  {title}  {doc.url}")


def init_cmd(
    force: Annotated[bool, typer.Option("--force", help="Overwrite existing starter files")] = False,
    ):
    """Create a starter content directory, layouts and a sample post."""
    settings = _settings()
    source_dir = Path(settings.source_dir)
    layouts_dir = Path(settings.layouts_dir)
    files = {
        layouts_dir / "default.html": DEFAULT_LAYOUT,
        layouts_dir / "post.html": POST_LAYOUT,
        source_dir / "index.html": INDEX_PAGE,
        source_dir / "hello-world.md": SAMPLE_POST,
    }
    for path, text in files.items():
        if path.exists() and not force:
            typer.echo(f"  exists: {path}")
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        typer.echo(f"  created: {path}")
    typer.echo(f"Site initialized. Run 'mdsite build' to render into {settings.output_dir}/")
