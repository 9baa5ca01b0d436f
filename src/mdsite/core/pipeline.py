"""Build orchestration: discover, parse, index, render, compose and write"""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from mdsite.config import Settings
from mdsite.core.compose import Layouts, compose_page, output_path, render_document, site_context
from mdsite.core.errors import ConfigError, MdsiteError, MissingInputError, RenderError
from mdsite.core.index import build_index
from mdsite.core.models import ContentDocument, SiteIndex
from mdsite.core.parse import discover_files, parse_file
from mdsite.core.render import render_markdown


logger = logging.getLogger(__name__)

# Per-document failures that are logged and skipped instead of aborting the build
DOCUMENT_ERRORS = (MdsiteError, OSError, ValueError)


@dataclass
class BuildResult:
    """Outcome of one build run."""
    discovered: int = 0
    written:    list[Path] = field(default_factory=list)
    unchanged:  list[Path] = field(default_factory=list)
    failed:     list[tuple[str, str]] = field(default_factory=list)   # (source, reason)

    @property
    def total_failure(self) -> bool:
        return self.discovered > 0 and len(self.failed) >= self.discovered


def write_if_changed(path: Path, text: str) -> bool:
    """Write text to path unless the file already holds identical content."""
    data = text.encode("utf-8")
    if path.is_file() and path.read_bytes() == data:
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return True


def copy_static(static_dir: Path, output_dir: Path, reserved: frozenset[Path] = frozenset()) -> int:
    """Mirror static assets into output_dir, skipping identical files. Returns files copied.

    Assets whose destination is in `reserved` (generated pages) are not copied.
    """
    copied = 0
    for src in sorted(p for p in static_dir.rglob("*") if p.is_file()):
        dest = output_dir / src.relative_to(static_dir)
        if dest in reserved:
            logger.warning("Static file %s collides with a generated page, skipped", src)
            continue
        try:
            if dest.is_file() and dest.read_bytes() == src.read_bytes():
                continue
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dest)
        except OSError as e:
            logger.warning("Could not copy static file %s: %s", src, e)
            continue
        copied += 1
    return copied


def clean_output_dir(output_dir: Path, project_root: Path) -> None:
    """Remove a previous output tree, refusing the project root or anything outside it."""
    if not output_dir.exists():
        return
    output_resolved = output_dir.resolve()
    root_resolved = project_root.resolve()
    if output_resolved == root_resolved:
        raise MdsiteError("Refusing to clean project root.")
    if not output_resolved.is_relative_to(root_resolved):
        raise MdsiteError(f"Refusing to clean output directory outside project root: {output_dir}")
    shutil.rmtree(output_dir)


def load_documents(source_dir: Path, result: Optional[BuildResult] = None) -> list[ContentDocument]:
    """Discover and parse every content file, skipping unreadable ones."""
    if not source_dir.exists():
        raise MissingInputError(f"Source directory not found: {source_dir}")
    root = source_dir if source_dir.is_dir() else source_dir.parent
    docs = []
    files = discover_files(source_dir)
    if result is not None:
        result.discovered = len(files)
    for p in files:
        try:
            docs.append(parse_file(p, root))
        except DOCUMENT_ERRORS as e:
            logger.warning("Skipping %s: %s", p, e)
            if result is not None:
                result.failed.append((p.relative_to(root).as_posix(), str(e)))
    return docs


def load_index(source_dir: Path) -> SiteIndex:
    """Parse source_dir and return its SiteIndex without rendering anything."""
    return build_index(load_documents(source_dir))


def run_build(settings: Settings) -> BuildResult:
    """Build the whole site described by settings.

    Raises MissingInputError when the source or layouts directory is absent,
    and ConfigError when the Markdown preset is unknown. Every other failure
    is confined to the document that caused it.
    """
    source_dir = Path(settings.source_dir)
    layouts_dir = Path(settings.layouts_dir)
    output_dir = Path(settings.output_dir)
    if not layouts_dir.is_dir():
        raise MissingInputError(f"Layouts directory not found: {layouts_dir}")
    try:
        render_markdown("", settings.parser_config)
    except RenderError as e:
        raise ConfigError(f"Invalid parser_config: {e}") from e

    result = BuildResult()
    documents = load_documents(source_dir, result)
    index = build_index(documents)
    site = site_context(
        index,
        title=settings.site_title,
        description=settings.site_description,
        base_url=settings.base_url,
        default_title=settings.default_title,
        preset=settings.parser_config,
    )
    layouts = Layouts(layouts_dir)
    logger.debug("Indexed %d post(s) and %d page(s)", len(index.posts), len(index.pages))

    claimed: dict[Path, str] = {}
    for doc in documents:
        dest = output_path(doc, output_dir)
        if dest in claimed:
            reason = f"output {doc.output_name} already produced by {claimed[dest]}"
            logger.warning("Skipping %s: %s", doc.source, reason)
            result.failed.append((doc.source, reason))
            continue
        claimed[dest] = doc.source
        try:
            rendered = render_document(doc, site, settings.default_title, settings.parser_config)
            html = compose_page(
                rendered, layouts, site,
                default_layout=settings.default_layout,
                default_title=settings.default_title,
                preset=settings.parser_config,
            )
            changed = write_if_changed(dest, html)
        except DOCUMENT_ERRORS as e:
            logger.warning("Skipping %s: %s", doc.source, e)
            result.failed.append((doc.source, str(e)))
            continue
        (result.written if changed else result.unchanged).append(dest)
        logger.debug("%s -> %s (%s)", doc.source, dest, "written" if changed else "unchanged")

    static_dir = Path(settings.static_dir) if settings.static_dir else None
    if static_dir and static_dir.is_dir():
        copied = copy_static(static_dir, output_dir, frozenset(claimed))
        logger.debug("Copied %d static file(s) from %s", copied, static_dir)

    if result.failed:
        logger.warning("%d of %d document(s) failed and were skipped: %s",
                       len(result.failed), result.discovered,
                       ", ".join(source for source, _ in result.failed))
    logger.info("Built %d page(s) into %s (%d written, %d unchanged)",
                len(result.written) + len(result.unchanged), output_dir,
                len(result.written), len(result.unchanged))
    return result
