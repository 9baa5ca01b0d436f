"""Page composition: template contexts, layout loading and nested layout rendering"""

import logging
from collections import ChainMap
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

from mdsite.core.errors import RenderError
from mdsite.core.models import PAGE, ContentDocument, SiteIndex
from mdsite.core.parse import parse_front_matter
from mdsite.core.render import first_paragraph_text, render_markdown
from mdsite.core.template import Node, parse_template, render_nodes, render_template
from mdsite.core.utils.slug import slugify


logger = logging.getLogger(__name__)

NO_LAYOUT = {"none", "null", "false"}


@dataclass(frozen=True)
class Layout:
    """A parsed layout template; `parent` names the layout it is wrapped in."""
    name:     str
    nodes:    tuple[Node, ...]
    metadata: dict[str, Any]
    parent:   Optional[str] = None


class Layouts:
    """Read-only, lazily parsed set of named layouts from one directory."""

    def __init__(self, layouts_dir: Path):
        self.layouts_dir = layouts_dir
        self._cache: dict[str, Optional[Layout]] = {}

    def get(self, name: str) -> Optional[Layout]:
        """Return the parsed layout called name, or None if no such file exists."""
        if name not in self._cache:
            self._cache[name] = self._load(name)
        return self._cache[name]

    def _load(self, name: str) -> Optional[Layout]:
        path = self.layouts_dir / f"{name}.html"
        if not path.is_file():
            return None
        source = f"{self.layouts_dir.name}/{path.name}"
        metadata, body = parse_front_matter(path.read_text(encoding="utf-8"), source)
        parent = metadata.get("layout") or None
        return Layout(name=name, nodes=parse_template(body, source), metadata=metadata,
                      parent=parent if isinstance(parent, str) else None)


def page_context(document: ContentDocument, default_title: str = "Untitled",
                 preset: str = 'gfm-like') -> dict[str, Any]:
    """Flatten a document into the mapping templates see as `page` or `post`."""
    meta = document.metadata
    summary = meta.get("summary") or ""
    if not summary and document.kind != PAGE:
        try:
            summary = first_paragraph_text(document.body, preset)
        except RenderError as e:
            logger.warning("%s: no summary, %s", document.source, e)
    return {
        **meta,
        "title":   meta.get("title") or default_title,
        "date":    meta.get("date") or "",
        "tags":    document.tags,
        "summary": summary,
        "url":     document.url,
        "source":  document.source,
        "kind":    document.kind,
    }


def site_context(index: SiteIndex, title: str = "", description: str = "", base_url: str = "",
                 default_title: str = "Untitled", preset: str = 'gfm-like') -> dict[str, Any]:
    """Build the `site` mapping shared by every page of one build."""
    pages_by_source = {}

    def ctx(doc: ContentDocument) -> dict[str, Any]:
        if doc.source not in pages_by_source:
            pages_by_source[doc.source] = page_context(doc, default_title, preset)
        return pages_by_source[doc.source]

    return {
        "title":       title,
        "description": description,
        "url":         base_url.rstrip("/"),
        "posts":       [ctx(d) for d in index.posts],
        "pages":       [ctx(d) for d in index.pages],
        "tags":        [{"name": tag, "slug": slugify(tag), "posts": [ctx(d) for d in docs]}
                        for tag, docs in index.tags.items()],
    }


def _context(document: ContentDocument, site: dict, default_title: str, preset: str) -> ChainMap:
    page = page_context(document, default_title, preset)
    return ChainMap({"page": page, "site": site}, {"title": page["title"]}, document.metadata)


def render_document(document: ContentDocument, site: dict, default_title: str = "Untitled",
                    preset: str = 'gfm-like') -> ContentDocument:
    """Return a copy of document with its body rendered to HTML.

    Markdown posts go through the Markdown renderer; HTML pages are evaluated
    as templates, which is how listing pages iterate `site.posts`.
    """
    if document.kind == PAGE:
        html = render_template(document.body, _context(document, site, default_title, preset), document.source)
    else:
        html = render_markdown(document.body, preset)
    return replace(document, rendered=html)


def compose_page(document: ContentDocument, layouts: Layouts, site: dict,
                 default_layout: str = "default", default_title: str = "Untitled",
                 preset: str = 'gfm-like') -> str:
    """Wrap a rendered document in its layout chain and return the final HTML."""
    if document.rendered is None:
        raise RenderError(f"{document.source}: document has not been rendered")

    context = _context(document, site, default_title, preset)
    name = document.metadata.get("layout") or default_layout
    if not isinstance(name, str):
        logger.warning("%s: layout must be a single name, using '%s'", document.source, default_layout)
        name = default_layout

    output = document.rendered
    seen: set[str] = set()
    while name and name.lower() not in NO_LAYOUT:
        if name in seen:
            logger.warning("%s: layout cycle at '%s', stopping", document.source, name)
            break
        seen.add(name)
        layout = layouts.get(name)
        if layout is None:
            logger.warning("%s: layout '%s' not found, writing bare content", document.source, name)
            break
        scope = context.new_child({"content": output, "layout": layout.metadata})
        output = render_nodes(layout.nodes, scope, f"{name}.html")
        name = layout.parent
    return output


def output_path(document: ContentDocument, output_dir: Path) -> Path:
    """Mirror the document's source path under output_dir with an .html suffix."""
    return output_dir / document.output_name
