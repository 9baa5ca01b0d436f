"""Content document and site index models for the build pipeline"""

import datetime as dt
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path, PurePosixPath
from typing import Any, Optional

from mdsite.core.utils.dates import parse_date


POST = "post"
PAGE = "page"


@dataclass(frozen=True)
class ContentDocument:
    """A discovered content file; a rendered copy carries `rendered` HTML."""
    path:     Path
    source:   str               # POSIX path relative to the source root
    raw:      str               # full file content (includes front matter)
    body:     str               # front matter stripped
    metadata: dict[str, Any] = field(default_factory=dict)
    kind:     str = POST
    rendered: Optional[str] = None

    @property
    def output_name(self) -> str:
        """Relative output path: the source path with an .html extension."""
        return PurePosixPath(self.source).with_suffix(".html").as_posix()

    @property
    def url(self) -> str:
        return "/" + self.output_name

    @cached_property
    def date(self) -> Optional[dt.datetime]:
        return parse_date(self.metadata.get("date"), self.source)

    @property
    def tags(self) -> list[str]:
        tags = self.metadata.get("tags") or []
        if isinstance(tags, str):
            return [t.strip() for t in tags.split(",") if t.strip()]
        return list(tags)


@dataclass(frozen=True)
class SiteIndex:
    """All documents of one build: posts newest first, pages in discovery order."""
    posts: tuple[ContentDocument, ...] = ()
    pages: tuple[ContentDocument, ...] = ()
    tags:  dict[str, tuple[ContentDocument, ...]] = field(default_factory=dict)
