"""File discovery and front-matter extraction"""

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from mdsite.core.models import PAGE, POST, ContentDocument


logger = logging.getLogger(__name__)

DELIMITER = "---"
MD_EXTENSIONS = {'.md', '.markdown'}
PAGE_EXTENSIONS = {'.html', '.htm'}
CONTENT_EXTENSIONS = MD_EXTENSIONS | PAGE_EXTENSIONS
LIST_ITEM_RE = re.compile(r'^\s*-\s+(.*)$')


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        return value[1:-1]
    return value


def _parse_list(value: str) -> list[str]:
    """Parse a bracketed `[a, 'b', c]` value into a list of strings."""
    inner = value.strip()[1:-1]
    return [item for item in (_unquote(i) for i in inner.split(",")) if item]


def _normalize(data: dict, source: str) -> dict[str, Any]:
    """Coerce a YAML mapping to string keys with string or list-of-string values."""
    meta: dict[str, Any] = {}
    for key, value in data.items():
        key = str(key).strip()
        if value is None:
            meta[key] = ""
        elif isinstance(value, str):
            meta[key] = value
        elif isinstance(value, list):
            items = [v for v in value if isinstance(v, str)]
            if len(items) != len(value):
                logger.warning("%s: dropped non-scalar items from '%s'", source, key)
            meta[key] = items
        else:
            logger.warning("%s: skipped nested mapping '%s' in front matter", source, key)
    return meta


def _parse_lines(lines: list[str], source: str) -> dict[str, Any]:
    """Line-by-line fallback for blocks that are not valid YAML."""
    meta: dict[str, Any] = {}
    last_key = None
    for lineno, line in enumerate(lines, start=2):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        item = LIST_ITEM_RE.match(line)
        if item and last_key is not None and isinstance(meta[last_key], list):
            meta[last_key].append(_unquote(item.group(1)))
            continue
        if ":" not in stripped:
            logger.warning("%s:%d: skipped malformed front-matter line %r", source, lineno, stripped)
            last_key = None
            continue
        key, value = stripped.split(":", 1)
        key, value = key.strip(), value.strip()
        if not key:
            logger.warning("%s:%d: skipped front-matter line with empty key", source, lineno)
            last_key = None
            continue
        if value.startswith("[") and value.endswith("]"):
            meta[key] = _parse_list(value)
        elif not value:
            meta[key] = []     # may collect `- item` lines; collapsed below if none follow
        else:
            meta[key] = _unquote(value)
        last_key = key
    return {k: ("" if v == [] else v) for k, v in meta.items()}


def parse_front_matter(text: str, source: str = "<string>") -> tuple[dict[str, Any], str]:
    """Return (metadata, body) with the leading `---` delimited block removed.

    Text without a complete block is returned whole with empty metadata.
    """
    text = text.lstrip("\ufeff")
    lines = text.splitlines()
    if not lines or lines[0].strip() != DELIMITER:
        return {}, text

    end = next((i for i in range(1, len(lines)) if lines[i].strip() == DELIMITER), None)
    if end is None:
        return {}, text

    block = lines[1:end]
    body = "\n".join(lines[end + 1:]).lstrip("\n")
    if text.endswith("\n") and body:
        body += "\n"

    try:
        data = yaml.load("\n".join(block), Loader=yaml.BaseLoader)
    except yaml.YAMLError as e:
        logger.warning("%s: front matter is not valid YAML, parsing line by line (%s)",
                       source, str(e).splitlines()[0])
        return _parse_lines(block, source), body
    if data is None:
        return {}, body
    if not isinstance(data, dict):
        logger.warning("%s: front matter is not a mapping, parsing line by line", source)
        return _parse_lines(block, source), body
    return _normalize(data, source), body


def dump_front_matter(metadata: dict[str, Any]) -> str:
    """Serialize metadata into a delimited front-matter block."""
    if not metadata:
        return f"{DELIMITER}\n{DELIMITER}\n"
    # Double-quoted scalars escape newlines, so no emitted line can equal the delimiter
    header = yaml.safe_dump(dict(metadata), default_flow_style=False, default_style='"',
                            allow_unicode=True, sort_keys=False, width=float("inf"))
    return f"{DELIMITER}\n{header}{DELIMITER}\n"


def _is_hidden(path: Path, root: Path) -> bool:
    return any(part.startswith(("_", ".")) for part in path.relative_to(root).parts)


def discover_files(path: Path, extensions: set[str] = CONTENT_EXTENSIONS) -> list[Path]:
    """Return sorted content files under path, or [path] if a single file.

    Names starting with `_` or `.` (layouts, drafts, dotfiles) are skipped.
    """
    if path.is_file():
        return [path] if path.suffix.lower() in extensions else []
    return sorted(
        p for p in path.rglob('*')
        if p.is_file() and p.suffix.lower() in extensions and not _is_hidden(p, path)
    )


def parse_file(path: Path, root: Path) -> ContentDocument:
    """Read a content file into an unrendered ContentDocument."""
    raw = path.read_text(encoding='utf-8')
    source = path.relative_to(root).as_posix() if path != root else path.name
    metadata, body = parse_front_matter(raw, source)
    kind = PAGE if path.suffix.lower() in PAGE_EXTENSIONS else POST
    return ContentDocument(path=path, source=source, raw=raw, body=body, metadata=metadata, kind=kind)
