"""Minimal template language: text, variable, loop and conditional nodes.

Syntax understood by `parse_template`:

    {{ page.title }}                     variable, dotted lookup
    {{ page.title | escape }}            variable with filters
    {% for post in site.posts limit:5 %} ... {% endfor %}
    {% if page.summary %} ... {% else %} ... {% endif %}

Unresolved variables render as an empty string and log a warning.
"""

import html
import logging
import re
from collections import ChainMap
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from mdsite.core.errors import TemplateSyntaxError
from mdsite.core.utils.dates import parse_date


logger = logging.getLogger(__name__)

TAG_RE = re.compile(r'({{.*?}}|{%.*?%})', re.DOTALL)
PATH_RE = re.compile(r'^\s*([A-Za-z_][\w]*(?:\.[\w]+)*)\s*')
FILTER_RE = re.compile(r'\|\s*(\w+)\s*(?::\s*("[^"]*"|\'[^\']*\'|[^|]*?))?\s*(?=\||$)')
FOR_RE = re.compile(r'^for\s+(\w+)\s+in\s+([\w.]+)(?:\s+limit\s*:\s*(\d+))?$')
IF_RE = re.compile(r'^if\s+([\w.]+)$')

_MISSING = object()


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Var:
    path:    str
    filters: tuple[tuple[str, Optional[str]], ...] = ()


@dataclass(frozen=True)
class For:
    var:   str
    path:  str
    body:  tuple["Node", ...]
    limit: Optional[int] = None


@dataclass(frozen=True)
class If:
    path:   str
    body:   tuple["Node", ...]
    orelse: tuple["Node", ...] = ()


Node = Union[Text, Var, For, If]


# --- filters ---

def _join(value: Any, arg: Optional[str]) -> str:
    sep = ", " if arg is None else arg
    if isinstance(value, (list, tuple)):
        return sep.join(to_text(v) for v in value)
    return to_text(value)


def _date(value: Any, arg: Optional[str]) -> str:
    parsed = parse_date(value)
    return parsed.strftime(arg or "%b %d, %Y") if parsed else to_text(value)


def _default(value: Any, arg: Optional[str]) -> Any:
    return value if value not in (None, "", [], ()) else (arg or "")


def _size(value: Any, arg: Optional[str]) -> int:
    try:
        return len(value)
    except TypeError:
        return 0


FILTERS: dict[str, Callable[[Any, Optional[str]], Any]] = {
    'escape':   lambda v, _: html.escape(to_text(v)),
    'upcase':   lambda v, _: to_text(v).upper(),
    'downcase': lambda v, _: to_text(v).lower(),
    'join':     _join,
    'date':     _date,
    'default':  _default,
    'size':     _size,
}


def to_text(value: Any) -> str:
    """Render a context value as template output."""
    if value is None or value is _MISSING:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ", ".join(to_text(v) for v in value)
    if isinstance(value, Mapping):
        return ""
    return str(value)


# --- parsing ---

def _parse_var(expr: str, name: str) -> Var:
    m = PATH_RE.match(expr)
    if not m:
        raise TemplateSyntaxError(f"invalid expression {{{{{expr}}}}}", name)
    rest = expr[m.end():].strip()
    filters = []
    pos = 0
    while pos < len(rest):
        fm = FILTER_RE.match(rest, pos)
        if not fm:
            raise TemplateSyntaxError(f"invalid filter in {{{{{expr}}}}}", name)
        arg = fm.group(2)
        if arg is not None:
            arg = arg.strip()
            if len(arg) >= 2 and arg[0] == arg[-1] and arg[0] in "'\"":
                arg = arg[1:-1]
        filters.append((fm.group(1), arg))
        pos = fm.end()
    return Var(path=m.group(1), filters=tuple(filters))


def parse_template(source: str, name: str = "<string>") -> tuple[Node, ...]:
    """Parse template source into a tuple of nodes."""
    # Each frame: (opening tag, node list being filled, frame data)
    root: list = []
    stack: list[tuple[str, list, dict]] = []
    current = root

    for piece in TAG_RE.split(source):
        if not piece:
            continue
        if piece.startswith("{{"):
            current.append(_parse_var(piece[2:-2], name))
            continue
        if not piece.startswith("{%"):
            current.append(Text(piece))
            continue

        tag = piece[2:-2].strip()
        if m := FOR_RE.match(tag):
            data = {"var": m.group(1), "path": m.group(2),
                    "limit": int(m.group(3)) if m.group(3) else None}
            stack.append(("for", current, data))
            current = []
        elif m := IF_RE.match(tag):
            stack.append(("if", current, {"path": m.group(1), "body": None}))
            current = []
        elif tag == "else":
            if not stack or stack[-1][0] != "if" or stack[-1][2]["body"] is not None:
                raise TemplateSyntaxError("unexpected {% else %}", name)
            stack[-1][2]["body"] = current
            current = []
        elif tag in ("endfor", "endif"):
            if not stack or stack[-1][0] != tag[3:]:
                raise TemplateSyntaxError(f"unexpected {{% {tag} %}}", name)
            kind, parent, data = stack.pop()
            if kind == "for":
                node = For(var=data["var"], path=data["path"], body=tuple(current), limit=data["limit"])
            elif data["body"] is None:
                node = If(path=data["path"], body=tuple(current))
            else:
                node = If(path=data["path"], body=tuple(data["body"]), orelse=tuple(current))
            parent.append(node)
            current = parent
        else:
            raise TemplateSyntaxError(f"unknown tag {{% {tag} %}}", name)

    if stack:
        raise TemplateSyntaxError(f"unclosed {{% {stack[-1][0]} %}}", name)
    return tuple(root)


# --- evaluation ---

def lookup(context: Mapping, path: str) -> Any:
    """Resolve a dotted path against nested mappings, sequences and attributes."""
    value: Any = context
    for part in path.split("."):
        if isinstance(value, Mapping):
            value = value.get(part, _MISSING)
        elif isinstance(value, (list, tuple)) and part.isdigit():
            index = int(part)
            value = value[index] if index < len(value) else _MISSING
        elif not part.startswith("_") and hasattr(value, part):
            value = getattr(value, part)
        else:
            value = _MISSING
        if value is _MISSING:
            return _MISSING
    return value


def _truthy(value: Any) -> bool:
    if value is _MISSING or value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() not in ("", "false")
    return bool(value)


def render_nodes(nodes: tuple[Node, ...], context: Mapping, name: str = "<string>") -> str:
    """Evaluate nodes against context and return the rendered text."""
    out: list[str] = []
    for node in nodes:
        if isinstance(node, Text):
            out.append(node.text)
        elif isinstance(node, Var):
            value = lookup(context, node.path)
            if value is _MISSING:
                logger.warning("%s: unresolved placeholder '%s'", name, node.path)
                value = None
            for fname, arg in node.filters:
                func = FILTERS.get(fname)
                if func is None:
                    logger.warning("%s: unknown filter '%s'", name, fname)
                    continue
                value = func(value, arg)
            out.append(to_text(value))
        elif isinstance(node, For):
            items = lookup(context, node.path)
            if items is _MISSING:
                logger.warning("%s: unresolved loop collection '%s'", name, node.path)
                continue
            if not isinstance(items, (list, tuple)):
                logger.warning("%s: '%s' is not a list, loop skipped", name, node.path)
                continue
            items = items[:node.limit] if node.limit is not None else items
            for i, item in enumerate(items):
                forloop = {"index": i + 1, "index0": i, "first": i == 0,
                           "last": i == len(items) - 1, "length": len(items)}
                scope = ChainMap({node.var: item, "forloop": forloop}, context)
                out.append(render_nodes(node.body, scope, name))
        elif isinstance(node, If):
            branch = node.body if _truthy(lookup(context, node.path)) else node.orelse
            out.append(render_nodes(branch, context, name))
    return "".join(out)


def render_template(source: str, context: Mapping, name: str = "<string>") -> str:
    """Parse and render template source in one step."""
    return render_nodes(parse_template(source, name), context, name)
