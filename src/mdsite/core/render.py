"""Markdown-to-HTML rendering via markdown-it"""

from functools import lru_cache

from markdown_it import MarkdownIt

from mdsite.core.errors import RenderError


@lru_cache(maxsize=None)
def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"linkify": False})


def _parse(body: str, preset: str) -> tuple[MarkdownIt, list]:
    """Return (parser, token stream) for body, wrapping failures in RenderError."""
    try:
        md = _make_parser(preset)
    except KeyError as e:
        raise RenderError(f"Unknown markdown preset: {preset}") from e
    try:
        return md, md.parse(body)
    except Exception as e:
        raise RenderError(f"Markdown parse failed: {e}") from e


def render_markdown(body: str, preset: str = 'gfm-like') -> str:
    """Render a Markdown body to an HTML fragment.

    Fenced code is escaped verbatim; malformed markup falls through as text.
    """
    md, tokens = _parse(body, preset)
    try:
        return md.renderer.render(tokens, md.options, {})
    except Exception as e:
        raise RenderError(f"Markdown render failed: {e}") from e


def first_paragraph_text(body: str, preset: str = 'gfm-like') -> str:
    """Return the plain text of the first top-level paragraph, or ''."""
    _, tokens = _parse(body, preset)
    for i, tok in enumerate(tokens):
        if tok.type != 'paragraph_open' or tok.level != 0:
            continue
        parts = []
        for child in tokens[i + 1].children or []:
            if child.type in ('text', 'code_inline'):
                parts.append(child.content)
            elif child.type in ('softbreak', 'hardbreak'):
                parts.append(' ')
        return ''.join(parts).strip()
    return ''
