"""Shared fixtures for core unit tests"""

from pathlib import Path

import pytest

from mdsite.core.compose import Layouts
from mdsite.core.models import POST, ContentDocument


SAMPLE_MD = """\
# Heading 1

A paragraph with **bold** text.

## Heading 2

- item one
- item two

```python
print("<hello>")
```

| a | b |
|---|---|
| 1 | 2 |

> quoted
"""


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD


def make_doc(source: str, kind: str = POST, body: str = "", **metadata) -> ContentDocument:
    """Build an in-memory ContentDocument without touching the filesystem."""
    return ContentDocument(path=Path(source), source=source, raw=body, body=body,
                           metadata=metadata, kind=kind)


@pytest.fixture(name="make_doc")
def make_doc_fixture():
    return make_doc


@pytest.fixture(name="layouts")
def layouts_fixture(tmp_path):
    """A layouts directory with a base layout and a nested post layout."""
    d = tmp_path / "_layouts"
    d.mkdir()
    (d / "default.html").write_text("<html><title>{{ title }}</title>{{ content }}</html>")
    (d / "post.html").write_text("---\nlayout: default\n---\n<article>{{ content }}</article>")
    (d / "a.html").write_text("---\nlayout: b\n---\nA[{{ content }}]")
    (d / "b.html").write_text("---\nlayout: a\n---\nB[{{ content }}]")
    (d / "broken.html").write_text("{% for x in y %}never closed")
    return Layouts(d)
