"""Root test configuration — a small on-disk site shared by integration tests"""

from pathlib import Path

import pytest

from mdsite.config import Settings


DEFAULT_LAYOUT = """\
<html><head><title>{{ title }}</title></head>
<body>{{ content }}</body></html>
"""

POST_LAYOUT = """\
---
layout: default
---
<article><h1>{{ page.title }}</h1>{{ content }}</article>
"""

INDEX_PAGE = """\
---
title: Home
---
<ul>
{% for post in site.posts %}<li><a href="{{ post.url }}">{{ post.title }}</a></li>
{% endfor %}</ul>
"""

ALPHA = """\
---
title: Alpha
layout: post
date: 2025-01-01
tags: [tcp]
---

Alpha body.
"""

BETA = """\
---
title: Beta
layout: post
date: 2025-06-01
tags: [tcp, udp]
---

Beta body.

```python
print("{{ site.title }}")
```
"""

UNDATED = """\
# No front matter

Just a body.
"""


def write_site(root: Path) -> Settings:
    """Create content, layouts and static files under root; return matching Settings."""
    files = {
        "_layouts/default.html": DEFAULT_LAYOUT,
        "_layouts/post.html": POST_LAYOUT,
        "content/index.html": INDEX_PAGE,
        "content/posts/alpha.md": ALPHA,
        "content/posts/beta.md": BETA,
        "content/posts/undated.md": UNDATED,
        "static/css/site.css": "body { margin: 0; }\n",
    }
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return Settings(
        site_title="Notes",
        source_dir=str(root / "content"),
        layouts_dir=str(root / "_layouts"),
        static_dir=str(root / "static"),
        output_dir=str(root / "_site"),
    )


@pytest.fixture(name="site")
def site_fixture(tmp_path, monkeypatch) -> Settings:
    """A complete site in tmp_path (also the working directory)."""
    monkeypatch.chdir(tmp_path)
    return write_site(tmp_path)
