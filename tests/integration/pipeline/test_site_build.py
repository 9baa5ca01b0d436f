"""Integration tests for the discover -> index -> render -> compose -> write pipeline.

The `site` fixture (tests/conftest.py) lays out:

    _layouts/default.html     base layout, prints {{ title }} and {{ content }}
    _layouts/post.html        wraps posts, parent layout: default
    content/index.html        listing page iterating site.posts
    content/posts/alpha.md    2025-01-01
    content/posts/beta.md     2025-06-01, includes a code fence with template syntax
    content/posts/undated.md  no front matter
    static/css/site.css
"""

from pathlib import Path

import pytest

from mdsite.core.errors import ConfigError, MdsiteError, MissingInputError
from mdsite.core.pipeline import clean_output_dir, load_index, run_build, write_if_changed


def _snapshot(root: Path) -> dict[str, bytes]:
    return {p.relative_to(root).as_posix(): p.read_bytes() for p in sorted(root.rglob("*")) if p.is_file()}


def test_build_writes_mirrored_tree(site):
    """Every content file produces an .html file at the mirrored path."""
    result = run_build(site)
    out = Path(site.output_dir)
    assert result.failed == []
    assert result.discovered == 4
    assert sorted(_snapshot(out)) == [
        "css/site.css",
        "index.html",
        "posts/alpha.html",
        "posts/beta.html",
        "posts/undated.html",
    ]


def test_index_lists_posts_newest_first(site):
    """The listing page orders Beta, Alpha, then the undated post."""
    run_build(site)
    html = (Path(site.output_dir) / "index.html").read_text()
    assert "<title>Home</title>" in html
    beta = html.index('<a href="/posts/beta.html">Beta</a>')
    alpha = html.index('<a href="/posts/alpha.html">Alpha</a>')
    undated = html.index('<a href="/posts/undated.html">Untitled</a>')
    assert beta < alpha < undated


def test_post_uses_nested_layout(site):
    """Posts are wrapped by post.html and then default.html."""
    run_build(site)
    html = (Path(site.output_dir) / "posts" / "alpha.html").read_text()
    assert html.startswith("<html><head><title>Alpha</title></head>")
    assert "<article><h1>Alpha</h1><p>Alpha body.</p>\n</article>" in html


def test_code_fence_template_syntax_is_literal(site):
    """Template tags inside a post's code fence are not evaluated."""
    run_build(site)
    html = (Path(site.output_dir) / "posts" / "beta.html").read_text()
    assert "print(&quot;{{ site.title }}&quot;)" in html


def test_document_without_front_matter_gets_defaults(site):
    """A post with no metadata renders with the default layout and title."""
    run_build(site)
    html = (Path(site.output_dir) / "posts" / "undated.html").read_text()
    assert "<title>Untitled</title>" in html
    assert "<h1>No front matter</h1>" in html
    assert "<article>" not in html


def test_build_is_idempotent(site):
    """A second build on unchanged input writes nothing and yields identical bytes."""
    run_build(site)
    first = _snapshot(Path(site.output_dir))
    result = run_build(site)
    assert result.written == []
    assert len(result.unchanged) == 4
    assert _snapshot(Path(site.output_dir)) == first


def test_failing_documents_are_isolated(site, caplog):
    """Undecodable files and broken layouts skip only the affected documents."""
    content = Path(site.source_dir)
    (content / "bad.md").write_bytes(b"\xff\xfe not utf-8")
    (Path(site.layouts_dir) / "broken.html").write_text("{% if x %}unclosed")
    (content / "uses-broken.md").write_text("---\nlayout: broken\n---\nBody\n")

    result = run_build(site)

    failed = {source for source, _ in result.failed}
    assert failed == {"bad.md", "uses-broken.md"}
    assert not result.total_failure
    out = Path(site.output_dir)
    assert (out / "posts" / "alpha.html").exists()
    assert not (out / "uses-broken.html").exists()
    assert "2 of 6 document(s) failed" in caplog.text


def test_malformed_metadata_is_recovered(site):
    """A post with a malformed front-matter line still builds with its valid keys."""
    (Path(site.source_dir) / "odd.md").write_text("---\ntitle: Odd\nnot a pair\nlayout: post\n---\nText\n")
    result = run_build(site)
    assert result.failed == []
    html = (Path(site.output_dir) / "odd.html").read_text()
    assert "<h1>Odd</h1>" in html


def test_missing_source_dir_is_fatal(site):
    """A missing content directory raises MissingInputError."""
    with pytest.raises(MissingInputError, match="Source directory"):
        run_build(site.model_copy(update={"source_dir": "nowhere"}))


def test_missing_layouts_dir_is_fatal(site):
    """A missing layouts directory raises MissingInputError."""
    with pytest.raises(MissingInputError, match="Layouts directory"):
        run_build(site.model_copy(update={"layouts_dir": "nowhere"}))


def test_load_index_without_rendering(site):
    """load_index returns the ordered posts of a source tree."""
    index = load_index(Path(site.source_dir))
    assert [d.source for d in index.posts] == ["posts/beta.md", "posts/alpha.md", "posts/undated.md"]
    assert [d.source for d in index.pages] == ["index.html"]


def test_clean_output_dir(site, tmp_path):
    """clean_output_dir removes the output tree but refuses the project root."""
    run_build(site)
    with pytest.raises(MdsiteError, match="project root"):
        clean_output_dir(tmp_path, tmp_path)
    clean_output_dir(Path(site.output_dir), tmp_path)
    assert not Path(site.output_dir).exists()


def test_sources_sharing_an_output_path(site, caplog):
    """The first source claims an output path; a later one is skipped with a warning."""
    (Path(site.source_dir) / "posts" / "alpha.html").write_text("<p>page {{ title }}</p>\n")

    result = run_build(site)

    assert result.failed == [("posts/alpha.md", "output posts/alpha.html already produced by posts/alpha.html")]
    html = (Path(site.output_dir) / "posts" / "alpha.html").read_text()
    assert "<p>page Untitled</p>" in html
    assert "already produced by posts/alpha.html" in caplog.text

    second = run_build(site)
    assert second.written == []
    assert len(second.unchanged) == 4


def test_static_file_does_not_replace_generated_page(site, caplog):
    """A static asset at a generated page's path is skipped."""
    (Path(site.static_dir) / "index.html").write_text("STATIC")

    run_build(site)

    html = (Path(site.output_dir) / "index.html").read_text()
    assert "STATIC" not in html
    assert '<a href="/posts/beta.html">Beta</a>' in html
    assert "collides with a generated page" in caplog.text


def test_static_copy_error_skips_only_that_file(site, caplog):
    """A static file that cannot be copied is logged; other assets still copy."""
    out = Path(site.output_dir)
    out.mkdir()
    (out / "assets").write_text("a file where a directory is needed")
    (Path(site.static_dir) / "assets").mkdir()
    (Path(site.static_dir) / "assets" / "app.js").write_text("// js\n")

    result = run_build(site)

    assert result.failed == []
    assert (out / "css" / "site.css").exists()
    assert "Could not copy static file" in caplog.text


def test_unknown_parser_preset_is_fatal(site):
    """An unknown markdown preset stops the build before any output is written."""
    with pytest.raises(ConfigError, match="no-such-preset"):
        run_build(site.model_copy(update={"parser_config": "no-such-preset"}))
    assert not Path(site.output_dir).exists()


def test_write_if_changed(tmp_path):
    """Identical bytes are left alone; different or undecodable content is replaced."""
    f = tmp_path / "page.html"
    assert write_if_changed(f, "<p>é</p>")
    assert not write_if_changed(f, "<p>é</p>")
    f.write_bytes(b"\xff\xfe")
    assert write_if_changed(f, "<p>é</p>")
    assert f.read_text(encoding="utf-8") == "<p>é</p>"
