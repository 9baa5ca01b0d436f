"""Site index: posts ordered newest first, pages, and posts grouped by tag"""

from mdsite.core.models import PAGE, ContentDocument, SiteIndex


def build_index(documents: list[ContentDocument]) -> SiteIndex:
    """Build a fresh SiteIndex from every parsed document of a build.

    Posts are sorted by `date` descending; undated posts follow in their
    original order, and ties keep their original order.
    """
    posts = [d for d in documents if d.kind != PAGE]
    pages = tuple(d for d in documents if d.kind == PAGE)

    dated = [(d.date, d) for d in posts]
    ordered = [d for _, d in sorted((p for p in dated if p[0] is not None),
                                    key=lambda p: p[0], reverse=True)]
    ordered += [d for date, d in dated if date is None]

    tags: dict[str, list[ContentDocument]] = {}
    for doc in ordered:
        for tag in dict.fromkeys(doc.tags):
            tags.setdefault(tag, []).append(doc)

    return SiteIndex(
        posts=tuple(ordered),
        pages=pages,
        tags={tag: tuple(tags[tag]) for tag in sorted(tags)},
    )
