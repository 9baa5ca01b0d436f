"""Starter files written by `mdsite init`"""

DEFAULT_LAYOUT = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{{ title | escape }}{% if site.title %} | {{ site.title | escape }}{% endif %}</title>
</head>
<body>
  <header><a href="/index.html">{{ site.title | default: "Home" }}</a></header>
  <main>
{{ content }}
  </main>
</body>
</html>
"""

POST_LAYOUT = """\
---
layout: default
---
<article>
  <h1>{{ page.title | escape }}</h1>
  {% if page.date %}<time>{{ page.date | date: "%Y-%m-%d" }}</time>{% endif %}
  {% if page.tags %}<p class="tags">{{ page.tags | join: ", " }}</p>{% endif %}
{{ content }}
</article>
"""

INDEX_PAGE = """\
---
title: Home
---
<ul class="posts">
{% for post in site.posts %}  <li><a href="{{ post.url }}">{{ post.title | escape }}</a> <small>{{ post.date }}</small><p>{{ post.summary }}</p></li>
{% endfor %}</ul>
"""

SAMPLE_POST = """\
---
title: Hello World
layout: post
date: 2025-01-01
tags: [welcome]
---

This is the first post. Edit or delete it, then run `mdsite build`.
"""
