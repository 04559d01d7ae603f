"""HTML index pages for served directories."""
import html
import posixpath
from typing import Iterable, NamedTuple
from urllib.parse import quote

STYLE = """
    body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Helvetica, Arial, sans-serif; padding: 20px; }
    h1 { border-bottom: 2px solid #eee; padding-bottom: 10px; }
    ul { list-style-type: none; padding-left: 0; }
    li { padding: 8px 0; }
    a { text-decoration: none; color: #007bff; }
    a:hover { text-decoration: underline; }
"""


class DirectoryEntry(NamedTuple):
    name: str
    is_dir: bool = False


def parent_path(request_path: str) -> str:
    return posixpath.dirname(request_path.rstrip("/")) or "/"


def _link(href: str, label: str) -> str:
    return f'<li><a href="{html.escape(href)}">{html.escape(label)}</a></li>'


def render_listing(request_path: str, entries: Iterable[DirectoryEntry]) -> str:
    """Render the index page of ``request_path``.

    Entries are sorted by name. Hrefs are URL-quoted and every name is
    HTML-escaped, so file names cannot inject markup. The parent link is left
    out at the root.
    """
    base = request_path.rstrip("/") + "/"
    items = []
    if request_path != "/":
        items.append(_link(quote(parent_path(request_path)), ".. (up)"))
    for entry in sorted(entries, key=lambda e: e.name):
        suffix = "/" if entry.is_dir else ""
        href = quote(base + entry.name, errors="surrogateescape") + suffix
        items.append(_link(href, entry.name + suffix))

    title = html.escape(f"Index of {request_path}")
    list_html = "\n    ".join(items)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
  <style>{STYLE}</style>
</head>
<body>
  <h1>{title}</h1>
  <ul>
    {list_html}
  </ul>
</body>
</html>
"""
