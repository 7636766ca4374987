"""Normalise URLs so the same page saved twice compares equal."""

from urllib.parse import urlsplit

_INDEX_SUFFIXES = ("index.html", "index.php")


def _fixup_blogspot(host: str) -> str:
    # Blogspot serves the same blog under a country TLD per reader
    name, sep, _ = host.partition(".blogspot.")
    if sep:
        return f"{name}.blogspot.com"
    return host


def _cleanup_path(path: str) -> str:
    for suffix in _INDEX_SUFFIXES:
        if path.endswith(suffix):
            path = path[: -len(suffix)]
    return path.rstrip("/")


def cleanup_url(url: str) -> str:
    """Canonical form of a URL for matching.

    Forces https, drops "www.", the query string and the fragment, folds
    blogspot country domains into blogspot.com and strips a trailing slash
    or index page. Strings that are not absolute URLs come back unchanged.
    """
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return url
    host = parts.hostname
    if not parts.scheme or not host:
        return url
    if host.startswith("www."):
        host = host[len("www."):]
    return f"https://{_fixup_blogspot(host)}{_cleanup_path(parts.path)}"
