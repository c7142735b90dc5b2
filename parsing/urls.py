"""URL helpers that edit query strings without re-encoding untouched parts.

``urlencode`` would rewrite ``family=Roboto:wght@400;700`` into percent
escapes; these helpers only touch the parameter being changed.
"""

from __future__ import annotations

import posixpath
from urllib.parse import parse_qs, quote, urlsplit, urlunsplit


def is_data_uri(url: str) -> bool:
    return url.strip().lower().startswith("data:")


def host_of(url: str) -> str:
    """Return the lowercase host of an absolute or protocol-relative URL ("" otherwise)."""
    try:
        return (urlsplit(url.strip()).hostname or "").lower()
    except ValueError:
        return ""


def host_matches(host: str, domain: str) -> bool:
    """True when *host* is *domain* or one of its subdomains."""
    return host == domain or host.endswith("." + domain)


def origin_of(url: str) -> str | None:
    """Return ``scheme://host[:port]`` for external http(s) URLs, else None.

    Protocol-relative URLs are treated as https.
    """
    url = url.strip()
    if url.startswith("//"):
        url = "https:" + url
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc.lower()}"


def path_extension(url: str) -> str:
    """Return the lowercase file extension of the URL path, without the dot."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return ""
    return posixpath.splitext(path)[1].lstrip(".").lower()


def path_basename(url: str) -> str:
    try:
        return posixpath.basename(urlsplit(url).path)
    except ValueError:
        return ""


def get_query_param(url: str, key: str) -> str | None:
    """Return the first value of *key* in the query string, or None."""
    try:
        values = parse_qs(urlsplit(url).query, keep_blank_values=True).get(key)
    except ValueError:
        return None
    return values[0] if values else None


def set_query_param(url: str, key: str, value: str) -> str:
    """Set *key* to *value*, replacing existing occurrences, keeping other pairs verbatim."""
    parts = urlsplit(url)
    pairs = [pair for pair in parts.query.split("&") if pair] if parts.query else []
    encoded = f"{quote(key, safe='')}={quote(value, safe='')}"
    updated: list[str] = []
    replaced = False
    for pair in pairs:
        if pair.split("=", 1)[0] == key:
            if not replaced:
                updated.append(encoded)
                replaced = True
            continue
        updated.append(pair)
    if not replaced:
        updated.append(encoded)
    return urlunsplit(parts._replace(query="&".join(updated)))
