"""Repository URL resolution."""

from __future__ import annotations

from urllib.parse import quote

# Characters left untouched when escaping; everything else (including "%") is percent-encoded.
_URL_SAFE = "-_.!~*'();/?:@&=+$,[]"


def resolve_target(path: str = "", *, url: str, root_url: str) -> str:
    """
    Build the escaped URL for ``path``.

    Absolute paths (leading ``/``) are resolved against ``root_url``, relative
    ones against ``url``. A single trailing slash is removed because the client
    library rejects non-canonical URLs.
    """

    path = path or ""
    base = root_url if path.startswith("/") else url
    joined = f"{base.rstrip('/')}/{path.lstrip('/')}" if path else base
    if joined.endswith("/"):
        joined = joined[:-1]
    return quote(joined, safe=_URL_SAFE)
