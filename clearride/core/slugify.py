from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")
# ASCII word characters, hyphen, and the Arabic block U+0600..U+06FF.
_DISALLOWED = re.compile(r"[^A-Za-z0-9_\u0600-\u06FF-]+")
_DASH_RUNS = re.compile(r"-{2,}")


def slugify(text: str | None) -> str:
    if not text:
        return ""
    slug = str(text).lower().strip()
    slug = _WHITESPACE.sub("-", slug)
    slug = _DISALLOWED.sub("", slug)
    slug = _DASH_RUNS.sub("-", slug)
    return slug.strip("-")
