import re
import urllib.parse

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]+")

INLINE_PREFIXES = (
    "text/",
    "image/",
    "audio/",
    "video/",
    "font/",
    "application/pdf",
    "application/json",
    "application/xml",
    "application/javascript",
    "application/font-",
)


def should_display_inline(content_type: str | None) -> bool:
    ctype = (content_type or "").strip().lower()
    return ctype.startswith(INLINE_PREFIXES)


def header_safe_filename(name: str) -> str:
    """ASCII-only, quote-free rendition of ``name`` for ``filename="..."``."""
    cleaned = _CONTROL_CHARS.sub(" ", name).replace('"', "'")
    return "".join(c if ord(c) < 128 else "_" for c in cleaned)


def content_disposition(name: str | None, content_type: str | None) -> str:
    value = name or "download.bin"
    kind = "inline" if should_display_inline(content_type) else "attachment"
    quoted = urllib.parse.quote(value, safe="")
    return f"{kind}; filename=\"{header_safe_filename(value)}\"; filename*=UTF-8''{quoted}"
