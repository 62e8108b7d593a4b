"""Normalization of uploader-supplied names into safe object-key suffixes."""

_SKIP_SEGMENTS = {"", ".", ".."}


def sanitize_relative_path(raw: str | None) -> str:
    """Return ``raw`` as a forward-slash relative path without navigation.

    Backslashes count as separators. Empty, ``.`` and ``..`` segments are
    dropped rather than rejected, so the result never escapes its prefix
    and never starts with ``/``. The result may be empty.
    """
    if not raw:
        return ""
    parts = raw.replace("\\", "/").split("/")
    return "/".join(p for p in parts if p.strip() not in _SKIP_SEGMENTS)


def leaf_name(raw: str | None) -> str:
    path = sanitize_relative_path(raw)
    return path.rsplit("/", 1)[-1] if path else ""
