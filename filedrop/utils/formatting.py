import math
from datetime import datetime


def human_size(n: int | None) -> str:
    if n is None:
        return "unknown"
    units = ["B", "KB", "MB", "GB", "TB"]
    if n == 0:
        return "0 B"
    p = min(int(math.log(n, 1024)), len(units) - 1)
    if p == 0:
        return f"{n} B"
    return f"{n / (1024 ** p):.2f} {units[p]}"


def remaining_time(expires_at: datetime, now: datetime) -> str:
    """Render the time left until ``expires_at`` as ``"2d 3h 5m"``."""
    remaining = int((expires_at - now).total_seconds())
    if remaining <= 0:
        return "expired"
    days, rest = divmod(remaining, 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes or (not days and not hours):
        parts.append(f"{minutes}m")
    return " ".join(parts)
