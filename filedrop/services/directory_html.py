from __future__ import annotations

import html
from typing import Sequence

from filedrop.models.upload import Upload
from filedrop.utils.formatting import human_size
from filedrop.utils.timeutils import isoformat_z
from filedrop.utils.urls import file_url


def render_directory_listing(group_id: str, members: Sequence[Upload], base_url: str) -> str:
    """Build the HTML index page for a group from metadata alone."""
    safe_group = html.escape(group_id)
    total = sum(m.size or 0 for m in members)
    expires_at = next((m.expires_at for m in members if m.expires_at is not None), None)

    rows = []
    for m in members:
        label = html.escape(m.relative_path or m.original_name)
        href = html.escape(file_url(base_url, m.file_id), quote=True)
        rows.append(
            f'      <li><a href="{href}">{label}</a>'
            f'<span class="size">{human_size(m.size)}</span></li>'
        )

    expiry = ""
    if expires_at is not None:
        expiry = f'\n      <p class="meta">Expires: {html.escape(isoformat_z(expires_at))}</p>'

    listing = "\n".join(rows)
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Index of {safe_group}</title>
  <style>
    :root {{ --bg:#0b0d10; --card:#151a20; --fg:#e7edf3; --muted:#9fb0c3; --link:#6aa8ff; }}
    body {{ margin:0; background:var(--bg); color:var(--fg); font-family: ui-sans-serif, system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial; }}
    .wrap {{ max-width:820px; margin:0 auto; padding:40px 20px; }}
    .card {{ background:var(--card); border-radius:20px; padding:28px; box-shadow: 0 10px 30px rgba(0,0,0,.25); }}
    h1 {{ font-size:20px; margin:0 0 12px; }}
    .meta {{ margin:6px 0; color:var(--muted); font-size:14px; }}
    ul {{ list-style:none; padding:0; margin:20px 0 0; }}
    li {{ display:flex; justify-content:space-between; gap:12px; padding:8px 0; border-top:1px solid #222a33; }}
    a {{ color:var(--link); text-decoration:none; word-break:break-all; }}
    .size {{ color:var(--muted); white-space:nowrap; }}
    code {{ background:#0f1318; padding:2px 6px; border-radius:6px; }}
  </style>
</head>
<body>
  <div class="wrap">
    <div class="card">
      <h1>Directory listing for <code>{safe_group}</code></h1>
      <p class="meta">{len(members)} file{"" if len(members) == 1 else "s"} · {human_size(total)}</p>{expiry}
      <ul>
{listing}
      </ul>
    </div>
  </div>
</body>
</html>"""
