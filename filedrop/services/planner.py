"""Turns a batch of incoming files into a concrete storage plan.

Planning is pure: it validates the request, decides between a single upload
and a directory group, and assigns object keys. Nothing here touches either
store, so every client error surfaces before the first write.
"""

from __future__ import annotations

import io
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import BinaryIO

from filedrop.core.errors import ClientInputError, PayloadTooLargeError
from filedrop.models.upload import DEFAULT_CONTENT_TYPE
from filedrop.services.paths import leaf_name, sanitize_relative_path
from filedrop.utils.timeutils import to_naive_utc

GROUP_ID_BYTES = 9  # 12 url-safe characters


@dataclass(frozen=True)
class IncomingFile:
    """One multipart part left on its spooled file; nothing is read until storage."""

    name: str | None
    stream: BinaryIO
    size: int
    content_type: str | None = None

    @classmethod
    def from_bytes(cls, name: str | None, data: bytes, content_type: str | None = None) -> "IncomingFile":
        return cls(name, io.BytesIO(data), len(data), content_type)


@dataclass(frozen=True)
class PlannedFile:
    file_id: str
    original_name: str
    relative_path: str | None
    content_type: str
    source: IncomingFile
    size: int


@dataclass
class UploadPlan:
    group_id: str
    is_directory: bool
    expires_at: datetime | None
    files: list[PlannedFile] = field(default_factory=list)

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self.files)


def new_group_id() -> str:
    return secrets.token_urlsafe(GROUP_ID_BYTES)


def parse_expiration(raw: str | None, now: datetime, max_days: int) -> datetime | None:
    """Parse an ISO-8601 expiry and check it lies in ``(now, now + max_days]``.

    Offsets are converted to UTC and naive values are taken as UTC. Returns a
    naive UTC datetime, or ``None`` when no expiry was requested.
    """
    if raw is None or not raw.strip():
        return None
    value = raw.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        expires_at = to_naive_utc(datetime.fromisoformat(value))
    except (ValueError, OverflowError):
        raise ClientInputError("Invalid expires_at: expected an ISO-8601 timestamp")

    if expires_at <= now:
        raise ClientInputError("Invalid expires_at: must be in the future")
    if expires_at > now + timedelta(days=max_days):
        raise ClientInputError(f"Invalid expires_at: must be within {max_days} days")
    return expires_at


def is_directory_upload(files: list[IncomingFile], directory_flag: bool) -> bool:
    if directory_flag or len(files) > 1:
        return True
    return "/" in sanitize_relative_path(files[0].name)


def plan_upload(
    files: list[IncomingFile],
    *,
    directory_flag: bool = False,
    expires_at: datetime | None = None,
    max_file_size: int | None = None,
    group_id: str | None = None,
) -> UploadPlan:
    if not files:
        raise ClientInputError("No file provided")

    if max_file_size is not None:
        for f in files:
            if f.size > max_file_size:
                raise PayloadTooLargeError(f"File too large: {leaf_name(f.name) or 'file'}")

    group_id = group_id or new_group_id()
    directory = is_directory_upload(files, directory_flag)
    plan = UploadPlan(group_id=group_id, is_directory=directory, expires_at=expires_at)

    if not directory:
        f = files[0]
        plan.files.append(
            PlannedFile(
                file_id=group_id,
                original_name=leaf_name(f.name) or "file",
                relative_path=None,
                content_type=f.content_type or DEFAULT_CONTENT_TYPE,
                source=f,
                size=f.size,
            )
        )
        return plan

    seen: set[str] = set()
    for position, f in enumerate(files, start=1):
        relative_path = sanitize_relative_path(f.name) or f"file-{position}"
        if relative_path in seen:
            raise ClientInputError(f"Duplicate path in upload: {relative_path}")
        seen.add(relative_path)
        plan.files.append(
            PlannedFile(
                file_id=f"{group_id}/{relative_path}",
                original_name=relative_path.rsplit("/", 1)[-1],
                relative_path=relative_path,
                content_type=f.content_type or DEFAULT_CONTENT_TYPE,
                source=f,
                size=f.size,
            )
        )
    return plan
