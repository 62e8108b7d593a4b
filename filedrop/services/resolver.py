"""Two-step key resolution shared by retrieval and deletion.

A requested key is first matched against ``file_id``; failing that it is
treated as a ``group_id``. The outcome is one of three explicit types so
callers branch on the result instead of falling through queries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union

from sqlalchemy.ext.asyncio import AsyncSession

from filedrop.models.upload import Upload
from filedrop.services import repository


@dataclass(frozen=True)
class SingleMatch:
    record: Upload


@dataclass(frozen=True)
class GroupMatch:
    group_id: str
    records: Sequence[Upload]


@dataclass(frozen=True)
class NoMatch:
    key: str


Resolution = Union[SingleMatch, GroupMatch, NoMatch]


async def resolve_key(db: AsyncSession, key: str, owner_id: int | None = None) -> Resolution:
    """Resolve ``key``; when ``owner_id`` is given only that owner's rows count."""
    record = await repository.get_by_file_id(db, key, owner_id=owner_id)
    if record is not None:
        return SingleMatch(record)

    members = await repository.get_group(db, key, owner_id=owner_id)
    if members:
        return GroupMatch(key, members)
    return NoMatch(key)
