"""Pytest configuration and fixtures.

Environment variables must be set BEFORE importing filedrop: settings and
the module-level engine are created at import time. App imports therefore
happen inside fixtures.
"""

import os
import tempfile

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

_test_base_dir = tempfile.mkdtemp(prefix="filedrop_test_")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_test_base_dir}/app.db")
os.environ["PUBLIC_BASE_URL"] = "https://example.com"
os.environ["CLEANUP_ENABLED"] = "false"
os.environ["MINIO_ENDPOINT"] = "localhost:9000"

BASE_URL = "https://example.com"


class FakeBody:
    def __init__(self, data: bytes):
        self.data = data
        self.closed = False

    async def iter_chunks(self):
        try:
            for i in range(0, len(self.data), 4):
                yield self.data[i:i + 4]
        finally:
            await self.close()

    async def close(self):
        self.closed = True


class FakeObjectStore:
    """In-memory stand-in for ``ObjectStore`` that records every call."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_on: set[tuple[str, str]] = set()

    def _maybe_fail(self, op: str, file_id: str):
        from filedrop.core.errors import StorageError

        self.calls.append((op, file_id))
        if (op, file_id) in self.fail_on or (op, "*") in self.fail_on:
            try:
                raise ConnectionError(f"{op} {file_id} unavailable")
            except ConnectionError as e:
                raise StorageError() from e

    async def put(self, file_id, stream, length, content_type, metadata=None):
        self._maybe_fail("put", file_id)
        data = stream.read(length)
        self.objects[file_id] = data
        self.content_types[file_id] = content_type
        return len(data)

    async def get(self, file_id):
        self._maybe_fail("get", file_id)
        if file_id not in self.objects:
            return None
        return FakeBody(self.objects[file_id])

    async def delete(self, file_id):
        self._maybe_fail("delete", file_id)
        self.objects.pop(file_id, None)

    async def ping(self):
        return None

    def ops(self, op: str) -> list[str]:
        return [file_id for name, file_id in self.calls if name == op]


@pytest_asyncio.fixture
async def session_factory():
    """Fresh SQLite database file per test."""
    from filedrop import models  # noqa: F401
    from filedrop.core.database import Base

    temp_dir = tempfile.mkdtemp(dir=_test_base_dir)
    engine = create_async_engine(f"sqlite+aiosqlite:///{temp_dir}/test.db", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store():
    return FakeObjectStore()


@pytest_asyncio.fixture
async def api_key(session_factory):
    from filedrop.services.auth import create_api_key

    async with session_factory() as session:
        return await create_api_key(session, "Test Key")


@pytest_asyncio.fixture
async def other_api_key(session_factory):
    from filedrop.services.auth import create_api_key

    async with session_factory() as session:
        return await create_api_key(session, "Other Key")


@pytest_asyncio.fixture
async def client(session_factory, store):
    import httpx

    from filedrop.core.database import get_db
    from filedrop.main import app
    from filedrop.services.storage import get_object_store

    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_object_store] = lambda: store

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c

    app.dependency_overrides.clear()


def auth(api_key) -> dict:
    return {"Authorization": f"Bearer {api_key.key}"}


async def insert_upload(session_factory, store, owner, file_id, data=b"data", **fields):
    """Write a blob and its row directly, bypassing the upload endpoint."""
    from filedrop.models.upload import Upload

    values = {
        "group_id": file_id,
        "original_name": file_id.rsplit("/", 1)[-1],
        "relative_path": None,
        "content_type": "text/plain",
    }
    values.update(fields)
    if data is not None:
        store.objects[file_id] = data
    async with session_factory() as session:
        row = Upload(file_id=file_id, size=len(data or b""), api_key_id=owner.id, **values)
        session.add(row)
        await session.commit()
        return row
