from __future__ import annotations

import logging
import urllib.parse
from typing import AsyncIterator, BinaryIO

from minio import Minio
from minio.error import S3Error
from starlette.concurrency import run_in_threadpool

from filedrop.core.config import settings
from filedrop.core.errors import StorageError
from filedrop.core.minio_client import minio_client

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1 MiB
_MISSING_CODES = {"NoSuchKey", "NoSuchObject", "NoSuchBucket"}


class StoredObject:
    """Open handle on an object body; iterate it once, it closes itself."""

    def __init__(self, response):
        self._response = response

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        try:
            while True:
                chunk = await run_in_threadpool(self._response.read, CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk
        finally:
            await self.close()

    async def close(self) -> None:
        await run_in_threadpool(self._response.close)
        await run_in_threadpool(self._response.release_conn)


class _CountingReader:
    """Pass-through reader that tallies what the client actually consumed."""

    def __init__(self, raw: BinaryIO):
        self._raw = raw
        self.count = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._raw.read(size)
        self.count += len(chunk)
        return chunk


class ObjectStore:
    """Bytes keyed by ``file_id`` in one MinIO bucket.

    Blocking client calls run in the threadpool. Failures other than a
    missing key are logged and re-raised as ``StorageError``.
    """

    def __init__(self, client: Minio, bucket: str):
        self.client = client
        self.bucket = bucket

    async def put(
        self,
        file_id: str,
        stream: BinaryIO,
        length: int,
        content_type: str,
        metadata: dict | None = None,
    ) -> int:
        """Stream ``length`` bytes from ``stream`` into the bucket; returns the bytes sent."""
        # S3 user metadata travels as HTTP headers, so keep it ASCII.
        meta = {k: urllib.parse.quote(str(v), safe="") for k, v in (metadata or {}).items()}
        reader = _CountingReader(stream)
        try:
            await run_in_threadpool(
                self.client.put_object,
                self.bucket,
                file_id,
                reader,
                length,
                part_size=CHUNK_SIZE * 10,
                content_type=content_type,
                metadata=meta,
            )
        except Exception as e:
            logger.exception("MinIO put_object failed for %s/%s", self.bucket, file_id)
            raise StorageError() from e
        return reader.count

    async def get(self, file_id: str) -> StoredObject | None:
        try:
            response = await run_in_threadpool(self.client.get_object, self.bucket, file_id)
        except S3Error as e:
            if e.code in _MISSING_CODES:
                return None
            logger.exception("MinIO get_object failed for %s/%s", self.bucket, file_id)
            raise StorageError() from e
        except Exception as e:
            logger.exception("MinIO get_object failed for %s/%s", self.bucket, file_id)
            raise StorageError() from e
        return StoredObject(response)

    async def delete(self, file_id: str) -> None:
        try:
            await run_in_threadpool(self.client.remove_object, self.bucket, file_id)
        except Exception as e:
            logger.exception("MinIO remove_object failed for %s/%s", self.bucket, file_id)
            raise StorageError() from e

    async def ping(self) -> None:
        await run_in_threadpool(self.client.bucket_exists, self.bucket)


object_store = ObjectStore(minio_client, settings.MINIO_BUCKET)


def get_object_store() -> ObjectStore:
    return object_store
