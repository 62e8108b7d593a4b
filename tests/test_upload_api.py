from datetime import timedelta

from sqlalchemy import select

from conftest import BASE_URL, auth
from filedrop.models.upload import Upload
from filedrop.utils.timeutils import utcnow


async def _rows(session_factory):
    async with session_factory() as session:
        res = await session.execute(select(Upload).order_by(Upload.id))
        return res.scalars().all()


async def test_single_upload_round_trip(client, api_key, store):
    resp = await client.post(
        "/upload",
        files={"file": ("a.txt", b"hi", "text/plain")},
        headers=auth(api_key),
    )

    assert resp.status_code == 200
    body = resp.json()
    file_id = body["fileId"]
    assert body == {"url": f"{BASE_URL}/f/{file_id}", "fileId": file_id, "size": 2}
    assert store.objects[file_id] == b"hi"

    got = await client.get(f"/f/{file_id}")
    assert got.status_code == 200
    assert got.content == b"hi"
    assert got.headers["content-length"] == "2"
    assert got.headers["content-type"].startswith("text/plain")


async def test_upload_without_declared_type_defaults_to_octet_stream(client, api_key, store, session_factory):
    resp = await client.post(
        "/upload",
        files={"file": ("payload.unknownext", b"\x00\x01", None)},
        headers=auth(api_key),
    )
    assert resp.status_code == 200

    rows = await _rows(session_factory)
    assert rows[0].content_type == "application/octet-stream"

    got = await client.get(f"/f/{resp.json()['fileId']}")
    assert got.headers["content-type"] == "application/octet-stream"
    assert got.headers["content-disposition"].startswith("attachment;")


async def test_directory_upload_groups_all_files(client, api_key, store, session_factory):
    resp = await client.post(
        "/upload",
        files=[
            ("file", ("folder/a.txt", b"aaa", "text/plain")),
            ("file", ("folder/b/c.txt", b"ccccc", "text/plain")),
        ],
        data={"directory_upload": "true"},
        headers=auth(api_key),
    )

    assert resp.status_code == 200
    body = resp.json()
    group_id = body["fileId"]
    assert body["isDirectory"] is True
    assert body["size"] == 8
    assert body["url"] == f"{BASE_URL}/f/{group_id}"
    assert [f["fileId"] for f in body["files"]] == [f"{group_id}/folder/a.txt", f"{group_id}/folder/b/c.txt"]
    assert body["files"][1] == {
        "url": f"{BASE_URL}/f/{group_id}/folder/b/c.txt",
        "fileId": f"{group_id}/folder/b/c.txt",
        "originalName": "c.txt",
        "relativePath": "folder/b/c.txt",
        "size": 5,
        "contentType": "text/plain",
    }

    rows = await _rows(session_factory)
    assert len(rows) == 2
    assert {r.group_id for r in rows} == {group_id}
    assert {r.api_key_id for r in rows} == {api_key.id}
    assert sum(r.size for r in rows) == body["size"]
    assert set(store.objects) == {f"{group_id}/folder/a.txt", f"{group_id}/folder/b/c.txt"}


async def test_multiple_files_without_flag_still_group(client, api_key):
    resp = await client.post(
        "/upload",
        files=[("file", ("one.txt", b"1", "text/plain")), ("file", ("two.txt", b"22", "text/plain"))],
        headers=auth(api_key),
    )
    body = resp.json()
    assert body["isDirectory"] is True
    assert len(body["files"]) == 2


async def test_expiring_upload_stores_uniform_expiry(client, api_key, session_factory):
    expires = (utcnow() + timedelta(days=2)).replace(microsecond=0)
    resp = await client.post(
        "/upload",
        files=[("file", ("a.txt", b"1", "text/plain")), ("file", ("b.txt", b"2", "text/plain"))],
        data={"expires_at": expires.isoformat() + "Z"},
        headers=auth(api_key),
    )

    assert resp.status_code == 200
    assert resp.json()["expiresAt"] == expires.isoformat() + "Z"
    rows = await _rows(session_factory)
    assert {r.expires_at for r in rows} == {expires}


async def test_missing_file_is_rejected(client, api_key, store):
    resp = await client.post("/upload", data={"expires_at": ""}, headers=auth(api_key))
    assert resp.status_code == 400
    assert resp.json() == {"detail": "No file provided"}
    assert store.calls == []


async def test_bad_expiry_aborts_before_any_write(client, api_key, store, session_factory):
    too_far = (utcnow() + timedelta(days=31)).isoformat() + "Z"
    for value in ["tomorrow", "2000-01-01T00:00:00Z", too_far]:
        resp = await client.post(
            "/upload",
            files={"file": ("a.txt", b"hi", "text/plain")},
            data={"expires_at": value},
            headers=auth(api_key),
        )
        assert resp.status_code == 400
        assert resp.json()["detail"].startswith("Invalid expires_at")

    assert store.calls == []
    assert await _rows(session_factory) == []


async def test_store_failure_returns_generic_error(client, api_key, store, session_factory):
    store.fail_on.add(("put", "*"))
    resp = await client.post(
        "/upload",
        files={"file": ("a.txt", b"hi", "text/plain")},
        headers=auth(api_key),
    )
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Upload failed"}
    assert await _rows(session_factory) == []


async def test_mid_batch_failure_does_not_roll_back(client, api_key, store, session_factory, monkeypatch):
    from filedrop.services import planner

    monkeypatch.setattr(planner, "new_group_id", lambda: "FIXEDGROUP01")
    store.fail_on.add(("put", "FIXEDGROUP01/b.txt"))

    resp = await client.post(
        "/upload",
        files=[("file", ("a.txt", b"1", "text/plain")), ("file", ("b.txt", b"2", "text/plain"))],
        headers=auth(api_key),
    )

    assert resp.status_code == 500
    rows = await _rows(session_factory)
    assert [r.file_id for r in rows] == ["FIXEDGROUP01/a.txt"]
    assert "FIXEDGROUP01/a.txt" in store.objects


async def test_out_of_range_offset_expiry_is_client_error(client, api_key, store, session_factory):
    resp = await client.post(
        "/upload",
        files={"file": ("a.txt", b"hi", "text/plain")},
        data={"expires_at": "9999-12-31T23:00:00-05:00"},
        headers=auth(api_key),
    )

    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Invalid expires_at")
    assert store.calls == []
    assert await _rows(session_factory) == []


async def test_oversized_part_is_rejected_before_storage(client, api_key, store, session_factory, monkeypatch):
    from filedrop.core.config import settings

    monkeypatch.setattr(settings, "MAX_FILE_SIZE", 4)
    resp = await client.post(
        "/upload",
        files=[("file", ("ok.txt", b"1234", "text/plain")), ("file", ("big.txt", b"12345", "text/plain"))],
        headers=auth(api_key),
    )

    assert resp.status_code == 413
    assert resp.json() == {"detail": "File too large: big.txt"}
    assert store.calls == []
    assert await _rows(session_factory) == []


async def test_recorded_size_is_bytes_streamed_to_storage(client, api_key, store, session_factory):
    payload = b"z" * (3 * 1024 * 1024 + 17)
    resp = await client.post(
        "/upload",
        files={"file": ("big.bin", payload, "application/octet-stream")},
        headers=auth(api_key),
    )

    assert resp.status_code == 200
    assert resp.json()["size"] == len(payload)
    assert store.objects[resp.json()["fileId"]] == payload
    rows = await _rows(session_factory)
    assert rows[0].size == len(payload)
