from sqlalchemy import select, update

from filedrop.models.api_key import ApiKey
from filedrop.services.auth import generate_api_key, validate_api_key


async def test_valid_key_is_returned_and_touched(session_factory, api_key):
    assert api_key.last_used is None

    async with session_factory() as db:
        found = await validate_api_key(db, api_key.key)
    assert found is not None
    assert found.id == api_key.id

    async with session_factory() as db:
        row = (await db.execute(select(ApiKey).where(ApiKey.id == api_key.id))).scalars().one()
    assert row.last_used is not None


async def test_unknown_and_inactive_keys_are_rejected(session_factory, api_key):
    async with session_factory() as db:
        assert await validate_api_key(db, "pb_nope") is None
        assert await validate_api_key(db, "") is None
        await db.execute(update(ApiKey).where(ApiKey.id == api_key.id).values(is_active=False))
        await db.commit()
        assert await validate_api_key(db, api_key.key) is None


def test_generated_keys_have_prefix_and_are_unique():
    keys = {generate_api_key() for _ in range(20)}
    assert len(keys) == 20
    assert all(k.startswith("pb_") and len(k) > 20 for k in keys)


async def test_missing_or_malformed_header_is_401(client):
    for headers in ({}, {"Authorization": "Token abc"}, {"Authorization": "Bearer "}, {"Authorization": "bearer"}):
        resp = await client.post("/upload", headers=headers)
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Authorization required"}


async def test_wrong_or_inactive_key_is_403(client, session_factory, api_key):
    resp = await client.post("/upload", headers={"Authorization": "Bearer pb_wrong"})
    assert resp.status_code == 403
    assert resp.json() == {"detail": "Invalid API key"}

    async with session_factory() as db:
        await db.execute(update(ApiKey).where(ApiKey.id == api_key.id).values(is_active=False))
        await db.commit()
    resp = await client.post("/upload", headers={"Authorization": f"Bearer {api_key.key}"})
    assert resp.status_code == 403
