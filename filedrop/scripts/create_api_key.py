"""Provision an API key: ``python -m filedrop.scripts.create_api_key NAME``."""

import argparse
import asyncio
import sys

from filedrop.core.database import SessionLocal
from filedrop.services.auth import create_api_key


async def _create(name: str) -> str:
    async with SessionLocal() as db:
        api_key = await create_api_key(db, name)
        return api_key.key


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create an API key for uploads")
    parser.add_argument("name", help="display label for the key")
    args = parser.parse_args(argv)

    key = asyncio.run(_create(args.name))
    print(f"Generated API Key: {key}")
    print("Use it as: Authorization: Bearer <key>")

if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print(f"[create-api-key] Failed: {e}", file=sys.stderr)
        sys.exit(1)
