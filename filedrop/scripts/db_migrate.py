"""Bring the metadata database to the latest Alembic revision.

Databases created by ``Base.metadata.create_all`` (the app does this on
startup) have the tables but no ``alembic_version``; those are stamped at
head first so the upgrade does not try to recreate them.
"""

import argparse
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from filedrop.core.database import DATABASE_URL

CORE_TABLES = ("api_keys", "uploads")


def _alembic_config(ini_path: str) -> Config:
    cfg = Config(ini_path)
    cfg.set_main_option("script_location", str(Path(ini_path).resolve().parent / "alembic"))
    return cfg


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run filedrop database migrations")
    parser.add_argument("--config", default="alembic.ini", help="path to alembic.ini")
    parser.add_argument("--revision", default="head")
    args = parser.parse_args(argv)

    engine = create_engine(DATABASE_URL.replace("+aiosqlite", ""))
    insp = inspect(engine)
    has_alembic = insp.has_table("alembic_version")
    existing_core_tables = all(insp.has_table(t) for t in CORE_TABLES)
    engine.dispose()

    cfg = _alembic_config(args.config)
    if existing_core_tables and not has_alembic:
        print("[db-migrate] Tables present without alembic_version → stamping head")
        command.stamp(cfg, "head")
    else:
        print(f"[db-migrate] has_alembic={has_alembic}, existing_core_tables={existing_core_tables}")

    command.upgrade(cfg, args.revision)

if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print(f"[db-migrate] Migration failed: {e}", file=sys.stderr)
        sys.exit(1)
