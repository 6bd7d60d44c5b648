# =============================================================================
# MongoDB Schema Migration Runner
# =============================================================================
# Applies the catalog store migrations in services/mongodb/migrations/ in
# version order, tracking applied versions in schema_migrations. Each
# migration runs at most once; a failed migration is not recorded and is
# retried on the next invocation.
# =============================================================================

import argparse
import importlib.util
import logging
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import CollectionInvalid, OperationFailure

from libs.models import MongoSettings

logger = logging.getLogger("migrate_db")

MIGRATIONS_COLLECTION = "schema_migrations"
DEFAULT_MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "services" / "mongodb" / "migrations"


@dataclass(frozen=True)
class Migration:
    """A loaded migration module."""

    version: str
    path: Path
    up: Callable[[Database], None]
    down: Optional[Callable[[Database], None]] = None


def discover_migrations(migrations_dir: Path) -> list[tuple[str, Path]]:
    """
    Discover migration files in the migrations directory.

    Migration files must match pattern: NNN_*.py where NNN is a zero-padded
    3-digit version number (e.g., 001, 002, 010).

    Args:
        migrations_dir: Path to migrations directory

    Returns:
        List of (version, file_path) tuples, sorted by version number

    Raises:
        ValueError: If the directory is missing or versions are duplicated
    """
    if not migrations_dir.exists():
        raise ValueError(f"Migrations directory does not exist: {migrations_dir}")

    migrations: dict[str, Path] = {}
    for file_path in sorted(migrations_dir.glob("*.py")):
        filename = file_path.name
        if filename.startswith("__"):
            continue
        version = filename[:3]
        if not version.isdigit() or filename[3:4] != "_":
            logger.warning("Skipping file '%s' - does not start with 'NNN_'", filename)
            continue
        if version in migrations:
            raise ValueError(f"Duplicate migration version '{version}' found in '{filename}'")
        migrations[version] = file_path

    return sorted(migrations.items())


def load_migration(file_path: Path) -> Migration:
    """
    Load a migration module and validate its interface.

    A migration defines a string VERSION, a callable up(db) and optionally
    a callable down(db).

    Raises:
        ImportError: If the file cannot be imported
        ValueError: If the module does not conform to the interface
    """
    spec = importlib.util.spec_from_file_location(f"migration_{file_path.stem}", file_path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Could not load migration module from {file_path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    version = getattr(module, "VERSION", None)
    if not isinstance(version, str):
        raise ValueError(f"Migration '{file_path.name}' must define a string VERSION")
    if version != file_path.name[:3]:
        raise ValueError(
            f"Migration '{file_path.name}' VERSION '{version}' "
            f"does not match filename version '{file_path.name[:3]}'"
        )

    up = getattr(module, "up", None)
    if not callable(up):
        raise ValueError(f"Migration '{file_path.name}' must define a callable up()")
    down = getattr(module, "down", None)
    if down is not None and not callable(down):
        raise ValueError(f"Migration '{file_path.name}' down must be callable")

    return Migration(version=version, path=file_path, up=up, down=down)


def ensure_migrations_collection(db: Database) -> None:
    """Create schema_migrations with a unique version index if missing."""
    try:
        db.create_collection(MIGRATIONS_COLLECTION)
    except CollectionInvalid:
        pass
    try:
        db[MIGRATIONS_COLLECTION].create_index("version", unique=True)
    except OperationFailure:
        pass


def get_applied_versions(db: Database) -> set[str]:
    return {doc["version"] for doc in db[MIGRATIONS_COLLECTION].find({}, {"version": 1})}


def apply_pending(db: Database, migrations_dir: Path = DEFAULT_MIGRATIONS_DIR) -> list[str]:
    """
    Apply every migration not yet recorded in schema_migrations.

    Returns:
        Versions applied by this call, in order

    Raises:
        Exception: The first migration failure; later migrations are not run
    """
    ensure_migrations_collection(db)
    applied = get_applied_versions(db)
    newly_applied = []

    for version, file_path in discover_migrations(migrations_dir):
        if version in applied:
            logger.info("Skipping migration %s: already applied", version)
            continue

        migration = load_migration(file_path)
        logger.info("Applying migration %s from %s", version, file_path.name)
        start = time.monotonic()
        migration.up(db)
        duration_ms = int((time.monotonic() - start) * 1000)
        db[MIGRATIONS_COLLECTION].insert_one(
            {
                "version": version,
                "applied_at": datetime.now(timezone.utc),
                "duration_ms": duration_ms,
            }
        )
        logger.info("Applied migration %s (took %dms)", version, duration_ms)
        newly_applied.append(version)

    return newly_applied


def rollback(db: Database, version: str, migrations_dir: Path = DEFAULT_MIGRATIONS_DIR) -> None:
    """
    Roll back a single applied migration using its down() function.

    Raises:
        ValueError: If the version is unknown, not applied or has no down()
    """
    paths = dict(discover_migrations(migrations_dir))
    if version not in paths:
        raise ValueError(f"Unknown migration version '{version}'")
    if version not in get_applied_versions(db):
        raise ValueError(f"Migration '{version}' has not been applied")

    migration = load_migration(paths[version])
    if migration.down is None:
        raise ValueError(f"Migration '{version}' does not support rollback")

    migration.down(db)
    db[MIGRATIONS_COLLECTION].delete_one({"version": version})
    logger.info("Rolled back migration %s", version)


def main(argv: Optional[list[str]] = None) -> int:
    """
    Migration runner entry point.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = argparse.ArgumentParser(description="Apply catalog store migrations")
    parser.add_argument("--rollback", metavar="VERSION", help="Roll back one applied migration")
    parser.add_argument("--migrations-dir", type=Path, default=DEFAULT_MIGRATIONS_DIR)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        settings = MongoSettings()
        client = MongoClient(settings.connection_string, serverSelectionTimeoutMS=10000)
        try:
            db = client[settings.database]
            if args.rollback:
                rollback(db, args.rollback, args.migrations_dir)
            else:
                applied = apply_pending(db, args.migrations_dir)
                logger.info("Applied %d migration(s)", len(applied))
            return 0
        finally:
            client.close()
    except Exception:
        logger.exception("Migration failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
