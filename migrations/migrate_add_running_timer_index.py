#!/usr/bin/env python3
"""Migration script to enforce a single running timer per user.

Databases created before the partial unique index existed may hold several
time entries with is_running set for the same user. This migration:
- stops every running entry of a user except the most recently started one,
  setting end_time to its start_time and duration to 0
- creates the partial unique index uq_time_entries_one_running_per_user

Usage:
    python migrations/migrate_add_running_timer_index.py [--db-path PATH]
"""

import sys
from pathlib import Path

# Add src to path so we can import billsense modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import inspect, text
from billsense.database.factories import create_sqlite_database

INDEX_NAME = "uq_time_entries_one_running_per_user"


def index_exists(engine, table_name: str, index_name: str) -> bool:
    """Check if an index exists on a table.

    Args:
        engine: SQLAlchemy engine
        table_name: Name of the table
        index_name: Name of the index

    Returns:
        True if index exists, False otherwise
    """
    inspector = inspect(engine)
    return any(idx["name"] == index_name for idx in inspector.get_indexes(table_name))


def stop_duplicate_timers(conn) -> int:
    """Stop all but the newest running entry of each user.

    Returns:
        Number of entries stopped
    """
    rows = conn.execute(
        text(
            "SELECT id, user_id FROM time_entries WHERE is_running = 1 "
            "ORDER BY user_id, start_time DESC, id DESC"
        )
    ).fetchall()

    seen: set[int] = set()
    stale: list[int] = []
    for entry_id, user_id in rows:
        if user_id in seen:
            stale.append(entry_id)
        else:
            seen.add(user_id)

    for entry_id in stale:
        conn.execute(
            text(
                "UPDATE time_entries SET is_running = 0, end_time = start_time, duration = 0 "
                "WHERE id = :id"
            ),
            {"id": entry_id},
        )
    return len(stale)


def migrate_database(database_path: str | None = None) -> None:
    """Migrate database to add the single-running-timer index.

    Args:
        database_path: Path to database file. If None, uses default location.

    Raises:
        Exception: If migration fails
    """
    db = create_sqlite_database(database_path=database_path)
    db.connect()

    try:
        session = db.session_factory()
        try:
            engine = session.bind
            if engine is None:
                raise Exception("Could not get database engine from session")
        finally:
            session.close()

        inspector = inspect(engine)
        if "time_entries" not in inspector.get_table_names():
            raise Exception("Table 'time_entries' does not exist. Please initialize the database schema first.")

        if index_exists(engine, "time_entries", INDEX_NAME):
            print(f"Migration already applied: {INDEX_NAME} exists on time_entries")
            return

        print("Starting migration: enforcing one running timer per user...")

        with engine.begin() as conn:
            stopped = stop_duplicate_timers(conn)
            print(f"  Stopped {stopped} duplicate running time entr{'y' if stopped == 1 else 'ies'}")

            conn.execute(
                text(
                    f"CREATE UNIQUE INDEX {INDEX_NAME} "
                    "ON time_entries (user_id) WHERE is_running = 1"
                )
            )
            print(f"  Created index: {INDEX_NAME}")

        print("Migration completed successfully!")

    except Exception as e:
        print(f"Migration failed: {e}")
        raise
    finally:
        db.disconnect()


def main():
    """Main entry point for migration script."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Migrate database to allow at most one running timer per user"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="Path to database file (overrides BILLSENSE_DB_PATH environment variable)",
    )
    args = parser.parse_args()

    try:
        migrate_database(database_path=args.db_path)
        return 0
    except Exception as e:
        print(f"\nMigration failed: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
