"""
Add the kanban_status and kanban_order_rank columns to a registered collection's
table, then give every row that already has a status but no rank an initial rank.

Usage:
    python migrations/add_kanban_columns.py --collection posts

The script is idempotent and safe to run multiple times. It inspects the current
schema before attempting to alter the table, and only ranks rows whose rank is
currently NULL. Existing ranks are never rewritten.
"""

import argparse
import os
import sys

from dotenv import load_dotenv

from sqlalchemy import inspect, text
from sqlalchemy.exc import OperationalError, ProgrammingError

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Add parent directory to path to import kanban modules
sys.path.insert(0, ROOT_DIR)

# Load environment variables from a .env file if present
load_dotenv()

KANBAN_COLUMNS = (
    ("kanban_status", "VARCHAR(100)"),
    ("kanban_order_rank", "VARCHAR(255)"),
)


def column_exists(engine, table_name: str, column_name: str) -> bool:
    """Check if a given column exists on the specified table."""
    inspector = inspect(engine)
    columns = inspector.get_columns(table_name)
    return any(col["name"] == column_name for col in columns)


def backfill_ranks(config, session) -> int:
    """Rank unranked rows per status, in primary key order, after the current last rank."""
    from kanban.board.engine import ReorderEngine
    from kanban.board.registry import last_rank_for_status

    model = config.model
    updated = 0
    for status in config.vocabulary.values:
        rows = (
            model.query
            .filter(model.kanban_status == status)
            .filter(model.kanban_order_rank.is_(None))
            .order_by(model.id.asc())
            .all()
        )
        if not rows:
            continue

        last_rank = last_rank_for_status(session.connection(), model, status)
        for row in rows:
            row.kanban_order_rank = ReorderEngine.initial_rank(status, None, last_rank)
            last_rank = row.kanban_order_rank
            updated += 1
        print(f"  Ranked {len(rows)} '{status}' rows.")
    return updated


def migrate(collection_slug: str) -> bool:
    """Perform the migration for one registered collection."""
    from kanban import create_app
    from kanban.board.registry import get_registry
    from kanban.models import db

    app = create_app()

    with app.app_context():
        try:
            config = get_registry(app).get(collection_slug)
            if config is None:
                print(f"✗ Unknown collection '{collection_slug}'.")
                return False

            engine = db.engine
            table_name = config.model.__tablename__

            # Step 1: Add the columns if they don't exist
            for column_name, column_type in KANBAN_COLUMNS:
                if column_exists(engine, table_name, column_name):
                    print(f"✓ Column '{column_name}' already exists on '{table_name}'.")
                    continue

                print(f"Adding column '{column_name}' to '{table_name}' table...")
                with db.engine.begin() as conn:
                    conn.execute(text(f"ALTER TABLE {table_name} ADD COLUMN {column_name} {column_type}"))
                    conn.execute(text(
                        f"CREATE INDEX IF NOT EXISTS ix_{table_name}_{column_name} "
                        f"ON {table_name} ({column_name})"
                    ))

                if not column_exists(engine, table_name, column_name):
                    print("✗ Column addition did not succeed. Please verify manually.")
                    return False
                print(f"✓ Successfully added '{column_name}' column to '{table_name}'.")

            # Step 2: Rank rows that have a status but no rank yet
            print("Assigning initial ranks...")
            updated = backfill_ranks(config, db.session)
            db.session.commit()
            print(f"✓ Ranked {updated} rows.")

            print("✓ Migration completed successfully.")
            return True

        except (OperationalError, ProgrammingError) as exc:
            print(f"✗ Database error: {exc}")
            db.session.rollback()
            return False
        except Exception as exc:  # pragma: no cover
            print(f"✗ Unexpected error: {exc}")
            db.session.rollback()
            import traceback
            traceback.print_exc()
            return False


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Add kanban columns to a collection table and rank existing rows.")
    parser.add_argument(
        "--collection",
        default="posts",
        help="Slug of the registered collection to migrate.",
    )
    args = parser.parse_args()

    success = migrate(args.collection)
    sys.exit(0 if success else 1)
