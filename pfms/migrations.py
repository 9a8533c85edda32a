"""
Lightweight database migrations.

SQLAlchemy's create_all() only creates missing tables, not missing columns
or constraints. This module patches databases created by older versions so
the import pipeline can rely on the current schema.
"""

import logging
from sqlalchemy import text, inspect
from sqlalchemy.engine import Engine
from .database import engine as default_engine

logger = logging.getLogger(__name__)

# Older databases were created before the get-or-create keys were enforced.
UNIQUE_INDEXES = [
    ("accounts", "uq_account_user_name_currency", "user_id, name, currency"),
    ("categories", "uq_category_user_name_mode", "user_id, name, mode"),
]


def run_migrations(engine: Engine = None):
    """Check for and apply any pending column and index additions."""
    engine = engine or default_engine
    inspector = inspect(engine)
    tables = inspector.get_table_names()

    # --- Transactions table migrations ---
    if "transactions" in tables:
        txn_cols = {col["name"] for col in inspector.get_columns("transactions")}

        txn_new_columns = [
            ("source", "VARCHAR(20) NOT NULL DEFAULT 'manual'"),
            ("description", "TEXT NOT NULL DEFAULT ''"),
        ]

        with engine.begin() as conn:
            for col_name, col_type in txn_new_columns:
                if col_name not in txn_cols:
                    try:
                        conn.execute(text(
                            f"ALTER TABLE transactions ADD COLUMN {col_name} {col_type}"
                        ))
                        logger.info(f"Migration: added transactions.{col_name}")
                    except Exception as e:
                        logger.warning(f"Migration skip: transactions.{col_name} - {e}")

    # --- Uniqueness keys for accounts/categories ---
    for table, index_name, columns in UNIQUE_INDEXES:
        if table not in tables:
            continue
        existing = {ix["name"] for ix in inspector.get_indexes(table)}
        existing |= {uc["name"] for uc in inspector.get_unique_constraints(table)}
        if index_name in existing:
            continue
        with engine.begin() as conn:
            try:
                conn.execute(text(
                    f"CREATE UNIQUE INDEX IF NOT EXISTS {index_name} ON {table} ({columns})"
                ))
                logger.info(f"Migration: added unique index {index_name}")
            except Exception as e:
                # Existing duplicates block the index; they must be merged by hand.
                logger.warning(f"Migration skip: {index_name} - {e}")

    logger.debug("Migrations complete")
