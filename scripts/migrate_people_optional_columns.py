"""Add the optional credential and login-index columns to an existing people table.

Usage: python -m scripts.migrate_people_optional_columns
"""

import sys
import os

# Add parent dir to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text

from fenix_accounts.infrastructure.database import SessionLocal, engine
from fenix_accounts.infrastructure.schema_capabilities import SchemaCapabilities

# Legacy `password` is never added back; it only exists on old deployments
COLUMN_DDL = {
    "password_hash": "VARCHAR(255)",
    "initial_password_plain_text": "TEXT",
    "username_norm": "VARCHAR(150)",
    "username_flat": "VARCHAR(150)",
    "email_norm": "VARCHAR(255)",
    "email_flat": "VARCHAR(255)",
}


def migrate():
    print("Migrating people table...")
    capabilities = SchemaCapabilities.probe(engine, "people")
    pending = [column for column in COLUMN_DDL if column in capabilities.missing]
    if not pending:
        print("All optional columns already exist.")
        return

    db = SessionLocal()
    try:
        for column in pending:
            print(f"Adding '{column}' column...")
            db.execute(text(f"ALTER TABLE people ADD COLUMN {column} {COLUMN_DDL[column]}"))
            if column.endswith(("_norm", "_flat")):
                db.execute(text(f"CREATE INDEX IF NOT EXISTS ix_people_{column} ON people ({column})"))
        db.commit()
        print(f"Migration successful: added {', '.join(pending)}.")
    except Exception as e:
        print(f"Migration failed: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    migrate()
