from datetime import datetime
from typing import Optional

from sqlalchemy import Table, event, func
from sqlmodel import SQLModel, Field


class Timestamped(SQLModel):
    # Both columns are filled in by the database, never by the application
    created_at: Optional[datetime] = Field(
        default=None,
        nullable=False,
        sa_column_kwargs={"server_default": func.now()},
    )
    updated_at: Optional[datetime] = Field(
        default=None,
        nullable=False,
        sa_column_kwargs={"server_default": func.now(), "onupdate": func.now()},
    )


def _maintain_updated_at(table: Table, connection, **kw) -> None:
    """Let the database bump ``updated_at`` on every UPDATE, ORM or not."""
    dialect = connection.dialect.name
    if dialect == "mysql":
        connection.exec_driver_sql(
            f"ALTER TABLE `{table.name}` MODIFY `updated_at` DATETIME NOT NULL "
            "DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP"
        )
    elif dialect == "sqlite":
        # Fires only when the UPDATE left updated_at alone; recursive
        # triggers are off, so the inner UPDATE does not fire it again.
        connection.exec_driver_sql(
            f'CREATE TRIGGER IF NOT EXISTS "{table.name}_updated_at" '
            f'AFTER UPDATE ON "{table.name}" FOR EACH ROW '
            "WHEN NEW.updated_at = OLD.updated_at "
            f'BEGIN UPDATE "{table.name}" SET updated_at = CURRENT_TIMESTAMP '
            "WHERE rowid = NEW.rowid; END"
        )


def track_updated_at(table: Table) -> None:
    event.listen(table, "after_create", _maintain_updated_at)
