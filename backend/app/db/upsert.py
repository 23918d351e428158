"""
Atomic insert-or-update helpers keyed on unique composite indexes.

Natural-key uniqueness is enforced by the database with a single
``INSERT ... ON CONFLICT`` statement, so racing requests never create
duplicate rows.
"""

from typing import Any, Dict, Sequence, Type
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


def dialect_insert(db: AsyncSession, model: Type):
    """Return the dialect-specific INSERT construct supporting ON CONFLICT."""
    dialect_name = db.get_bind().dialect.name
    if dialect_name == "sqlite":
        return sqlite_insert(model)
    return postgresql_insert(model)


async def upsert(
    db: AsyncSession,
    model: Type,
    values: Dict[str, Any],
    conflict_columns: Sequence[str],
    update_values: Dict[str, Any],
):
    """
    Insert a row or update the existing one sharing the same natural key.

    Args:
        db: Database session
        model: Mapped class owning the unique index
        values: Column values for a fresh insert
        conflict_columns: Columns of the unique index
        update_values: Columns overwritten when the row already exists

    Returns:
        The persisted row, freshly loaded
    """
    stmt = dialect_insert(db, model).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=list(conflict_columns),
        set_=update_values,
    ).returning(model.id)

    result = await db.execute(stmt)
    row_id = result.scalar_one()
    await db.commit()

    return await db.get(model, row_id, populate_existing=True)


async def insert_if_absent(
    db: AsyncSession,
    model: Type,
    values: Dict[str, Any],
    conflict_columns: Sequence[str],
) -> None:
    """Insert a row unless one with the same natural key already exists."""
    stmt = dialect_insert(db, model).values(**values)
    stmt = stmt.on_conflict_do_nothing(index_elements=list(conflict_columns))
    await db.execute(stmt)
    await db.commit()
