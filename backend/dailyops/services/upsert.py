# Overview: Keyed insert-or-update primitive shared by every date-scoped table.

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from ..extensions import db


_NATIVE_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def upsert_keyed(
    model,
    natural_key: dict[str, Any],
    update_fields: dict[str, Any],
    create_fields: dict[str, Any] | None = None,
    update_where=None,
):
    """
    Insert-if-absent, update-if-present keyed by a unique constraint.

    natural_key must match the columns of a unique constraint on model.
    update_fields are written in both cases; create_fields only on insert.
    An empty update_fields leaves an existing row untouched, and so does an
    existing row that does not satisfy update_where (a column expression
    evaluated against the stored row).

    Uses the dialect's native INSERT ... ON CONFLICT so concurrent callers
    converge on one row. Dialects without it fall back to an insert inside a
    savepoint, then an update if the constraint fires.

    Returns the persisted ORM instance, refreshed from the database.
    """
    values = {**(create_fields or {}), **update_fields, **natural_key}
    insert = _NATIVE_INSERTS.get(db.session.get_bind().dialect.name)

    if insert is not None:
        stmt = insert(model).values(**values)
        if update_fields:
            stmt = stmt.on_conflict_do_update(
                index_elements=list(natural_key), set_=update_fields, where=update_where
            )
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=list(natural_key))
        db.session.execute(stmt)
    else:
        _upsert_with_savepoint(model, natural_key, update_fields, values, update_where)

    return (
        db.session.query(model)
        .filter_by(**natural_key)
        .populate_existing()
        .one()
    )


def _upsert_with_savepoint(model, natural_key, update_fields, values, update_where) -> None:
    existing = db.session.query(model).filter_by(**natural_key).first()
    if existing is None:
        try:
            with db.session.begin_nested():
                db.session.add(model(**values))
            return
        except IntegrityError:
            existing = db.session.query(model).filter_by(**natural_key).one()

    if update_where is not None:
        matches = db.session.query(model).filter_by(**natural_key).filter(update_where).first()
        if matches is None:
            return

    for key, value in update_fields.items():
        setattr(existing, key, value)
    db.session.flush()
