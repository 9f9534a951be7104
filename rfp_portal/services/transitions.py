"""
Compare-and-set helpers shared by the workflow services.

A transition is an UPDATE guarded by the state the caller observed
(`WHERE status = 'pending'`); the affected row count tells whether this
request won. Nothing here commits.
"""
from sqlalchemy import update
from sqlmodel import Session


def compare_and_set(db: Session, model, *conditions, **values) -> bool:
    """Apply `values` to rows of `model` matching `conditions`; True if exactly one row changed."""
    result = db.exec(
        update(model)
        .where(*conditions)
        .values(**values)
        .execution_options(synchronize_session="evaluate")
    )
    return result.rowcount == 1


def status_transition(db: Session, model, entity_id, expected, **values) -> bool:
    return compare_and_set(
        db, model,
        model.id == entity_id,
        model.status == expected,
        **values
    )
