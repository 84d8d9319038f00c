# Overview: Service-layer operations for document numbering; encapsulates database work.

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DocumentSequence


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


def next_document_number(
    *,
    document_type: str,
    scope_key: str,
    prefix: str,
    pad: int = 4,
) -> str:
    """
    Atomically allocate the next document number for a type/scope.

    The increment is a single UPDATE so two callers never receive the same
    number. The increment is part of the caller's transaction, so a
    rolled-back caller releases its number. This function never rolls back
    itself: lock errors propagate and the caller retries its whole unit of
    work.

    Example: document_type="BILL", scope_key="2026", prefix="BILL"
    -> "BILL-2026-0001"
    """
    if not document_type:
        raise DocumentSequenceError("document_type is required")
    if not scope_key:
        raise DocumentSequenceError("scope_key is required")

    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.document_type == document_type,
            DocumentSequence.scope_key == scope_key,
        )
        .values(next_number=DocumentSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        next_num = _current_number(document_type, scope_key) - 1
    else:
        seq = DocumentSequence(document_type=document_type, scope_key=scope_key, next_number=2)
        try:
            with db.session.begin_nested():
                db.session.add(seq)
            next_num = 1
        except IntegrityError:
            # Another caller created the sequence first; take the next slot
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise
            next_num = _current_number(document_type, scope_key) - 1

    return f"{prefix}-{scope_key}-{next_num:0{pad}d}"


def _current_number(document_type: str, scope_key: str) -> int:
    db.session.flush()
    return (
        db.session.query(DocumentSequence.next_number)
        .filter_by(document_type=document_type, scope_key=scope_key)
        .scalar()
    )
