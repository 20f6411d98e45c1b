"""
venue/numbering/service.py
──────────────────────────
Concurrency-safe document number allocation.

Algorithm
─────────
1. Atomic claim on the scope's counter row:

       UPDATE document_sequences SET last_seq = last_seq + 1 WHERE scope = :key

   The row stays locked until the caller's transaction ends, so two
   requests in the same month can never read the same value.

2. No row yet means this is the first document of the month. Seed the
   counter from existing records (legacy imports included): scan history,
   allocate the next sequence and INSERT the counter row inside a
   SAVEPOINT. The primary key makes the INSERT the claim.

3. If the INSERT hits IntegrityError another request opened the scope
   first. Roll back the savepoint, back off, go to 1. After
   SEQUENCE_MAX_RETRIES attempts give up with SequenceConflictError.

MUST be called inside the transaction that also inserts the record, so a
rolled-back insert gives its number back.
"""
import logging
import time

from flask import current_app
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from venue.errors import SequenceConflictError
from venue.numbering.allocator import allocate, format_identifier, parse_sequence
from venue.numbering.models import DocumentSequence
from venue.numbering.scanner import find_latest_identifier
from venue.numbering.scope import build_scope

logger = logging.getLogger(__name__)


def _claim_next(session, scope_key, now):
    result = session.execute(
        update(DocumentSequence)
        .where(DocumentSequence.scope == scope_key)
        .values(last_seq=DocumentSequence.last_seq + 1, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        return None
    return session.execute(
        select(DocumentSequence.last_seq).where(DocumentSequence.scope == scope_key)
    ).scalar_one()


def next_identifier(session, kind, now, history_column,
                    max_retries=None, backoff=None) -> str:
    """
    Allocate the next identifier of ``kind`` for the month containing ``now``.

    Args:
        session:        the active SQLAlchemy session (db.session)
        kind:           INVOICE or RECEIPT
        now:            creation instant of the record being numbered
        history_column: column holding issued identifiers of this kind,
                        scanned only when the month's counter is new

    Returns:
        str, e.g. "INV/2025/06-VE-0015"
    """
    if max_retries is None:
        max_retries = current_app.config['SEQUENCE_MAX_RETRIES']
    if backoff is None:
        backoff = current_app.config['SEQUENCE_RETRY_BACKOFF']

    scope = build_scope(kind, now)

    for attempt in range(max_retries):
        seq = _claim_next(session, scope.key, now)
        if seq is not None:
            return format_identifier(scope.prefix, seq)

        latest = find_latest_identifier(session, history_column, scope.prefix)
        identifier = allocate(scope.prefix, latest)
        try:
            with session.begin_nested():
                session.add(DocumentSequence(
                    scope=scope.key,
                    last_seq=parse_sequence(identifier),
                    updated_at=now,
                ))
        except IntegrityError:
            delay = backoff * (2 ** attempt)
            logger.info(
                "Scope %s opened concurrently (attempt %d/%d); retrying in %.3fs",
                scope.key, attempt + 1, max_retries, delay,
            )
            if delay:
                time.sleep(delay)
            continue

        logger.info("Opened numbering scope %s at %s", scope.key, identifier)
        return identifier

    logger.error("Gave up allocating in scope %s after %d attempts", scope.key, max_retries)
    raise SequenceConflictError()


def observe_identifier(session, identifier, now=None) -> bool:
    """
    Move a scope's counter forward past an identifier written from outside
    the allocator (legacy import). Returns True when the counter moved.

    Scopes without a counter row are left alone; they seed from history
    on first use anyway.
    """
    seq = parse_sequence(identifier)
    if seq is None:
        return False
    scope_key = identifier.rsplit('-', 1)[0]
    values = {'last_seq': seq}
    if now is not None:
        values['updated_at'] = now
    result = session.execute(
        update(DocumentSequence)
        .where(DocumentSequence.scope == scope_key, DocumentSequence.last_seq < seq)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


def sequence_status(session):
    """Counter rows, newest scope first, as (scope, last_seq, next_identifier)."""
    rows = session.execute(
        select(DocumentSequence).order_by(DocumentSequence.updated_at.desc(), DocumentSequence.scope)
    ).scalars().all()
    return [
        (row.scope, row.last_seq, format_identifier(f"{row.scope}-", row.last_seq + 1))
        for row in rows
    ]
