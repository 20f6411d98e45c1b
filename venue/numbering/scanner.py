"""
venue/numbering/scanner.py
──────────────────────────
History scanner: find the highest identifier already issued in a scope.

Identifiers are compared as strings. That equals numeric order only while
every suffix is exactly four digits; ``…-10000`` sorts below ``…-9999``.
Rows that break the precondition are logged, not reinterpreted.
"""
import logging
from typing import Optional

from sqlalchemy import select

from venue.numbering.allocator import SEQUENCE_WIDTH, parse_sequence

logger = logging.getLogger(__name__)


def find_latest_identifier(session, column, prefix: str) -> Optional[str]:
    """
    Return the lexicographically greatest well-formed identifier in
    ``column`` that starts with ``prefix``, or None.

    Non-numeric suffixes (``INV/2025/06-VE-XXXX``) sort above digits, so
    the scan walks down the descending list until it finds a parseable one.
    """
    stmt = (
        select(column)
        .where(column.startswith(prefix, autoescape=True))
        .order_by(column.desc())
        .execution_options(yield_per=50)
    )
    for identifier in session.execute(stmt).scalars():
        if parse_sequence(identifier) is None:
            logger.warning("Skipping malformed identifier %r in scope %r", identifier, prefix)
            continue
        if len(identifier) - len(prefix) != SEQUENCE_WIDTH:
            logger.warning(
                "Identifier %r has a %d-digit suffix; scope %r may not sort numerically",
                identifier, len(identifier) - len(prefix), prefix,
            )
        return identifier
    return None
