"""
venue/numbering/scope.py
────────────────────────
Scope key builder: (tag, category, year, month) → prefix string.
"""
from collections import namedtuple
from datetime import datetime


DocumentKind = namedtuple('DocumentKind', ['tag', 'category'])

INVOICE = DocumentKind(tag='INV', category='VE')
RECEIPT = DocumentKind(tag='NOTA', category='SDP')


class Scope(namedtuple('Scope', ['tag', 'category', 'year', 'month'])):
    """One independent counter: the sequence restarts in every scope."""
    __slots__ = ()

    @property
    def key(self) -> str:
        """Counter row key, e.g. ``INV/2025/06-VE``."""
        return f"{self.tag}/{self.year}/{self.month}-{self.category}"

    @property
    def prefix(self) -> str:
        """Identifier prefix, e.g. ``INV/2025/06-VE-``."""
        return f"{self.key}-"


def build_scope(kind: DocumentKind, now: datetime) -> Scope:
    """
    Derive the scope for ``kind`` at instant ``now``.

    ``now`` must be the same instant the caller stamps as ``created_at``,
    otherwise a record created at 23:59:59 on the last day of a month can
    be numbered in the wrong month.
    """
    return Scope(
        tag=kind.tag,
        category=kind.category,
        year=f"{now.year:04d}",
        month=f"{now.month:02d}",
    )
