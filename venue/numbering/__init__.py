"""
venue/numbering
───────────────
Sequential invoice / receipt numbers.

    INV/{YYYY}/{MM}-VE-{NNNN}     reservations
    NOTA/{YYYY}/{MM}-SDP-{NNNN}   payments

The sequence restarts at 0001 every calendar month.
"""
from venue.numbering.scope import DocumentKind, INVOICE, RECEIPT, build_scope  # noqa: F401
from venue.numbering.service import next_identifier  # noqa: F401
