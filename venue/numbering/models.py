from venue.utils.time import utcnow
from venue import db


class DocumentSequence(db.Model):
    """
    One row per (tag, category, year, month) scope, holding the last
    sequence number handed out in it.

    Why a counter row instead of scanning for MAX(identifier)?
    ──────────────────────────────────────────────────────────
    Scan-then-increment is not safe under concurrent writes:

        Tx A: max = INV/2025/06-VE-0014  →  next = 0015   ┐
        Tx B: max = INV/2025/06-VE-0014  →  next = 0015   ┘  ← duplicate

    With UPDATE … SET last_seq = last_seq + 1 the second transaction
    blocks on the row until the first commits, then sees 15 and takes 16.
    """
    __tablename__ = 'document_sequences'

    scope      = db.Column(db.String(32), primary_key=True)   # e.g. INV/2025/06-VE
    last_seq   = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<DocumentSequence {self.scope} last_seq={self.last_seq}>"
