from decimal import Decimal
from venue import db
from venue.utils.time import utcnow, isoformat_utc


def _money(value) -> float:
    """Numeric column → JSON number (the frontend does its own formatting)."""
    if value is None:
        return 0
    return float(Decimal(str(value)))


class Reservation(db.Model):
    """
    One venue booking, numbered INV/{YYYY}/{MM}-VE-{NNNN}.
    Owns its add-ons and payments: deleting it deletes them in the same
    transaction (ORM cascade + ON DELETE CASCADE on the foreign keys).
    """
    __tablename__ = 'reservations'

    id               = db.Column(db.Integer, primary_key=True)
    invoice_number   = db.Column(db.String(64), unique=True, nullable=False, index=True)
    client_name      = db.Column(db.String(200), nullable=False, index=True)
    phone            = db.Column(db.String(40), nullable=False, default='')
    email            = db.Column(db.String(120), nullable=False, default='')
    event_type       = db.Column(db.String(120), nullable=False, default='')
    venue            = db.Column(db.String(120), nullable=False, default='')
    reservation_date = db.Column(db.DateTime, nullable=False)            # UTC midnight
    event_date       = db.Column(db.DateTime, nullable=False, index=True)  # UTC midnight
    pax              = db.Column(db.Integer, nullable=False, default=0)
    price_per_pax    = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    subtotal         = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    down_payment     = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    notes            = db.Column(db.Text, nullable=False, default='')
    created_at       = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at       = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # ── Relationships ─────────────────────────────────────────────
    addons   = db.relationship('Addon', backref='reservation', lazy='select',
                               cascade='all, delete-orphan',
                               order_by='Addon.id')
    payments = db.relationship('Payment', backref='reservation', lazy='select',
                               cascade='all, delete-orphan',
                               order_by='Payment.id')

    # ── Serialisation (legacy wire keys) ──────────────────────────
    def to_dict(self, include_addons=True, include_payments=False) -> dict:
        data = {
            '_id':              self.id,
            'nomorInvoice':     self.invoice_number,
            'namaClient':       self.client_name,
            'noTelepon':        self.phone,
            'email':            self.email,
            'jenisAcara':       self.event_type,
            'ruangan':          self.venue,
            'tanggalReservasi': isoformat_utc(self.reservation_date),
            'tanggalEvent':     isoformat_utc(self.event_date),
            'pax':              self.pax,
            'hargaPerPax':      _money(self.price_per_pax),
            'subTotal':         _money(self.subtotal),
            'dp':               _money(self.down_payment),
            'catatan':          self.notes,
            'createdAt':        isoformat_utc(self.created_at),
            'updatedAt':        isoformat_utc(self.updated_at),
        }
        if include_addons:
            data['addons'] = [a.to_dict() for a in self.addons]
        if include_payments:
            data['pembayaran'] = [p.to_dict() for p in self.payments]
        return data

    def __repr__(self):
        return f"<Reservation {self.invoice_number!r} {self.client_name!r}>"


class Addon(db.Model):
    """Extra priced line item on a reservation. Append-only."""
    __tablename__ = 'addons'

    id             = db.Column(db.Integer, primary_key=True)
    reservation_id = db.Column(db.Integer, db.ForeignKey('reservations.id', ondelete='CASCADE'),
                               nullable=False, index=True)
    item           = db.Column(db.String(200), nullable=False)
    pax            = db.Column(db.Integer, nullable=False, default=0)
    price_per_pax  = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    subtotal       = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    notes          = db.Column(db.Text, nullable=False, default='')
    created_at     = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            '_id':           self.id,
            'reservationId': self.reservation_id,
            'item':          self.item,
            'pax':           self.pax,
            'hargaPerPax':   _money(self.price_per_pax),
            'subTotal':      _money(self.subtotal),
            'catatan':       self.notes,
            'createdAt':     isoformat_utc(self.created_at),
        }

    def __repr__(self):
        return f"<Addon reservation={self.reservation_id} item={self.item!r}>"


class Payment(db.Model):
    """
    Money received against a reservation, numbered NOTA/{YYYY}/{MM}-SDP-{NNNN}.
    ``is_down_payment`` marks the row auto-created from the reservation's dp.
    """
    __tablename__ = 'payments'

    id              = db.Column(db.Integer, primary_key=True)
    reservation_id  = db.Column(db.Integer, db.ForeignKey('reservations.id', ondelete='CASCADE'),
                                nullable=False, index=True)
    receipt_number  = db.Column(db.String(64), unique=True, nullable=False, index=True)
    amount          = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    paid_on         = db.Column(db.DateTime, nullable=True)     # UTC midnight
    proof_url       = db.Column(db.String(255), nullable=False, default='')
    is_down_payment = db.Column(db.Boolean, nullable=False, default=False)
    created_at      = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            '_id':           self.id,
            'reservationId': self.reservation_id,
            'nomorKwitansi': self.receipt_number,
            'jumlah':        _money(self.amount),
            'tanggal':       isoformat_utc(self.paid_on),
            'buktiUrl':      self.proof_url,
            'isDp':          self.is_down_payment,
            'createdAt':     isoformat_utc(self.created_at),
        }

    def __repr__(self):
        return f"<Payment {self.receipt_number!r} {self.amount}>"
