"""
venue/legacy/importer.py
────────────────────────
Import the legacy CSV exports into the linked tables.

Files and key columns
─────────────────────
reservations.csv   No INV, Nama Client, No Telepon, Jenis Acara, Ruangan,
                   Tanggal Reservasi, Tanggal Event, Jumlah PAX, Harga/Pax,
                   Sub Total, DP, Catatan
addons.csv         No INV, Item, Jumlah PAX, Harga/Pax, Sub Total, Catatan Tambahan
payments.csv       INV, No Kwitansi, # Pembayaran, Tanggal, Bukti

Every import is safe to re-run:
  - reservations are keyed by invoice number; existing ones are skipped
  - add-ons of every reservation named in addons.csv are replaced
  - payments are keyed by receipt number; existing ones are skipped

Legacy invoice / receipt numbers are kept as-is, and the numbering
counters are moved past them so new documents never collide.
"""
import logging

from venue import db
from venue.numbering import RECEIPT, next_identifier
from venue.numbering.service import observe_identifier
from venue.legacy.parsing import cell, parse_currency, parse_legacy_date
from venue.reservations.models import Reservation, Addon, Payment
from venue.utils.numbers import to_int
from venue.utils.time import utcnow, utc_midnight

logger = logging.getLogger(__name__)


class ImportReport:
    """Counters for one import run."""

    def __init__(self, label, total=0):
        self.label = label
        self.total = total
        self.matched = 0
        self.skipped = 0
        self.not_found = []

    def summary(self) -> str:
        line = f"{self.matched} of {self.total} {self.label} imported, {self.skipped} skipped."
        if self.not_found:
            unique = sorted(set(self.not_found))
            line += f" No reservation for invoice: {', '.join(unique)}"
        return line

    def __repr__(self):
        return (f"<ImportReport {self.label} matched={self.matched} "
                f"skipped={self.skipped} not_found={len(self.not_found)}>")


def _reservations_by_invoice(invoice_numbers) -> dict:
    if not invoice_numbers:
        return {}
    rows = Reservation.query.filter(Reservation.invoice_number.in_(list(invoice_numbers))).all()
    return {r.invoice_number: r for r in rows}


def import_reservations(rows) -> ImportReport:
    report = ImportReport('reservations', len(rows))
    now = utcnow()
    try:
        existing = _reservations_by_invoice({cell(r, 'No INV') for r in rows if cell(r, 'No INV')})
        for row in rows:
            inv = cell(row, 'No INV')
            if not inv or inv in existing:
                report.skipped += 1
                continue

            event_date = parse_legacy_date(cell(row, 'Tanggal Event')) or utc_midnight(now)
            reservation = Reservation(
                invoice_number   = inv,
                client_name      = cell(row, 'Nama Client') or '-',
                phone            = cell(row, 'No Telepon'),
                event_type       = cell(row, 'Jenis Acara'),
                venue            = cell(row, 'Ruangan'),
                reservation_date = parse_legacy_date(cell(row, 'Tanggal Reservasi')) or event_date,
                event_date       = event_date,
                pax              = to_int(cell(row, 'Jumlah PAX')),
                price_per_pax    = parse_currency(cell(row, 'Harga/Pax')),
                subtotal         = parse_currency(cell(row, 'Sub Total')),
                down_payment     = parse_currency(cell(row, 'DP')),
                notes            = cell(row, 'Catatan'),
                created_at       = now,
                updated_at       = now,
            )
            db.session.add(reservation)
            existing[inv] = reservation
            observe_identifier(db.session, inv, now)
            report.matched += 1

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Legacy import: %s", report.summary())
    return report


def import_addons(rows) -> ImportReport:
    report = ImportReport('add-ons', len(rows))
    now = utcnow()
    try:
        invoices = {cell(r, 'No INV') for r in rows if cell(r, 'No INV')}
        reservations = _reservations_by_invoice(invoices)

        # Replace, not append: re-running the import must not duplicate lines.
        if reservations:
            Addon.query.filter(
                Addon.reservation_id.in_([r.id for r in reservations.values()])
            ).delete(synchronize_session=False)
            for reservation in reservations.values():
                db.session.expire(reservation, ['addons'])

        for row in rows:
            inv = cell(row, 'No INV')
            if not inv:
                report.skipped += 1
                continue
            reservation = reservations.get(inv)
            if reservation is None:
                report.not_found.append(inv)
                continue

            db.session.add(Addon(
                reservation_id = reservation.id,
                item           = cell(row, 'Item') or '-',
                pax            = to_int(cell(row, 'Jumlah PAX')),
                price_per_pax  = parse_currency(cell(row, 'Harga/Pax')),
                subtotal       = parse_currency(cell(row, 'Sub Total')),
                notes          = cell(row, 'Catatan Tambahan'),
                created_at     = now,
            ))
            report.matched += 1

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Legacy import: %s", report.summary())
    return report


def import_payments(rows) -> ImportReport:
    report = ImportReport('payments', len(rows))
    now = utcnow()
    try:
        reservations = _reservations_by_invoice({cell(r, 'INV') for r in rows if cell(r, 'INV')})

        for row in rows:
            inv = cell(row, 'INV')
            if not inv:
                report.skipped += 1
                continue
            reservation = reservations.get(inv)
            if reservation is None:
                report.not_found.append(inv)
                continue

            receipt_number = cell(row, 'No Kwitansi')
            if receipt_number:
                if Payment.query.filter_by(receipt_number=receipt_number).first():
                    report.skipped += 1
                    continue
                observe_identifier(db.session, receipt_number, now)
            else:
                receipt_number = next_identifier(db.session, RECEIPT, now, Payment.receipt_number)

            db.session.add(Payment(
                reservation_id = reservation.id,
                receipt_number = receipt_number,
                amount         = parse_currency(cell(row, '# Pembayaran')),
                paid_on        = parse_legacy_date(cell(row, 'Tanggal')),
                proof_url      = cell(row, 'Bukti'),
                created_at     = now,
            ))
            report.matched += 1

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Legacy import: %s", report.summary())
    return report
