"""
venue/legacy/restructure.py
───────────────────────────
Move the old embedded layout into linked tables.

The old store kept add-ons and payments as arrays inside each reservation
document:

    {"nomorInvoice": "INV/2024/08-VE-0003", "namaClient": "...",
     "addons": [{...}], "pembayaran": [{"nomorKwitansi": "...", ...}]}

Input is a JSON export of those documents (one array, or one document per
line; Extended JSON wrappers such as {"$date": ...} are accepted). For each
document the reservation is created if its invoice number is new, then
its embedded children are written as Addon / Payment rows.

Idempotent: a reservation that already has add-ons keeps them, payments
whose receipt number exists are skipped, and payments without a receipt
number are only written to a reservation that has no payments yet.
"""
import json
from datetime import datetime, timezone
import logging

from venue import db
from venue.legacy.importer import ImportReport
from venue.legacy.parsing import parse_legacy_date
from venue.numbering import RECEIPT, next_identifier
from venue.numbering.service import observe_identifier
from venue.reservations.models import Reservation, Addon, Payment
from venue.utils.numbers import to_decimal, to_int
from venue.utils.time import utcnow, utc_midnight

logger = logging.getLogger(__name__)

_NUMBER_WRAPPERS = ('$numberInt', '$numberLong', '$numberDouble', '$numberDecimal')


def load_documents(path) -> list:
    """Read an export written as a JSON array or as JSON lines."""
    with open(path, encoding='utf-8') as fh:
        text = fh.read().strip()
    if not text:
        return []
    if text.startswith('['):
        return json.loads(text)
    return [json.loads(line) for line in text.splitlines() if line.strip()]


def _unwrap(value):
    """Strip Extended JSON wrappers: {"$date": ...}, {"$numberDouble": ...}."""
    if isinstance(value, dict):
        if '$date' in value:
            return _unwrap(value['$date'])
        for key in _NUMBER_WRAPPERS:
            if key in value:
                return value[key]
        if '$oid' in value:
            return value['$oid']
    return value


def _date(value):
    value = _unwrap(value)
    if value in (None, ''):
        return None
    if isinstance(value, str) and value.isdigit():
        value = int(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # epoch milliseconds
        return utc_midnight(datetime.fromtimestamp(value / 1000, tz=timezone.utc))
    try:
        return utc_midnight(value)
    except ValueError:
        return parse_legacy_date(value)


def _text(doc, key):
    value = _unwrap(doc.get(key))
    return '' if value is None else str(value).strip()


def _reservation_from_document(doc, invoice_number, now) -> Reservation:
    event_date = _date(doc.get('tanggalEvent')) or utc_midnight(now)
    return Reservation(
        invoice_number   = invoice_number,
        client_name      = _text(doc, 'namaClient') or '-',
        phone            = _text(doc, 'noTelepon'),
        email            = _text(doc, 'email'),
        event_type       = _text(doc, 'jenisAcara'),
        venue            = _text(doc, 'ruangan'),
        reservation_date = _date(doc.get('tanggalReservasi')) or event_date,
        event_date       = event_date,
        pax              = to_int(_unwrap(doc.get('pax'))),
        price_per_pax    = to_decimal(_unwrap(doc.get('hargaPerPax'))),
        subtotal         = to_decimal(_unwrap(doc.get('subTotal'))),
        down_payment     = to_decimal(_unwrap(doc.get('dp'))),
        notes            = _text(doc, 'catatan'),
        created_at       = now,
        updated_at       = now,
    )


def restructure_documents(documents):
    """
    Write embedded children of ``documents`` as linked rows.

    Returns ``(reservations, addons, payments)`` ImportReports.
    """
    now = utcnow()
    res_report = ImportReport('reservations', len(documents))
    addon_report = ImportReport('add-ons')
    pay_report = ImportReport('payments')

    try:
        for doc in documents:
            inv = _text(doc, 'nomorInvoice')
            if not inv:
                res_report.skipped += 1
                continue

            reservation = Reservation.query.filter_by(invoice_number=inv).first()
            if reservation is None:
                reservation = _reservation_from_document(doc, inv, now)
                db.session.add(reservation)
                observe_identifier(db.session, inv, now)
                res_report.matched += 1
            else:
                res_report.skipped += 1

            embedded_addons = doc.get('addons') or []
            addon_report.total += len(embedded_addons)
            if reservation.addons:
                addon_report.skipped += len(embedded_addons)
            else:
                for item in embedded_addons:
                    reservation.addons.append(Addon(
                        item          = _text(item, 'item') or '-',
                        pax           = to_int(_unwrap(item.get('pax'))),
                        price_per_pax = to_decimal(_unwrap(item.get('hargaPerPax'))),
                        subtotal      = to_decimal(_unwrap(item.get('subTotal'))),
                        notes         = _text(item, 'catatan'),
                        created_at    = now,
                    ))
                    addon_report.matched += 1

            embedded_payments = doc.get('pembayaran') or []
            pay_report.total += len(embedded_payments)
            had_payments = bool(reservation.payments)
            for item in embedded_payments:
                receipt_number = _text(item, 'nomorKwitansi')
                if receipt_number:
                    if Payment.query.filter_by(receipt_number=receipt_number).first():
                        pay_report.skipped += 1
                        continue
                    observe_identifier(db.session, receipt_number, now)
                elif had_payments:
                    # unnumbered: nothing to match on, so only fill an empty list
                    pay_report.skipped += 1
                    continue
                else:
                    receipt_number = next_identifier(db.session, RECEIPT, now, Payment.receipt_number)

                reservation.payments.append(Payment(
                    receipt_number = receipt_number,
                    amount         = to_decimal(_unwrap(item.get('jumlah'))),
                    paid_on        = _date(item.get('tanggal')),
                    proof_url      = _text(item, 'buktiUrl'),
                    created_at     = now,
                ))
                pay_report.matched += 1

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    for report in (res_report, addon_report, pay_report):
        logger.info("Restructure: %s", report.summary())
    return res_report, addon_report, pay_report
