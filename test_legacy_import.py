"""
test_legacy_import.py: spreadsheet import and embedded-layout restructure.

Run: pytest test_legacy_import.py -v
"""
import json
from datetime import datetime
from decimal import Decimal

import pytest

from venue import create_app, db
from venue.legacy.importer import import_reservations, import_addons, import_payments
from venue.legacy.parsing import read_csv, parse_legacy_date
from venue.legacy.restructure import load_documents, restructure_documents
from venue.numbering import INVOICE, RECEIPT, next_identifier
from venue.reservations.models import Reservation, Addon, Payment
from venue.utils.time import utcnow, utc_midnight


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


RESERVATION_ROWS = [
    {'No INV': 'INV/2024/08-VE-0007', 'Nama Client': 'Budi', 'No Telepon': '0812',
     'Jenis Acara': 'Wedding', 'Ruangan': 'Grand Ballroom',
     'Tanggal Reservasi': '1-Agu-2024', 'Tanggal Event': '17-Agu-2024',
     'Jumlah PAX': '300', 'Harga/Pax': 'Rp 150.000', 'Sub Total': 'Rp 45.000.000',
     'DP': 'Rp 10.000.000', 'Catatan': 'VIP'},
    {'No INV': 'INV/2024/08-VE-0003', 'Nama Client': 'Siti', 'No Telepon': '',
     'Jenis Acara': 'Seminar', 'Ruangan': 'Room A',
     'Tanggal Reservasi': '2024-08-02', 'Tanggal Event': '5-Sep-2024',
     'Jumlah PAX': '50 orang', 'Harga/Pax': '', 'Sub Total': '', 'DP': '', 'Catatan': ''},
    {'No INV': '', 'Nama Client': 'No invoice row'},
]

ADDON_ROWS = [
    {'No INV': 'INV/2024/08-VE-0007', 'Item': 'Extra dessert', 'Jumlah PAX': '300',
     'Harga/Pax': 'Rp 10.000', 'Sub Total': 'Rp 3.000.000', 'Catatan Tambahan': ''},
    {'No INV': 'INV/2024/08-VE-0007', 'Item': 'Flowers', 'Jumlah PAX': '',
     'Harga/Pax': '', 'Sub Total': 'Rp 2.500.000', 'Catatan Tambahan': 'white roses'},
    {'No INV': 'INV/2024/01-VE-0999', 'Item': 'Orphan', 'Jumlah PAX': '1',
     'Harga/Pax': '', 'Sub Total': '', 'Catatan Tambahan': ''},
]

PAYMENT_ROWS = [
    {'INV': 'INV/2024/08-VE-0007', 'No Kwitansi': 'NOTA/2024/08-SDP-0012',
     '# Pembayaran': 'Rp 10.000.000', 'Tanggal': '1-Agu-2024', 'Bukti': ''},
    {'INV': 'INV/2024/08-VE-0007', 'No Kwitansi': '',
     '# Pembayaran': 'Rp 5.000.000,50', 'Tanggal': '10/08/2024', 'Bukti': ''},
]


# ── Parsing ─────────────────────────────────────────────────────────────────

def test_parse_legacy_date_formats():
    assert parse_legacy_date('12-Agu-2024') == datetime(2024, 8, 12)
    assert parse_legacy_date('5-Desember-2023') == datetime(2023, 12, 5)
    assert parse_legacy_date('2024-03-09') == datetime(2024, 3, 9)
    assert parse_legacy_date('09/03/2024') == datetime(2024, 3, 9)
    assert parse_legacy_date('') is None
    assert parse_legacy_date(None) is None


def test_parse_legacy_date_falls_back_to_today():
    assert parse_legacy_date('someday') == utc_midnight(utcnow())


def test_read_csv_strips_bom_and_headers(tmp_path):
    path = tmp_path / 'reservations.csv'
    path.write_text('\ufeff No INV , Nama Client \nINV/2024/08-VE-0001,Budi\n', encoding='utf-8')
    rows = read_csv(path)
    assert rows == [{'No INV': 'INV/2024/08-VE-0001', 'Nama Client': 'Budi'}]


# ── CSV import ──────────────────────────────────────────────────────────────

def test_import_reservations(app):
    report = import_reservations(RESERVATION_ROWS)
    assert (report.matched, report.skipped) == (2, 1)

    r = Reservation.query.filter_by(invoice_number='INV/2024/08-VE-0007').one()
    assert r.client_name == 'Budi'
    assert r.event_date == datetime(2024, 8, 17)
    assert r.pax == 300
    assert r.subtotal == Decimal('45000000')
    assert r.down_payment == Decimal('10000000')

    siti = Reservation.query.filter_by(invoice_number='INV/2024/08-VE-0003').one()
    assert siti.pax == 50
    assert siti.price_per_pax == 0


def test_import_reservations_is_idempotent(app):
    import_reservations(RESERVATION_ROWS)
    report = import_reservations(RESERVATION_ROWS)
    assert report.matched == 0
    assert Reservation.query.count() == 2


def test_new_numbers_continue_after_imported_ones(app):
    # Counter row exists and is behind the imported history
    next_identifier(db.session, INVOICE, datetime(2024, 8, 1), Reservation.invoice_number)
    db.session.commit()

    import_reservations(RESERVATION_ROWS)

    assert next_identifier(db.session, INVOICE, datetime(2024, 8, 20),
                           Reservation.invoice_number) == 'INV/2024/08-VE-0008'


def test_import_addons_replaces_and_reports_missing(app):
    import_reservations(RESERVATION_ROWS)

    report = import_addons(ADDON_ROWS)
    assert report.matched == 2
    assert report.not_found == ['INV/2024/01-VE-0999']
    assert 'INV/2024/01-VE-0999' in report.summary()

    # Running again replaces instead of duplicating
    import_addons(ADDON_ROWS)
    r = Reservation.query.filter_by(invoice_number='INV/2024/08-VE-0007').one()
    assert [a.item for a in r.addons] == ['Extra dessert', 'Flowers']
    assert r.addons[1].subtotal == Decimal('2500000')
    assert Addon.query.count() == 2


def test_import_payments(app):
    import_reservations(RESERVATION_ROWS)

    report = import_payments(PAYMENT_ROWS)
    assert report.matched == 2

    numbers = sorted(p.receipt_number for p in Payment.query.all())
    assert numbers[0] == 'NOTA/2024/08-SDP-0012'
    # Missing receipt number gets a fresh one in today's scope
    assert numbers[1].startswith('NOTA/')
    amounts = sorted(p.amount for p in Payment.query.all())
    assert amounts == [Decimal('5000000.50'), Decimal('10000000')]

    again = import_payments(PAYMENT_ROWS[:1])
    assert again.skipped == 1
    assert Payment.query.count() == 2


# ── Embedded restructure ────────────────────────────────────────────────────

DOCUMENTS = [
    {
        '_id': {'$oid': '64f0c0ffee0000000000abcd'},
        'nomorInvoice': 'INV/2024/09-VE-0002',
        'namaClient': 'Andi',
        'tanggalReservasi': {'$date': '2024-09-01T00:00:00.000Z'},
        'tanggalEvent': {'$date': {'$numberLong': '1727308800000'}},  # 2024-09-26
        'pax': {'$numberInt': '80'},
        'subTotal': {'$numberDouble': '12000000.0'},
        'addons': [{'item': 'Sound system', 'subTotal': 1500000}],
        'pembayaran': [
            {'nomorKwitansi': 'NOTA/2024/09-SDP-0004', 'jumlah': 2000000,
             'tanggal': {'$date': '2024-09-02T00:00:00.000Z'}},
            {'jumlah': 500000, 'tanggal': '2024-09-10'},
        ],
    },
    {'namaClient': 'Missing invoice'},
]


def test_load_documents_array_and_lines(tmp_path):
    as_array = tmp_path / 'array.json'
    as_array.write_text(json.dumps(DOCUMENTS), encoding='utf-8')
    as_lines = tmp_path / 'lines.json'
    as_lines.write_text('\n'.join(json.dumps(d) for d in DOCUMENTS) + '\n', encoding='utf-8')

    assert load_documents(as_array) == DOCUMENTS
    assert load_documents(as_lines) == DOCUMENTS


def test_restructure_creates_linked_rows(app):
    reservations, addons, payments = restructure_documents(DOCUMENTS)
    assert (reservations.matched, reservations.skipped) == (1, 1)
    assert addons.matched == 1
    assert payments.matched == 2

    r = Reservation.query.filter_by(invoice_number='INV/2024/09-VE-0002').one()
    assert r.event_date == datetime(2024, 9, 26)
    assert r.reservation_date == datetime(2024, 9, 1)
    assert r.pax == 80
    assert r.subtotal == Decimal('12000000')
    assert [a.item for a in r.addons] == ['Sound system']
    assert r.payments[0].receipt_number == 'NOTA/2024/09-SDP-0004'
    assert r.payments[0].paid_on == datetime(2024, 9, 2)


def test_restructure_is_idempotent(app):
    restructure_documents(DOCUMENTS)
    reservations, addons, payments = restructure_documents(DOCUMENTS)

    assert reservations.matched == 0
    assert addons.skipped == 1
    assert payments.skipped == 2
    assert Reservation.query.count() == 1
    assert Addon.query.count() == 1
    assert Payment.query.count() == 2


def test_restructure_moves_receipt_counter(app):
    next_identifier(db.session, RECEIPT, datetime(2024, 9, 1), Payment.receipt_number)
    db.session.commit()

    restructure_documents(DOCUMENTS[:1])

    assert next_identifier(db.session, RECEIPT, datetime(2024, 9, 30),
                           Payment.receipt_number) == 'NOTA/2024/09-SDP-0005'
