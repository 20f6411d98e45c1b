"""
test_numbering.py: invoice / receipt number allocation.

Run: pytest test_numbering.py -v
"""
from datetime import datetime

import pytest

from venue import create_app, db
from venue.errors import SequenceConflictError
from venue.numbering import INVOICE, RECEIPT, build_scope, next_identifier
from venue.numbering import service
from venue.numbering.allocator import allocate, next_sequence, parse_sequence, format_identifier
from venue.numbering.models import DocumentSequence
from venue.numbering.scanner import find_latest_identifier
from venue.numbering.service import observe_identifier, sequence_status
from venue.reservations.models import Reservation, Payment

JUNE = datetime(2025, 6, 15, 10, 30)
JULY = datetime(2025, 7, 1, 0, 0, 1)


@pytest.fixture(scope='function')
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


def _reservation(invoice_number, name='Client'):
    r = Reservation(
        invoice_number=invoice_number,
        client_name=name,
        reservation_date=datetime(2025, 6, 1),
        event_date=datetime(2025, 6, 30),
    )
    db.session.add(r)
    return r


def _invoice(now=JUNE):
    return next_identifier(db.session, INVOICE, now, Reservation.invoice_number)


def _receipt(now=JUNE):
    return next_identifier(db.session, RECEIPT, now, Payment.receipt_number)


# ── 1. Pure pieces ──────────────────────────────────────────────────────────

def test_scope_prefix_and_key():
    scope = build_scope(INVOICE, datetime(2025, 6, 3))
    assert scope.prefix == 'INV/2025/06-VE-'
    assert scope.key == 'INV/2025/06-VE'
    assert build_scope(RECEIPT, datetime(2024, 12, 31, 23, 59)).prefix == 'NOTA/2024/12-SDP-'


def test_allocate_formats():
    assert allocate('INV/2025/06-VE-', None) == 'INV/2025/06-VE-0001'
    assert allocate('INV/2025/06-VE-', 'INV/2025/06-VE-0014') == 'INV/2025/06-VE-0015'
    # Past 9999 the field widens instead of overflowing
    assert allocate('INV/2025/06-VE-', 'INV/2025/06-VE-9999') == 'INV/2025/06-VE-10000'
    assert format_identifier('NOTA/2025/06-SDP-', 7) == 'NOTA/2025/06-SDP-0007'


def test_parse_sequence_rejects_non_numeric():
    assert parse_sequence('INV/2025/06-VE-0042') == 42
    assert parse_sequence('INV/2025/06-VE-XXXX') is None
    assert parse_sequence('INV/2025/06-VE-') is None
    assert parse_sequence('') is None
    assert next_sequence(None) == 1


# ── 2. History scanner ──────────────────────────────────────────────────────

def test_scanner_finds_greatest_in_scope(app):
    for inv in ('INV/2025/06-VE-0002', 'INV/2025/06-VE-0011', 'INV/2025/05-VE-0090'):
        _reservation(inv)
    db.session.commit()

    latest = find_latest_identifier(db.session, Reservation.invoice_number, 'INV/2025/06-VE-')
    assert latest == 'INV/2025/06-VE-0011'
    assert find_latest_identifier(db.session, Reservation.invoice_number, 'INV/2025/07-VE-') is None


def test_scanner_skips_malformed_suffix(app):
    _reservation('INV/2025/06-VE-0003')
    _reservation('INV/2025/06-VE-XXXX')
    db.session.commit()

    latest = find_latest_identifier(db.session, Reservation.invoice_number, 'INV/2025/06-VE-')
    assert latest == 'INV/2025/06-VE-0003'


# ── 3. Allocation service ───────────────────────────────────────────────────

def test_first_number_in_empty_scope(app):
    assert _invoice() == 'INV/2025/06-VE-0001'


def test_new_scope_continues_after_existing_history(app):
    _reservation('INV/2025/06-VE-0014')
    db.session.commit()

    assert _invoice() == 'INV/2025/06-VE-0015'
    assert _invoice() == 'INV/2025/06-VE-0016'


def test_malformed_history_does_not_influence_next(app):
    _reservation('INV/2025/06-VE-0003')
    _reservation('INV/2025/06-VE-XXXX')
    db.session.commit()

    assert _invoice() == 'INV/2025/06-VE-0004'


def test_monotonic_within_scope(app):
    seqs = [parse_sequence(_invoice()) for _ in range(25)]
    db.session.commit()
    assert seqs == list(range(1, 26))
    assert all(b > a for a, b in zip(seqs, seqs[1:]))


def test_scope_resets_each_month(app):
    for _ in range(3):
        _invoice(JUNE)
    assert _invoice(JULY) == 'INV/2025/07-VE-0001'
    assert _invoice(JUNE) == 'INV/2025/06-VE-0004'


def test_invoice_and_receipt_counters_are_independent(app):
    assert _invoice() == 'INV/2025/06-VE-0001'
    assert _invoice() == 'INV/2025/06-VE-0002'
    assert _receipt() == 'NOTA/2025/06-SDP-0001'


def test_rollback_returns_the_number(app):
    assert _invoice() == 'INV/2025/06-VE-0001'
    db.session.commit()

    assert _invoice() == 'INV/2025/06-VE-0002'
    db.session.rollback()

    # Nothing was persisted with 0002, so it is handed out again.
    assert _invoice() == 'INV/2025/06-VE-0002'


def test_retries_when_scope_opened_concurrently(app, monkeypatch):
    _invoice()
    db.session.commit()

    # First claim pretends the row is missing, as if another request had
    # created it between our UPDATE and our INSERT.
    real_claim = service._claim_next
    calls = []

    def racing_claim(session, scope_key, now):
        calls.append(scope_key)
        if len(calls) == 1:
            return None
        return real_claim(session, scope_key, now)

    monkeypatch.setattr(service, '_claim_next', racing_claim)

    assert _invoice() == 'INV/2025/06-VE-0002'
    assert len(calls) == 2


def test_gives_up_after_bounded_retries(app, monkeypatch):
    _invoice()
    db.session.commit()

    calls = []

    def always_missing(session, scope_key, now):
        calls.append(scope_key)
        return None

    monkeypatch.setattr(service, '_claim_next', always_missing)

    with pytest.raises(SequenceConflictError):
        next_identifier(db.session, INVOICE, JUNE, Reservation.invoice_number,
                        max_retries=3, backoff=0)
    assert len(calls) == 3


def test_observe_identifier_moves_counter_forward(app):
    _invoice()
    _invoice()
    db.session.commit()

    assert observe_identifier(db.session, 'INV/2025/06-VE-0010') is True
    assert observe_identifier(db.session, 'INV/2025/06-VE-0005') is False
    assert observe_identifier(db.session, 'INV/2025/06-VE-ABCD') is False
    assert _invoice() == 'INV/2025/06-VE-0011'


def test_sequence_status_reports_next_number(app):
    _invoice()
    _receipt()
    db.session.commit()

    status = {scope: (last, nxt) for scope, last, nxt in sequence_status(db.session)}
    assert status['INV/2025/06-VE'] == (1, 'INV/2025/06-VE-0002')
    assert status['NOTA/2025/06-SDP'] == (1, 'NOTA/2025/06-SDP-0002')
    assert db.session.get(DocumentSequence, 'INV/2025/06-VE').last_seq == 1
