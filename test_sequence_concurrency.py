"""
test_sequence_concurrency.py: many simultaneous creates, no duplicate numbers.

Uses a file-backed SQLite database so every thread gets its own
connection and the writes really contend for the counter row.

Run: pytest test_sequence_concurrency.py -v
"""
import threading
import logging

import pytest

from config import config, TestingConfig
from venue import create_app, db
from venue.numbering.allocator import parse_sequence
from venue.reservations import writers
from venue.reservations.models import Reservation, Payment
from venue.utils.time import utc_midnight

# Keep the output readable
logging.getLogger('werkzeug').setLevel(logging.ERROR)

WORKERS = 12


@pytest.fixture
def app(tmp_path, monkeypatch):
    class ConcurrencyConfig(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'concurrency.db'}"
        SQLALCHEMY_ENGINE_OPTIONS = {
            'connect_args': {'timeout': 30, 'check_same_thread': False},
            'pool_size': WORKERS,
            'max_overflow': 4,
        }

    monkeypatch.setitem(config, 'concurrency', ConcurrencyConfig)
    app = create_app('concurrency')
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()
        db.engine.dispose()


def _fields(idx):
    return {
        'client_name': f'Client {idx}',
        'reservation_date': utc_midnight('2025-06-01'),
        'event_date': utc_midnight('2025-07-01'),
        'down_payment': 100,
    }


def _run_workers(app, target):
    barrier = threading.Barrier(WORKERS)
    results, errors = [], []
    lock = threading.Lock()

    def worker(idx):
        with app.app_context():
            barrier.wait()
            try:
                value = target(idx)
                with lock:
                    results.append(value)
            except Exception as exc:  # collected and asserted on below
                with lock:
                    errors.append(exc)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(WORKERS)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return results, errors


def _create(idx):
    reservation = writers.create_reservation(_fields(idx))
    return reservation.invoice_number, reservation.payments[0].receipt_number


def test_concurrent_creates_in_fresh_scope(app):
    """Every thread starts before the month's counter row exists."""
    results, errors = _run_workers(app, _create)

    assert errors == []
    invoices = [inv for inv, _ in results]
    receipts = [rcpt for _, rcpt in results]

    assert len(set(invoices)) == WORKERS
    assert len(set(receipts)) == WORKERS
    # No gaps: every committed number is used exactly once.
    assert sorted(parse_sequence(i) for i in invoices) == list(range(1, WORKERS + 1))
    assert sorted(parse_sequence(r) for r in receipts) == list(range(1, WORKERS + 1))

    with app.app_context():
        assert Reservation.query.count() == WORKERS
        assert Payment.query.count() == WORKERS


def test_concurrent_creates_after_scope_opened(app):
    with app.app_context():
        writers.create_reservation(_fields(0))

    results, errors = _run_workers(app, _create)

    assert errors == []
    seqs = sorted(parse_sequence(inv) for inv, _ in results)
    assert seqs == list(range(2, WORKERS + 2))
