"""
venue/reservations/writers.py
-----------------------------
All writes to reservations, add-ons and payments.

Each writer is one transaction: allocate number(s), insert/update, commit.
On any error the session is rolled back and the error re-raised for the
request boundary (venue/errors.py) to map. Numbers are allocated inside
the same transaction as the insert, so a failed insert never burns one.
"""
import logging

from venue import db
from venue.errors import NotFoundError
from venue.numbering import INVOICE, RECEIPT, next_identifier
from venue.reservations.models import Reservation, Addon, Payment
from venue.utils.time import utcnow

logger = logging.getLogger(__name__)


def get_reservation_or_404(reservation_id) -> Reservation:
    reservation = db.session.get(Reservation, reservation_id)
    if reservation is None:
        raise NotFoundError('Reservation not found')
    return reservation


def _new_payment(reservation, amount, paid_on, now, proof_url='', is_down_payment=False) -> Payment:
    receipt_number = next_identifier(db.session, RECEIPT, now, Payment.receipt_number)
    payment = Payment(
        receipt_number  = receipt_number,
        amount          = amount,
        paid_on         = paid_on,
        proof_url       = proof_url or '',
        is_down_payment = is_down_payment,
        created_at      = now,
    )
    reservation.payments.append(payment)
    return payment


def create_reservation(fields: dict) -> Reservation:
    """
    Insert a reservation from parsed fields (see validators.RESERVATION_FIELDS).

    A down payment (``down_payment`` > 0) is recorded as the reservation's
    first Payment, dated on the reservation date, in the same transaction.
    """
    now = utcnow()
    try:
        invoice_number = next_identifier(db.session, INVOICE, now, Reservation.invoice_number)
        reservation = Reservation(
            invoice_number=invoice_number,
            created_at=now,
            updated_at=now,
            **fields,
        )
        db.session.add(reservation)

        if reservation.down_payment and reservation.down_payment > 0:
            _new_payment(
                reservation,
                amount=reservation.down_payment,
                paid_on=reservation.reservation_date,
                now=now,
                is_down_payment=True,
            )

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Reservation created: %s (%s)", reservation.invoice_number, reservation.client_name)
    return reservation


def update_reservation(reservation_id: int, fields: dict) -> Reservation:
    """Partial in-place metadata edit. The invoice number never changes."""
    try:
        reservation = get_reservation_or_404(reservation_id)
        for attr, value in fields.items():
            setattr(reservation, attr, value)
        reservation.updated_at = utcnow()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Reservation updated: %s", reservation.invoice_number)
    return reservation


def add_addon(reservation_id: int, fields: dict) -> Addon:
    """Append an add-on line item to an existing reservation."""
    try:
        reservation = get_reservation_or_404(reservation_id)
        addon = Addon(created_at=utcnow(), **fields)
        reservation.addons.append(addon)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Addon added to %s: %s", reservation.invoice_number, addon.item)
    return addon


def add_payment(reservation_id: int, fields: dict, proof_url: str = '') -> Payment:
    """Record a payment and give it the next receipt number."""
    now = utcnow()
    try:
        reservation = get_reservation_or_404(reservation_id)
        payment = _new_payment(
            reservation,
            amount=fields.get('amount', 0),
            paid_on=fields.get('paid_on'),
            now=now,
            proof_url=proof_url,
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Payment %s added to %s: %s",
                payment.receipt_number, reservation.invoice_number, payment.amount)
    return payment


def delete_reservation(reservation_id: int) -> str:
    """
    Delete a reservation together with its add-ons and payments.

    One transaction: either everything is gone or nothing is.
    Returns the deleted invoice number.
    """
    try:
        reservation = get_reservation_or_404(reservation_id)
        invoice_number = reservation.invoice_number
        db.session.delete(reservation)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Reservation deleted with children: %s", invoice_number)
    return invoice_number
