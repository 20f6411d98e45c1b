"""
venue/reservations/routes.py
----------------------------
JSON API for reservations, add-ons and payments.

  GET    /api/reservations            → paginated, searchable list (with addons)
  GET    /api/reservations/<id>       → one reservation + addons + pembayaran
  POST   /api/reservations            → create (allocates nomorInvoice; dp → first payment)
  PUT    /api/reservations/<id>       → partial metadata edit
  DELETE /api/reservations/<id>       → delete with all add-ons and payments
  POST   /api/addons                  → append an add-on
  POST   /api/payments                → append a payment (multipart with optional 'bukti' file, or JSON)
"""
from flask import request, jsonify, current_app
from sqlalchemy import func
from sqlalchemy.orm import selectinload

from venue import db
from venue.errors import ValidationError
from venue.reservations import reservations
from venue.reservations.models import Reservation
from venue.reservations.validators import (
    RESERVATION_FIELDS, RESERVATION_UPDATE_FIELDS, ADDON_FIELDS, PAYMENT_FIELDS,
    clean_payload, parse_record_id,
)
from venue.reservations import writers
from venue.utils.files import save_upload, discard_upload
from venue.utils.time import day_range

# ── Listing whitelists ────────────────────────────────────────────
TEXT_SEARCH_COLUMNS = {
    'namaClient':   Reservation.client_name,
    'nomorInvoice': Reservation.invoice_number,
    'noTelepon':    Reservation.phone,
    'jenisAcara':   Reservation.event_type,
    'ruangan':      Reservation.venue,
}
DATE_SEARCH_COLUMNS = {
    'tanggalEvent':     Reservation.event_date,
    'tanggalReservasi': Reservation.reservation_date,
}
SORT_COLUMNS = {
    'tanggalEvent':     Reservation.event_date,
    'tanggalReservasi': Reservation.reservation_date,
    'namaClient':       Reservation.client_name,
    'nomorInvoice':     Reservation.invoice_number,
    'createdAt':        Reservation.created_at,
    'subTotal':         Reservation.subtotal,
    'pax':              Reservation.pax,
}


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError({'_payload': 'Expected a JSON object.'})
    return data


def _path_id(value) -> int:
    """Record id from the URL; a malformed one is a 400, not a routing 404."""
    return parse_record_id(value, label='ID', key='id')


def _int_arg(name, default):
    try:
        return int(request.args.get(name, default))
    except (TypeError, ValueError):
        return default


def _apply_search(query, search, search_by):
    """Filter by one whitelisted field. Returns the filtered query."""
    if not search:
        return query

    if search_by in DATE_SEARCH_COLUMNS:
        column = DATE_SEARCH_COLUMNS[search_by]
        try:
            start, end = day_range(search)
        except ValueError:
            raise ValidationError({'search': 'Must be a date in YYYY-MM-DD format.'})
        return query.filter(column >= start, column < end)

    if search_by in TEXT_SEARCH_COLUMNS:
        column = TEXT_SEARCH_COLUMNS[search_by]
        return query.filter(func.lower(column).contains(search.lower(), autoescape=True))

    raise ValidationError({'searchBy': f'Cannot search by "{search_by}".'})


# ═══════════════════════════════════════════════════════════════════
# RESERVATIONS
# ═══════════════════════════════════════════════════════════════════

@reservations.route('/reservations', methods=['GET'])
def list_reservations():
    """
    Paginated, searchable reservation list.

    Query params: search, searchBy (default namaClient), page, limit,
    sort (default tanggalEvent), order (asc|desc, default desc).
    """
    cfg = current_app.config
    search    = request.args.get('search', '').strip()
    search_by = request.args.get('searchBy', 'namaClient')
    sort      = request.args.get('sort', 'tanggalEvent')
    order     = request.args.get('order', 'desc').lower()
    page      = max(1, _int_arg('page', 1))
    limit     = min(max(1, _int_arg('limit', cfg['DEFAULT_PAGE_SIZE'])), cfg['MAX_PAGE_SIZE'])

    if sort not in SORT_COLUMNS:
        raise ValidationError({'sort': f'Cannot sort by "{sort}".'})
    if order not in ('asc', 'desc'):
        raise ValidationError({'order': 'Must be "asc" or "desc".'})

    query = _apply_search(Reservation.query, search, search_by)
    total = query.count()

    sort_column = SORT_COLUMNS[sort]
    sort_column = sort_column.asc() if order == 'asc' else sort_column.desc()
    id_order = Reservation.id.asc() if order == 'asc' else Reservation.id.desc()

    # ceiling division; an empty result still reports one page
    total_pages = max(1, -(-total // limit))
    offset = (page - 1) * limit
    rows = (query.options(selectinload(Reservation.addons))
                 .order_by(sort_column, id_order)
                 .offset(offset).limit(limit)
                 .all())

    return jsonify({
        'data':       [r.to_dict(include_addons=True) for r in rows],
        'total':      total,
        'page':       page,
        'limit':      limit,
        'totalPages': total_pages,
    })


@reservations.route('/reservations/<reservation_id>', methods=['GET'])
def get_reservation(reservation_id):
    reservation = writers.get_reservation_or_404(_path_id(reservation_id))
    return jsonify(reservation.to_dict(include_addons=True, include_payments=True))


@reservations.route('/reservations', methods=['POST'])
def create_reservation():
    fields = clean_payload(_json_body(), RESERVATION_FIELDS)
    reservation = writers.create_reservation(fields)
    current_app.logger.info(f"Reservation created via API: {reservation.invoice_number}")
    return jsonify({
        'message': 'Reservation created successfully',
        'data': reservation.to_dict(include_addons=True, include_payments=True),
    }), 201


@reservations.route('/reservations/<reservation_id>', methods=['PUT', 'PATCH'])
def update_reservation(reservation_id):
    record_id = _path_id(reservation_id)
    fields = clean_payload(_json_body(), RESERVATION_UPDATE_FIELDS, partial=True)
    reservation = writers.update_reservation(record_id, fields)
    return jsonify({
        'message': 'Reservation updated successfully',
        'data': reservation.to_dict(include_addons=True, include_payments=True),
    })


@reservations.route('/reservations/<reservation_id>', methods=['DELETE'])
def delete_reservation(reservation_id):
    invoice_number = writers.delete_reservation(_path_id(reservation_id))
    current_app.logger.info(f"Reservation deleted via API: {invoice_number}")
    return jsonify({'message': 'Reservation and all related data deleted successfully'})


# ═══════════════════════════════════════════════════════════════════
# ADD-ONS
# ═══════════════════════════════════════════════════════════════════

@reservations.route('/addons', methods=['POST'])
def create_addon():
    fields = clean_payload(_json_body(), ADDON_FIELDS)
    reservation_id = fields.pop('reservation_id')
    addon = writers.add_addon(reservation_id, fields)
    return jsonify({'message': 'Addon added successfully', 'data': addon.to_dict()}), 201


# ═══════════════════════════════════════════════════════════════════
# PAYMENTS
# ═══════════════════════════════════════════════════════════════════

@reservations.route('/payments', methods=['POST'])
def create_payment():
    """
    Accepts multipart/form-data (reservationId, jumlah, tanggal + optional
    'bukti' file) as sent by the upload form, or a plain JSON body.
    """
    if request.is_json:
        data = _json_body()
    else:
        data = request.form.to_dict()

    fields = clean_payload(data, PAYMENT_FIELDS)
    reservation_id = fields.pop('reservation_id')

    # Reject unknown parents before touching the disk.
    writers.get_reservation_or_404(reservation_id)
    proof_url = save_upload(request.files.get('bukti'), 'bukti')

    try:
        payment = writers.add_payment(reservation_id, fields, proof_url=proof_url)
    except Exception:
        discard_upload(proof_url)
        raise
    return jsonify({'message': 'Payment added successfully', 'data': payment.to_dict()}), 201
