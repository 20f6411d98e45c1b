"""
venue/reservations/validators.py
--------------------------------
Explicit field tables for every payload the API accepts.

Each table maps a wire key (the legacy camelCase / Indonesian names the
frontend sends) to the model attribute, its type and whether it is
required. Keys outside the table are rejected; keys in READ_ONLY_KEYS are
server-assigned and silently ignored so a client may PUT back what it GET.

validate_* return a dict of field -> error_message (empty = valid).
parse_* convert raw values to Python types; call only after validation.
"""
from collections import namedtuple

from venue.errors import ValidationError
from venue.utils.numbers import to_decimal, to_int
from venue.utils.time import utc_midnight

Field = namedtuple('Field', ['attr', 'kind', 'required', 'max_length'])


def _field(attr, kind='text', required=False, max_length=None):
    return Field(attr, kind, required, max_length)


RESERVATION_FIELDS = {
    'namaClient':       _field('client_name', required=True, max_length=200),
    'noTelepon':        _field('phone', max_length=40),
    'email':            _field('email', max_length=120),
    'jenisAcara':       _field('event_type', max_length=120),
    'ruangan':          _field('venue', max_length=120),
    'catatan':          _field('notes'),
    'tanggalReservasi': _field('reservation_date', 'date', required=True),
    'tanggalEvent':     _field('event_date', 'date', required=True),
    'pax':              _field('pax', 'int'),
    'hargaPerPax':      _field('price_per_pax', 'decimal'),
    'subTotal':         _field('subtotal', 'decimal'),
    'dp':               _field('down_payment', 'decimal'),
}

ADDON_FIELDS = {
    'reservationId': _field('reservation_id', 'id', required=True),
    'item':          _field('item', required=True, max_length=200),
    'pax':           _field('pax', 'int'),
    'hargaPerPax':   _field('price_per_pax', 'decimal'),
    'subTotal':      _field('subtotal', 'decimal'),
    'catatan':       _field('notes'),
}

PAYMENT_FIELDS = {
    'reservationId': _field('reservation_id', 'id', required=True),
    'jumlah':        _field('amount', 'decimal'),
    'tanggal':       _field('paid_on', 'date', required=True),
}

# Down payment is set once at creation; later edits go through payments.
RESERVATION_UPDATE_FIELDS = {k: v for k, v in RESERVATION_FIELDS.items() if k != 'dp'}

READ_ONLY_KEYS = frozenset({
    '_id', 'nomorInvoice', 'nomorKwitansi', 'createdAt', 'updatedAt',
    'addons', 'pembayaran', 'buktiUrl', 'isDp',
})

# Column limits: Integer is 32-bit, money is Numeric(14, 2).
MAX_INT = 2**31 - 1
MAX_AMOUNT = 10**12


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_record_id(value, label='Reservation ID', key='reservationId') -> int:
    """Positive integer primary key, or ValidationError."""
    error = ValidationError({key: f'Invalid {label}'}, message=f'Invalid {label}')
    if isinstance(value, bool):
        raise error
    try:
        record_id = int(str(value).strip())
    except (TypeError, ValueError):
        raise error
    if not 0 < record_id <= MAX_INT:
        raise error
    return record_id


def validate_payload(data, fields, partial=False) -> dict:
    """
    Check ``data`` against a field table.

    Args:
        data:    mapping of raw wire values (JSON body or form)
        fields:  one of the *_FIELDS tables above
        partial: True for updates; required fields may be absent,
                 but if present must still be valid
    """
    if not isinstance(data, dict):
        return {'_payload': 'Expected a JSON object.'}

    errors = {}

    for key in data:
        if key not in fields and key not in READ_ONLY_KEYS:
            errors[key] = 'Unknown field.'

    for key, field in fields.items():
        present = key in data and not _is_blank(data[key])

        if not present:
            if field.required and not (partial and key not in data):
                errors[key] = 'This field is required.'
            continue

        value = data[key]
        if field.kind == 'text':
            if not isinstance(value, (str, int, float)) or isinstance(value, bool):
                errors[key] = 'Must be text.'
            elif field.max_length and len(str(value).strip()) > field.max_length:
                errors[key] = f'Must be {field.max_length} characters or fewer.'
        elif field.kind == 'date':
            try:
                utc_midnight(value)
            except (TypeError, ValueError):
                errors[key] = 'Must be a date in YYYY-MM-DD format.'
        elif field.kind == 'id':
            try:
                parse_record_id(value)
            except ValidationError as exc:
                errors[key] = exc.message
        elif field.kind == 'int':
            if not -MAX_INT - 1 <= to_int(value) <= MAX_INT:
                errors[key] = 'Number is out of range.'
        elif field.kind == 'decimal':
            if abs(to_decimal(value)) >= MAX_AMOUNT:
                errors[key] = 'Amount is out of range.'
        # malformed int / decimal input is not an error: it coerces to 0.

    return errors


def parse_payload(data, fields) -> dict:
    """Convert the keys of ``data`` that appear in ``fields`` to typed attributes."""
    parsed = {}
    for key, field in fields.items():
        if key not in data:
            continue
        value = data[key]
        if field.kind == 'text':
            parsed[field.attr] = '' if value is None else str(value).strip()
        elif field.kind == 'int':
            parsed[field.attr] = to_int(value)
        elif field.kind == 'decimal':
            parsed[field.attr] = to_decimal(value)
        elif field.kind == 'date':
            parsed[field.attr] = None if _is_blank(value) else utc_midnight(value)
        elif field.kind == 'id':
            parsed[field.attr] = parse_record_id(value)
    return parsed


def clean_payload(data, fields, partial=False) -> dict:
    """validate + parse in one step; raises ValidationError on any error."""
    errors = validate_payload(data, fields, partial=partial)
    if errors:
        raise ValidationError(errors)
    return parse_payload(data, fields)
