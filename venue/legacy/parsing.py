"""
venue/legacy/parsing.py
───────────────────────
Readers and value parsers for the legacy spreadsheet exports.
"""
import csv
import re
from datetime import datetime

from venue.utils.numbers import parse_currency  # noqa: F401, re-exported for importer callers
from venue.utils.time import utcnow, utc_midnight

# Indonesian month abbreviations used in the exports: 12-Agu-2024
MONTHS = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'mei': 5, 'jun': 6,
    'jul': 7, 'agu': 8, 'sep': 9, 'okt': 10, 'nov': 11, 'des': 12,
}

_DAY_MONTH_YEAR = re.compile(r'^(\d{1,2})-([a-z]+)-(\d{4})$')


def read_csv(path) -> list:
    """Read a CSV export into a list of dicts with whitespace-trimmed headers."""
    with open(path, newline='', encoding='utf-8-sig') as fh:
        reader = csv.DictReader(fh)
        reader.fieldnames = [h.strip() for h in (reader.fieldnames or [])]
        return [dict(row) for row in reader]


def cell(row, column) -> str:
    """Stripped string value of ``column`` ('' when missing)."""
    value = row.get(column)
    return '' if value is None else str(value).strip()


def parse_legacy_date(value):
    """
    Spreadsheet date → UTC midnight.

    Handles ``'12-Agu-2024'`` / ``'5-Desember-2023'`` and the usual numeric
    formats. Empty input gives None; anything unparseable falls back to
    today (UTC midnight) so the row is still imported.
    """
    text = str(value or '').strip()
    if not text:
        return None

    match = _DAY_MONTH_YEAR.match(text.lower())
    if match:
        day, month_name, year = match.groups()
        month = MONTHS.get(month_name[:3])
        if month is not None:
            try:
                return datetime(int(year), month, int(day))
            except ValueError:
                pass

    for fmt in ('%Y-%m-%d', '%d/%m/%Y', '%d-%m-%Y', '%m/%d/%Y'):
        try:
            return datetime.strptime(text[:10], fmt)
        except ValueError:
            continue

    return utc_midnight(utcnow())
