"""
venue/numbering/allocator.py
────────────────────────────
Pure sequence arithmetic. No I/O, no knowledge of concurrent callers;
venue/numbering/service.py is what makes a claim atomic.
"""
from typing import Optional

SEQUENCE_WIDTH = 4


def parse_sequence(identifier: str) -> Optional[int]:
    """
    Trailing sequence of an identifier, or None when it is not numeric.

    >>> parse_sequence('INV/2025/06-VE-0014')
    14
    >>> parse_sequence('INV/2025/06-VE-XXXX') is None
    True
    """
    if not identifier:
        return None
    suffix = identifier.rsplit('-', 1)[-1]
    if not suffix.isdigit() or not suffix.isascii():
        return None
    return int(suffix)


def next_sequence(scan_result: Optional[str]) -> int:
    """1 for an empty scope, otherwise the scanned sequence + 1."""
    if scan_result is None:
        return 1
    current = parse_sequence(scan_result)
    if current is None:
        return 1
    return current + 1


def format_identifier(prefix: str, seq: int) -> str:
    # Zero-padded to 4; 10000+ simply widens the field.
    return f"{prefix}{seq:0{SEQUENCE_WIDTH}d}"


def allocate(prefix: str, scan_result: Optional[str]) -> str:
    """``allocate('INV/2025/06-VE-', 'INV/2025/06-VE-0014')`` → ``'INV/2025/06-VE-0015'``."""
    return format_identifier(prefix, next_sequence(scan_result))
