# -----------------------------------------------------------------------------
# Copyright (c) 2025 Spectrum Virtualize Exporter (scaleoutSean@Github)
# Licensed under the MIT License. See LICENSE in project root for details.
# -----------------------------------------------------------------------------

"""
Parsing helpers for the string-encoded values returned by the REST API.
"""

import re
from decimal import Decimal
from typing import Optional

# Both the IEC and the legacy suffixes are powers of 1024
BASE2_BYTE_UNITS = {
    'B': 1,
    'KiB': 1024, 'KB': 1024,
    'MiB': 1024 ** 2, 'MB': 1024 ** 2,
    'GiB': 1024 ** 3, 'GB': 1024 ** 3,
    'TiB': 1024 ** 4, 'TB': 1024 ** 4,
    'PiB': 1024 ** 5, 'PB': 1024 ** 5,
    'EiB': 1024 ** 6, 'EB': 1024 ** 6,
}

_BYTES_COMPONENT = re.compile(r'(\d+(?:\.\d*)?|\.\d+)([A-Za-z]+)')
_INTEGER = re.compile(r'^[+-]?\d+$')
_FC_SPEED = re.compile(r'^([+-]?\d+)Gb$')
_IP_SPEED = re.compile(r'^([+-]?\d+)(Gb/s|Mb/s)$')

IP_SPEED_MULTIPLIERS = {
    'Gb/s': 1000 * 1000 * 1000,
    'Mb/s': 1000 * 1000,
}


def parse_int(value) -> int:
    """
    Parse a string-encoded integer such as "427".

    Raises:
        ValueError: If the value is not an integer in string form
    """
    text = str(value).strip() if value is not None else ''
    if not _INTEGER.match(text):
        raise ValueError(f"invalid integer {value!r}")
    return int(text)


def parse_base2_bytes(value: str) -> int:
    """
    Parse a byte size with binary suffixes into a byte count.

    Accepts "10TiB", "9.94TB", "512B", compound values like "1GB512MB" and
    a bare "0". Fractions are truncated to whole bytes.

    Raises:
        ValueError: If the string is empty, has no unit or an unknown unit
    """
    if value is None:
        raise ValueError("empty byte size")
    text = value.strip()
    if text == '0':
        return 0
    if not text:
        raise ValueError("empty byte size")

    total = Decimal(0)
    pos = 0
    for match in _BYTES_COMPONENT.finditer(text):
        if match.start() != pos:
            break
        number, unit = match.groups()
        if unit not in BASE2_BYTE_UNITS:
            raise ValueError(f"unknown unit {unit!r} in {value!r}")
        total += Decimal(number) * BASE2_BYTE_UNITS[unit]
        pos = match.end()
    if pos == 0 or pos != len(text):
        raise ValueError(f"invalid byte size {value!r}")
    return int(total)


def parse_fc_speed(value: Optional[str]) -> int:
    """Fibre Channel port speed ("8Gb") in bits per second, 0 when not parseable."""
    match = _FC_SPEED.match(value or '')
    if not match:
        return 0
    return int(match.group(1)) * 1000 * 1000 * 1000


def parse_ip_speed(value: Optional[str]) -> int:
    """Ethernet port speed ("10Gb/s", "100Mb/s") in bits per second, 0 when not parseable."""
    match = _IP_SPEED.match(value or '')
    if not match:
        return 0
    number, unit = match.groups()
    return int(number) * IP_SPEED_MULTIPLIERS[unit]


def get_field(data: dict, key: str, default=None):
    """Case-insensitive dict lookup, the API is not consistent about key case."""
    if key in data:
        return data[key]
    lowered = key.lower()
    for k, v in data.items():
        if isinstance(k, str) and k.lower() == lowered:
            return v
    return default
