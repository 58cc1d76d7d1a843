"""
models/units.py

Parsing and formatting of numbers with SI unit prefixes.
"""

import re

# Includes common variations like 'u' for 'µ' and 'MEG' for 'M'
SI_PREFIX_MULTIPLIERS = {
    'f': 1e-15,  # Femto
    'p': 1e-12,  # Pico
    'n': 1e-9,   # Nano
    'u': 1e-6,   # Micro
    'µ': 1e-6,   # Micro
    'm': 1e-3,   # Milli
    'k': 1e3,    # Kilo
    'K': 1e3,    # Kilo
    'M': 1e6,    # Mega
    'MEG': 1e6,  # Mega (SPICE variant)
    'G': 1e9,    # Giga
}

FORMATTING_PREFIXES = sorted(
    [(1e9, 'G'), (1e6, 'M'), (1e3, 'k'),
     (1, ''), (1e-3, 'm'), (1e-6, 'µ'), (1e-9, 'n'), (1e-12, 'p')],
    key=lambda x: x[0], reverse=True
)

_NUMBER_RE = re.compile(r'^([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*([a-zA-Zµ]*)$')


def parse_value(s) -> float:
    """
    Parses a string with an optional SI prefix into a float.
    Examples: "10k" -> 10000.0, "25m" -> 0.025, "100u" -> 1e-4, "5V" -> 5.0

    Numbers are returned unchanged (as float). Booleans are rejected.
    """
    if isinstance(s, bool):
        raise ValueError(f"Invalid number format: {s!r}")
    if isinstance(s, (int, float)):
        return float(s)
    if not isinstance(s, str):
        raise ValueError(f"Invalid number format: {s!r}")

    s = s.strip()
    match = _NUMBER_RE.match(s)
    if not match:
        raise ValueError(f"Invalid number format: {s}")

    num_str, unit_str = match.groups()
    number = float(num_str)
    if not unit_str:
        return number

    if unit_str.upper().startswith('MEG'):
        return number * SI_PREFIX_MULTIPLIERS['MEG']

    # A bare unit letter ("5V", "2F") carries no prefix
    multiplier = SI_PREFIX_MULTIPLIERS.get(unit_str[0])
    if multiplier is None:
        return number
    return number * multiplier


def format_value(value: float, unit: str = "") -> str:
    """
    Formats a float into a string with the most appropriate SI prefix.
    Examples: 0.015 -> "15.00 m", 15000 -> "15 k"
    """
    if value == 0:
        return f"0 {unit}".rstrip()

    abs_val = abs(value)

    for mult, prefix in FORMATTING_PREFIXES:
        if abs_val >= mult:
            scaled_val = value / mult
            if scaled_val == int(scaled_val):
                return f"{int(scaled_val)} {prefix}{unit}".rstrip()
            return f"{scaled_val:.2f} {prefix}{unit}".rstrip()

    return f"{value:.2e} {unit}".rstrip()
