"""
Address and value helpers shared by the adapters and services.

Addresses are handled as (row, col) pairs, both 1-based. Column letters are
converted with openpyxl.utils; parsing is strict so malformed input raises
CellRangeError rather than silently producing a wrong coordinate.

Display values follow the cell number format the way Excel shows them;
date detection and serial conversion come from openpyxl.
"""

import math
import re
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any

from openpyxl.styles.numbers import is_date_format
from openpyxl.utils import column_index_from_string, get_column_letter
from openpyxl.utils.datetime import from_excel

from sheetsnap.exceptions.snapshot_exceptions import CellRangeError

MAX_ROW = 1_048_576
MAX_COL = 16_384

_ADDRESS_RE = re.compile(r"^\$?([A-Z]{1,3})\$?(\d+)$")


def split_address(address: str) -> tuple[int, int]:
    """
    Parse an A1 address into a (row, col) pair.

    Args:
        address: Cell reference such as "B7" or "$B$7".

    Returns:
        Tuple of (row, col), both 1-based.

    Raises:
        CellRangeError: If the address is malformed or out of bounds.
    """
    match = _ADDRESS_RE.match(address.strip().upper())
    if not match:
        raise CellRangeError(cell_range=address, reason="Expected an address such as 'A1'")

    col = column_index_from_string(match.group(1))
    row = int(match.group(2))
    if not (1 <= row <= MAX_ROW and 1 <= col <= MAX_COL):
        raise CellRangeError(cell_range=address, reason="Address is outside the worksheet")
    return row, col


def make_address(row: int, col: int) -> str:
    """Build an A1 address from 1-based row and column numbers."""
    return f"{get_column_letter(col)}{row}"


def parse_range(cell_range: str) -> tuple[tuple[int, int], tuple[int, int]]:
    """
    Parse "A1:C3" (or a single "A1") into normalized corner pairs.

    Args:
        cell_range: Range in A1 notation.

    Returns:
        ((min_row, min_col), (max_row, max_col)).

    Raises:
        CellRangeError: If either end is malformed.
    """
    parts = cell_range.strip().split(":")
    if len(parts) == 1:
        start = end = split_address(parts[0])
    elif len(parts) == 2:
        start = split_address(parts[0])
        end = split_address(parts[1])
    else:
        raise CellRangeError(cell_range=cell_range, reason="Expected 'A1' or 'A1:C3'")

    return (
        (min(start[0], end[0]), min(start[1], end[1])),
        (max(start[0], end[0]), max(start[1], end[1])),
    )



# ==================== NUMBERS ====================

_CURRENCY_SYMBOLS = "$€£¥"
_GROUPED_RE = re.compile(r"^\d{1,3}(,\d{3})+(\.\d*)?$")


def is_numeric(text: str) -> bool:
    """
    Return True if the text is a finite number, as stored or as displayed.

    One sign, a leading currency symbol, grouping commas, a trailing "%" and
    accounting parentheses are accepted, so formatted numbers still count.
    """
    stripped = text.strip()
    if len(stripped) > 2 and stripped[0] == "(" and stripped[-1] == ")":
        stripped = stripped[1:-1].strip()
    if stripped[:1] in ("+", "-"):
        stripped = stripped[1:]
    if stripped[:1] and stripped[0] in _CURRENCY_SYMBOLS:
        stripped = stripped[1:]
    if stripped.endswith("%"):
        stripped = stripped[:-1]
    if "," in stripped:
        if not _GROUPED_RE.match(stripped):
            return False
        stripped = stripped.replace(",", "")
    if not stripped:
        return False
    try:
        return math.isfinite(float(stripped))
    except ValueError:
        return False


def _general(value: Any) -> str:
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return str(value)
        if value.is_integer():
            return str(int(value))
        return format(value, ".15g")
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


def format_cell_value(value: Any, number_format: str | None = None) -> str:
    """
    Convert a raw cell value into its display string.

    With a number format code, numbers and dates are shown the way the code
    asks: fixed decimals, grouping, percent, scientific, literal text and
    currency around the digits, separate negative and zero sections, and
    date/time tokens. Without one (or with "General"), integral floats lose
    their decimal part, other floats keep 15 significant digits, booleans
    use Excel's TRUE/FALSE and dates use ISO format.

    Args:
        value: Value as stored by openpyxl.
        number_format: Format code of the cell, or None for raw display.

    Returns:
        Display string ("" for None).
    """
    if value is None:
        return ""

    code = (number_format or "").strip()
    if not code or code.lower() == "general" or code == "@" or isinstance(value, (bool, str, timedelta)):
        return _general(value)

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return _general(value)
        if _is_date_code(code):
            try:
                value = from_excel(value)
            except (ValueError, OverflowError):
                return _general(value)
        else:
            return _format_number(float(value), code)

    if isinstance(value, (datetime, date, time)) and _is_date_code(code):
        return _format_date(_as_datetime(value), code)
    return _general(value)


# ==================== NUMBER FORMAT CODES ====================

_PLACEHOLDERS = "0#?"
_LITERAL_RE = re.compile(r'"[^"]*"|\\.|\[(?![hms]+\])[^\]]*\]', re.IGNORECASE)


def _is_date_code(code: str) -> bool:
    """Whether a format code shows dates or times, ignoring literals and colors."""
    return is_date_format(_LITERAL_RE.sub("", code))


def _sections(code: str) -> list[str]:
    """Split a format code on ";" outside quoted literals."""
    sections: list[str] = []
    current: list[str] = []
    quoted = False
    for ch in code:
        if ch == '"':
            quoted = not quoted
        if ch == ";" and not quoted:
            sections.append("".join(current))
            current = []
            continue
        current.append(ch)
    sections.append("".join(current))
    return sections


def _split_section(section: str) -> tuple[str, str, str, int]:
    """
    Split a numeric section into literal prefix, digit pattern, literal suffix.

    Also returns the number of unquoted "%" signs. Padding ("_x") and fill
    ("*x") directives are dropped; "[$€-407]" becomes its currency text and
    other bracketed tokens (colors, conditions, locales) are ignored.
    """
    parts: list[list[str]] = [[], [], []]
    state = 0
    percent = 0
    i = 0
    while i < len(section):
        ch = section[i]
        following = section[i + 1] if i + 1 < len(section) else ""

        if ch == '"':
            end = section.find('"', i + 1)
            end = len(section) if end < 0 else end
            literal, i = section[i + 1:end], end + 1
        elif ch == "\\":
            literal, i = following, i + 2
        elif ch in "_*":
            i += 2
            continue
        elif ch == "[":
            end = section.find("]", i)
            end = len(section) if end < 0 else end
            token, i = section[i + 1:end], end + 1
            if not token.startswith("$"):
                continue
            literal = token[1:].split("-", 1)[0]
        elif state < 2 and (ch in _PLACEHOLDERS or (ch in ".," and (state == 1 or following in _PLACEHOLDERS))):
            state = 1
            parts[1].append(ch)
            i += 1
            continue
        elif state == 1 and ch in "Ee" and following in ("+", "-"):
            parts[1].append(ch + following)
            i += 2
            continue
        else:
            if ch == "%":
                percent += 1
            literal, i = ch, i + 1

        if state == 1:
            state = 2
        parts[state].append(literal)

    return "".join(parts[0]), "".join(parts[1]), "".join(parts[2]), percent


def _round_half_up(number: float, decimals: int) -> str:
    with localcontext() as context:
        context.prec = 64
        quantum = Decimal(1).scaleb(-decimals)
        return f"{Decimal(repr(number)).quantize(quantum, rounding=ROUND_HALF_UP):f}"


def _format_digits(number: float, pattern: str) -> str:
    """Format a non-negative number with a digit pattern such as "#,##0.00"."""
    if "E" in pattern.upper():
        mantissa = re.split(r"[Ee]", pattern, maxsplit=1)[0]
        decimals = len(mantissa.partition(".")[2])
        return f"{number:.{decimals}E}"

    trimmed = pattern.rstrip(",")
    number /= 1000 ** (len(pattern) - len(trimmed))
    integer_part, _, fraction_part = trimmed.partition(".")

    decimals = sum(1 for ch in fraction_part if ch in _PLACEHOLDERS)
    required = fraction_part.count("0")
    whole, _, fraction = _round_half_up(number, decimals).partition(".")
    fraction = fraction[:required] + fraction[required:].rstrip("0")

    whole = whole.lstrip("0").rjust(integer_part.count("0"), "0")
    if "," in integer_part and whole:
        whole = f"{int(whole):,}"
    return f"{whole}.{fraction}" if fraction else whole


def _format_number(value: float, code: str) -> str:
    sections = _sections(code)
    section = sections[0]
    sign = "-" if value < 0 else ""
    if value < 0 and len(sections) > 1:
        section, sign = sections[1], ""
    elif value == 0 and len(sections) > 2:
        section = sections[2]

    if section.strip().lower() == "general":
        return sign + _general(abs(value))

    prefix, pattern, suffix, percent = _split_section(section)
    if not pattern:
        return prefix + suffix

    digits = _format_digits(abs(value) * 100**percent, pattern)
    return f"{sign}{prefix}{digits}{suffix}"


# ==================== DATE FORMAT CODES ====================

_DATE_TOKEN_RE = re.compile(
    r'"[^"]*"|\\.|\[[^\]]*\]|yyyy|yy|mmmmm|mmmm|mmm|mm|m|dddd|ddd|dd|d|hh|h|ss|s|am/pm|a/p|.',
    re.IGNORECASE | re.DOTALL,
)
_DATE_CODES = {
    "yyyy", "yy", "mmmmm", "mmmm", "mmm", "mm", "m",
    "dddd", "ddd", "dd", "d", "hh", "h", "ss", "s",
}
_ELAPSED_CODES = {"h", "hh", "m", "mm", "s", "ss"}
_EXCEL_EPOCH = date(1899, 12, 30)


def _as_datetime(value: datetime | date | time) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    return datetime.combine(_EXCEL_EPOCH, value)


def _date_code(token: str) -> str:
    """Lower-cased date code of a token, "" for literals."""
    lower = token.lower()
    if lower.startswith("[") and lower[1:-1] in _ELAPSED_CODES:
        return lower[1:-1]
    return lower if lower in _DATE_CODES else ""


def _format_date(value: datetime, code: str) -> str:
    """Render a datetime with the first section of a date/time format code."""
    tokens = _DATE_TOKEN_RE.findall(_sections(code)[0])
    codes = [_date_code(token) for token in tokens]
    twelve_hour = any(token.lower() in ("am/pm", "a/p") for token in tokens)

    out: list[str] = []
    previous = ""
    for index, (token, kind) in enumerate(zip(tokens, codes)):
        if not kind:
            lower = token.lower()
            if token.startswith('"'):
                out.append(token[1:-1])
            elif token.startswith("\\"):
                out.append(token[1:])
            elif lower == "am/pm":
                out.append("AM" if value.hour < 12 else "PM")
            elif lower == "a/p":
                out.append("A" if value.hour < 12 else "P")
            elif not token.startswith("["):
                out.append(token)
            continue

        following = next((c for c in codes[index + 1:] if c), "")
        if kind in ("m", "mm") and (previous.startswith("h") or following.startswith("s")):
            out.append(f"{value.minute:02d}" if kind == "mm" else str(value.minute))
        elif kind == "yyyy":
            out.append(f"{value.year:04d}")
        elif kind == "yy":
            out.append(f"{value.year % 100:02d}")
        elif kind == "mmmmm":
            out.append(value.strftime("%B")[0])
        elif kind == "mmmm":
            out.append(value.strftime("%B"))
        elif kind == "mmm":
            out.append(value.strftime("%b"))
        elif kind == "mm":
            out.append(f"{value.month:02d}")
        elif kind == "m":
            out.append(str(value.month))
        elif kind == "dddd":
            out.append(value.strftime("%A"))
        elif kind == "ddd":
            out.append(value.strftime("%a"))
        elif kind == "dd":
            out.append(f"{value.day:02d}")
        elif kind == "d":
            out.append(str(value.day))
        elif kind in ("hh", "h"):
            hour = (value.hour % 12 or 12) if twelve_hour else value.hour
            out.append(f"{hour:02d}" if kind == "hh" else str(hour))
        elif kind in ("ss", "s"):
            out.append(f"{value.second:02d}" if kind == "ss" else str(value.second))
        previous = kind

    return "".join(out)
