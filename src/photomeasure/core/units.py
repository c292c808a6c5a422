"""Imperial length parsing and formatting.

All lengths inside the engine are carried in inches. Free-form user text
("4' 6\"", "4ft 6in", "4-6", "21 1/2 in", "4.5") is turned into inches by
`parse_length`, and `format_feet_inches` renders inches back to a
feet/inches string rounded to the nearest 1/16 inch. The formatted output
parses back to the same value.
"""

import math
import re
from enum import Enum


class Unit(Enum):
    """Imperial units used by the engine and the pile estimator."""

    INCHES = "inches"
    FEET = "feet"
    YARDS = "yards"


_TO_INCHES = {
    Unit.INCHES: 1.0,
    Unit.FEET: 12.0,
    Unit.YARDS: 36.0,
}

PLACEHOLDER = "--"
SIXTEENTHS_PER_INCH = 16
INCHES_PER_FOOT = 12

FOOT_MARK = "′"  # ′
INCH_MARK = "″"  # ″


def convert(value: float, from_unit: Unit, to_unit: Unit) -> float:
    """Convert a length between units."""
    return value * _TO_INCHES[from_unit] / _TO_INCHES[to_unit]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

_NUM = r"\d+(?:\.\d*)?|\.\d+"
_FRAC = r"\d+/\d+"
_INCH_PART = rf"(?:(?P<whole>{_NUM})(?:\s+(?P<frac>{_FRAC}))?|(?P<only_frac>{_FRAC}))"

_FEET_AND_INCHES_RE = re.compile(rf"^(?P<feet>{_NUM})\s*'\s*{_INCH_PART}\s*\"?$")
_DASHED_RE = re.compile(rf"^(?P<feet>\d+)\s*-\s*{_INCH_PART}\s*\"?$")
_FEET_RE = re.compile(rf"^(?P<feet>{_NUM})\s*'$")
_INCHES_RE = re.compile(rf"^{_INCH_PART}\s*\"$")
_BARE_RE = re.compile(rf"^{_INCH_PART}$")

_FOOT_WORD_RE = re.compile(r"(?<![a-z])(?:feet|foot|ft)(?![a-z])\.?")
_INCH_WORD_RE = re.compile(r"(?<![a-z])(?:inches|inch|in)(?![a-z])\.?")


def _normalize(text: str) -> str:
    s = text.strip().lower()
    s = s.replace("''", '"')
    for mark in "’′":
        s = s.replace(mark, "'")
    for mark in "”″":
        s = s.replace(mark, '"')
    s = _FOOT_WORD_RE.sub("'", s)
    s = _INCH_WORD_RE.sub('"', s)
    return re.sub(r"\s+", " ", s).strip()


def _fraction(text: str) -> float | None:
    numerator, denominator = (float(part) for part in text.split("/"))
    if denominator == 0:
        return None
    return numerator / denominator


def _mixed_number(match: re.Match) -> float | None:
    """Value of the whole/fraction groups of `_INCH_PART`."""
    only_frac = match.group("only_frac")
    if only_frac is not None:
        return _fraction(only_frac)

    whole = match.group("whole")
    frac = match.group("frac")
    if frac is None:
        return float(whole)
    if "." in whole:
        # "4.5 1/2" mixes two fractional notations
        return None
    part = _fraction(frac)
    if part is None:
        return None
    return float(whole) + part


def parse_length(text: str) -> float | None:
    """Parse a free-form imperial length into inches.

    A bare number is taken as feet. Returns None for anything malformed,
    for zero or negative lengths, and for fractions with a zero
    denominator.
    """
    if text is None:
        return None
    s = _normalize(text)
    if not s:
        return None

    inches: float | None = None

    m = _FEET_AND_INCHES_RE.match(s) or _DASHED_RE.match(s)
    if m:
        part = _mixed_number(m)
        if part is not None:
            inches = float(m.group("feet")) * INCHES_PER_FOOT + part
    elif m := _FEET_RE.match(s):
        inches = float(m.group("feet")) * INCHES_PER_FOOT
    elif m := _INCHES_RE.match(s):
        inches = _mixed_number(m)
    elif m := _BARE_RE.match(s):
        feet = _mixed_number(m)
        if feet is not None:
            inches = feet * INCHES_PER_FOOT

    if inches is None or not math.isfinite(inches) or inches <= 0:
        return None
    return inches


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def _to_sixteenths(inches: float) -> int:
    # half-up; round() would send exact halves to the even neighbour
    return int(math.floor(inches * SIXTEENTHS_PER_INCH + 0.5))


def _fraction_suffix(sixteenths: int) -> str:
    if sixteenths == 0:
        return ""
    g = math.gcd(sixteenths, SIXTEENTHS_PER_INCH)
    return f" {sixteenths // g}/{SIXTEENTHS_PER_INCH // g}"


def format_inches(inches: float) -> str:
    """Render a length as total inches, e.g. `54 1/2″`."""
    if not math.isfinite(inches):
        return PLACEHOLDER
    total = _to_sixteenths(abs(inches))
    sign = "-" if inches < 0 and total else ""
    whole, sixteenths = divmod(total, SIXTEENTHS_PER_INCH)
    return f"{sign}{whole}{_fraction_suffix(sixteenths)}{INCH_MARK}"


def format_feet_inches(inches: float, with_inches: bool = False) -> str:
    """Render inches as `F′ I″` or `F′ I N/D″`, rounded to 1/16 inch.

    With `with_inches`, the total in inches is appended in parentheses:
    `4′ 6″ (54″)`. Non-finite input renders as the `--` placeholder.
    """
    if inches is None or not math.isfinite(inches):
        return PLACEHOLDER

    total = _to_sixteenths(abs(inches))
    sign = "-" if inches < 0 and total else ""
    feet, remainder = divmod(total, INCHES_PER_FOOT * SIXTEENTHS_PER_INCH)
    whole, sixteenths = divmod(remainder, SIXTEENTHS_PER_INCH)

    text = f"{sign}{feet}{FOOT_MARK} {whole}{_fraction_suffix(sixteenths)}{INCH_MARK}"
    if with_inches:
        text += f" ({format_inches(inches)})"
    return text
