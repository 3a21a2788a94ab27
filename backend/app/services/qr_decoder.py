"""
Fixed-layout QR identifier decoder.

Decodes the positional identifier printed on product QR labels and classifies
the item against its best-before month.

Layout (0-indexed, end-exclusive):
    [0:13)   Reference number, displayed as AAAAAAA-BBBBBB
    [13:15)  Best-before month, 01-12
    [15:17)  Best-before year, 2 digits (20YY)
    [17:25)  Product code

Example: 1234567890123012512345678
         ├─────┬─────┘├┘├┘├──────┘
         │     │      │ │ └── Product code: 12345678
         │     │      │ └── Year: 25 → 2025
         │     │      └── Month: 01 → January
         └─────┴── Reference: 1234567-890123
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum

MIN_LENGTH = 13
DATE_MIN_LENGTH = 17
PRODUCT_MIN_LENGTH = 16
PRODUCT_START = 17
PRODUCT_END = 25
NOT_AVAILABLE = "N/A"

# Leading integer of a field; trailing junk is ignored ("1A" -> 1)
_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


class InvalidInputError(ValueError):
    """Raised when the input is too short to hold a reference number."""


class FreshnessStatus(str, Enum):
    GOOD = "GOOD"
    BAD = "BAD"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class DecodedRecord:
    reference_number: str
    best_before_date: date | None
    best_before_label: str | None
    product_code: str
    raw_input: str


def _parse_int_prefix(value: str) -> int | None:
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def _parse_month_year(month_raw: str, year_raw: str) -> tuple[date, str] | None:
    """Convert MM + YY fields to (first day of month, "<Month> <Year>").

    The month is read from its leading digits, so "1A" is January and "AB"
    is no month at all. Returns None when the month is missing or outside
    1-12, or the year is not numeric. A bad date is a partial record, never
    a decode failure.
    """
    month = _parse_int_prefix(month_raw)
    if month is None or month < 1 or month > 12:
        return None

    try:
        year = 2000 + int(year_raw, 10)
    except ValueError:
        return None

    return date(year, month, 1), f"{MONTH_NAMES[month - 1]} {year}"


def decode(raw: str) -> DecodedRecord:
    """Decode a raw identifier string into a DecodedRecord.

    Raises InvalidInputError when the string is empty or shorter than 13
    characters. Shorter-than-schema inputs decode to partial records: absent
    fields mean "not encoded", not an error.
    """
    if not raw or len(raw) < MIN_LENGTH:
        raise InvalidInputError("Invalid QR code data")

    reference_number = raw[0:7] + "-" + raw[7:13]

    best_before_date = None
    best_before_label = None
    if len(raw) >= DATE_MIN_LENGTH:
        parsed = _parse_month_year(raw[13:15], raw[15:17])
        if parsed is not None:
            best_before_date, best_before_label = parsed

    product_code = None
    if len(raw) >= PRODUCT_MIN_LENGTH:
        product_code = raw[PRODUCT_START:min(PRODUCT_END, len(raw))]

    return DecodedRecord(
        reference_number=reference_number,
        best_before_date=best_before_date,
        best_before_label=best_before_label,
        product_code=product_code or NOT_AVAILABLE,
        raw_input=raw,
    )


def classify(best_before: date | None, today: date | None = None) -> FreshnessStatus:
    """Classify freshness against the end of the best-before month.

    The whole best-before month is GOOD; the first day of the following month
    is the first BAD day.
    """
    if best_before is None:
        return FreshnessStatus.UNKNOWN

    if today is None:
        today = date.today()

    last_day = calendar.monthrange(best_before.year, best_before.month)[1]
    month_end = date(best_before.year, best_before.month, last_day)

    return FreshnessStatus.BAD if today > month_end else FreshnessStatus.GOOD


def decode_and_classify(
    raw: str, today: date | None = None
) -> tuple[DecodedRecord, FreshnessStatus]:
    record = decode(raw)
    return record, classify(record.best_before_date, today)
