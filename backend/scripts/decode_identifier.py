#!/usr/bin/env python3
"""
Decode QR identifiers from the command line.

Usage:
    python scripts/decode_identifier.py 1234567890123012512345678 ...
    cat identifiers.txt | python scripts/decode_identifier.py

Prints one JSON object per identifier. Identifiers that cannot be decoded
are reported with an "error" key and make the script exit non-zero.
"""
from __future__ import annotations

import json
import os
import sys

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.services.qr_decoder import InvalidInputError, decode_and_classify


def decode_line(raw: str) -> dict:
    try:
        record, status = decode_and_classify(raw)
    except InvalidInputError as e:
        return {"raw_input": raw, "error": str(e)}
    return {
        "reference_number": record.reference_number,
        "best_before_date": record.best_before_date.isoformat() if record.best_before_date else None,
        "best_before_label": record.best_before_label,
        "product_code": record.product_code,
        "raw_input": record.raw_input,
        "status": status.value,
    }


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    identifiers = args or [line.strip() for line in sys.stdin if line.strip()]

    failed = False
    for raw in identifiers:
        result = decode_line(raw)
        failed = failed or "error" in result
        print(json.dumps(result))
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
