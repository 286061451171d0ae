# src/btcperf/adapters/sources/json_file.py
"""
JSON Position Source - Loan Records from a JSON File

Reads a JSON list of loan records as they appear on a loan dashboard and
normalises the display text into Position objects:

    {"id": "loan-1", "amount": "EUR 10,000", "interest_rate": "12.5%",
     "provision_date": "24 Nov 2024", "collateral": "0.25891 BTC",
     "status": "ACTIVE"}

Fields that cannot be read become None; the pipeline reports such positions
as failed instead of crashing. Records whose status is PENDING are
excluded from analysis through ``is_pending``.

Files that USE this module:
- btcperf.app (default position source for the command line)
- tests.test_json_source (unit tests)

Files that this module USES:
- btcperf.shared.parsing (parse_amount, parse_date)
- btcperf.domain.models (Position)
"""
from __future__ import annotations

import json
import logging
import math
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set, Union

from btcperf.domain.models import Position
from btcperf.shared.parsing import parse_amount, parse_date

log = logging.getLogger(__name__)

_AMOUNT_RE = re.compile(r"^\s*([A-Za-z]{3})\s+(.+?)\s*$")
_BTC_RE = re.compile(r"([\d.,]+)\s*BTC", re.IGNORECASE)
_DECIMAL_ORNAMENT_RE = re.compile(r"[^0-9.,\-]")


def _number(value: Any) -> Optional[float]:
    result = parse_amount(value)
    return None if math.isnan(result) else result


def _decimal(value: Any) -> Optional[float]:
    """
    Read a plain decimal such as "12.125%" or "0.125".

    Rates and BTC quantities have no thousands grouping, so a three-digit
    fraction stays a fraction. A lone comma is read as the decimal point.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = _DECIMAL_ORNAMENT_RE.sub("", str(value))
        if "," in text and "." not in text:
            text = text.replace(",", ".")
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def _split_amount(text: Any) -> tuple[Optional[str], Optional[float]]:
    """Split "EUR 10,000" into ("EUR", 10000.0)."""
    if not isinstance(text, str):
        return None, None
    match = _AMOUNT_RE.match(text)
    if not match:
        return None, None
    return match.group(1).upper(), _number(match.group(2))


def _collateral(value: Any) -> Optional[float]:
    if isinstance(value, str):
        match = _BTC_RE.search(value)
        if match:
            return _decimal(match.group(1))
    return _decimal(value)


def record_to_position(record: Mapping[str, Any], index: int = 0) -> Position:
    """
    Convert one raw record into a Position.

    Accepts either an "amount" display string ("EUR 10,000") or separate
    "currency" and "principal" fields.

    Args:
        record: Raw mapping from the JSON file
        index: Position in the file, used as id when the record has none
    """
    currency, principal = _split_amount(record.get("amount"))
    if record.get("currency"):
        currency = str(record["currency"]).strip().upper()
    if record.get("principal") is not None:
        principal = _number(record["principal"])

    return Position(
        id=str(record.get("id", f"position-{index}")),
        currency=currency,
        principal=principal,
        annual_rate_percent=_decimal(record.get("interest_rate")),
        reference_date=parse_date(record.get("provision_date")),
        collateral_quantity=_collateral(record.get("collateral")),
    )


class JsonPositionSource:
    """Position source backed by a JSON file (re-read on every pass)."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._pending_ids: Set[str] = set()

    def _load(self) -> List[Dict[str, Any]]:
        with self.path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("positions", [])
        if not isinstance(data, list):
            raise ValueError(f"{self.path}: expected a list of position records")
        return [r for r in data if isinstance(r, dict)]

    def list_positions(self) -> List[Position]:
        """
        Read the file and return positions in file order.

        Raises:
            OSError / ValueError: If the file is missing or not valid JSON
        """
        records = self._load()
        positions = []
        pending = set()
        for index, record in enumerate(records):
            position = record_to_position(record, index)
            if is_pending(record):
                pending.add(position.id)
            positions.append(position)
        self._pending_ids = pending
        log.info("Loaded %d position(s) from %s (%d pending)", len(positions), self.path, len(pending))
        return positions

    def is_excluded(self, position: Position) -> bool:
        return position.id in self._pending_ids


def is_pending(record: Mapping[str, Any]) -> bool:
    """True for raw records that are not yet active loans."""
    return str(record.get("status", "")).upper() == "PENDING"
