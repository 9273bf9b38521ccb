# app/services/extractors.py
#
# Per-dialect field extraction.
# Each extractor maps one tokenized CSV row to a RawRecord using the column
# table built once per file. Rows with a zero amount are dropped here.

import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

import pandas as pd

from app.config import REPORTING_CURRENCY
from app.services.bank_formats import Dialect


@dataclass
class RawRecord:
    """Intermediate record between a CSV row and a canonical transaction."""

    date_raw: str
    description_raw: str
    amount: float
    currency_raw: str
    reference: str = ""

    # Stored counterparty (Relay payee / Revolut beneficiary name)
    payee: str = ""
    # Payee text used for description cleanup and keyword matching
    text_payee: str = ""

    account_number: str = ""
    transaction_type: str = ""
    status: str = ""
    balance: Optional[float] = None

    # Revolut only: beneficiary account number for TRANSFER rows
    beneficiary_account: str = ""


# -------------------------------------------------------------------
# Amounts
# -------------------------------------------------------------------

_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")
_LEADING_FLOAT_RE = re.compile(r"^-?(?:\d+(?:\.\d*)?|\.\d+)")


def parse_amount(value: Optional[str]) -> float:
    """
    Naive amount parser.

    Strips everything except digits, '.' and '-', then reads the leading float
    literal. Anything unparseable is 0.0. Comma-decimal input is not handled:
    "1.234,56" becomes 1.23456.
    """
    if not value:
        return 0.0

    stripped = _NON_NUMERIC_RE.sub("", str(value))
    match = _LEADING_FLOAT_RE.match(stripped)
    if not match:
        return 0.0

    try:
        return float(match.group(0))
    except ValueError:
        return 0.0


def parse_balance(value: Optional[str]) -> Optional[float]:
    # Zero balance is treated as "not provided"
    return parse_amount(value) or None


# -------------------------------------------------------------------
# Dates
# -------------------------------------------------------------------

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATE_SPLIT_RE = re.compile(r"[/\-]")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def _leading_int(s: str) -> Optional[int]:
    match = _LEADING_INT_RE.match(s)
    return int(match.group(1)) if match else None


def _safe_iso(year: int, month: int, day: int) -> Optional[str]:
    try:
        return date(year, month, day).isoformat()
    except (TypeError, ValueError):
        return None


def _parse_triplet(cleaned: str) -> Optional[str]:
    parts = _DATE_SPLIT_RE.split(cleaned)
    if len(parts) != 3:
        return None

    a, b, c = (_leading_int(p) for p in parts)
    if a is None or b is None or c is None:
        return None

    if c > 1000:
        # DD/MM/YYYY when the first part cannot be a month, else MM/DD/YYYY
        if a > 12:
            return _safe_iso(c, b, a)
        return _safe_iso(c, a, b)

    if a > 1000:
        return _safe_iso(a, b, c)

    return None


def _parse_native(value: str) -> Optional[str]:
    try:
        parsed = pd.to_datetime(value, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    return parsed.date().isoformat()


def parse_date(value: Optional[str], today: Optional[date] = None) -> Tuple[str, bool]:
    """
    Parse a statement date into ISO format.

    Order: YYYY-MM-DD verbatim, A/B/C triplets (year found by magnitude),
    native parsing, then today's date.

    Returns (iso_date, used_fallback). `used_fallback` is True when nothing
    could be parsed and today's date was substituted.
    """
    today_iso = (today or date.today()).isoformat()

    if not value:
        return today_iso, True

    # Drop a time part like "2025-01-31 10:22:01"
    cleaned = value.strip().split(" ")[0]

    if _ISO_DATE_RE.match(cleaned):
        y, m, d = (int(p) for p in cleaned.split("-"))
        if _safe_iso(y, m, d):
            return cleaned, False

    triplet = _parse_triplet(cleaned)
    if triplet:
        return triplet, False

    native = _parse_native(value)
    if native:
        return native, False

    return today_iso, True


# -------------------------------------------------------------------
# Extractors
# -------------------------------------------------------------------

def _cell(values: List[str], idx: int) -> str:
    if idx < 0 or idx >= len(values):
        return ""
    return values[idx] or ""


def extract_relay(values: List[str], cols: Dict[str, int]) -> Optional[RawRecord]:
    if len(values) < 2:
        return None

    amount = parse_amount(_cell(values, cols["amount"]) or "0")
    if amount == 0:
        return None

    payee = _cell(values, cols["payee"])
    raw_desc = _cell(values, cols["description"])
    reference = _cell(values, cols["reference"])

    return RawRecord(
        date_raw=_cell(values, cols["date"]),
        description_raw=raw_desc,
        amount=amount,
        currency_raw=_cell(values, cols["currency"]) or REPORTING_CURRENCY,
        reference=reference or raw_desc,
        payee=payee,
        text_payee=payee,
        account_number=_cell(values, cols["account_number"]),
        transaction_type=_cell(values, cols["transaction_type"]),
        status=_cell(values, cols["status"]),
        balance=parse_balance(_cell(values, cols["balance"])),
    )


def extract_revolut(values: List[str], cols: Dict[str, int]) -> Optional[RawRecord]:
    if len(values) < 5:
        return None

    amount = parse_amount(_cell(values, cols["amount"]) or "0")
    if amount == 0:
        return None

    raw_desc = _cell(values, cols["description"])
    reference = _cell(values, cols["reference"])
    beneficiary_account = _cell(values, cols["beneficiary_account"]).strip()

    return RawRecord(
        date_raw=_cell(values, cols["date"]),
        description_raw=raw_desc,
        amount=amount,
        currency_raw=_cell(values, cols["currency"]) or REPORTING_CURRENCY,
        reference=reference or raw_desc,
        payee=_cell(values, cols["beneficiary_name"]).strip(),
        # Revolut descriptions already name the counterparty
        text_payee="",
        account_number=beneficiary_account,
        transaction_type=_cell(values, cols["type"]).upper(),
        status=_cell(values, cols["state"]),
        balance=parse_balance(_cell(values, cols["balance"])),
        beneficiary_account=beneficiary_account,
    )


def extract_generic(values: List[str], cols: Dict[str, int]) -> Optional[RawRecord]:
    if len(values) < 2:
        return None

    amount_idx = cols["amount"] if cols["amount"] >= 0 else 2
    desc_idx = cols["description"] if cols["description"] >= 0 else 1
    date_idx = cols["date"] if cols["date"] >= 0 else 0

    amount = parse_amount(_cell(values, amount_idx) or "0")
    if amount == 0:
        return None

    raw_desc = _cell(values, desc_idx)

    return RawRecord(
        date_raw=_cell(values, date_idx),
        description_raw=raw_desc,
        amount=amount,
        currency_raw=_cell(values, cols["currency"]) or REPORTING_CURRENCY,
        reference=raw_desc,
    )


EXTRACTORS: Dict[Dialect, Callable[[List[str], Dict[str, int]], Optional[RawRecord]]] = {
    Dialect.RELAY: extract_relay,
    Dialect.REVOLUT: extract_revolut,
    Dialect.MERCURY: extract_generic,
    Dialect.GENERIC: extract_generic,
}
