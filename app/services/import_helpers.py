# app/services/import_helpers.py
#
# Import Helper Functions
# Converts canonical transaction dicts into ORM models and handles the
# "Mon YYYY" period labels that every import is tagged with.

import re
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple

from models import Transaction

MONTH_NAMES_SHORT = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]

# e.g. Relay_2025-11-01.csv -> Nov 2025
FILENAME_DATE_RE = re.compile(r"(\d{4})-(\d{2})-\d{2}")


# ---- Transaction Conversion ----

def build_transaction_from_dict(tx: dict) -> Transaction:
    """
    Convert one canonical tx dict (from PENDING_BATCHES[...]["transactions"])
    into a Transaction ORM object.
    """

    date_raw = tx.get("date")
    if isinstance(date_raw, str):
        date_parsed = datetime.strptime(date_raw, "%Y-%m-%d").date()
    else:
        date_parsed = date_raw  # already a date object

    original_amount = tx.get("original_amount")

    return Transaction(
        id=tx["id"],
        date=date_parsed,
        description=(tx.get("description") or "Transaction")[:100],
        reference=tx.get("reference") or None,
        bank=tx.get("bank") or "Imported",
        account=tx.get("account") or None,
        type=tx["type"],
        category=tx.get("category") or "Other",
        amount=float(tx["amount"]),
        currency=tx.get("currency") or "USD",
        original_amount=float(original_amount) if original_amount is not None else None,
        original_currency=tx.get("original_currency") or None,
        period=tx.get("period"),
        payee=tx.get("payee") or None,
        account_number=tx.get("account_number") or None,
        transaction_type=tx.get("transaction_type") or None,
        status=tx.get("status") or None,
        balance=tx.get("balance"),
    )


# ---- Period Labels ----

def period_label(month: int, year: int) -> str:
    """month is 1-12. Returns e.g. 'Nov 2025'."""
    if not 1 <= month <= 12:
        raise ValueError(f"month out of range: {month}")
    return f"{MONTH_NAMES_SHORT[month - 1]} {year}"


def previous_month(today: Optional[date] = None) -> Tuple[int, int]:
    """(year, month) of the month before `today`."""
    today = today or date.today()
    if today.month == 1:
        return today.year - 1, 12
    return today.year, today.month - 1


def period_from_filename(filename: str) -> Optional[Tuple[int, int]]:
    """(year, month) from a YYYY-MM-DD stamp in the file name, if any."""
    match = FILENAME_DATE_RE.search(filename or "")
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month


def resolve_period(
    month: Optional[int],
    year: Optional[int],
    filenames: Iterable[str] = (),
    today: Optional[date] = None,
) -> str:
    """
    Period label for an upload.

    Explicit month/year win; otherwise the first file name carrying a date
    stamp decides; otherwise the previous calendar month.
    """
    default_year, default_month = previous_month(today)

    if month is None or year is None:
        for name in filenames:
            found = period_from_filename(name)
            if found:
                default_year, default_month = found
                break

    return period_label(
        month if month is not None else default_month,
        year if year is not None else default_year,
    )


def parse_period(label: str) -> Optional[Tuple[int, int]]:
    """'Nov 2025' -> (2025, 11); None for anything else."""
    parts = (label or "").split()
    if len(parts) != 2 or parts[0] not in MONTH_NAMES_SHORT or not parts[1].isdigit():
        return None
    return int(parts[1]), MONTH_NAMES_SHORT.index(parts[0]) + 1


def sort_periods_desc(labels: Iterable[str]) -> List[str]:
    """Newest period first; unparseable labels go last."""
    def key(label):
        parsed = parse_period(label)
        return parsed if parsed else (0, 0)

    return sorted(set(labels), key=key, reverse=True)


def period_labels_for(year: int, months: Optional[Iterable[int]] = None) -> Optional[List[str]]:
    """
    Period labels a dashboard filter selects.

    No months means the whole year; that case returns None and callers match
    on the year instead.
    """
    months = [m for m in (months or []) if 1 <= m <= 12]
    if not months:
        return None
    return [period_label(m, year) for m in months]
