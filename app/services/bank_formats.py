# app/services/bank_formats.py
#
# Bank format detection.
# Looks only at the header row of a CSV export and decides which provider
# produced it, then locates the columns each provider's extractor needs.

from enum import Enum
from typing import Callable, Dict, List


class Dialect(str, Enum):
    """Known CSV layouts. The value is the bank name stored on transactions."""

    RELAY = "Relay"
    REVOLUT = "Revolut"
    MERCURY = "Mercury"
    GENERIC = "Imported"

    @property
    def bank_name(self) -> str:
        return self.value


def detect_dialect(headers: List[str]) -> Dialect:
    """
    Decide the dialect from lower-cased, trimmed header names.

    Relay wins over Revolut, which wins over Mercury; anything else is generic.
    """
    if "payee" in headers and "transaction type" in headers:
        return Dialect.RELAY

    has_revolut_date = any("date started" in h or "date completed" in h for h in headers)
    if has_revolut_date and "type" in headers:
        return Dialect.REVOLUT

    if "bank description" in headers:
        return Dialect.MERCURY

    return Dialect.GENERIC


# -------------------------------------------------------------------
# Column lookups (computed once per file; -1 means "not present")
# -------------------------------------------------------------------

def _index(headers: List[str], name: str) -> int:
    try:
        return headers.index(name)
    except ValueError:
        return -1


def _find(headers: List[str], predicate: Callable[[str], bool]) -> int:
    for i, h in enumerate(headers):
        if predicate(h):
            return i
    return -1


def relay_columns(headers: List[str]) -> Dict[str, int]:
    # Date,Payee,Account #,Transaction Type,Description,Reference,Status,Amount,Currency,Balance
    return {
        "date": _index(headers, "date"),
        "payee": _index(headers, "payee"),
        "account_number": _index(headers, "account #"),
        "transaction_type": _index(headers, "transaction type"),
        "description": _index(headers, "description"),
        "reference": _index(headers, "reference"),
        "status": _index(headers, "status"),
        "amount": _index(headers, "amount"),
        "currency": _index(headers, "currency"),
        "balance": _index(headers, "balance"),
    }


def revolut_columns(headers: List[str]) -> Dict[str, int]:
    currency_idx = _index(headers, "payment currency")
    if currency_idx == -1:
        currency_idx = _index(headers, "currency")

    return {
        "date": _find(headers, lambda h: "date completed" in h or "date started" in h),
        "id": _index(headers, "id"),
        "type": _index(headers, "type"),
        "state": _index(headers, "state"),
        "description": _index(headers, "description"),
        "reference": _index(headers, "reference"),
        "amount": _index(headers, "amount"),
        "currency": currency_idx,
        "balance": _index(headers, "balance"),
        "beneficiary_account": _index(headers, "beneficiary account number"),
        "beneficiary_name": _index(headers, "beneficiary name"),
    }


def generic_columns(headers: List[str]) -> Dict[str, int]:
    """Best-effort substring search; used for Mercury and unknown exports."""
    return {
        "date": _find(headers, lambda h: "date" in h),
        "description": _find(headers, lambda h: "description" in h or "memo" in h),
        "amount": _find(headers, lambda h: "amount" in h or "value" in h),
        "currency": _find(headers, lambda h: "currency" in h),
    }


COLUMN_BUILDERS: Dict[Dialect, Callable[[List[str]], Dict[str, int]]] = {
    Dialect.RELAY: relay_columns,
    Dialect.REVOLUT: revolut_columns,
    Dialect.MERCURY: generic_columns,
    Dialect.GENERIC: generic_columns,
}


def build_columns(dialect: Dialect, headers: List[str]) -> Dict[str, int]:
    return COLUMN_BUILDERS[dialect](headers)
