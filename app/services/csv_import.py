# app/services/csv_import.py
"""
Bank statement import pipeline.

raw CSV text
  -> tokenize (csv_dialect)
  -> detect bank from header (bank_formats)
  -> per-row field extraction (extractors)
  -> classification: type + initial category (classifier)
  -> description cleanup (descriptions)
  -> user keyword rules for rows that deferred to keyword matching (categorizer)
  -> conversion to USD (exchange_rates)
  -> canonical transaction dict

Rows are independent of each other; output keeps input order.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.config import REPORTING_CURRENCY
from app.errors import NoTransactionsFound
from app.services.bank_formats import Dialect, build_columns, detect_dialect
from app.services.categorizer import CategoryProvider
from app.services.classifier import EXPENSE, INCOME, INTERNAL, ClassifierContext, classify
from app.services.csv_dialect import parse_csv_line, parse_header, split_lines
from app.services.descriptions import clean_description
from app.services.exchange_rates import Rates, convert_to_usd
from app.services.extractors import EXTRACTORS, RawRecord, parse_date

logger = logging.getLogger(__name__)


@dataclass
class ParsedFile:
    filename: str
    dialect: Dialect
    transactions: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def bank(self) -> str:
        return self.dialect.bank_name


def _warning(filename: str, line_no: int, kind: str, value: Any, message: str) -> Dict[str, Any]:
    return {
        "file": filename,
        "line": line_no,
        "kind": kind,
        "value": value,
        "message": message,
    }


def build_transaction(
    record: RawRecord,
    dialect: Dialect,
    ctx: ClassifierContext,
    rates: Rates,
    user_rules: Optional[CategoryProvider] = None,
    today: Optional[date] = None,
) -> Tuple[Dict[str, Any], List[Tuple[str, Any, str]]]:
    """
    Turn one extracted record into a canonical transaction dict.

    Returns (transaction, issues) where issues are (kind, value, message)
    tuples describing silent recoveries (date fallback, sign mismatch).
    """
    issues: List[Tuple[str, Any, str]] = []

    result = classify(dialect, record, ctx)
    description = clean_description(record.description_raw, record.text_payee)

    category = result.category
    if user_rules is not None and result.deferred:
        category = user_rules.classify(description, record.payee) or category

    iso_date, used_fallback = parse_date(record.date_raw, today)
    if used_fallback:
        issues.append(("date", record.date_raw, "Unparseable date, using today's date"))

    if (result.type == INCOME and record.amount < 0) or (result.type == EXPENSE and record.amount > 0):
        issues.append(("sign", record.amount, f"Amount sign disagrees with type {result.type!r}"))

    original_currency = record.currency_raw or REPORTING_CURRENCY
    converted = original_currency != REPORTING_CURRENCY

    tx = {
        "id": str(uuid.uuid4()),
        "date": iso_date,
        "description": description,
        "reference": record.reference,
        "bank": dialect.bank_name,
        "account": original_currency,
        "type": result.type,
        "category": category,
        "amount": convert_to_usd(record.amount, original_currency, rates),
        "currency": REPORTING_CURRENCY,
        "original_amount": record.amount if converted else None,
        "original_currency": original_currency if converted else None,
        "period": None,
        # Extended fields
        "payee": record.payee or None,
        "account_number": record.account_number or None,
        "transaction_type": record.transaction_type or None,
        "status": record.status or None,
        "balance": record.balance,
    }
    return tx, issues


def parse_statement(
    content: str,
    filename: str,
    ctx: ClassifierContext,
    rates: Rates,
    user_rules: Optional[CategoryProvider] = None,
    today: Optional[date] = None,
) -> ParsedFile:
    """
    Parse one CSV file into canonical transactions.

    Files without data rows yield nothing; malformed rows are skipped.
    """
    lines = split_lines(content)
    if len(lines) < 2:
        logger.info("[parse] %s: no data rows", filename)
        return ParsedFile(filename=filename, dialect=Dialect.GENERIC)

    headers = parse_header(lines[0])
    dialect = detect_dialect(headers)
    columns = build_columns(dialect, headers)
    extract = EXTRACTORS[dialect]

    parsed = ParsedFile(filename=filename, dialect=dialect)
    skipped = 0

    for line_no, line in enumerate(lines[1:], start=2):
        values = parse_csv_line(line)
        record = extract(values, columns) if values else None
        if record is None:
            skipped += 1
            continue

        tx, issues = build_transaction(record, dialect, ctx, rates, user_rules, today)
        parsed.transactions.append(tx)
        for kind, value, message in issues:
            parsed.warnings.append(_warning(filename, line_no, kind, value, message))

    logger.info(
        "[parse] %s: detected %s, %d transactions, %d rows skipped, %d warnings",
        filename,
        dialect.bank_name,
        len(parsed.transactions),
        skipped,
        len(parsed.warnings),
    )
    return parsed


def summarize(transactions: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """Pre-confirmation summary of an import batch (amounts in USD)."""
    income = [t for t in transactions if t["type"] == INCOME]
    expenses = [t for t in transactions if t["type"] == EXPENSE]
    internal = [t for t in transactions if t["type"] == INTERNAL]

    categories: List[str] = []
    for t in transactions:
        if t.get("category") and t["category"] not in categories:
            categories.append(t["category"])

    return {
        "total": len(transactions),
        "income": sum(t["amount"] for t in income),
        "expenses": sum(abs(t["amount"]) for t in expenses),
        "internal": sum(abs(t["amount"]) for t in internal),
        "income_count": len(income),
        "expense_count": len(expenses),
        "internal_count": len(internal),
        "categories": categories,
    }


def parse_csvs(
    batch: dict,
    files: Sequence[Tuple[str, str]],
    period: str,
    ctx: ClassifierContext,
    rates: Rates,
    user_rules: Optional[CategoryProvider] = None,
    today: Optional[date] = None,
) -> dict:
    """
    Parse every (filename, content) pair of an upload into `batch`.

    Fills batch["transactions"] (id -> tx), batch["order"], batch["warnings"],
    batch["banks"], batch["summary"]. All transactions get the same `period`.

    Raises NoTransactionsFound when no file produced a single transaction.
    """
    all_transactions: Dict[str, Dict[str, Any]] = {}
    order: List[str] = []
    warnings: List[Dict[str, Any]] = []
    banks: List[str] = []

    for filename, content in files:
        parsed = parse_statement(content, filename, ctx, rates, user_rules, today)
        warnings.extend(parsed.warnings)

        if parsed.transactions and parsed.bank not in banks:
            banks.append(parsed.bank)

        for tx in parsed.transactions:
            tx["period"] = period
            all_transactions[tx["id"]] = tx
            order.append(tx["id"])

    if not order:
        raise NoTransactionsFound()

    ordered = [all_transactions[tid] for tid in order]

    batch["period"] = period
    batch["filenames"] = [name for name, _ in files]
    batch["transactions"] = all_transactions
    batch["order"] = order
    batch["warnings"] = warnings
    batch["banks"] = banks
    batch["summary"] = summarize(ordered)
    return batch
