# app/services/ai_parser.py
"""
Optional LLM parsing path for statements the local pipeline can't read well.

Design goals:
- Safe: never raises to callers; any failure falls back to the local pipeline
- Optional: controlled by env var AI_PARSE_ENABLED=1 (plus OPENAI_API_KEY)
- Bounded: at most AI_PARSE_MAX_LINES data lines are sent to the model

Public API:
    analyze_statement(csv_content, file_name, period, ctx, rates)
        -> {"success": True, "transactions": [...], "meta": {...}}
"""

from __future__ import annotations

import json
import logging
import os
import re
import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from openai import OpenAI

from app.config import AI_PARSE_ENABLED, AI_PARSE_MAX_LINES, AI_PARSE_MODEL, REPORTING_CURRENCY
from app.services.classifier import EXPENSE, INCOME, TRANSACTION_TYPES, ClassifierContext
from app.services.csv_import import parse_statement
from app.services.exchange_rates import Rates

logger = logging.getLogger(__name__)

_TRAILING_COMMA_RE = re.compile(r",\s*]")
_DOUBLE_COMMA_RE = re.compile(r",\s*,")

AI_CATEGORIES = ["Sales", "Ads", "Software", "Payroll", "Shipping", "Fees", "Transfer", "Refunds", "Other"]

_INSTRUCTIONS = (
    "You are a JSON generator. Parse CSV bank statements and output ONLY a valid JSON array.\n"
    "Your response must start with [ and end with ] - nothing else.\n"
    "For each transaction, output:\n"
    '{"date":"YYYY-MM-DD","description":"Clean Name","amount":NUMBER,"currency":"USD",'
    '"type":"income|expense|internal","category":"CATEGORY","bank":"BANK"}\n'
    f"Categories: {', '.join(AI_CATEGORIES)}\n"
    "Positive amounts are income, negative are expenses. "
    "Transfers between own accounts are internal. "
    "Clean descriptions (no ALL CAPS). Detect the bank from the data.\n"
)


def truncate_lines(csv_content: str, max_lines: int = AI_PARSE_MAX_LINES):
    """
    Keep the header plus at most `max_lines` data lines.

    Returns (text, truncated, original_data_lines).
    """
    lines = csv_content.split("\n")
    truncated = len(lines) > max_lines + 1
    return "\n".join(lines[: max_lines + 1]), truncated, len(lines) - 1


def extract_json_array(text: str) -> List[Any]:
    """
    Pull the outermost [...] out of a model reply and parse it.

    Trailing and doubled commas are repaired first. Raises ValueError when no
    array can be recovered.
    """
    first = text.find("[")
    last = text.rfind("]")
    if first == -1 or last == -1 or last <= first:
        raise ValueError("No JSON array found")

    snippet = text[first : last + 1]
    snippet = _TRAILING_COMMA_RE.sub("]", snippet)
    snippet = _DOUBLE_COMMA_RE.sub(",", snippet)

    data = json.loads(snippet)
    if not isinstance(data, list):
        raise ValueError("Not an array")
    return data


def _to_amount(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return None


def normalize_ai_rows(rows: List[Any], period: Optional[str]) -> List[Dict[str, Any]]:
    """Drop rows without a usable non-zero amount and fill the canonical keys."""
    out: List[Dict[str, Any]] = []
    today = date.today().isoformat()

    for row in rows:
        if not isinstance(row, dict):
            continue
        amount = _to_amount(row.get("amount"))
        if amount is None or amount != amount or amount == 0:
            continue

        tx_type = row.get("type")
        if tx_type not in TRANSACTION_TYPES:
            tx_type = INCOME if amount > 0 else EXPENSE

        currency = str(row.get("currency") or REPORTING_CURRENCY).upper()
        original_description = str(row.get("originalDescription") or "")

        out.append({
            "id": str(uuid.uuid4()),
            "date": row.get("date") or today,
            "description": str(row.get("description") or original_description or "Transaction")[:100],
            "reference": original_description[:200],
            "bank": row.get("bank") or "Imported",
            "account": currency,
            "type": tx_type,
            "category": row.get("category") or "Other",
            "amount": amount,
            "currency": currency,
            "original_amount": None,
            "original_currency": None,
            "period": period,
        })
    return out


def _openai_client() -> Optional[OpenAI]:
    if not (os.getenv("OPENAI_API_KEY") or "").strip():
        return None
    try:
        # The OpenAI SDK reads OPENAI_API_KEY from env by default.
        return OpenAI()
    except Exception as e:
        logger.warning("[analyze] could not create OpenAI client: %r", e)
        return None


def _call_model(csv_text: str, client: OpenAI, model: str) -> List[Any]:
    resp = client.responses.create(
        model=model,
        instructions=_INSTRUCTIONS,
        input=f"Parse this CSV to JSON array:\n\n{csv_text}",
    )
    text = (getattr(resp, "output_text", "") or "").strip()
    if not text:
        raise ValueError("No response")
    return extract_json_array(text)


def analyze_statement(
    csv_content: str,
    file_name: str,
    period: Optional[str],
    ctx: ClassifierContext,
    rates: Rates,
    enabled: Optional[bool] = None,
    client: Optional[OpenAI] = None,
) -> Dict[str, Any]:
    """
    Parse one statement through the model, or the local pipeline on failure.

    `client` may be injected; otherwise one is built from the environment.
    """
    enabled = AI_PARSE_ENABLED if enabled is None else enabled
    text, truncated, original_lines = truncate_lines(csv_content)

    transactions: List[Dict[str, Any]] = []
    used_ai = False

    if enabled:
        client = client or _openai_client()
        if client is not None:
            try:
                transactions = normalize_ai_rows(_call_model(text, client, AI_PARSE_MODEL), period)
                used_ai = bool(transactions)
            except Exception as e:
                logger.warning("[analyze] AI parsing failed, using local parser: %r", e)
                transactions = []

    if not used_ai:
        parsed = parse_statement(csv_content, file_name, ctx, rates)
        transactions = parsed.transactions
        for tx in transactions:
            tx["period"] = period

    return {
        "success": True,
        "transactions": transactions,
        "meta": {
            "total": len(transactions),
            "used_ai": used_ai,
            "truncated": truncated,
            "original_lines": original_lines,
        },
    }
