# app/services/classifier.py
#
# Transaction classification: economic type (income / expense / internal)
# plus the initial category.
#
# Each bank encodes transfer intent differently, so every dialect has its own
# branch table. The branches below are business rules; keep them exact.

from typing import Callable, Dict, Iterable, NamedTuple, Optional, Set

from app.config import OWN_RELAY_ACCOUNT
from app.services.bank_formats import Dialect
from app.services.categorizer import detect_category
from app.services.extractors import RawRecord


INCOME = "income"
EXPENSE = "expense"
INTERNAL = "internal"

TRANSACTION_TYPES = (INCOME, EXPENSE, INTERNAL)

# Payee names that mean "money moved from one of our own banks"
SIBLING_BANK_PAYEES = {"revolut", "relay"}


class Classification(NamedTuple):
    type: str
    category: str
    # True when the category came from keyword matching (user rules may override it)
    deferred: bool = False


class ClassifierContext(NamedTuple):
    beneficiary_accounts: Set[str]
    own_relay_account: str = OWN_RELAY_ACCOUNT


def build_context(
    beneficiary_accounts: Iterable[Optional[str]] = (),
    own_relay_account: str = OWN_RELAY_ACCOUNT,
) -> ClassifierContext:
    accounts = {a.strip() for a in beneficiary_accounts if a and a.strip()}
    return ClassifierContext(beneficiary_accounts=accounts, own_relay_account=own_relay_account)


def _by_sign(record: RawRecord, category: str) -> Classification:
    if record.amount > 0:
        return Classification(INCOME, category, True)
    return Classification(EXPENSE, category, True)


def classify_relay(record: RawRecord, ctx: ClassifierContext) -> Classification:
    tx_type = record.transaction_type.lower()

    if tx_type == "spend":
        return Classification(EXPENSE, detect_category(record.description_raw, record.payee), True)

    if tx_type == "receive":
        # Money from Revolut or between Relay accounts is an internal move
        if record.payee.lower() in SIBLING_BANK_PAYEES:
            return Classification(INTERNAL, "Transfer")
        # Every other inflow on Relay is sales revenue (Cartpanda, Shopify, ...)
        return Classification(INCOME, "Sales")

    if "transfer" in tx_type:
        return Classification(INTERNAL, "Transfer")

    if record.amount > 0:
        return Classification(INCOME, "Sales")
    return Classification(EXPENSE, detect_category(record.description_raw, record.payee), True)


def classify_revolut(record: RawRecord, ctx: ClassifierContext) -> Classification:
    tx_type = record.transaction_type.upper()
    category = detect_category(record.description_raw, "")

    if tx_type == "CARD_PAYMENT":
        return Classification(EXPENSE, category, True)

    if tx_type == "FEE":
        return Classification(EXPENSE, "Fees")

    if tx_type == "TOPUP":
        return Classification(INCOME, "Sales")

    if tx_type in ("REFUND", "CARD_REFUND"):
        return Classification(INCOME, "Refunds")

    if tx_type == "EXCHANGE":
        return Classification(INTERNAL, "Transfer")

    if tx_type == "TRANSFER":
        beneficiary = record.beneficiary_account

        # Between our own Revolut accounts
        if not beneficiary:
            return Classification(INTERNAL, "Transfer")

        # Sending to our own Relay account
        if beneficiary == ctx.own_relay_account:
            return Classification(INTERNAL, "Transfer")

        if beneficiary in ctx.beneficiary_accounts:
            return Classification(EXPENSE, "Payroll")

        return Classification(EXPENSE, "Other")

    return _by_sign(record, category)


def classify_generic(record: RawRecord, ctx: ClassifierContext) -> Classification:
    return _by_sign(record, detect_category(record.description_raw, ""))


CLASSIFIERS: Dict[Dialect, Callable[[RawRecord, ClassifierContext], Classification]] = {
    Dialect.RELAY: classify_relay,
    Dialect.REVOLUT: classify_revolut,
    Dialect.MERCURY: classify_generic,
    Dialect.GENERIC: classify_generic,
}


def classify(dialect: Dialect, record: RawRecord, ctx: ClassifierContext) -> Classification:
    return CLASSIFIERS[dialect](record, ctx)
