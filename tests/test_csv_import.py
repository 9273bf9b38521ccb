from datetime import date

import pytest

from app.errors import NoTransactionsFound
from app.services.bank_formats import Dialect
from app.services.categorizer import KeywordRule, UserRuleSet
from app.services.classifier import build_context
from app.services.csv_import import parse_csvs, parse_statement, summarize

RATES = {"USD": 1.0, "EUR": 0.8}
CTX = build_context(["DE123"])
TODAY = date(2025, 12, 1)

RELAY_CSV = """Date,Payee,Account #,Transaction Type,Description,Reference,Status,Amount,Currency,Balance
2025-11-03,Facebook,1234,Spend,FACEBOOK ADS PAYMENT,FB-1,Settled,-156.03,USD,1000.00
2025-11-04,Cartpanda,1234,Receive,Payout,,Settled,"2,500.00",USD,3500.00
2025-11-05,Revolut,1234,Receive,Top up,,Settled,500.00,USD,4000.00
2025-11-06,Nobody,1234,Spend,Nothing,,Settled,0.00,USD,4000.00
"""

REVOLUT_CSV = """Date started (UTC),Date completed (UTC),ID,Type,State,Description,Reference,Payer,Card number,Orig currency,Orig amount,Payment currency,Amount,Fee,Balance,Account,Beneficiary account number,Beneficiary name
2025-11-01,2025-11-02,id1,TRANSFER,COMPLETED,To Maria,Salary,,,,,EUR,-2100,0,5000,Main,DE123,Maria Silva
2025-11-03,2025-11-03,id2,TRANSFER,COMPLETED,To Relay,,,,,,USD,-6800,0,4000,Main,,
2025-11-04,2025-11-04,id3,CARD_PAYMENT,COMPLETED,Notion,,,,,,EUR,-8,0,3900,Main,,
2025-11-05,2025-11-05,id4,FEE,COMPLETED,Plan fee,,,,,,EUR,0,0,3900,Main,,
"""

GENERIC_CSV = """Posted,Memo,Value
someday,Coffee,-4.50
2025-11-09,Client payment,120
"""


def test_relay_statement():
    parsed = parse_statement(RELAY_CSV, "relay.csv", CTX, RATES)

    assert parsed.dialect is Dialect.RELAY
    assert parsed.bank == "Relay"
    assert len(parsed.transactions) == 3

    ads, sale, internal = parsed.transactions
    assert (ads["type"], ads["category"], ads["description"]) == ("expense", "Ads", "Facebook Ads Payment")
    assert ads["amount"] == pytest.approx(-156.03)
    assert ads["reference"] == "FB-1"
    assert ads["payee"] == "Facebook"
    assert ads["original_amount"] is None
    assert ads["original_currency"] is None

    assert (sale["type"], sale["category"]) == ("income", "Sales")
    assert sale["amount"] == pytest.approx(2500.0)
    assert (internal["type"], internal["category"]) == ("internal", "Transfer")


def test_revolut_statement_converts_currency():
    parsed = parse_statement(REVOLUT_CSV, "revolut.csv", CTX, RATES)
    assert parsed.bank == "Revolut"

    payroll, transfer, notion = parsed.transactions
    assert (payroll["type"], payroll["category"]) == ("expense", "Payroll")
    assert payroll["amount"] == pytest.approx(-2625.0)
    assert payroll["original_amount"] == -2100
    assert payroll["original_currency"] == "EUR"
    assert payroll["currency"] == "USD"
    assert payroll["account"] == "EUR"
    assert payroll["date"] == "2025-11-01"

    assert (transfer["type"], transfer["category"]) == ("internal", "Transfer")
    assert transfer["original_currency"] is None

    assert (notion["type"], notion["category"]) == ("expense", "Software")
    assert notion["amount"] == pytest.approx(-10.0)


def test_currency_round_trip():
    parsed = parse_statement(REVOLUT_CSV, "revolut.csv", CTX, RATES)
    for tx in parsed.transactions:
        if tx["original_currency"]:
            rate = RATES[tx["original_currency"]]
            assert tx["amount"] * rate == pytest.approx(tx["original_amount"])


def test_zero_amount_rows_excluded_for_all_dialects():
    for content in (RELAY_CSV, REVOLUT_CSV, GENERIC_CSV):
        parsed = parse_statement(content, "f.csv", CTX, RATES)
        assert all(tx["amount"] != 0 for tx in parsed.transactions)


def test_sign_matches_type_on_well_formed_rows():
    parsed = parse_statement(RELAY_CSV + "", "relay.csv", CTX, RATES)
    parsed_rev = parse_statement(REVOLUT_CSV, "revolut.csv", CTX, RATES)
    for tx in parsed.transactions + parsed_rev.transactions:
        if tx["type"] == "income":
            assert tx["amount"] > 0
        elif tx["type"] == "expense":
            assert tx["amount"] < 0
    assert parsed.warnings == []


def test_date_fallback_is_reported():
    parsed = parse_statement(GENERIC_CSV, "bank.csv", CTX, RATES, today=TODAY)

    coffee, client = parsed.transactions
    assert parsed.bank == "Imported"
    assert coffee["date"] == "2025-12-01"
    assert client["date"] == "2025-11-09"
    assert parsed.warnings == [{
        "file": "bank.csv",
        "line": 2,
        "kind": "date",
        "value": "someday",
        "message": "Unparseable date, using today's date",
    }]


def test_own_account_names_without_payee_stay_uncategorized():
    csv = "Date,Description,Amount\n2025-01-05,Business Savings,500\n2025-01-06,Para Main,-40\n"
    parsed = parse_statement(csv, "bank.csv", CTX, RATES)

    savings, main = parsed.transactions
    assert (savings["type"], savings["category"]) == ("income", "Other")
    assert (main["type"], main["category"]) == ("expense", "Other")


def test_header_only_file_yields_nothing():
    parsed = parse_statement("Date,Description,Amount\n", "empty.csv", CTX, RATES)
    assert parsed.transactions == []


def test_user_rules_override_only_keyword_categories():
    rules = UserRuleSet([
        KeywordRule("notion", "Operations", priority=2),
        KeywordRule("maria", "Other", priority=1),
    ])
    parsed = parse_statement(REVOLUT_CSV, "revolut.csv", CTX, RATES, user_rules=rules)
    payroll, _, notion = parsed.transactions
    assert notion["category"] == "Operations"
    # Forced classifier categories are not overridden
    assert payroll["category"] == "Payroll"


def test_any_category_provider_can_override():
    class Everything:
        def classify(self, description, payee=""):
            return "Meals"

    parsed = parse_statement(REVOLUT_CSV, "revolut.csv", CTX, RATES, user_rules=Everything())
    payroll, _, notion = parsed.transactions
    assert notion["category"] == "Meals"
    assert payroll["category"] == "Payroll"


def test_ids_are_unique():
    parsed = parse_statement(RELAY_CSV, "relay.csv", CTX, RATES)
    ids = [tx["id"] for tx in parsed.transactions]
    assert len(set(ids)) == len(ids)


def test_parse_csvs_assigns_one_period():
    batch = {}
    parse_csvs(
        batch,
        [("relay.csv", RELAY_CSV), ("revolut.csv", REVOLUT_CSV)],
        "Nov 2025",
        CTX,
        RATES,
    )

    txs = [batch["transactions"][tid] for tid in batch["order"]]
    assert len(txs) == 6
    assert {tx["period"] for tx in txs} == {"Nov 2025"}
    assert batch["banks"] == ["Relay", "Revolut"]
    assert batch["filenames"] == ["relay.csv", "revolut.csv"]
    # Input order is preserved across files
    assert [tx["bank"] for tx in txs] == ["Relay"] * 3 + ["Revolut"] * 3


def test_parse_csvs_empty_batch_raises():
    with pytest.raises(NoTransactionsFound) as exc:
        parse_csvs({}, [("x.csv", "Date,Amount\n2025-01-01,0\n")], "Jan 2025", CTX, RATES)
    assert exc.value.message == "No valid transactions found. Please check your CSV format."


def test_summary():
    parsed = parse_statement(RELAY_CSV, "relay.csv", CTX, RATES)
    summary = summarize(parsed.transactions)
    assert summary["total"] == 3
    assert summary["income"] == pytest.approx(2500.0)
    assert summary["expenses"] == pytest.approx(156.03)
    assert summary["internal"] == pytest.approx(500.0)
    assert (summary["income_count"], summary["expense_count"], summary["internal_count"]) == (1, 1, 1)
    assert summary["categories"] == ["Ads", "Sales", "Transfer"]
