from app.services.bank_formats import Dialect, build_columns, detect_dialect
from app.services.csv_dialect import parse_csv_line, parse_header, split_lines

RELAY_HEADER = "Date,Payee,Account #,Transaction Type,Description,Reference,Status,Amount,Currency,Balance"
REVOLUT_HEADER = (
    "Date started (UTC),Date completed (UTC),ID,Type,State,Description,Reference,Payer,"
    "Card number,Orig currency,Orig amount,Payment currency,Amount,Fee,Balance,Account,"
    "Beneficiary account number,Beneficiary name"
)
MERCURY_HEADER = "Date (UTC),Description,Amount,Status,Source Account,Bank Description,Reference,Note"


def test_quoted_commas_stay_in_field():
    assert parse_csv_line('2025-01-02,"Acme, Inc.",-10.00') == ["2025-01-02", "Acme, Inc.", "-10.00"]


def test_fields_are_trimmed():
    assert parse_csv_line(" a , b ,c\r") == ["a", "b", "c"]


def test_empty_line_has_no_fields():
    assert parse_csv_line("") == []
    assert parse_csv_line("   ") == []


def test_doubled_quotes_are_not_unescaped():
    # Each quote toggles quoting, so the inner quotes simply disappear
    assert parse_csv_line('a,"say ""hi""",b') == ["a", "say hi", "b"]


def test_trailing_empty_field_kept():
    assert parse_csv_line("a,b,") == ["a", "b", ""]


def test_split_lines_drops_blank_lines():
    assert split_lines("h1,h2\n\n1,2\n\r\n3,4\n") == ["h1,h2", "1,2", "3,4"]


def test_parse_header_lowercases():
    assert parse_header(' Date , "Payee" ') == ["date", "payee"]


def test_detect_relay():
    assert detect_dialect(parse_header(RELAY_HEADER)) is Dialect.RELAY


def test_detect_revolut():
    assert detect_dialect(parse_header(REVOLUT_HEADER)) is Dialect.REVOLUT


def test_detect_mercury():
    assert detect_dialect(parse_header(MERCURY_HEADER)) is Dialect.MERCURY


def test_detect_generic():
    assert detect_dialect(["posted", "memo", "value"]) is Dialect.GENERIC
    assert Dialect.GENERIC.bank_name == "Imported"


def test_relay_checked_before_revolut():
    headers = ["payee", "transaction type", "date started", "type"]
    assert detect_dialect(headers) is Dialect.RELAY


def test_revolut_needs_exact_type_header():
    assert detect_dialect(["date started (utc)", "transaction type x"]) is Dialect.GENERIC


def test_revolut_columns():
    cols = build_columns(Dialect.REVOLUT, parse_header(REVOLUT_HEADER))
    assert cols["date"] == 0
    assert cols["type"] == 3
    assert cols["currency"] == 11  # payment currency preferred
    assert cols["amount"] == 12
    assert cols["beneficiary_account"] == 16
    assert cols["beneficiary_name"] == 17


def test_revolut_currency_falls_back_to_currency_column():
    cols = build_columns(Dialect.REVOLUT, ["date completed", "type", "amount", "currency"])
    assert cols["currency"] == 3


def test_relay_missing_column_is_minus_one():
    cols = build_columns(Dialect.RELAY, ["date", "payee", "transaction type", "amount"])
    assert cols["balance"] == -1
    assert cols["amount"] == 3


def test_generic_columns_by_substring():
    cols = build_columns(Dialect.GENERIC, ["posting date", "memo", "net value", "currency code"])
    assert cols == {"date": 0, "description": 1, "amount": 2, "currency": 3}
