# app/services/csv_dialect.py
#
# Quote-aware CSV line tokenizer shared by every bank dialect.
# No numeric or date interpretation happens here.

from typing import List


def split_lines(content: str) -> List[str]:
    """Split raw file text into non-blank lines (header first)."""
    return [line for line in content.split("\n") if line.strip()]


def _clean_field(value: str) -> str:
    value = value.strip()
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def parse_csv_line(line: str) -> List[str]:
    """
    Tokenize one CSV line into string fields.

    Every double quote toggles the quoted state, so commas inside quotes are
    kept. Doubled quotes are not unescaped. Each field is trimmed and loses one
    leading and one trailing quote character.
    """
    if not line or not line.strip():
        return []

    values: List[str] = []
    current: List[str] = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            values.append(_clean_field("".join(current)))
            current = []
        else:
            current.append(char)

    values.append(_clean_field("".join(current)))
    return values


def parse_header(line: str) -> List[str]:
    """Header fields, lower-cased and trimmed for dialect detection."""
    return [h.lower().strip() for h in parse_csv_line(line)]
