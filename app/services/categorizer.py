# app/services/categorizer.py
"""
Keyword categorization.

Two rule providers share the same capability, ``classify(description, payee)``
returning a category name or ``None``:

- ``FixedRuleTable``: the built-in ordered regex table (ads platforms, SaaS,
  shipping carriers, fees, refunds, ...). Used for new imports.
- ``UserRuleSet``: user-defined keyword rules (contains / starts_with / exact),
  evaluated highest priority first. Used at import time for rows whose
  classification deferred to keyword matching, and by the retroactive applier.

The two are deliberately kept separate: they run at different times.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Pattern, Protocol

DEFAULT_CATEGORY = "Other"

MATCH_TYPES = ("contains", "starts_with", "exact")


class CategoryProvider(Protocol):
    def classify(self, description: str, payee: str = "") -> Optional[str]:
        ...


# -------------------------------------------------------------------
# Built-in regex table
# -------------------------------------------------------------------

class CategoryPattern(NamedTuple):
    pattern: Pattern
    category: str


def _p(regex: str, category: str) -> CategoryPattern:
    return CategoryPattern(re.compile(regex, re.IGNORECASE), category)


# Order matters: first match wins.
CATEGORY_PATTERNS: List[CategoryPattern] = [
    # Advertising
    _p(r"facebook|meta ads|meta_ads|fb ads", "Ads"),
    _p(r"google ads|googleads|dl\*google|dl \*google", "Ads"),
    _p(r"tiktok|snapchat|pinterest ads|twitter ads|linkedin ads", "Ads"),
    _p(r"adspower", "Ads"),
    # Platform fees
    _p(r"shopify", "Fees"),
    _p(r"stripe fee|stripe.com", "Fees"),
    _p(r"paypal fee", "Fees"),
    # Software / SaaS
    _p(r"notion|slack|zoom|github|vercel|aws|google cloud|heroku|digitalocean", "Software"),
    _p(r"openai|anthropic|zapier|airtable|figma|canva|adobe|microsoft|dropbox|1password", "Software"),
    _p(r"stape|tracking|pixel|analytics", "Software"),
    _p(r"pagouai|pagou ai", "Software"),
    _p(r"hostinger|namecheap|godaddy|cloudflare", "Software"),
    # Payroll
    _p(r"payroll|salary|gusto|deel|remote\.com|wise transfer|contractor|employee", "Payroll"),
    # Shipping / logistics
    _p(r"fedex|ups|usps|dhl|shipstation|shippo|easypost|fulfillment|shipping|postage", "Shipping"),
    # Fees
    _p(r"\bfee\b|charge|interest|penalty|overdraft|wire fee|monthly service", "Fees"),
    # Internal transfers (own bank accounts only)
    _p(r"^(business savings|business checking|savings account|checking account)$", "Transfer"),
    _p(r"^(para main|de main|from main|to main)$", "Transfer"),
    # Refunds
    _p(r"refund|chargeback|dispute|reversal|return", "Refunds"),
    # Office / operations
    _p(r"chaveiro|office|supplies|equipment", "Operations"),
]


class FixedRuleTable:
    def __init__(self, patterns: Optional[List[CategoryPattern]] = None):
        self.patterns = patterns if patterns is not None else CATEGORY_PATTERNS

    def classify(self, description: str, payee: str = "") -> Optional[str]:
        # Payee first: it is the more reliable signal when present
        text = f"{payee or ''} {description or ''}".lower()
        for rule in self.patterns:
            if rule.pattern.search(text):
                return rule.category
        return None


FIXED_RULES: CategoryProvider = FixedRuleTable()


def detect_category(description: str, payee: str = "") -> str:
    """Category from the built-in table, ``Other`` when nothing matches."""
    return FIXED_RULES.classify(description, payee) or DEFAULT_CATEGORY


# -------------------------------------------------------------------
# User rules
# -------------------------------------------------------------------

class KeywordRule(NamedTuple):
    keyword: str
    category: str
    match_type: str = "contains"
    priority: int = 0
    id: Optional[str] = None


def normalize_keyword(keyword: str) -> str:
    return (keyword or "").lower().strip()


def rule_search_text(description: str, payee: Optional[str] = None) -> str:
    return f"{description or ''} {payee or ''}".lower()


def rule_matches(keyword: str, match_type: str, text: str) -> bool:
    if match_type == "exact":
        return text == keyword
    if match_type == "starts_with":
        return text.startswith(keyword)
    return keyword in text


def as_keyword_rule(rule: Any) -> KeywordRule:
    """Accept ORM rows, dicts or KeywordRule tuples."""
    if isinstance(rule, KeywordRule):
        return rule
    if isinstance(rule, dict):
        get = rule.get
    else:
        def get(name, default=None):
            return getattr(rule, name, default)
    return KeywordRule(
        keyword=get("keyword") or "",
        category=get("category") or DEFAULT_CATEGORY,
        match_type=get("match_type") or "contains",
        priority=get("priority") or 0,
        id=get("id"),
    )


class UserRuleSet:
    def __init__(self, rules: Iterable[Any] = ()):
        converted = [as_keyword_rule(r) for r in rules]
        # Stable sort: equal priorities keep their given order
        self.rules: List[KeywordRule] = sorted(converted, key=lambda r: -r.priority)

    def __len__(self) -> int:
        return len(self.rules)

    def first_match(self, description: str, payee: Optional[str] = None) -> Optional[KeywordRule]:
        text = rule_search_text(description, payee)
        for rule in self.rules:
            if rule_matches(rule.keyword, rule.match_type, text):
                return rule
        return None

    def classify(self, description: str, payee: str = "") -> Optional[str]:
        rule = self.first_match(description, payee)
        return rule.category if rule else None

    def match_count(self, rule: Any, transactions: Iterable[Any]) -> int:
        """How many transactions a single rule would match."""
        r = as_keyword_rule(rule)
        return sum(
            1
            for tx in transactions
            if rule_matches(r.keyword, r.match_type, rule_search_text(tx.description, tx.payee))
        )


# -------------------------------------------------------------------
# Rule suggestions for uncategorized transactions
# -------------------------------------------------------------------

_SKIP_WORDS = {
    "from", "to", "the", "and", "for", "via",
    "por", "com", "de", "para", "dinheiro", "adicionado", "partir",
}


def extract_keyword(description: str) -> str:
    """First meaningful word of a description, as a rule keyword candidate."""
    words = description.lower().split()
    for word in words:
        if len(word) > 3 and word not in _SKIP_WORDS:
            return word
    return words[0] if words else description.lower()


def uncategorized_patterns(transactions: Iterable[Any], rules: Iterable[Any]) -> List[Dict[str, Any]]:
    """
    Group `Other` transactions by description, most frequent first, skipping
    descriptions already covered by a rule keyword.
    """
    keywords = [as_keyword_rule(r).keyword for r in rules]
    groups: Dict[str, Dict[str, Any]] = {}

    for tx in transactions:
        if tx.category != DEFAULT_CATEGORY:
            continue
        key = tx.description.lower().strip()
        if key not in groups:
            groups[key] = {
                "description": tx.description,
                "count": 0,
                "suggested_keyword": extract_keyword(tx.description),
                "transaction_ids": [],
            }
        groups[key]["count"] += 1
        groups[key]["transaction_ids"].append(tx.id)

    items = [
        g for g in groups.values()
        if not any(k in g["description"].lower() for k in keywords)
    ]
    return sorted(items, key=lambda g: -g["count"])
