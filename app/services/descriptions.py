# app/services/descriptions.py
#
# Text cleanup for transaction labels.
# - clean_description: raw bank description -> short human-readable label
# - normalize_vendor: payee/description -> grouping key for the vendor report

import re

DESCRIPTION_MAX_LEN = 80

_BOILERPLATE_PREFIX_RE = re.compile(
    r"^(payment to|payment from|direct debit|card payment|pos|purchase)\b\s*",
    re.IGNORECASE,
)
_TOKEN_RE = re.compile(r"\S+")


def _title_tokens(text: str) -> str:
    return _TOKEN_RE.sub(lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), text)


def clean_description(desc: str, payee: str = "") -> str:
    """
    Build the display description for a transaction.

    Falls back to the payee when the bank gives no usable description
    (empty or "Unknown"), converts SHOUTING text to title case, and drops
    common boilerplate prefixes. Never returns an empty string.
    """
    text = desc
    if not desc or not desc.strip() or desc.strip().lower() == "unknown":
        text = payee or "Transaction"

    cleaned = text.strip()
    if not cleaned:
        return "Transaction"

    if cleaned == cleaned.upper() and len(cleaned) > 3:
        cleaned = _title_tokens(cleaned)

    cleaned = _BOILERPLATE_PREFIX_RE.sub("", cleaned, count=1)
    return cleaned[:DESCRIPTION_MAX_LEN] or "Transaction"


# -------------------------------------------------------------------
# Vendor grouping (top vendors report)
# -------------------------------------------------------------------

_VENDOR_PREFIX_RE = re.compile(r"^(dl \*|payment to |transfer to |pix para )", re.IGNORECASE)
_LONG_NUMBER_RE = re.compile(r"\d{6,}")
_SPACES_RE = re.compile(r"\s+")


def normalize_vendor(name: str) -> str:
    lower = name.lower().strip()

    if "google" in lower and ("ads" in lower or "adwords" in lower):
        return "Google Ads"
    if "dl *google" in lower:
        return "Google Ads"
    if "facebook" in lower or "meta" in lower or "fb " in lower:
        return "Facebook Ads"
    if "tiktok" in lower or "bytedance" in lower:
        return "TikTok Ads"
    if "shopify" in lower:
        return "Shopify"
    if "stripe" in lower:
        return "Stripe"
    if "paypal" in lower:
        return "PayPal"
    if "amazon" in lower or "aws" in lower:
        return "Amazon"

    # "Para Fulano de Tal" / "To John Smith" -> first two name parts
    for prefix in ("para ", "to "):
        if lower.startswith(prefix):
            cleaned = " ".join(name[len(prefix):].split()[:2])
            return cleaned or name

    result = _VENDOR_PREFIX_RE.sub("", name)
    result = _LONG_NUMBER_RE.sub("", result)
    result = _SPACES_RE.sub(" ", result).strip()
    result = " ".join(w[:1].upper() + w[1:].lower() for w in result.split(" "))

    return result or name
