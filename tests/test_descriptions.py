from app.services.descriptions import clean_description, normalize_vendor


def test_shouting_text_is_title_cased():
    assert clean_description("FACEBOOK ADS PAYMENT", "Facebook") == "Facebook Ads Payment"


def test_short_upper_text_kept():
    assert clean_description("UPS", "") == "UPS"


def test_missing_description_uses_payee():
    assert clean_description("", "Acme") == "Acme"
    assert clean_description("Unknown", "Acme") == "Acme"
    assert clean_description("   ", "") == "Transaction"


def test_boilerplate_prefix_stripped():
    assert clean_description("PAYMENT TO JOHN SMITH", "") == "John Smith"
    assert clean_description("Card payment  Netflix", "") == "Netflix"
    assert clean_description("purchase Office chairs", "") == "Office chairs"


def test_prefix_must_end_on_word_boundary():
    assert clean_description("Postage stamps", "") == "Postage stamps"


def test_prefix_only_description_never_empty():
    assert clean_description("POS", "") == "Transaction"


def test_truncated_to_80_chars():
    assert len(clean_description("x" * 200, "")) == 80


def test_normalize_vendor_groups_ad_platforms():
    assert normalize_vendor("DL *GOOGLE ADS 123") == "Google Ads"
    assert normalize_vendor("Meta Platforms") == "Facebook Ads"
    assert normalize_vendor("AWS EMEA") == "Amazon"


def test_normalize_vendor_transfer_prefixes():
    assert normalize_vendor("Para Maria Silva Santos") == "Maria Silva"
    assert normalize_vendor("To John Smith Jr") == "John Smith"


def test_normalize_vendor_strips_long_numbers():
    assert normalize_vendor("ACME CORP 1234567") == "Acme Corp"
