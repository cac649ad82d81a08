from services.remarks import (
    encode_remarks,
    parse_interest,
    parse_rate,
    resolve_interest,
    resolve_rate,
    strip_tags,
)


def test_parse_tags():
    remarks = "Tenure 6m [Rate: 3.45%] [Int: 100]"
    assert parse_rate(remarks) == 3.45
    assert parse_interest(remarks) == 100.0


def test_parse_missing_or_malformed():
    assert parse_rate("") == 0.0
    assert parse_rate(None) == 0.0
    assert parse_rate("no tag here") == 0.0
    assert parse_rate("[Rate: 1.2.3%]") == 0.0


def test_strip_tags():
    assert strip_tags("note [Rate: 3%] more [Int: 5]") == "note  more"
    assert strip_tags(None) == ""


def test_encode_fixed_deposit_skips_interest_tag():
    text = encode_remarks("note", "Fixed Deposit", 3.5, 174.52)
    assert text == "note [Rate: 3.5%]"


def test_encode_other_types_keep_interest_tag():
    text = encode_remarks("", "Stock", None, 12.5)
    assert text == "[Int: 12.5]"


def test_encode_replaces_existing_tags():
    text = encode_remarks("renewed [Rate: 2%]", "Fixed Deposit", 3.0, None)
    assert text == "renewed [Rate: 3%]"
    assert parse_rate(text) == 3.0


def test_encoded_values_read_back():
    text = encode_remarks("dividend", "REIT", 4.25, 88.1)
    assert parse_rate(text) == 4.25
    assert parse_interest(text) == 88.1
    assert strip_tags(text) == "dividend"


def test_column_wins_over_tag():
    assert resolve_rate(4.0, "[Rate: 3%]") == 4.0
    assert resolve_rate(None, "[Rate: 3%]") == 3.0
    assert resolve_interest(0, "[Int: 7]") == 7.0
