from budget_planner.common.file_operations import ensure_directory, safe_filename
from budget_planner.common.formatting import (
    escape_dollar_for_markdown,
    format_compact,
    format_currency,
    format_runway,
)


def test_format_currency():
    assert format_currency(1234.56) == "$1,234.56"
    assert format_currency(-80) == "-$80.00"
    assert format_currency(1234.56, include_sign=False) == "1,234.56"


def test_escape_dollar_for_markdown():
    assert escape_dollar_for_markdown(1234.56) == "\\$1,234.56"


def test_format_compact():
    assert format_compact(12_500) == "$12.5k"
    assert format_compact(1_240_000) == "$1.2M"
    assert format_compact(-3_000) == "-$3.0k"
    assert format_compact(950) == "$950"


def test_format_runway():
    assert format_runway(None) == "Not depleting"
    assert format_runway(6) == "6.0 months"
    assert format_runway(30) == "2.5 years"


def test_safe_filename():
    assert safe_filename("MY_BUDGET_LIST") == "MY_BUDGET_LIST"
    assert safe_filename("Trip to Lisbon!") == "Trip_to_Lisbon"
    assert safe_filename("", default="budget") == "budget"
    assert safe_filename("a" * 50, max_length=10) == "a" * 10


def test_ensure_directory(tmp_path):
    target = tmp_path / "nested" / "dir"
    assert ensure_directory(target) == target
    assert target.is_dir()
