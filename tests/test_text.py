import pytest

from content.text import (
    contains_token,
    first_match,
    length_score,
    normalize_brand,
    normalize_text,
    normalize_title,
    word_count,
)


def test_length_score_shape():
    assert length_score(0, 15, 65) == 0
    assert length_score(30, 15, 65) == 100
    assert length_score(15, 15, 65) == 100
    assert length_score(65, 15, 65) == 100
    assert 0 < length_score(5, 15, 65) < 60


def test_length_score_overshoot_is_floored():
    assert length_score(66, 15, 65) < 60
    assert length_score(10_000, 15, 65) == pytest.approx(20)


def test_normalize_text():
    assert normalize_text("Acme™ Tools & Co.") == "acme tools and co"
    assert normalize_text(None) == ""


def test_normalize_brand_drops_legal_suffix():
    assert normalize_brand("Acme, Inc.") == "acme"
    assert normalize_brand("Acme Widgets LLC") == "acme widgets"


def test_normalize_title_drops_brand_suffix():
    assert normalize_title("Pricing | Acme") == normalize_title("Pricing - Acme")
    assert normalize_title("Pricing | Acme") == "pricing"


def test_contains_token_respects_boundaries():
    assert contains_token("acme widgets for teams", "acme")
    assert contains_token("Widgets | ACME", "acme")
    assert not contains_token("acmecorp widgets", "acme")
    assert not contains_token("", "acme")


def test_word_count():
    assert word_count("one two  three") == 3
    assert word_count("") == 0


def test_first_match_returns_first_accepted_supplier():
    calls = []

    def supplier(name, value):
        def inner():
            calls.append(name)
            return value
        return inner

    value, source = first_match(
        [("a", supplier("a", None)), ("b", supplier("b", "xy")), ("c", supplier("c", "good")),
         ("d", supplier("d", "later"))],
        lambda v: len(v) >= 3,
    )
    assert (value, source) == ("good", "c")
    assert calls == ["a", "b", "c"]


def test_first_match_none_accepted():
    assert first_match([("a", lambda: "x")], lambda v: False) == (None, None)
