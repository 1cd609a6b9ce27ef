"""Tests covering meld classification."""

from __future__ import annotations

import itertools

import pytest

from remik import melds
from remik.cards import parse_cards
from remik.melds import MeldKind


@pytest.mark.parametrize(
    ("codes", "expected"),
    [
        ("5H 6H 7H", MeldKind.SEQUENCE),
        ("7H 5H 6H", MeldKind.SEQUENCE),
        ("AH 2H 3H", MeldKind.SEQUENCE),
        ("QH KH AH", MeldKind.SEQUENCE),
        ("9S 10S JS QS KS AS", MeldKind.SEQUENCE),
        ("JOKER 5H 6H", MeldKind.SEQUENCE),
        ("5H JOKER 7H", MeldKind.SEQUENCE),
        ("JOKER JOKER 5H 6H", MeldKind.SEQUENCE),
        ("4S JOKER 6S JOKER 8S", MeldKind.SEQUENCE),
        ("KH AH JOKER", MeldKind.SEQUENCE),
        ("8D 8C 8H", MeldKind.GROUP),
        ("8D 8C 8H 8S", MeldKind.GROUP),
        ("8D 8C JOKER", MeldKind.GROUP),
        ("8D JOKER 8C JOKER", MeldKind.GROUP),
    ],
)
def test_classify_valid_melds(codes: str, expected: MeldKind) -> None:
    assert melds.classify(parse_cards(codes)) is expected


@pytest.mark.parametrize(
    "codes",
    [
        "5H 6H",
        "5H 6S 7H",
        "5H 5H 6H",
        "5H 7H 9H",
        "QH KH AH 2H",
        "JOKER JOKER JOKER",
        "JOKER JOKER JOKER 5H",
        "8D 8D 8H",
        "8D 8C 8H 8S 8D",
        "8D JOKER JOKER JOKER",
    ],
)
def test_classify_rejects_invalid_melds(codes: str) -> None:
    assert melds.classify(parse_cards(codes)) is None


@pytest.mark.parametrize("jokers", range(0, 5))
def test_king_ace_two_never_wraps(jokers: int) -> None:
    cards = parse_cards(["KS", "AS", "2S", *["JOKER"] * jokers])

    assert not melds.is_valid_sequence(cards)


@pytest.mark.parametrize("codes", ["10S JOKER QS KS", "8D 8C JOKER", "AH 2H JOKER 4H"])
def test_classification_ignores_card_order(codes: str) -> None:
    cards = parse_cards(codes)
    expected = melds.classify(cards)

    assert expected is not None
    for permutation in itertools.permutations(cards):
        assert melds.classify(list(permutation)) is expected


def test_joker_bound_allows_one_more_than_naturals() -> None:
    assert melds.is_valid_sequence(parse_cards("JOKER 5H JOKER 6H JOKER"))
    assert not melds.is_valid_sequence(parse_cards("JOKER JOKER JOKER 5H 6H JOKER"))


def test_group_needs_as_many_naturals_as_jokers() -> None:
    assert melds.is_valid_group(parse_cards("8D 8C JOKER JOKER"))
    assert not melds.is_valid_group(parse_cards("8D JOKER JOKER"))


def test_ace_interpretations() -> None:
    low = parse_cards("AH 2H 3H")
    high = parse_cards("QH KH AH")

    assert melds.fits_ace_low(low) and not melds.fits_ace_high(low)
    assert melds.fits_ace_high(high) and not melds.fits_ace_low(high)


def test_sequence_may_span_whole_suit() -> None:
    assert melds.is_valid_sequence(parse_cards("AH 2H 3H 4H 5H 6H 7H 8H 9H 10H JH QH KH"))
    assert not melds.is_valid_sequence(parse_cards("AH 2H 3H 4H 5H 6H 7H 8H 9H 10H JH QH KH JOKER"))
