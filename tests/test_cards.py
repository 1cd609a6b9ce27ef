from __future__ import annotations

import random

import pytest

from remik import cards
from remik.cards import Card, Rank, Suit


def test_build_deck_orders_two_packs_then_jokers() -> None:
    deck = cards.build_deck()

    assert len(deck) == 108
    assert [card.id for card in deck] == list(range(1, 109))
    assert deck[0] == Card(id=1, rank=Rank.ACE, suit=Suit.SPADES)
    assert deck[12] == Card(id=13, rank=Rank.KING, suit=Suit.SPADES)
    assert deck[52] == Card(id=53, rank=Rank.ACE, suit=Suit.SPADES)
    assert all(card.is_joker for card in deck[104:])
    assert not any(card.is_joker for card in deck[:104])


@pytest.mark.parametrize(("requested", "expected"), [(0, 104), (4, 108), (99, 114), (-3, 104)])
def test_build_deck_clamps_joker_count(requested: int, expected: int) -> None:
    assert len(cards.build_deck(requested)) == expected


def test_deal_is_round_robin_from_the_front() -> None:
    deck = cards.build_deck()
    hands, stock = cards.deal(deck, [14, 13, 13])

    assert [len(hand) for hand in hands] == [14, 13, 13]
    assert hands[0][0] is deck[0]
    assert hands[1][0] is deck[1]
    assert hands[2][0] is deck[2]
    assert hands[0][1] is deck[3]
    assert hands[0][13] is deck[39]
    assert stock == deck[40:]


def test_deal_rejects_oversized_request() -> None:
    with pytest.raises(ValueError):
        cards.deal(cards.build_deck(0), [60, 60])


def test_shuffled_deck_is_reproducible_with_seed() -> None:
    first = cards.shuffled_deck(4, random.Random(11))
    second = cards.shuffled_deck(4, random.Random(11))

    assert first == second
    assert sorted(card.id for card in first) == list(range(1, 109))


@pytest.mark.parametrize(
    ("code", "rank", "suit"),
    [
        ("10H", Rank.TEN, Suit.HEARTS),
        ("q♠", Rank.QUEEN, Suit.SPADES),
        ("AD", Rank.ACE, Suit.DIAMONDS),
        ("7c", Rank.SEVEN, Suit.CLUBS),
    ],
)
def test_parse_card_accepts_letters_and_symbols(code: str, rank: Rank, suit: Suit) -> None:
    card = cards.parse_card(code, 5)

    assert card == Card(id=5, rank=rank, suit=suit)


@pytest.mark.parametrize("code", ["JOKER", "jk", "*"])
def test_parse_card_recognises_jokers(code: str) -> None:
    assert cards.parse_card(code, 1).is_joker


@pytest.mark.parametrize("code", ["", "1H", "10X", "ZZ"])
def test_parse_card_rejects_garbage(code: str) -> None:
    with pytest.raises(ValueError):
        cards.parse_card(code, 1)


def test_parse_cards_assigns_sequential_ids() -> None:
    parsed = cards.parse_cards("5H 6H JOKER", start_id=10)

    assert [card.id for card in parsed] == [10, 11, 12]
    assert cards.format_cards(parsed) == "5♥ 6♥ 🃏"


def test_point_values() -> None:
    ace, king, five, joker = cards.parse_cards("AS KS 5D JOKER")

    assert ace.point_value() == 11
    assert ace.point_value(low_ace=True) == 1
    assert king.point_value(low_ace=True) == 10
    assert five.point_value() == 5
    assert joker.point_value() == 50


def test_joker_has_no_rank_index() -> None:
    joker = Card.joker(1)

    with pytest.raises(ValueError):
        _ = joker.low_index
    assert Rank.ACE.high_index == 13
    assert Rank.ACE.low_index == 0


def test_card_dict_form() -> None:
    card, joker = cards.parse_cards("10H JOKER")

    assert card.to_dict() == {"id": 1, "rank": "10", "suit": "♥", "is_joker": False}
    assert joker.to_dict() == {"id": 2, "rank": "JOKER", "suit": "", "is_joker": True}
    assert Card.from_dict(card.to_dict()) == card
    assert Card.from_dict(joker.to_dict()) == joker


def test_sort_cards_puts_jokers_last() -> None:
    parsed = cards.parse_cards("JOKER KH AH 2S")

    ordered = cards.sort_cards(parsed)
    assert cards.format_cards(ordered) == "2♠ A♥ K♥ 🃏"
    assert cards.format_cards(cards.sort_cards(parsed, ace_high=True)) == "2♠ K♥ A♥ 🃏"
