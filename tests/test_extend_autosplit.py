from __future__ import annotations

import pytest

from remik import melds
from remik.cards import format_cards, parse_cards
from remik.melds import MeldKind


def _split(codes: str, start_id: int = 1):
    return parse_cards(codes, start_id=start_id)


@pytest.mark.parametrize(
    ("existing", "new", "position", "expected"),
    [
        ("5H 6H 7H", "8H", "end", True),
        ("5H 6H 7H", "8H", "start", False),
        ("5H 6H 7H", "4H", "start", True),
        ("5H 6H 7H", "4H", "end", False),
        ("5H 6H 7H", "8H 9H", "end", True),
        ("5H 6H 7H", "9H", "end", False),
        ("5H 6H 7H", "8S", "end", False),
        ("JH QH KH", "AH", "end", True),
        ("2H 3H 4H", "AH", "start", True),
        ("5H 6H 7H", "JOKER", "end", True),
        ("5H JOKER 7H", "8H", "end", True),
        ("8D 8C 8H", "8S", "end", True),
        ("8D 8C 8H", "8S", "start", True),
        ("8D 8C 8H", "8D", "end", False),
        ("8D 8C 8H 8S", "8S", "end", False),
    ],
)
def test_can_extend(existing: str, new: str, position: str, expected: bool) -> None:
    base = _split(existing)
    added = _split(new, start_id=50)

    assert melds.can_extend(base, added, position) is expected


def test_can_extend_rejects_empty_and_unknown_position() -> None:
    base = _split("5H 6H 7H")

    assert not melds.can_extend(base, [], "end")
    with pytest.raises(ValueError):
        melds.can_extend(base, _split("8H", 9), "middle")  # type: ignore[arg-type]


def test_auto_split_sequences_first() -> None:
    result = melds.auto_split(_split("9C 2S 3S 4S 9D 9H"))

    assert result is not None
    assert [format_cards(meld) for meld in result] == ["2♠ 3♠ 4♠", "9♣ 9♦ 9♥"]


def test_auto_split_falls_back_to_groups_first() -> None:
    cards = _split("5H 6H 7H 8D 8C 8H")
    result = melds.auto_split(cards)

    assert result is not None
    kinds = sorted(melds.classify(meld).value for meld in result)
    assert kinds == ["group", "sequence"]
    assert sorted(card.id for meld in result for card in meld) == [card.id for card in cards]


def test_auto_split_finds_high_ace_runs() -> None:
    result = melds.auto_split(_split("AS QS KS"))

    assert result is not None
    assert len(result) == 1
    assert melds.classify(result[0]) is MeldKind.SEQUENCE


@pytest.mark.parametrize("codes", ["5H 6H 9C", "5H 6H 7H JOKER", "KS AS 2S", "2C 2D"])
def test_auto_split_returns_none_when_cards_are_left_over(codes: str) -> None:
    assert melds.auto_split(_split(codes)) is None


def test_find_candidate_melds_lists_overlapping_runs_and_groups() -> None:
    hand = _split("5H 6H 7H 8H 8D 8C JOKER")

    candidates = melds.find_candidate_melds(hand)
    labels = sorted(format_cards(meld) for meld in candidates)

    assert labels == sorted(["5♥ 6♥ 7♥", "5♥ 6♥ 7♥ 8♥", "6♥ 7♥ 8♥", "8♥ 8♦ 8♣"])
    assert all(melds.classify(meld) is not None for meld in candidates)
