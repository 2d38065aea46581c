import pytest

from drawpoker.evaluator import DuplicateCardError, HandCategory, evaluate, sort_hand
from drawpoker.models import EngineDefect

from .helpers import cards, labels


def test_one_pair_of_twos():
    rank = evaluate(cards("02c 02s 04c 07h 08d"))
    assert rank.category == HandCategory.ONE_PAIR
    assert rank.tiebreak[0] == 2
    assert rank.kickers == (8, 7, 4)


def test_two_pair_orders_higher_pair_first():
    rank = evaluate(cards("11c 11d 12c 13h 13d"))
    assert rank.category == HandCategory.TWO_PAIR
    assert rank.tiebreak == (13, 11)
    assert rank.kickers == (12,)
    assert rank.description == "Two Pair K's J's"


def test_royal_flush():
    rank = evaluate(cards("10s 11s 12s 13s 14s"))
    assert rank.category == HandCategory.ROYAL_FLUSH
    assert rank.description == "Royal Flush"


def test_wheel_straight_flush_plays_ace_low():
    rank = evaluate(cards("02c 03c 04c 05c 14c"))
    assert rank.category == HandCategory.STRAIGHT_FLUSH
    assert rank.tiebreak == (5,)
    assert rank.kickers == (4, 3, 2, 1)
    assert rank.description == "Straight Flush 5 high"


def test_wheel_ranks_below_six_high_straight():
    wheel = evaluate(cards("14d 02c 03h 04s 05c"))
    six_high = evaluate(cards("02d 03c 04h 05s 06c"))
    assert wheel.category == six_high.category == HandCategory.STRAIGHT
    assert wheel.key() < six_high.key()


@pytest.mark.parametrize(
    "hand, category, tiebreak",
    [
        ("09c 09d 09h 09s 02c", HandCategory.FOUR_OF_A_KIND, (9,)),
        ("03c 03d 03h 12s 12c", HandCategory.FULL_HOUSE, (3, 12)),
        ("02h 07h 09h 11h 13h", HandCategory.FLUSH, (13,)),
        ("06c 07d 08h 09s 10c", HandCategory.STRAIGHT, (10,)),
        ("05c 05d 05h 12s 02c", HandCategory.THREE_OF_A_KIND, (5,)),
        ("02c 05d 07h 09s 11c", HandCategory.HIGH_CARD, (11, 9, 7, 5, 2)),
    ],
)
def test_categories(hand, category, tiebreak):
    rank = evaluate(cards(hand))
    assert rank.category == category
    assert rank.tiebreak == tiebreak


def test_ace_high_run_that_is_not_suited_is_a_straight():
    rank = evaluate(cards("10s 11d 12s 13s 14s"))
    assert rank.category == HandCategory.STRAIGHT
    assert rank.tiebreak == (14,)


def test_category_titles():
    assert HandCategory.THREE_OF_A_KIND.title == "Three of a Kind"
    assert HandCategory.HIGH_CARD.title == "High Card"
    assert evaluate(cards("05c 05d 05h 12s 02c")).description == "Three of a Kind 5's"
    assert evaluate(cards("03c 03d 03h 12s 12c")).description == "Full House 3's Q's"


def test_duplicate_card_is_a_fatal_defect():
    with pytest.raises(DuplicateCardError) as excinfo:
        evaluate(cards("02c 02c 04c 07h 08d"))
    assert isinstance(excinfo.value, EngineDefect)


def test_hand_size_is_enforced():
    with pytest.raises(ValueError):
        evaluate(cards("02c 03c 04c 05c"))


def test_sort_hand_moves_ace_to_front_of_wheel():
    assert labels(sort_hand(cards("05c 14d 03h 02s 04c"))) == ["14d", "02s", "03h", "04c", "05c"]
    assert labels(sort_hand(cards("14d 13c 02h 07s 09c"))) == ["02h", "07s", "09c", "13c", "14d"]
