import random

from drawpoker.ledger import BankrollLedger
from drawpoker.models import Controller, GameConfig, Player


def make_player(bankroll: int, loans: int = 0) -> Player:
    return Player(0, "Player", Controller.HUMAN, bankroll, loan_count=loans)


def test_sufficient_funds_need_no_loan():
    ledger = BankrollLedger(GameConfig())
    player = make_player(20)
    events = []
    check = ledger.check_funds(player, 20, events)
    assert check.approved
    assert check.loans_granted == 0
    assert player.bankroll == 20
    assert events == []


def test_short_player_is_lent_money():
    ledger = BankrollLedger(GameConfig())
    player = make_player(3)
    events = []
    check = ledger.check_funds(player, 5, events)
    assert check.approved
    assert check.loans_granted == 1
    assert player.bankroll == 103
    assert player.loan_count == 1
    assert player.loan_high == 1
    assert events == [{"ev": "LOAN", "seat": 0, "name": "Player", "amount": 100, "loan_count": 1}]


def test_loans_repeat_until_covered():
    ledger = BankrollLedger(GameConfig(bank_loan=10))
    player = make_player(0)
    check = ledger.check_funds(player, 25)
    assert check.approved
    assert check.loans_granted == 3
    assert player.bankroll == 30
    assert player.loan_count == 3


def test_credit_refused_at_loan_limit_keeps_bankroll():
    ledger = BankrollLedger(GameConfig(loan_limit=3))
    player = make_player(2, loans=3)
    events = []
    check = ledger.check_funds(player, 5, events)
    assert not check.approved
    assert player.bankroll == 2
    assert player.loan_count == 3
    assert events[-1]["ev"] == "CREDIT_REFUSED"


def test_paybacks_run_down_to_threshold():
    ledger = BankrollLedger(GameConfig())
    player = make_player(350, loans=3)
    events = []
    assert ledger.settle_paybacks(player, events) == 3
    assert player.bankroll == 50
    assert player.loan_count == 0
    assert [event["ev"] for event in events] == ["PAYBACK"] * 3


def test_paybacks_stop_at_threshold():
    ledger = BankrollLedger(GameConfig())
    player = make_player(250, loans=3)
    assert ledger.settle_paybacks(player) == 2
    assert player.bankroll == 50
    assert player.loan_count == 1
    assert ledger.outstanding(player) == 100
    assert ledger.net_worth(player) == -50


def test_funds_check_settles_paybacks_first():
    ledger = BankrollLedger(GameConfig())
    player = make_player(180, loans=1)
    check = ledger.check_funds(player, 10)
    assert check.approved
    assert check.repaid == 1
    assert player.bankroll == 80
    assert player.loan_count == 0


def test_loan_count_stays_within_limit():
    config = GameConfig(loan_limit=4)
    ledger = BankrollLedger(config)
    rng = random.Random(11)
    player = make_player(100)
    for _ in range(2_000):
        amount = rng.choice((5, 10, 25, 50))
        before = ledger.net_worth(player)
        check = ledger.check_funds(player, amount)
        assert ledger.net_worth(player) == before
        if check.approved:
            player.bankroll -= amount
        if rng.random() < 0.3:
            player.bankroll += rng.choice((50, 150, 300))
        assert 0 <= player.loan_count <= config.loan_limit
        assert player.bankroll >= 0
