import random

from drawpoker.game import GameEngine
from drawpoker.models import DROP, GameConfig, InputKind

from .helpers import ledger_balance


def assert_invariants(engine: GameEngine, balance: int) -> None:
    assert ledger_balance(engine) == balance
    for player in engine.players:
        assert 0 <= player.loan_count <= engine.config.loan_limit
        assert player.loan_high >= player.loan_count
        assert player.bankroll >= 0
    assert engine.pot.amount >= 0


def test_auto_play_games_keep_the_ledger_balanced():
    finished = 0
    for seed in range(40):
        engine = GameEngine(GameConfig(auto_play=True, validate_deck=True), seed=seed)
        balance = ledger_balance(engine)
        for _ in range(300):
            engine.deal_requested()
            assert_invariants(engine, balance)
            if engine.is_game_over():
                finished += 1
                break
        else:
            engine.quit_requested()
            assert_invariants(engine, balance)
        assert engine.pot.amount == 0
        result = engine.result_payload()
        assert result["rounds"] == len(result["win_history"])
    assert finished > 0


def test_random_relayed_player_against_house():
    for seed in range(30):
        rng = random.Random(seed)
        engine = GameEngine(GameConfig(), seed=seed + 1_000)
        balance = ledger_balance(engine)
        for _ in range(400):
            prompt = engine.awaiting()
            if prompt is None:
                break
            if prompt.kind == InputKind.DEAL:
                engine.deal_requested()
            elif prompt.kind == InputKind.WAGER:
                if rng.random() < 0.05:
                    engine.wager_chosen(DROP)
                else:
                    engine.wager_chosen(rng.choice(prompt.amounts))
            else:
                count = rng.randint(0, prompt.max_discards)
                engine.discard_requested(rng.sample(range(5), count))
            assert_invariants(engine, balance)
        if not engine.is_game_over():
            engine.quit_requested()
        assert engine.is_game_over()
        assert_invariants(engine, balance)
