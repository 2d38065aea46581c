import random

from drawpoker.models import GameConfig
from scripts.autoplay_sim import choose_reply


def wager_prompt(actions: int) -> dict:
    return {
        "type": "prompt",
        "kind": "WAGER",
        "seat": 0,
        "to_call": 0,
        "actions": actions,
        "table": {
            "pot": 10,
            "first_bettor": 0,
            "players": [
                {"seat": 0, "loan_count": 0, "cards": ["02c", "04d", "06h", "08s", "09c"]},
                {"seat": 1, "loan_count": 0},
            ],
        },
    }


def test_reply_opens_for_the_ante_only_on_the_first_action():
    config = GameConfig()
    opening = [choose_reply(wager_prompt(0), config, random.Random(seed)) for seed in range(50)]
    assert all(reply["amount"] >= config.ante for reply in opening)

    later = [choose_reply(wager_prompt(2), config, random.Random(seed)) for seed in range(50)]
    assert {reply["amount"] for reply in later} == {0, 5}


def test_discard_and_deal_replies():
    config = GameConfig()
    rng = random.Random(1)
    assert choose_reply({"kind": "DEAL"}, config, rng) == {"type": "deal"}
    prompt = wager_prompt(0)
    prompt["kind"] = "DISCARD"
    reply = choose_reply(prompt, config, rng)
    assert reply["type"] == "discard"
    assert reply["cards"] == [0, 1]
