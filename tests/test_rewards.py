import random
from collections import Counter

import pytest

from synergy.models import Reward
from synergy.quests import QUEST_POOL, pick_quest
from synergy.rewards import ALL_REWARDS, REWARDS_BY_ID, RARITY_WEIGHTS, grant_random_reward, select_random_reward


def test_catalog_has_every_rarity():
    rarities = Counter(reward.rarity for reward in ALL_REWARDS)
    assert set(rarities) == set(RARITY_WEIGHTS)
    assert len(REWARDS_BY_ID) == len(ALL_REWARDS)


def test_selection_follows_rarity_weights():
    pool = [
        Reward("c", "Common", "", "title", "common"),
        Reward("r", "Rare", "", "title", "rare"),
        Reward("l", "Legendary", "", "title", "legendary"),
    ]
    rng = random.Random(7)
    draws = Counter(select_random_reward(pool, rng).id for _ in range(10000))

    assert draws["c"] / 10000 == pytest.approx(0.70, abs=0.03)
    assert draws["r"] / 10000 == pytest.approx(0.25, abs=0.03)
    assert draws["l"] / 10000 == pytest.approx(0.05, abs=0.02)


def test_nothing_left_returns_none():
    assert select_random_reward([]) is None


def test_unknown_rarity_still_selectable():
    only = Reward("x", "Odd", "", "title", "mythic")
    assert select_random_reward([only], random.Random(1)) is only


def test_grant_never_repeats_a_reward(store, rng):
    granted = [store.run_transaction(lambda txn: grant_random_reward(txn, "u1", rng))
               for _ in range(len(ALL_REWARDS))]

    assert None not in granted
    assert len({reward.id for reward in granted}) == len(ALL_REWARDS)
    assert store.run_transaction(lambda txn: grant_random_reward(txn, "u1", rng)) is None


def test_grants_are_per_user(store, rng):
    first = store.run_transaction(lambda txn: grant_random_reward(txn, "u1", rng))
    docs = store.read(lambda txn: txn.query("user_rewards", "u2"))
    assert first is not None
    assert docs == []


def test_pick_quest_uses_pool():
    quest = pick_quest("2024-03-15", random.Random(3))
    assert quest.date == "2024-03-15"
    assert quest.description in QUEST_POOL
    assert not quest.completed
