import logging
import random

from synergy.models import Reward
from synergy.utils import now_iso

logger = logging.getLogger(__name__)

ALL_REWARDS = [
    # Common
    Reward("title-newbie", "Newbie", "A title for those just starting their journey.", "title", "common"),
    Reward("quote-journey", "A Journey of a Thousand Miles",
           '"The journey of a thousand miles begins with a single step." - Lao Tzu', "quote", "common"),
    Reward("badge-consistency-1", "Consistent", "Awarded for logging in 3 days in a row.", "badge", "common"),
    Reward("title-apprentice", "Apprentice", "You have shown dedication to learning the basics.", "title", "common"),
    # Rare
    Reward("title-adept", "Adept", "You are becoming skilled in your disciplines.", "title", "rare"),
    Reward("quote-discipline", "Discipline",
           '"Discipline is the bridge between goals and accomplishment." - Jim Rohn', "quote", "rare"),
    Reward("badge-scholar", "Scholar", "Awarded for logging over 20 hours of study.", "badge", "rare"),
    Reward("title-iron-will", "Iron Will", "For maintaining a 14-day abstinence streak.", "title", "rare"),
    # Legendary
    Reward("title-master", "Master", "You have achieved mastery over your habits.", "title", "legendary"),
    Reward("quote-suffer", "The Pain of Discipline",
           '"Suffer the pain of discipline or suffer the pain of regret."', "quote", "legendary"),
    Reward("badge-monarch", "Shadow Monarch",
           "You have risen from the weakest to the strongest. A true sign of power.", "badge", "legendary"),
    Reward("title-unstoppable", "Unstoppable", "For reaching level 50. A true force of nature.", "title", "legendary"),
]

REWARDS_BY_ID = {reward.id: reward for reward in ALL_REWARDS}

RARITY_WEIGHTS = {
    "common": 70,
    "rare": 25,
    "legendary": 5,
}


def select_random_reward(available_rewards, rng=random):
    """Pick one reward, weighting each by its rarity. Returns None if nothing is left."""
    if not available_rewards:
        return None

    weighted = []
    for reward in available_rewards:
        weighted.extend([reward] * RARITY_WEIGHTS.get(reward.rarity, 0))

    if not weighted:
        return rng.choice(list(available_rewards))
    return weighted[rng.randrange(len(weighted))]


def grant_random_reward(txn, user_id, rng=random):
    """
    Grant one not-yet-unlocked reward inside the caller's transaction.
    Reads and the write share `txn`, so a retried transaction cannot grant twice.
    """
    unlocked = {doc["id"] for doc in txn.query("user_rewards", user_id)}
    available = [reward for reward in ALL_REWARDS if reward.id not in unlocked]

    reward = select_random_reward(available, rng)
    if reward is None:
        logger.info("No new rewards available for user %s", user_id)
        return None

    txn.set("user_rewards", user_id, reward.id, {"id": reward.id, "unlockedAt": now_iso()})
    return reward
