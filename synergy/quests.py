import random

from synergy.models import Quest

QUEST_POOL = [
    "Do 50 push-ups before noon.",
    "Read 10 pages of a book you haven't opened in a month.",
    "Go for a 30 minute walk without your phone.",
    "Drink 3 litres of water today.",
    "Write down three things you are grateful for.",
    "Spend one hour studying with no distractions.",
    "Cook a healthy meal from scratch.",
    "Wake up 30 minutes earlier than usual.",
]


def pick_quest(day, rng=random):
    return Quest(date=day, description=rng.choice(QUEST_POOL))
