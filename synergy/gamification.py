from dataclasses import dataclass, field, replace
from datetime import timedelta
from decimal import Decimal, ROUND_FLOOR
from fractions import Fraction
from functools import lru_cache
from typing import Callable, Dict, List, Optional

from synergy.models import DailyLog, ProfileNotFoundError, Quest, Reward, UserProfile
from synergy.utils import to_date

# --- CONFIGURATION ---
BASE_XP = 100
GROWTH_FACTOR = Fraction(6, 5)  # 1.2, kept exact so level boundaries never drift

XP_REWARDS = {
    "STUDY_PER_30_MIN": 10,
    "QURAN_PER_PAGE": 2,
    "EXPENSE_LOGGED": 5,
    "ABSTAINED": 20,
    "CALORIE_LOGGED": 10,
    "CUSTOM_HABIT": 15,
    "WEIGHT_GAIN": 25,
    "UNEXPECTED_QUEST": 50,
    "UNEXPECTED_QUEST_PENALTY": -30,
}

RANKS = [
    {"rank": "E", "name": "E-Rank Hunter", "min_level": 1},
    {"rank": "D", "name": "D-Rank Hunter", "min_level": 10},
    {"rank": "C", "name": "C-Rank Hunter", "min_level": 20},
    {"rank": "B", "name": "B-Rank Hunter", "min_level": 30},
    {"rank": "A", "name": "A-Rank Hunter", "min_level": 40},
    {"rank": "S", "name": "S-Rank Hunter", "min_level": 50},
]

BADGES = {
    "first-log": {"name": "First Step", "desc": "Log your first daily activity."},
    "7-day-streak": {"name": "Week of Discipline", "desc": "Maintain a 7-day abstinence streak."},
    "scholar-1": {"name": "Apprentice Scholar", "desc": "Log 10 hours of study time."},
    "quran-1": {"name": "Quran Reader", "desc": "Read 100 pages of the Quran."},
}


# --- LEVEL CURVE ---

@lru_cache(maxsize=None)
def _level_step(i):
    """XP needed to go from level i to level i+1."""
    exact = BASE_XP * GROWTH_FACTOR ** (i - 1)
    return exact.numerator // exact.denominator


@lru_cache(maxsize=None)
def xp_required_for_level(level):
    """Total XP required to reach `level`."""
    total = 0
    for i in range(1, level):
        total += _level_step(i)
    return total


def level_for_xp(xp):
    """Return the highest level whose requirement is covered by `xp`."""
    level = 1
    while xp >= xp_required_for_level(level + 1):
        level += 1
    return level


def rank_for_level(level):
    current = RANKS[0]
    for rank in RANKS:
        if level >= rank["min_level"]:
            current = rank
        else:
            break
    return current


def get_level_info(total_xp):
    """Return level, rank and progress towards the next level for a dashboard."""
    level = level_for_xp(total_xp)
    floor_xp = xp_required_for_level(level)
    next_xp = xp_required_for_level(level + 1)
    needed = next_xp - floor_xp
    progress = min(1.0, max(0.0, (total_xp - floor_xp) / needed)) if needed > 0 else 1.0
    return {
        "level": level,
        "rank": rank_for_level(level),
        "xp": total_xp,
        "xp_current_level": floor_xp,
        "xp_next_level": next_xp,
        "progress": progress,
    }


# --- XP ACCRUAL ---

def _study_xp(hours):
    half_hours = Decimal(str(hours)) / Decimal("0.5")
    earned = half_hours * XP_REWARDS["STUDY_PER_30_MIN"]
    return int(earned.to_integral_value(rounding=ROUND_FLOOR))


def calculate_xp_gain(log):
    """
    Calculate the XP a single day's log is worth.
    Every trigger is independent; totals simply add up.
    """
    xp = 0
    if log.studyDuration > 0:
        xp += _study_xp(log.studyDuration)
    if log.quranPagesRead > 0:
        xp += log.quranPagesRead * XP_REWARDS["QURAN_PER_PAGE"]
    if log.expenses > 0:
        xp += XP_REWARDS["EXPENSE_LOGGED"]
    if log.abstained:
        xp += XP_REWARDS["ABSTAINED"]
    if log.caloriesLogged:
        xp += XP_REWARDS["CALORIE_LOGGED"]

    completed_habits = sum(1 for done in log.customHabits.values() if done)
    xp += completed_habits * XP_REWARDS["CUSTOM_HABIT"]
    return xp


def resolve_pending_quest(quest):
    """
    Apply the missed-quest penalty for yesterday's quest at most once.
    Returns (xp_delta, resolved_quest_or_None).
    """
    if quest is None or quest.completed or quest.penaltyApplied:
        return 0, None
    resolved = replace(quest, completed=True, penaltyApplied=True)
    return XP_REWARDS["UNEXPECTED_QUEST_PENALTY"], resolved


# --- BADGES ---

@dataclass
class BadgeContext:
    profile: UserProfile
    all_logs: List[DailyLog]  # history plus the new log, newest first
    new_log: DailyLog


def _check_first_log(ctx):
    return len(ctx.all_logs) == 1


def _check_7_day_streak(ctx):
    if not ctx.new_log.abstained:
        return False

    by_date = {log.date: log for log in ctx.all_logs}
    expected = to_date(ctx.new_log.date)
    streak = 0
    while True:
        log = by_date.get(expected.isoformat())
        if log is None or not log.abstained:
            break
        streak += 1
        if streak >= 7:
            return True
        expected -= timedelta(days=1)
    return False


def _check_scholar_1(ctx):
    return sum(log.studyDuration for log in ctx.all_logs) >= 10


def _check_quran_1(ctx):
    return sum(log.quranPagesRead for log in ctx.all_logs) >= 100


BADGE_CHECKS: Dict[str, Callable[[BadgeContext], bool]] = {
    "first-log": _check_first_log,
    "7-day-streak": _check_7_day_streak,
    "scholar-1": _check_scholar_1,
    "quran-1": _check_quran_1,
}


def register_badge(badge_id, name, desc, check):
    """Add a badge and its unlock predicate to the catalog."""
    BADGES[badge_id] = {"name": name, "desc": desc}
    BADGE_CHECKS[badge_id] = check


def merge_history(history, new_log):
    """De-duplicate logs by date (new log wins) and sort newest first."""
    by_date = {log.date: log for log in history}
    by_date[new_log.date] = new_log
    return sorted(by_date.values(), key=lambda log: log.date, reverse=True)


def check_new_badges(ctx, current_badges):
    """Return badge ids unlocked by this context that the user does not have yet."""
    new_unlocked = []
    for badge_id, check in BADGE_CHECKS.items():
        if badge_id in current_badges:
            continue
        if check(ctx):
            new_unlocked.append(badge_id)
    return new_unlocked


# --- PROCESSOR ---

@dataclass
class GamificationResult:
    profile: UserProfile
    leveled_up: bool
    earned_xp: int  # actual change after the zero floor
    reached_new_level: bool = False
    new_badges: List[str] = field(default_factory=list)
    log_xp_awarded: int = 0
    resolved_quest: Optional[Quest] = None
    rank_changed: bool = False
    reward: Optional[Reward] = None  # filled in by the caller when a grant rides along


def process_gamification(profile, all_logs, new_log, bonus_xp=0, pending_quest=None):
    """
    Compute the profile update for one submission without touching storage.

    `new_log.xpAwarded` is the XP already credited for that date; only the
    increase over it is earned, so resubmitting a day is free.
    `bonus_xp` carries flat XP for events that are not part of a daily log.
    """
    if profile is None:
        raise ProfileNotFoundError("Cannot gamify a user without a profile")

    day_xp = calculate_xp_gain(new_log) if new_log is not None else 0
    already_awarded = new_log.xpAwarded if new_log is not None else 0
    gained = max(0, day_xp - already_awarded) + bonus_xp

    penalty, resolved_quest = resolve_pending_quest(pending_quest)
    gained += penalty

    new_xp = max(0, profile.xp + gained)
    previous_level = level_for_xp(profile.xp)
    new_level = level_for_xp(new_xp)

    # Badges are only evaluated when a log is saved
    new_badges = []
    if new_log is not None:
        logs = merge_history(all_logs, new_log)
        ctx = BadgeContext(profile=profile, all_logs=logs, new_log=new_log)
        new_badges = check_new_badges(ctx, set(profile.badges))

    updated = replace(profile, xp=new_xp, level=new_level,
                      badges=list(profile.badges) + new_badges,
                      highestLevel=max(profile.highestLevel, new_level))

    return GamificationResult(
        profile=updated,
        leveled_up=new_level > previous_level,
        earned_xp=new_xp - profile.xp,
        reached_new_level=new_level > profile.highestLevel,
        new_badges=new_badges,
        log_xp_awarded=max(already_awarded, day_xp),
        resolved_quest=resolved_quest,
        rank_changed=rank_for_level(new_level)["rank"] != rank_for_level(previous_level)["rank"],
    )
