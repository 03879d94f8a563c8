import logging
import random
from dataclasses import dataclass, replace
from typing import Optional

from synergy import notifications
from synergy.database import get_store
from synergy.gamification import XP_REWARDS, get_level_info, process_gamification
from synergy.models import (
    DailyLog, Habit, HabitEntry, JournalEntry, MealEntry, ProfileNotFoundError,
    Quest, Reward, UserProfile, WeightEntry,
)
from synergy.quests import pick_quest
from synergy.rewards import REWARDS_BY_ID, grant_random_reward
from synergy.streaks import (
    STREAK_SCAN_LIMIT, apply_habit_check, apply_habit_uncheck, calculate_abstinence_streak,
)
from synergy.utils import new_id, now_iso, today as resolve_today, yesterday_of

logger = logging.getLogger(__name__)

# A random reward rides along every time a habit streak reaches a new multiple of this
REWARD_STREAK_INTERVAL = 7


def _store(store):
    return store if store is not None else get_store()


# --- PROFILE ---

def create_profile(user_id, display_name="", email="", store=None):
    """Create the user's profile at first sign-in. Existing profiles are returned untouched."""
    def txn_fn(txn):
        existing = txn.get("profiles", user_id, user_id)
        if existing is not None:
            return UserProfile.from_dict(existing)
        profile = UserProfile(uid=user_id, displayName=display_name, email=email, createdAt=now_iso())
        txn.set("profiles", user_id, user_id, profile.to_dict())
        logger.info("Created profile for %s", user_id)
        return profile

    return _store(store).run_transaction(txn_fn)


def get_profile(user_id, store=None):
    doc = _store(store).read(lambda txn: txn.get("profiles", user_id, user_id))
    if doc is None:
        raise ProfileNotFoundError(f"User profile not found: {user_id}")
    return UserProfile.from_dict(doc)


def get_user_progress(user_id, store=None):
    """Fetch XP, level, rank and badges for the dashboard header."""
    profile = get_profile(user_id, store)
    info = get_level_info(profile.xp)
    info["badges"] = list(profile.badges)
    info["display_name"] = profile.displayName
    return info


# --- GAMIFICATION ---

def _gamify(txn, user_id, day, new_log=None, bonus_xp=0, rng=None):
    """
    Run the gamification processor inside `txn` and stage every resulting write.
    All reads here go through the same transaction that performs the writes.
    """
    doc = txn.get("profiles", user_id, user_id)
    if doc is None:
        raise ProfileNotFoundError(f"User profile not found: {user_id}")
    profile = UserProfile.from_dict(doc)

    history = [DailyLog.from_dict(d) for d in
               txn.query("daily_logs", user_id, order_by="date", descending=True)]

    yesterday = yesterday_of(day).isoformat()
    quest_doc = txn.get("quests", user_id, yesterday)
    pending_quest = Quest.from_dict(quest_doc) if quest_doc else None

    result = process_gamification(profile, history, new_log,
                                  bonus_xp=bonus_xp, pending_quest=pending_quest)

    if new_log is not None:
        saved_log = replace(new_log, xpAwarded=result.log_xp_awarded)
        txn.set("daily_logs", user_id, saved_log.date, saved_log.to_dict(), merge=True)

    txn.set("profiles", user_id, user_id, {
        "xp": result.profile.xp,
        "level": result.profile.level,
        "badges": result.profile.badges,
        "highestLevel": result.profile.highestLevel,
    }, merge=True)

    if result.resolved_quest is not None:
        logger.info("Quest of %s missed by %s, penalty applied", yesterday, user_id)
        txn.set("quests", user_id, yesterday, result.resolved_quest.to_dict())

    # Climbing back to a level already reached pays nothing
    if result.reached_new_level:
        result.reward = grant_random_reward(txn, user_id, rng or random)
    return result


def _announce(user_id, result):
    """Publish post-commit events for a gamification result."""
    if result is None:
        return
    if result.leveled_up:
        notifications.publish(notifications.LEVEL_UP, {
            "user_id": user_id,
            "level": result.profile.level,
            "rank_changed": result.rank_changed,
        })
    if result.reward is not None:
        notifications.publish(notifications.REWARD_GRANTED, {"user_id": user_id, "reward": result.reward})


# --- DAILY LOGS ---

def save_daily_log(user_id, log_data, today=None, store=None, rng=None):
    """
    Merge today's log with `log_data` and apply XP, level, badge and quest updates atomically.
    Returns the GamificationResult.
    """
    day = resolve_today(today)
    day_s = day.isoformat()

    def txn_fn(txn):
        existing = txn.get("daily_logs", user_id, day_s) or {}
        merged = dict(existing)
        merged.update(log_data)
        merged["date"] = day_s
        # Owned by the store, never by the form
        merged["xpAwarded"] = existing.get("xpAwarded", 0)
        merged["caloriesLogged"] = bool(existing.get("caloriesLogged") or log_data.get("caloriesLogged"))
        return _gamify(txn, user_id, day, DailyLog.from_dict(merged), rng=rng)

    result = _store(store).run_transaction(txn_fn)
    _announce(user_id, result)
    return result


def load_daily_log(user_id, day=None, store=None):
    day_s = resolve_today(day).isoformat()
    doc = _store(store).read(lambda txn: txn.get("daily_logs", user_id, day_s))
    return DailyLog.from_dict(doc) if doc else None


def load_logs(user_id, limit=None, store=None):
    """Load logs newest first."""
    docs = _store(store).read(
        lambda txn: txn.query("daily_logs", user_id, order_by="date", descending=True, limit=limit))
    return [DailyLog.from_dict(d) for d in docs]


def calculate_streak(user_id, today=None, store=None):
    """Current abstinence streak, computed on demand from the latest logs."""
    logs = load_logs(user_id, limit=STREAK_SCAN_LIMIT, store=store)
    return calculate_abstinence_streak(logs, resolve_today(today))


# --- HABITS ---

@dataclass
class ToggleResult:
    habit: Habit
    completed: bool
    streak_extended: bool = False
    reward: Optional[Reward] = None


def add_habit(user_id, name, icon="✅", store=None):
    habit = Habit(id=new_id(), name=name.strip(), icon=icon, createdAt=now_iso())
    _store(store).run_transaction(lambda txn: txn.set("habits", user_id, habit.id, habit.to_dict()))
    return habit


def delete_habit(user_id, habit_id, store=None):
    """Delete a habit. Past completion records are left as history."""
    _store(store).run_transaction(lambda txn: txn.delete("habits", user_id, habit_id))
    return True


def load_habits(user_id, store=None):
    docs = _store(store).read(lambda txn: txn.query("habits", user_id, order_by="createdAt"))
    return [Habit.from_dict(d) for d in docs]


def get_habit_entry(user_id, day=None, store=None):
    day_s = resolve_today(day).isoformat()
    doc = _store(store).read(lambda txn: txn.get("habit_entries", user_id, day_s))
    return HabitEntry.from_dict(doc) if doc else HabitEntry(date=day_s)


def toggle_habit(user_id, habit_id, checked, today=None, store=None, rng=None):
    """
    Check or uncheck a habit for today and update its streak in one transaction.
    The motivational event is published only after the commit.
    """
    day = resolve_today(today)
    day_s = day.isoformat()
    yesterday_s = yesterday_of(day).isoformat()

    def txn_fn(txn):
        habit_doc = txn.get("habits", user_id, habit_id)
        if habit_doc is None:
            raise LookupError(f"Habit not found: {habit_id}")
        habit = Habit.from_dict(habit_doc)

        entry = HabitEntry.from_dict(txn.get("habit_entries", user_id, day_s) or {"date": day_s})
        yesterday_doc = txn.get("habit_entries", user_id, yesterday_s)
        completed_yesterday = bool(yesterday_doc) and habit_id in (yesterday_doc.get("completedHabitIds") or [])

        ids = list(entry.completedHabitIds)
        if checked:
            if habit_id not in ids:
                ids.append(habit_id)
            outcome = apply_habit_check(habit, day, completed_yesterday)
        else:
            ids = [i for i in ids if i != habit_id]
            outcome = apply_habit_uncheck(habit, day, completed_yesterday)

        txn.set("habit_entries", user_id, day_s, HabitEntry(date=day_s, completedHabitIds=ids).to_dict())
        if outcome.changed:
            txn.set("habits", user_id, habit_id, outcome.habit.to_dict())

        reward = None
        streak = outcome.habit.currentStreak
        # Only a streak that beats the habit's record can earn a milestone reward
        if (checked and outcome.changed and streak % REWARD_STREAK_INTERVAL == 0
                and streak > habit.longestStreak):
            reward = grant_random_reward(txn, user_id, rng or random)

        return ToggleResult(habit=outcome.habit, completed=checked,
                            streak_extended=outcome.streak_extended, reward=reward)

    result = _store(store).run_transaction(txn_fn)

    if result.streak_extended:
        notifications.publish(notifications.STREAK_EXTENDED, {
            "user_id": user_id,
            "habit": result.habit,
            "streak": result.habit.currentStreak,
        })
    if result.reward is not None:
        notifications.publish(notifications.REWARD_GRANTED, {"user_id": user_id, "reward": result.reward})
    return result


# --- MEALS ---

def log_meal(user_id, name, calories, today=None, store=None, rng=None):
    """
    Record a meal. The first meal of the day flags the daily log and earns the calorie bonus once.
    Returns (MealEntry, GamificationResult or None).
    """
    day = resolve_today(today)
    day_s = day.isoformat()
    meal = MealEntry(id=new_id(), date=day_s, name=name.strip(), calories=int(calories))

    def txn_fn(txn):
        txn.set("meals", user_id, meal.id, meal.to_dict())
        existing = txn.get("daily_logs", user_id, day_s)
        if existing and existing.get("caloriesLogged"):
            return None
        merged = dict(existing or {"date": day_s})
        merged["caloriesLogged"] = True
        return _gamify(txn, user_id, day, DailyLog.from_dict(merged), rng=rng)

    result = _store(store).run_transaction(txn_fn)
    _announce(user_id, result)
    return meal, result


def load_meals(user_id, day=None, store=None):
    day_s = resolve_today(day).isoformat()
    docs = _store(store).read(lambda txn: txn.query("meals", user_id))
    return [MealEntry.from_dict(d) for d in docs if d.get("date") == day_s]


def delete_meal(user_id, meal_id, store=None):
    _store(store).run_transaction(lambda txn: txn.delete("meals", user_id, meal_id))
    return True


# --- WEIGHT ---

def log_weight(user_id, weight, today=None, store=None, rng=None):
    """
    Record a weigh-in. The first weigh-in of a day that is heavier than the
    previous day's earns WEIGHT_GAIN XP. Returns (WeightEntry, GamificationResult or None).
    """
    day = resolve_today(today)
    day_s = day.isoformat()
    entry = WeightEntry(id=new_id(), date=day_s, weight=float(weight))

    def txn_fn(txn):
        weights = [WeightEntry.from_dict(d) for d in
                   txn.query("weights", user_id, order_by="date", descending=True)]
        txn.set("weights", user_id, entry.id, entry.to_dict())

        already_today = any(w.date == day_s for w in weights)
        earlier = [w for w in weights if w.date < day_s]
        if already_today or not earlier or entry.weight <= earlier[0].weight:
            return None
        return _gamify(txn, user_id, day, bonus_xp=XP_REWARDS["WEIGHT_GAIN"], rng=rng)

    result = _store(store).run_transaction(txn_fn)
    _announce(user_id, result)
    return entry, result


def load_weights(user_id, store=None):
    docs = _store(store).read(lambda txn: txn.query("weights", user_id, order_by="date"))
    return [WeightEntry.from_dict(d) for d in docs]


# --- JOURNAL ---

def add_journal_entry(user_id, title, content, tags=None, store=None):
    entry = JournalEntry(id=new_id(), title=title.strip(), content=content,
                         tags=[t.strip() for t in (tags or []) if t.strip()])
    _store(store).run_transaction(
        lambda txn: txn.set("journal_entries", user_id, entry.id, entry.to_dict()))
    return entry


def load_journal_entries(user_id, store=None):
    docs = _store(store).read(
        lambda txn: txn.query("journal_entries", user_id, order_by="createdAt", descending=True))
    return [JournalEntry.from_dict(d) for d in docs]


# --- QUESTS ---

def assign_daily_quest(user_id, today=None, store=None, rng=None):
    """Return today's unexpected quest, creating one if none was assigned yet."""
    day_s = resolve_today(today).isoformat()

    def txn_fn(txn):
        existing = txn.get("quests", user_id, day_s)
        if existing is not None:
            return Quest.from_dict(existing)
        quest = pick_quest(day_s, rng or random)
        txn.set("quests", user_id, day_s, quest.to_dict())
        return quest

    return _store(store).run_transaction(txn_fn)


def get_quest(user_id, day=None, store=None):
    day_s = resolve_today(day).isoformat()
    doc = _store(store).read(lambda txn: txn.get("quests", user_id, day_s))
    return Quest.from_dict(doc) if doc else None


def complete_quest(user_id, today=None, store=None, rng=None):
    """Mark today's quest done and award UNEXPECTED_QUEST XP once. Returns None if nothing to do."""
    day = resolve_today(today)
    day_s = day.isoformat()

    def txn_fn(txn):
        doc = txn.get("quests", user_id, day_s)
        if doc is None:
            raise LookupError(f"No quest assigned for {day_s}")
        quest = Quest.from_dict(doc)
        if quest.completed:
            return None
        txn.set("quests", user_id, day_s, replace(quest, completed=True).to_dict())
        return _gamify(txn, user_id, day, bonus_xp=XP_REWARDS["UNEXPECTED_QUEST"], rng=rng)

    result = _store(store).run_transaction(txn_fn)
    _announce(user_id, result)
    return result


# --- REWARDS ---

def load_user_rewards(user_id, store=None):
    """Unlocked rewards, newest first, as {"reward": Reward, "unlockedAt": str}."""
    docs = _store(store).read(
        lambda txn: txn.query("user_rewards", user_id, order_by="unlockedAt", descending=True))
    return [{"reward": REWARDS_BY_ID[d["id"]], "unlockedAt": d.get("unlockedAt")}
            for d in docs if d.get("id") in REWARDS_BY_ID]
