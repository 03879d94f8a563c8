from dataclasses import dataclass, replace
from datetime import timedelta

from synergy.utils import date_str, to_date

STREAK_SCAN_LIMIT = 100


def calculate_abstinence_streak(logs, today):
    """
    Count consecutive abstained days ending today (or yesterday, if today is not logged yet).

    `logs` is any iterable of DailyLog; only the most recent STREAK_SCAN_LIMIT are considered.
    A missing day or a day with abstained=False ends the streak; gaps are never skipped.
    """
    today = to_date(today)
    recent = sorted(logs, key=lambda log: log.date, reverse=True)[:STREAK_SCAN_LIMIT]
    by_date = {log.date: log for log in recent}

    streak = 0
    today_log = by_date.get(today.isoformat())
    if today_log is not None:
        if not today_log.abstained:
            return 0  # broken today, history doesn't matter
        streak = 1
    expected = today - timedelta(days=1)

    while True:
        log = by_date.get(expected.isoformat())
        if log is None or not log.abstained:
            break
        streak += 1
        expected -= timedelta(days=1)
    return streak


@dataclass
class ToggleOutcome:
    habit: object
    changed: bool
    streak_extended: bool = False


def apply_habit_check(habit, today, completed_yesterday):
    """Mark `habit` done for `today` and extend or restart its streak."""
    today_s = date_str(today)
    if habit.lastCompletedDate == today_s:
        # Re-check on the same day
        return ToggleOutcome(habit=habit, changed=False)

    previous = habit.currentStreak
    streak = previous + 1 if completed_yesterday else 1
    updated = replace(
        habit,
        currentStreak=streak,
        longestStreak=max(habit.longestStreak, streak),
        lastCompletedDate=today_s,
    )
    return ToggleOutcome(habit=updated, changed=True,
                         streak_extended=streak > previous and streak > 1)


def apply_habit_uncheck(habit, today, completed_yesterday):
    """Undo today's completion, reverting the streak to what it was yesterday."""
    today_s = date_str(today)
    if habit.lastCompletedDate != today_s:
        return ToggleOutcome(habit=habit, changed=False)

    if completed_yesterday:
        updated = replace(habit, currentStreak=max(0, habit.currentStreak - 1),
                          lastCompletedDate=(to_date(today) - timedelta(days=1)).isoformat())
    else:
        updated = replace(habit, currentStreak=0, lastCompletedDate=None)
    return ToggleOutcome(habit=updated, changed=True)
