from datetime import date, timedelta

from synergy.models import DailyLog, Habit
from synergy.streaks import (
    STREAK_SCAN_LIMIT, apply_habit_check, apply_habit_uncheck, calculate_abstinence_streak,
)

TODAY = date(2024, 3, 15)


def day(offset):
    return (TODAY - timedelta(days=offset)).isoformat()


# --- Abstinence streak ---

def test_streak_counts_today_and_yesterday():
    logs = [DailyLog(date=day(0), abstained=True), DailyLog(date=day(1), abstained=True)]
    assert calculate_abstinence_streak(logs, TODAY) == 2


def test_streak_allows_today_to_be_unlogged():
    logs = [DailyLog(date=day(1), abstained=True), DailyLog(date=day(2), abstained=True)]
    assert calculate_abstinence_streak(logs, TODAY) == 2


def test_streak_is_zero_when_today_is_not_abstained():
    logs = [DailyLog(date=day(0), abstained=False)] + [
        DailyLog(date=day(i), abstained=True) for i in range(1, 10)]
    assert calculate_abstinence_streak(logs, TODAY) == 0


def test_streak_stops_at_gap():
    logs = [DailyLog(date=day(i), abstained=True) for i in (0, 1, 3, 4)]
    assert calculate_abstinence_streak(logs, TODAY) == 2


def test_streak_stops_at_slip():
    logs = [DailyLog(date=day(i), abstained=(i != 2)) for i in range(6)]
    assert calculate_abstinence_streak(logs, TODAY) == 2


def test_streak_with_no_logs():
    assert calculate_abstinence_streak([], TODAY) == 0
    assert calculate_abstinence_streak([DailyLog(date=day(2), abstained=True)], TODAY) == 0


def test_streak_accepts_unordered_input_and_string_today():
    logs = [DailyLog(date=day(i), abstained=True) for i in (2, 0, 1)]
    assert calculate_abstinence_streak(logs, TODAY.isoformat()) == 3


def test_streak_scan_is_bounded():
    logs = [DailyLog(date=day(i), abstained=True) for i in range(STREAK_SCAN_LIMIT + 20)]
    assert calculate_abstinence_streak(logs, TODAY) == STREAK_SCAN_LIMIT


# --- Habit transitions ---

def test_first_check_starts_streak():
    outcome = apply_habit_check(Habit(id="h", name="Read"), TODAY, completed_yesterday=False)
    assert outcome.changed
    assert outcome.habit.currentStreak == 1
    assert outcome.habit.longestStreak == 1
    assert outcome.habit.lastCompletedDate == day(0)
    assert not outcome.streak_extended


def test_check_after_yesterday_extends_streak():
    habit = Habit(id="h", name="Read", currentStreak=3, longestStreak=3, lastCompletedDate=day(1))
    outcome = apply_habit_check(habit, TODAY, completed_yesterday=True)
    assert outcome.habit.currentStreak == 4
    assert outcome.habit.longestStreak == 4
    assert outcome.streak_extended


def test_check_after_gap_restarts_streak_but_keeps_record():
    habit = Habit(id="h", name="Read", currentStreak=5, longestStreak=9, lastCompletedDate=day(3))
    outcome = apply_habit_check(habit, TODAY, completed_yesterday=False)
    assert outcome.habit.currentStreak == 1
    assert outcome.habit.longestStreak == 9
    assert not outcome.streak_extended


def test_second_check_on_same_day_is_a_no_op():
    habit = Habit(id="h", name="Read", currentStreak=2, longestStreak=2, lastCompletedDate=day(0))
    outcome = apply_habit_check(habit, TODAY, completed_yesterday=True)
    assert not outcome.changed
    assert outcome.habit == habit


def test_uncheck_reverts_to_yesterday():
    habit = Habit(id="h", name="Read", currentStreak=2, longestStreak=2, lastCompletedDate=day(0))
    outcome = apply_habit_uncheck(habit, TODAY, completed_yesterday=True)
    assert outcome.habit.currentStreak == 1
    assert outcome.habit.lastCompletedDate == day(1)
    assert outcome.habit.longestStreak == 2


def test_uncheck_without_yesterday_resets():
    habit = Habit(id="h", name="Read", currentStreak=1, longestStreak=4, lastCompletedDate=day(0))
    outcome = apply_habit_uncheck(habit, TODAY, completed_yesterday=False)
    assert outcome.habit.currentStreak == 0
    assert outcome.habit.lastCompletedDate is None
    assert outcome.habit.longestStreak == 4


def test_uncheck_when_not_done_today_changes_nothing():
    habit = Habit(id="h", name="Read", currentStreak=3, longestStreak=3, lastCompletedDate=day(1))
    outcome = apply_habit_uncheck(habit, TODAY, completed_yesterday=True)
    assert not outcome.changed
    assert outcome.habit.currentStreak == 3
