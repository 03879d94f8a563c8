from datetime import date

from synergy.analytics import (
    LOG_COLUMNS, get_dashboard_stats, get_day_of_week_stats, logs_to_dataframe, weekly_weight_change,
)
from synergy.ml_logic import get_motivational_message, get_smart_suggestions
from synergy.models import DailyLog, Habit, JournalEntry, MealEntry, WeightEntry

TODAY = date(2024, 3, 15)  # a Friday


def test_empty_logs_frame():
    df = logs_to_dataframe([])
    assert df.empty
    assert list(df.columns) == LOG_COLUMNS


def test_logs_frame_sorted_by_date():
    logs = [
        DailyLog(date="2024-03-15", studyDuration=1.0, customHabits={"a": True, "b": False}),
        DailyLog(date="2024-03-14", abstained=True),
    ]
    df = logs_to_dataframe(logs)
    assert list(df['date']) == ["2024-03-14", "2024-03-15"]
    assert list(df['habitsCompleted']) == [0, 1]


def test_weekly_weight_change():
    weights = [
        WeightEntry("a", "2024-03-01", 70.0),
        WeightEntry("b", "2024-03-07", 71.0),
        WeightEntry("c", "2024-03-14", 72.5),
    ]
    assert weekly_weight_change(weights, TODAY) == 1.5
    assert weekly_weight_change(weights[1:], date(2024, 3, 10)) == 0.0
    assert weekly_weight_change([], TODAY) == 0.0


def test_dashboard_stats():
    stats = get_dashboard_stats(
        weights=[WeightEntry("a", "2024-03-08", 80.0), WeightEntry("b", "2024-03-15", 79.2)],
        journal_entries=[
            JournalEntry("j1", "Today", "", createdAt="2024-03-15T08:00:00"),
            JournalEntry("j2", "Week start", "", createdAt="2024-03-09T22:00:00"),
            JournalEntry("j3", "Too old", "", createdAt="2024-03-08T10:00:00"),
        ],
        habits=[Habit("h1", "Read", longestStreak=4), Habit("h2", "Run", longestStreak=9)],
        meals=[MealEntry("m1", "2024-03-15", "Oats", 350), MealEntry("m2", "2024-03-15", "Rice", 600),
               MealEntry("m3", "2024-03-14", "Pizza", 1200)],
        today=TODAY,
    )
    assert stats == {
        "weeklyWeightChange": -0.8,
        "weeklyJournalEntries": 2,
        "longestHabitStreak": 9,
        "calories": 950,
    }


def test_dashboard_stats_with_nothing_logged():
    stats = get_dashboard_stats([], [], [], [], TODAY)
    assert stats == {"weeklyWeightChange": 0.0, "weeklyJournalEntries": 0, "longestHabitStreak": 0, "calories": 0}


def test_day_of_week_stats():
    logs = [
        DailyLog(date="2024-03-15", abstained=True, studyDuration=2.0),
        DailyLog(date="2024-03-08", abstained=True, studyDuration=1.0),
        DailyLog(date="2024-03-11", abstained=False),
    ]
    stats = get_day_of_week_stats(logs_to_dataframe(logs)).set_index('Day')
    assert list(stats.index)[0] == "Monday"
    assert stats.loc["Friday", "Abstained"] == 2
    assert stats.loc["Friday", "Study"] == 3.0
    assert stats.loc["Sunday", "Abstained"] == 0


def test_suggestions():
    assert get_smart_suggestions(logs_to_dataframe([])) == ["Start logging your days to get smart insights!"]

    logs = [DailyLog(date="2024-03-15", abstained=True)]
    suggestions = get_smart_suggestions(logs_to_dataframe(logs))
    assert any("Fridays" in s for s in suggestions)
    assert any("study" in s for s in suggestions)

    busy = [DailyLog(date="2024-03-15", studyDuration=1, quranPagesRead=2, caloriesLogged=True)]
    assert get_smart_suggestions(logs_to_dataframe(busy))


def test_motivational_message_bands():
    assert get_motivational_message(0)[0] in {"Day One", "Fresh Start", "Keep Going"}
    assert get_motivational_message(3)[0] in {"Momentum", "On Fire", "Rising"}
    assert get_motivational_message(30)[0] in {"Legendary", "Arise", "Unbroken"}
