import pandas as pd
import random


def get_motivational_message(streak):
    """Return a (title, quote) pair based on streak length. Used when the AI coach is offline."""
    if streak <= 1:
        return random.choice([
            ("Day One", "Every journey begins with a single step. Start today!"),
            ("Fresh Start", "Don't worry about yesterday. Today is a new opportunity."),
            ("Keep Going", "Small progress is still progress."),
        ])
    elif streak < 7:
        return random.choice([
            ("Momentum", "Consistency is key. You're building momentum."),
            ("On Fire", f"{streak} days in a row. Don't break the chain!"),
            ("Rising", "You are becoming unstoppable."),
        ])
    else:
        return random.choice([
            ("Legendary", f"{streak} days strong. This habit is now part of you."),
            ("Arise", "The weakest hunter became the strongest through daily discipline."),
            ("Unbroken", "Incredible dedication. Use this energy for other goals too!"),
        ])


def get_smart_suggestions(logs_df):
    """
    Look at recent daily logs and suggest where to focus next.
    `logs_df` is the DataFrame built by analytics.logs_to_dataframe.
    """
    if logs_df.empty:
        return ["Start logging your days to get smart insights!"]

    suggestions = []
    df = logs_df.copy()
    df['weekday'] = pd.to_datetime(df['date']).dt.day_name()

    abstained = df[df['abstained']]
    if not abstained.empty:
        best_day = abstained['weekday'].value_counts().idxmax()
        suggestions.append(f"💡 You are most disciplined on **{best_day}s**. Plan your hardest tasks then!")

    recent = df.sort_values('date', ascending=False).head(7)
    if recent['studyDuration'].sum() == 0:
        suggestions.append("📚 No study logged this week. How about just 30 minutes today?")
    if recent['quranPagesRead'].sum() == 0:
        suggestions.append("📖 A single page of Qur'an today keeps the habit alive.")
    if not recent['caloriesLogged'].any():
        suggestions.append("🍽️ Log a meal to earn the daily calorie bonus.")

    if not suggestions:
        suggestions.append("🌟 You are doing great! Keep tracking to unlock more insights.")

    return suggestions
