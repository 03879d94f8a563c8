import pandas as pd
import streamlit as st
import plotly.express as px
from datetime import timedelta

from synergy.utils import to_date

LOG_COLUMNS = ['date', 'studyDuration', 'quranPagesRead', 'expenses', 'abstained',
               'caloriesLogged', 'habitsCompleted', 'xpAwarded']


def logs_to_dataframe(logs):
    """Flatten DailyLog records into a DataFrame sorted by date."""
    if not logs:
        return pd.DataFrame(columns=LOG_COLUMNS)

    rows = []
    for log in logs:
        rows.append({
            'date': log.date,
            'studyDuration': log.studyDuration,
            'quranPagesRead': log.quranPagesRead,
            'expenses': log.expenses,
            'abstained': log.abstained,
            'caloriesLogged': log.caloriesLogged,
            'habitsCompleted': sum(1 for done in log.customHabits.values() if done),
            'xpAwarded': log.xpAwarded,
        })
    return pd.DataFrame(rows, columns=LOG_COLUMNS).sort_values('date').reset_index(drop=True)


def weekly_weight_change(weights, today):
    """
    Change between the latest weigh-in and the latest one at least 7 days older.
    Returns 0.0 when there is not enough history.
    """
    if not weights:
        return 0.0
    df = pd.DataFrame([{'date': to_date(w.date), 'weight': w.weight} for w in weights]).sort_values('date')
    df = df[df['date'] <= today]
    if df.empty:
        return 0.0

    latest = df.iloc[-1]
    older = df[df['date'] <= latest['date'] - timedelta(days=7)]
    if older.empty:
        return 0.0
    return round(float(latest['weight'] - older.iloc[-1]['weight']), 2)


def get_dashboard_stats(weights, journal_entries, habits, meals, today):
    """Headline numbers for the dashboard."""
    today = to_date(today)
    week_start = today - timedelta(days=6)

    weekly_entries = 0
    for entry in journal_entries:
        if entry.createdAt and week_start <= to_date(entry.createdAt) <= today:
            weekly_entries += 1

    return {
        "weeklyWeightChange": weekly_weight_change(weights, today),
        "weeklyJournalEntries": weekly_entries,
        "longestHabitStreak": max((h.longestStreak for h in habits), default=0),
        "calories": sum(m.calories for m in meals if m.date == today.isoformat()),
    }


def get_day_of_week_stats(logs_df):
    """
    Return abstained days and study hours by day of week.
    """
    if logs_df.empty:
        return pd.DataFrame()

    df = logs_df.copy()
    df['date'] = pd.to_datetime(df['date'])
    df['Day'] = df['date'].dt.day_name()
    # Ensure correct order
    days_order = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']

    stats = df.groupby('Day').agg(
        Abstained=('abstained', 'sum'),
        Study=('studyDuration', 'sum'),
    ).reindex(days_order, fill_value=0).reset_index()
    return stats


def render_weight_chart(weights):
    if not weights:
        st.info("No weigh-ins yet. Log your weight to see the trend.")
        return
    df = pd.DataFrame([w.to_dict() for w in weights])
    df['date'] = pd.to_datetime(df['date'])
    fig = px.line(df.sort_values('date'), x='date', y='weight', markers=True)
    fig.update_layout(xaxis_title=None, yaxis_title="kg", height=320)
    st.plotly_chart(fig, use_container_width=True)


def render_analytics(logs_df):
    if logs_df.empty:
        st.info("No data yet. Submit your first daily log!")
        return

    st.subheader("📊 Progress")

    m1, m2, m3 = st.columns(3)
    m1.metric("Days Logged", len(logs_df))
    m2.metric("Study Hours", f"{logs_df['studyDuration'].sum():.1f}")
    m3.metric("Qur'an Pages", int(logs_df['quranPagesRead'].sum()))

    c1, c2 = st.columns(2)
    with c1:
        st.markdown("### ⚡ XP per Day")
        df = logs_df.copy()
        df['date'] = pd.to_datetime(df['date'])
        fig = px.bar(df, x='date', y='xpAwarded')
        fig.update_layout(xaxis_title=None, yaxis_title=None, height=300)
        st.plotly_chart(fig, use_container_width=True)

    with c2:
        st.markdown("### 📅 Weekly Rhythm")
        day_stats = get_day_of_week_stats(logs_df)
        if not day_stats.empty:
            fig = px.bar(day_stats, x='Day', y='Abstained',
                         color='Study', color_continuous_scale='Viridis')
            fig.update_layout(xaxis_title=None, yaxis_title=None, height=300)
            st.plotly_chart(fig, use_container_width=True)
