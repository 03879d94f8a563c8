import streamlit as st

from synergy.gamification import BADGES, XP_REWARDS

RARITY_EMOJI = {"common": "⚪", "rare": "🔷", "legendary": "🌟"}
TYPE_EMOJI = {"title": "🏷️", "badge": "⭐", "quote": "💬"}
BADGE_ICONS = {"first-log": "🎯", "7-day-streak": "🔥", "scholar-1": "📖", "quran-1": "📅"}


def render_level_header(progress, streak):
    """Level, rank, XP bar and abstinence streak in one bordered container."""
    rank = progress['rank']
    if progress['xp_next_level'] > progress['xp']:
        str_progress = f"{progress['xp']} / {progress['xp_next_level']} XP"
    else:
        str_progress = f"{progress['xp']} XP"

    with st.container(border=True):
        c1, c2, c3 = st.columns([1, 4, 1])
        with c1:
            st.metric("Level", f"{progress['level']}", rank['name'])
        with c2:
            st.write(f"**XP Progress** ({str_progress})")
            st.progress(progress['progress'])
        with c3:
            st.metric("🔥 Streak", f"{streak} {'Day' if streak == 1 else 'Days'}")


def render_daily_log_form(existing, habits, completed_ids):
    """
    Render the daily log form. Custom habit checkboxes default to today's habit completions.
    Returns the submitted field dict, or None.
    """
    with st.form("daily_log_form"):
        c1, c2, c3 = st.columns(3)
        with c1:
            study = st.number_input("Study (hours)", min_value=0.0, step=0.5,
                                    value=float(existing.studyDuration) if existing else 0.0)
        with c2:
            pages = st.number_input("Qur'an pages", min_value=0, step=1,
                                    value=int(existing.quranPagesRead) if existing else 0)
        with c3:
            expenses = st.number_input("Expenses", min_value=0.0, step=1.0,
                                       value=float(existing.expenses) if existing else 0.0)

        abstained = st.checkbox("I abstained today", value=existing.abstained if existing else False)

        custom = {}
        if habits:
            st.markdown("**Habits**")
            for habit in habits:
                default = existing.customHabits.get(habit.id, False) if existing else False
                custom[habit.id] = st.checkbox(f"{habit.icon} {habit.name}", key=f"log_habit_{habit.id}",
                                               value=default or habit.id in completed_ids)

        notes = st.text_area("Notes", value=existing.notes if existing else "")
        submit = st.form_submit_button("Save Log 💾", type="primary")

    if submit:
        return {
            "studyDuration": study,
            "quranPagesRead": pages,
            "expenses": expenses,
            "abstained": abstained,
            "customHabits": custom,
            "notes": notes,
        }
    return None


def render_habit_card(habit, is_done, on_toggle):
    """A habit row with a completion checkbox and its streaks."""
    with st.container(border=True):
        c1, c2, c3 = st.columns([1, 5, 2])
        with c1:
            checked = st.checkbox("Done", value=is_done, key=f"habit_{habit.id}", label_visibility="collapsed")
        with c2:
            st.markdown(f"#### {habit.icon} {habit.name}")
        with c3:
            st.caption(f"🔥 {habit.currentStreak} • 🏆 {habit.longestStreak}")

    if checked != is_done:
        on_toggle(habit.id, checked)


def render_badges(unlocked):
    cols = st.columns(max(1, len(BADGES)))
    for col, (badge_id, badge) in zip(cols, BADGES.items()):
        with col:
            icon = BADGE_ICONS.get(badge_id, "🏅") if badge_id in unlocked else "🔒"
            st.markdown(f"### {icon}")
            st.markdown(f"**{badge['name']}**")
            st.caption(badge['desc'])


def render_reward_card(reward, unlocked_at=None):
    with st.container(border=True):
        icon = TYPE_EMOJI.get(reward.type, "🏅") if unlocked_at else "🔒"
        st.markdown(f"#### {icon} {reward.name}")
        st.caption(f"{RARITY_EMOJI.get(reward.rarity, '')} {reward.rarity.title()} {reward.type}")
        if unlocked_at:
            st.write(reward.description)
            st.caption(f"Unlocked {unlocked_at}")


def render_xp_rules():
    """The XP commandments."""
    labels = {
        "STUDY_PER_30_MIN": "Study (per 30 min)",
        "QURAN_PER_PAGE": "Qur'an (per page)",
        "EXPENSE_LOGGED": "Expense Log (Daily)",
        "ABSTAINED": "Abstinence (Daily)",
        "CALORIE_LOGGED": "Calorie Log (Daily)",
        "CUSTOM_HABIT": "Custom Habit (Each)",
        "WEIGHT_GAIN": "Gaining Weight",
        "UNEXPECTED_QUEST": "Quest Completion",
        "UNEXPECTED_QUEST_PENALTY": "Quest Failure (Penalty)",
    }
    for key, label in labels.items():
        xp = XP_REWARDS[key]
        icon = "❌" if xp < 0 else "✅"
        st.markdown(f"{icon} {label}: **{'' if xp < 0 else '+'}{xp} XP**")
