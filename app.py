import logging
import os
import queue

import pandas as pd
import streamlit as st

from synergy import notifications
from synergy.ai_coach import analyze_physical_progress, generate_journal_prompt, generate_motivation
from synergy.analytics import get_dashboard_stats, logs_to_dataframe, render_analytics, render_weight_chart
from synergy.auth import current_user
from synergy.data_manager import (
    add_habit, add_journal_entry, assign_daily_quest, calculate_streak, complete_quest, create_profile,
    delete_habit, delete_meal, get_habit_entry, get_user_progress, load_daily_log, load_habits,
    load_journal_entries, load_logs, load_meals, load_user_rewards, load_weights, log_meal, log_weight,
    save_daily_log, toggle_habit,
)
from synergy.gamification import BADGES
from synergy.ml_logic import get_smart_suggestions
from synergy.models import ProfileNotFoundError
from synergy.rewards import ALL_REWARDS
from synergy.ui_components import (
    BADGE_ICONS, render_badges, render_daily_log_form, render_habit_card, render_level_header, render_reward_card,
    render_xp_rules,
)

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

st.set_page_config(
    page_title="Synergy",
    page_icon="⚔️",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_message_queue():
    """Messages produced by detached notification handlers, shown as toasts on the next run."""
    messages = queue.Queue()

    def on_streak_extended(payload):
        motivation = generate_motivation(payload["streak"])
        messages.put(f"🔥 {motivation.title}: {motivation.quote}")

    def on_reward_granted(payload):
        messages.put(f"🎁 New reward unlocked: {payload['reward'].name}")

    notifications.subscribe(notifications.STREAK_EXTENDED, on_streak_extended)
    notifications.subscribe(notifications.REWARD_GRANTED, on_reward_granted)
    return messages


def show_result(result):
    """Surface a GamificationResult the way the dashboard expects it."""
    if result is None:
        return
    if result.earned_xp:
        st.toast(f"{'+' if result.earned_xp > 0 else ''}{result.earned_xp} XP ⚡")
    if result.resolved_quest is not None:
        st.warning("⚠️ Yesterday's quest was left unfinished. Penalty applied.")
    for badge_id in result.new_badges:
        badge = BADGES.get(badge_id, {})
        st.success(f"{BADGE_ICONS.get(badge_id, '🏅')} Badge unlocked: **{badge.get('name', badge_id)}**")
    if result.leveled_up:
        st.balloons()
        st.success(f"🎉 **LEVEL UP!** You are now Level {result.profile.level}!")
    if result.rank_changed:
        st.success("⚔️ **RANK UP!** Your hunter rank has changed.")


user_id = current_user()
if user_id is None:
    st.stop()

messages = get_message_queue()
while not messages.empty():
    st.toast(messages.get_nowait())

if "profile_ready" not in st.session_state:
    create_profile(user_id, display_name=user_id)
    st.session_state.profile_ready = True

st.title("⚔️ Synergy")

# Navigation
selected_tab = st.radio(
    "Navigation",
    ["🔥 Dashboard", "📝 Daily Log", "✅ Habits", "🍽️ Diet", "⚖️ Weight", "📓 Journal", "🤖 AI Progress", "👤 Profile"],
    horizontal=True,
    label_visibility="collapsed"
)

if "latest_result" in st.session_state:
    show_result(st.session_state.latest_result)
    del st.session_state["latest_result"]

try:
    progress = get_user_progress(user_id)
except ProfileNotFoundError as e:
    st.error(f"Profile error: {e}")
    st.stop()

if selected_tab == "🔥 Dashboard":
    render_level_header(progress, calculate_streak(user_id))

    today = pd.Timestamp.now().date()
    stats = get_dashboard_stats(load_weights(user_id), load_journal_entries(user_id),
                                load_habits(user_id), load_meals(user_id), today)
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Weekly Weight Change", f"{stats['weeklyWeightChange']:+.1f} kg")
    m2.metric("Journal Entries (7d)", stats['weeklyJournalEntries'])
    m3.metric("Longest Habit Streak", stats['longestHabitStreak'])
    m4.metric("Calories Today", stats['calories'])

    logs_df = logs_to_dataframe(load_logs(user_id))
    st.info(get_smart_suggestions(logs_df)[0])

    # --- Unexpected Quest ---
    quest = assign_daily_quest(user_id)
    with st.container(border=True):
        c1, c2 = st.columns([6, 1])
        with c1:
            st.markdown(f"### 🗡️ Unexpected Quest\n{quest.description}")
            st.caption("Complete it today or lose XP tomorrow.")
        with c2:
            if quest.completed:
                st.button("✅", key="quest_done", disabled=True)
            elif st.button("Done", key="quest_btn"):
                st.session_state.latest_result = complete_quest(user_id)
                st.rerun()

    st.divider()
    render_analytics(logs_df)

elif selected_tab == "📝 Daily Log":
    today = pd.Timestamp.now()
    st.write(f"### Track your core activities for {today.strftime('%B %d, %Y')}")
    habits = load_habits(user_id)
    entry = get_habit_entry(user_id)
    data = render_daily_log_form(load_daily_log(user_id), habits, set(entry.completedHabitIds))
    if data:
        try:
            st.session_state.latest_result = save_daily_log(user_id, data)
            st.rerun()
        except ProfileNotFoundError as e:
            st.error(f"Could not save your log: {e}")

elif selected_tab == "✅ Habits":
    st.write("### Build consistency, one day at a time.")

    with st.expander("➕ New Habit"):
        c1, c2 = st.columns([4, 1])
        with c1:
            name = st.text_input("Habit name", placeholder="e.g. Read for 15 minutes").strip()
        with c2:
            icon = st.text_input("Icon", value="✅")
        if st.button("Add Habit 🚀", type="primary"):
            if name:
                add_habit(user_id, name, icon or "✅")
                st.rerun()
            else:
                st.error("Please enter a habit name.")

    habits = load_habits(user_id)
    completed = set(get_habit_entry(user_id).completedHabitIds)

    def on_toggle(habit_id, checked):
        try:
            result = toggle_habit(user_id, habit_id, checked)
            if result.reward is not None:
                st.toast(f"🎁 {result.reward.name}")
        except LookupError as e:
            st.error(f"Failed to update habit: {e}")
        st.rerun()

    if not habits:
        st.info("No habits yet. Add one above to start a streak!")
    for habit in habits:
        c1, c2 = st.columns([10, 1])
        with c1:
            render_habit_card(habit, habit.id in completed, on_toggle)
        with c2:
            if st.button("🗑️", key=f"del_{habit.id}", help="Delete Habit"):
                delete_habit(user_id, habit.id)
                st.rerun()

elif selected_tab == "🍽️ Diet":
    st.write("### Log your meals to track your daily calorie intake.")
    with st.form("meal_form", clear_on_submit=True):
        c1, c2 = st.columns([3, 1])
        with c1:
            meal_name = st.text_input("Meal Name")
        with c2:
            calories = st.number_input("Calories", min_value=0, step=10)
        submitted = st.form_submit_button("Add Meal")
    if submitted:
        if meal_name.strip():
            _, result = log_meal(user_id, meal_name, calories)
            st.session_state.latest_result = result
            st.rerun()
        else:
            st.error("Meal name is required.")

    meals = load_meals(user_id)
    if not meals:
        st.info("No meals logged yet today.")
    else:
        for meal in meals:
            c1, c2, c3 = st.columns([5, 2, 1])
            c1.write(meal.name)
            c2.write(f"{meal.calories} kcal")
            if c3.button("🗑️", key=f"meal_{meal.id}"):
                delete_meal(user_id, meal.id)
                st.rerun()
        st.metric("Total", f"{sum(m.calories for m in meals)} kcal")

elif selected_tab == "⚖️ Weight":
    st.write("### Weight Tracking")
    with st.form("weight_form", clear_on_submit=True):
        weight = st.number_input("Weight (kg)", min_value=0.0, step=0.1)
        submitted = st.form_submit_button("Log Weight")
    if submitted and weight > 0:
        _, result = log_weight(user_id, weight)
        st.session_state.latest_result = result
        st.rerun()
    render_weight_chart(load_weights(user_id))

elif selected_tab == "📓 Journal":
    st.write("### Journal")
    if "journal_prompt" not in st.session_state:
        st.session_state.journal_prompt = generate_journal_prompt()
    st.info(f"💭 {st.session_state.journal_prompt}")
    if st.button("New prompt"):
        st.session_state.journal_prompt = generate_journal_prompt()
        st.rerun()

    with st.form("journal_form", clear_on_submit=True):
        title = st.text_input("Title")
        content = st.text_area("Entry")
        tags = st.text_input("Tags (comma separated)")
        submitted = st.form_submit_button("Save Entry")
    if submitted and title.strip():
        add_journal_entry(user_id, title, content, tags.split(","))
        st.toast("Entry saved 📓")

    for entry in load_journal_entries(user_id):
        with st.expander(f"{entry.title} • {entry.createdAt[:10]}"):
            st.write(entry.content)
            if entry.tags:
                st.caption(" ".join(f"#{t}" for t in entry.tags))

elif selected_tab == "🤖 AI Progress":
    st.write("### AI Physique Analysis")
    current = st.file_uploader("Current photo", type=["jpg", "jpeg", "png"])
    previous = st.file_uploader("Previous photo (optional)", type=["jpg", "jpeg", "png"])
    notes = st.text_area("Notes")
    body_fat = st.number_input("Body fat % (optional)", min_value=0.0, max_value=70.0, value=0.0)

    if st.button("Analyze 🔍", disabled=current is None):
        with st.spinner("Analyzing..."):
            analysis = analyze_physical_progress(
                current.getvalue(), current.type,
                previous.getvalue() if previous else None, previous.type if previous else "image/jpeg",
                notes=notes, body_fat=body_fat or None,
            )
        st.markdown(f"#### Overall\n{analysis.overall_physique}")
        for group, text in analysis.muscle_groups.items():
            st.markdown(f"**{group}**: {text}")
        if analysis.improvement_areas:
            st.markdown("#### Areas to improve")
            for area in analysis.improvement_areas:
                st.markdown(f"- {area}")
        if analysis.recommendations:
            st.markdown(f"#### Recommendations\n{analysis.recommendations}")

elif selected_tab == "👤 Profile":
    render_level_header(progress, calculate_streak(user_id))

    tab_badges, tab_rewards, tab_rules = st.tabs(["🏅 Badges", "🎁 Rewards", "📜 XP Rules"])
    with tab_badges:
        render_badges(set(progress['badges']))
    with tab_rewards:
        unlocked = {item['reward'].id: item['unlockedAt'] for item in load_user_rewards(user_id)}
        cols = st.columns(3)
        for idx, reward in enumerate(ALL_REWARDS):
            with cols[idx % 3]:
                render_reward_card(reward, unlocked.get(reward.id))
    with tab_rules:
        render_xp_rules()
