import streamlit as st
import os
from dotenv import load_dotenv
import bcrypt

load_dotenv()

DEFAULT_USER = "local"


def verify_password(password, stored_hash):
    """Check a plain password against a bcrypt hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode(), stored_hash.encode())
    except ValueError:
        return False


def current_user():
    """
    Returns the signed-in user id, or None while the login form is showing.
    With no APP_PASSWORD configured the app is open and runs as APP_USER.
    """
    user_id = os.getenv("APP_USER", DEFAULT_USER)
    stored_hash = os.getenv("APP_PASSWORD")

    # If no password is set, bypass security (default to open)
    if not stored_hash:
        return user_id

    if st.session_state.get("password_correct", False):
        return user_id

    _, center, _ = st.columns([1, 2, 1])
    with center:
        st.title("🔐 Synergy Login")
        st.write("Welcome back, hunter. Enter your password to continue your journey.")

        with st.form("login_form"):
            password = st.text_input("Password", type="password")
            submit = st.form_submit_button("Login 🚀", use_container_width=True)

            if submit:
                st.session_state["password_correct"] = verify_password(password, stored_hash)
                if st.session_state["password_correct"]:
                    st.rerun()

        if "password_correct" in st.session_state and not st.session_state["password_correct"]:
            st.error("😕 Password incorrect. Please try again.")

    return None
