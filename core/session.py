"""
Streamlit session management.
Keeps one AppContext per browser session and provides the login UI.
"""
import logging
import time
from typing import Optional, Tuple

import streamlit as st

from .auth import AuthUser, validate_email, validate_password
from .config import configure_logging, get_settings
from .context import AppContext, build_context

logger = logging.getLogger(__name__)

# Session state keys
CONTEXT_KEY = "app_context"
LOGIN_ATTEMPTS_KEY = "login_attempts"
LAST_ATTEMPT_KEY = "last_login_attempt"

# Rate limiting
MAX_LOGIN_ATTEMPTS = 5
COOLDOWN_SECONDS = 60


def init_session() -> AppContext:
    """Create the session's AppContext on first use."""
    if CONTEXT_KEY not in st.session_state:
        settings = get_settings()
        configure_logging(settings.log_level)
        st.session_state[CONTEXT_KEY] = build_context(settings)
    if LOGIN_ATTEMPTS_KEY not in st.session_state:
        st.session_state[LOGIN_ATTEMPTS_KEY] = 0
    if LAST_ATTEMPT_KEY not in st.session_state:
        st.session_state[LAST_ATTEMPT_KEY] = 0
    return st.session_state[CONTEXT_KEY]


def get_context() -> AppContext:
    return init_session()


def is_logged_in() -> bool:
    """Check if user is currently logged in."""
    return get_context().is_authenticated


def get_current_user() -> Optional[AuthUser]:
    return get_context().user


def is_rate_limited() -> Tuple[bool, int]:
    """
    Check if login is rate limited.
    Returns (is_limited, seconds_remaining).
    """
    init_session()

    attempts = st.session_state.get(LOGIN_ATTEMPTS_KEY, 0)
    last_attempt = st.session_state.get(LAST_ATTEMPT_KEY, 0)

    if attempts >= MAX_LOGIN_ATTEMPTS:
        elapsed = time.time() - last_attempt
        if elapsed < COOLDOWN_SECONDS:
            return True, int(COOLDOWN_SECONDS - elapsed)
        # Cooldown passed, reset attempts
        st.session_state[LOGIN_ATTEMPTS_KEY] = 0

    return False, 0


def record_login_attempt():
    """Record a failed login attempt."""
    init_session()
    st.session_state[LOGIN_ATTEMPTS_KEY] = st.session_state.get(LOGIN_ATTEMPTS_KEY, 0) + 1
    st.session_state[LAST_ATTEMPT_KEY] = time.time()


def reset_login_attempts():
    """Reset login attempts after successful login."""
    init_session()
    st.session_state[LOGIN_ATTEMPTS_KEY] = 0


def login(email: str, password: str) -> Tuple[bool, str]:
    """
    Attempt to log in a user.
    Returns (success, error_message).
    """
    context = init_session()

    is_limited, remaining = is_rate_limited()
    if is_limited:
        return False, f"ログイン試行回数が多すぎます。{remaining}秒後に再試行してください。"

    user, error = context.auth.sign_in(email.strip(), password)

    if user:
        reset_login_attempts()
        return True, ""

    record_login_attempt()
    return False, error


def signup(email: str, password: str, confirm_password: str) -> Tuple[bool, str]:
    """
    Create a new user account.
    Returns (success, error_message).
    """
    context = init_session()

    if password != confirm_password:
        return False, "パスワードが一致しません"
    if not validate_email(email.strip()):
        return False, "メールアドレスの形式が正しくありません"
    is_valid, error = validate_password(password)
    if not is_valid:
        return False, error

    user, error = context.auth.sign_up(email.strip(), password)
    if user:
        return True, ""
    return False, error


def logout():
    """Log out the current user; the context clears itself on the event."""
    get_context().auth.sign_out()


def require_login():
    """
    Require login to access a page.
    If not logged in, shows login form and stops execution.
    """
    if not is_logged_in():
        st.info("このページを利用するにはログインしてください。")
        show_login_forms()
        st.stop()


def show_login_forms():
    """Login and sign-up tabs."""
    tab1, tab2 = st.tabs(["ログイン", "新規登録"])

    with tab1:
        with st.form("login_form"):
            email = st.text_input("メールアドレス", placeholder="you@example.com")
            password = st.text_input("パスワード", type="password")

            submitted = st.form_submit_button("ログイン", use_container_width=True)

            if submitted:
                if not email or not password:
                    st.error("すべての項目を入力してください")
                else:
                    success, error = login(email, password)
                    if success:
                        st.rerun()
                    else:
                        st.error(error)

    with tab2:
        with st.form("signup_form"):
            new_email = st.text_input("メールアドレス", placeholder="you@example.com", key="signup_email")
            new_password = st.text_input("パスワード", type="password", key="signup_password",
                                         help="6文字以上")
            confirm_password = st.text_input("パスワード（確認）", type="password")

            submitted = st.form_submit_button("新規登録", use_container_width=True)

            if submitted:
                if not new_email or not new_password or not confirm_password:
                    st.error("すべての項目を入力してください")
                else:
                    success, error = signup(new_email, new_password, confirm_password)
                    if success:
                        st.success("アカウントを作成しました")
                        st.rerun()
                    else:
                        st.error(error)


def show_user_sidebar():
    """Show current user and logout, or the login forms, in the sidebar."""
    with st.sidebar:
        st.markdown("---")
        user = get_current_user()
        if user:
            st.markdown(f"👤 **{user.email}**")
            if st.button("🚪 ログアウト", use_container_width=True):
                logout()
                st.rerun()
        else:
            st.caption("ログインしていないため、デモデータを表示しています。")
            with st.expander("🔐 ログイン / 新規登録"):
                show_login_forms()
