"""
Account Settings Page - Profile, email and password
"""
import streamlit as st

from backend.errors import TrackerError
from backend.services import update_profile
from core.auth import validate_new_password
from core.session import get_current_user, init_session, logout, require_login, show_user_sidebar
from core.ui import apply_style, report_error

st.set_page_config(page_title="アカウント設定", page_icon="⚙️", layout="wide")

apply_style()

ctx = init_session()
show_user_sidebar()

st.title("⚙️ アカウント設定")

require_login()

user = get_current_user()
repo = ctx.repository

try:
    profile = repo.ensure_profile(user.id)
except TrackerError as e:
    report_error(e, "プロフィールの取得")
    st.stop()

# ============ Profile ============

st.subheader("👤 プロフィール")
with st.form("profile_form"):
    col1, col2 = st.columns(2)
    with col1:
        full_name = st.text_input("氏名", value=profile.full_name)
        university = st.text_input("大学", value=profile.university)
    with col2:
        department = st.text_input("学部・学科", value=profile.department)
        graduation_year = st.text_input(
            "卒業年度", value=str(profile.graduation_year or ""), placeholder="2027"
        )
    if st.form_submit_button("💾 保存", use_container_width=True):
        try:
            update_profile(repo, user.id, {
                "full_name": full_name,
                "university": university,
                "department": department,
                "graduation_year": graduation_year,
            })
            st.success("プロフィールを保存しました")
        except TrackerError as e:
            report_error(e, "プロフィールの保存")

# ============ Email ============

st.subheader("✉️ メールアドレス")
st.caption(f"現在: {user.email}")
with st.form("email_form", clear_on_submit=True):
    new_email = st.text_input("新しいメールアドレス")
    if st.form_submit_button("変更"):
        ok, error = ctx.auth.update_email(new_email)
        if ok:
            st.success("メールアドレスを更新しました")
        else:
            st.error(error)

# ============ Password ============

st.subheader("🔑 パスワード")
with st.form("password_form", clear_on_submit=True):
    current = st.text_input("現在のパスワード", type="password")
    new_password = st.text_input("新しいパスワード", type="password", help="6文字以上")
    confirm = st.text_input("新しいパスワード（確認）", type="password")
    if st.form_submit_button("変更"):
        is_valid, error = validate_new_password(current, new_password, confirm)
        if is_valid:
            verified, _ = ctx.auth.sign_in(user.email, current)
            if verified is None:
                is_valid, error = False, "現在のパスワードが正しくありません"
        if is_valid:
            is_valid, error = ctx.auth.update_password(new_password)
        if is_valid:
            st.success("パスワードを変更しました")
        else:
            st.error(error)

st.markdown("---")
if st.button("🚪 ログアウト"):
    logout()
    st.switch_page("app.py")
