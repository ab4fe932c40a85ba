"""
Shared Streamlit styling and small widgets.
"""
import logging

import streamlit as st

from backend.errors import LoginRequiredError, TrackerError, ValidationError
from backend.models import DeadlineKind
from backend.services import DEFAULT_CHAR_LIMIT, char_count, delete_script, update_script

logger = logging.getLogger(__name__)

BASE_CSS = """
<style>
    @import url('https://fonts.googleapis.com/css2?family=Noto+Sans+JP:wght@400;500;700&display=swap');
    html, body, [class*="css"] { font-family: 'Noto Sans JP', sans-serif; }
    .stApp { background: linear-gradient(135deg, #f8fafc 0%, #eef2f7 100%); }
    h1, h2, h3 { color: #1e3a8a !important; }
    .stButton > button {
        border-radius: 8px;
        padding: 0.4rem 1.2rem; font-weight: 500;
    }
    .deadline-card {
        background: white;
        border-left: 4px solid #dc2626;
        border-radius: 8px; padding: 0.6rem 0.8rem; margin: 0.4rem 0;
    }
    .over-limit { color: #dc2626; font-weight: 700; }
</style>
"""

KIND_ICONS = {
    DeadlineKind.TASK: "📝",
    DeadlineKind.ES: "📄",
    DeadlineKind.WEBTEST: "💻",
}

KIND_LABELS = {
    DeadlineKind.TASK: "タスク",
    DeadlineKind.ES: "ES",
    DeadlineKind.WEBTEST: "Webテスト",
}


def apply_style():
    """Apply consistent styling."""
    st.markdown(BASE_CSS, unsafe_allow_html=True)


def stars(level: int) -> str:
    level = max(0, min(5, level or 0))
    return "★" * level + "☆" * (5 - level)


def report_error(error: Exception, action: str) -> None:
    """Show a provider/validation failure once; nothing is fatal."""
    if isinstance(error, LoginRequiredError):
        st.warning(f"{error} サイドバーからログインしてください。")
    elif isinstance(error, ValidationError):
        st.error(str(error))
    elif isinstance(error, TrackerError):
        logger.error("%s failed: %s", action, error)
        st.error(f"{action}に失敗しました")
    else:
        raise error


SELECTED_COMPANY_KEY = "selected_company_id"


def open_company(company_id: str, page: str = "pages/1_company.py") -> None:
    st.session_state[SELECTED_COMPANY_KEY] = company_id
    st.switch_page(page)


def selected_company_id(company_ids: list) -> str:
    """The company picked on another page, else the first one."""
    current = st.session_state.get(SELECTED_COMPANY_KEY)
    return current if current in company_ids else company_ids[0]


def script_editor(repo, script, limit: int = DEFAULT_CHAR_LIMIT) -> None:
    """Edit/delete widget for an entry sheet or template, with a char count."""
    with st.container(border=True):
        theme = st.text_input("テーマ", value=script.theme, key=f"theme_{script.id}")
        content = st.text_area("内容", value=script.content, key=f"content_{script.id}", height=160)

        count = char_count(content, limit)
        css = "over-limit" if count.over else ""
        st.markdown(f'<span class="{css}">{count}</span>', unsafe_allow_html=True)

        col1, col2, _ = st.columns([1, 1, 4])
        with col1:
            if st.button("💾 保存", key=f"save_{script.id}"):
                try:
                    update_script(repo, script, theme, content)
                    st.rerun()
                except TrackerError as e:
                    report_error(e, "保存")
        with col2:
            if st.button("🗑️ 削除", key=f"delete_{script.id}"):
                try:
                    delete_script(repo, script)
                    st.rerun()
                except TrackerError as e:
                    report_error(e, "削除")
