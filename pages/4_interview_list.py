"""
Interview List Page - Prepared answers for interview questions
"""
import streamlit as st

from backend.errors import TrackerError
from backend.models import TemplateType
from backend.services import add_template
from core.session import init_session, show_user_sidebar
from core.ui import apply_style, report_error, script_editor

st.set_page_config(page_title="面接対策", page_icon="🎤", layout="wide")

apply_style()

ctx = init_session()
show_user_sidebar()

repo = ctx.repository
user_id = ctx.user_id

st.title("🎤 面接対策")

try:
    templates = repo.templates.list(
        order_by="created_at", user_id=user_id, type=TemplateType.INTERVIEW
    )
except TrackerError as e:
    report_error(e, "面接対策の取得")
    st.stop()

query = st.text_input("🔍 質問を検索")
if query.strip():
    templates = [
        t for t in templates
        if query.strip().lower() in t.theme.lower() or query.strip().lower() in t.content.lower()
    ]

if not templates:
    st.caption("登録された質問はありません")

for template in templates:
    script_editor(repo, template)

with st.expander("➕ 質問を追加", expanded=not templates):
    with st.form("add_interview_form", clear_on_submit=True):
        theme = st.text_input("質問", placeholder="学生時代に力を入れたことは？")
        content = st.text_area("回答", height=160)
        if st.form_submit_button("追加", use_container_width=True):
            try:
                add_template(repo, user_id, TemplateType.INTERVIEW, theme, content)
                st.rerun()
            except TrackerError as e:
                report_error(e, "質問の追加")
