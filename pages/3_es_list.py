"""
ES List Page - Entry sheets grouped by company, plus reusable ES templates
"""
import streamlit as st

from backend.errors import TrackerError
from backend.filtering import ALL_INDUSTRIES, SORT_LABELS, SortKey, company_view, group_entry_sheets, industry_options
from backend.models import TemplateType
from backend.services import add_entry_sheet, add_template
from core.session import init_session, show_user_sidebar
from core.ui import apply_style, report_error, script_editor

st.set_page_config(page_title="ES一覧", page_icon="📄", layout="wide")

apply_style()

ctx = init_session()
show_user_sidebar()

repo = ctx.repository
user_id = ctx.user_id

st.title("📄 ES一覧")

try:
    companies = repo.list_companies(user_id)
    entry_sheets = repo.entry_sheets.list(order_by="created_at", user_id=user_id)
    templates = repo.templates.list(order_by="created_at", user_id=user_id, type=TemplateType.ES)
except TrackerError as e:
    report_error(e, "ESの取得")
    st.stop()

tab_es, tab_templates = st.tabs(["企業別ES", "テンプレート"])

with tab_es:
    col1, col2, col3 = st.columns([3, 2, 2])
    with col1:
        query = st.text_input("🔍 企業を検索", placeholder="企業名・業界・所在地")
    with col2:
        industry = st.selectbox(
            "業界", industry_options(companies),
            format_func=lambda v: "すべて" if v == ALL_INDUSTRIES else v,
        )
    with col3:
        sort_key = st.selectbox("並び順", list(SortKey), format_func=SORT_LABELS.get)

    groups = group_entry_sheets(company_view(companies, query, industry, sort_key), entry_sheets)
    if not groups:
        st.caption("ESはまだありません")

    for group in groups:
        with st.expander(f"{group.company.name}（{len(group.entries)}件）"):
            for sheet in group.entries:
                script_editor(repo, sheet)

    if companies:
        with st.expander("➕ ESを追加"):
            with st.form("add_es_form", clear_on_submit=True):
                names = {c.id: c.name for c in companies}
                company_id = st.selectbox("企業", list(names), format_func=names.get)
                theme = st.text_input("テーマ", placeholder="志望動機")
                content = st.text_area("内容", height=160)
                if st.form_submit_button("追加", use_container_width=True):
                    try:
                        add_entry_sheet(repo, user_id, company_id, theme, content)
                        st.rerun()
                    except TrackerError as e:
                        report_error(e, "ESの追加")

with tab_templates:
    if not templates:
        st.caption("テンプレートはまだありません")
    for template in templates:
        script_editor(repo, template)

    with st.expander("➕ テンプレートを追加"):
        with st.form("add_es_template_form", clear_on_submit=True):
            theme = st.text_input("テーマ", placeholder="自己PR")
            content = st.text_area("内容", height=160)
            if st.form_submit_button("追加", use_container_width=True):
                try:
                    add_template(repo, user_id, TemplateType.ES, theme, content)
                    st.rerun()
                except TrackerError as e:
                    report_error(e, "テンプレートの追加")
