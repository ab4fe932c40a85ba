"""
Company Analysis Page - Research notes per company, with user-defined fields
"""
import streamlit as st

from backend.analysis import (
    BUILTIN_FIELDS,
    TAB_LABELS,
    add_custom_field,
    analysis_values,
    delete_custom_field,
    hidden_fields,
    load_custom_fields,
    save_analysis,
    toggle_hidden_field,
    visible_fields,
)
from backend.errors import TrackerError
from backend.models import TabCategory
from core.session import init_session, show_user_sidebar
from core.ui import SELECTED_COMPANY_KEY, apply_style, report_error, selected_company_id

st.set_page_config(page_title="企業分析", page_icon="📊", layout="wide")

apply_style()

ctx = init_session()
show_user_sidebar()

repo = ctx.repository
user_id = ctx.user_id

st.title("📊 企業分析")

try:
    companies = repo.list_companies(user_id)
    custom_fields = load_custom_fields(repo, user_id)
    hidden_keys = repo.hidden_field_keys(user_id)
except TrackerError as e:
    report_error(e, "分析データの取得")
    st.stop()

if not companies:
    st.info("企業が登録されていません。ホームから追加してください。")
    st.stop()

names = {c.id: c.name for c in companies}
ids = list(names)
company_id = st.selectbox(
    "企業を選択", ids, index=ids.index(selected_company_id(ids)), format_func=names.get
)
st.session_state[SELECTED_COMPANY_KEY] = company_id
company = next(c for c in companies if c.id == company_id)

try:
    custom_values = repo.custom_values(company.id)
except TrackerError as e:
    report_error(e, "カスタム項目の取得")
    custom_values = {}

values = analysis_values(company)
edited_values = {}
edited_custom = {}

with st.form("analysis_form"):
    tabs = st.tabs([TAB_LABELS[tab] for tab in TabCategory])
    for tab, container in zip(TabCategory, tabs):
        with container:
            if tab is TabCategory.MEMO:
                personal_memo = st.text_area(
                    "自由メモ", value=company.personal_analysis_memo or "", height=300
                )
                continue
            for field in visible_fields(tab, hidden_keys, custom_fields):
                if field.custom:
                    edited_custom[field.key] = st.text_area(
                        f"{field.label} ✏️", value=custom_values.get(field.key, ""),
                        key=f"custom_{company.id}_{field.key}", height=80,
                    )
                else:
                    edited_values[field.key] = st.text_area(
                        field.label, value=values[field.key],
                        key=f"field_{company.id}_{field.key}", height=80,
                    )

    if st.form_submit_button("💾 分析を保存", use_container_width=True):
        try:
            save_analysis(repo, company.id, edited_values, personal_memo, edited_custom)
            st.success("保存しました")
            st.rerun()
        except TrackerError as e:
            report_error(e, "分析の保存")

# ============ Field management ============

with st.expander("⚙️ 項目の管理"):
    tab = st.radio(
        "タブ",
        list(BUILTIN_FIELDS),
        format_func=TAB_LABELS.get,
        horizontal=True,
    )

    st.markdown("**表示中の項目**")
    for field in visible_fields(tab, hidden_keys, custom_fields):
        col1, col2 = st.columns([4, 1])
        with col1:
            st.markdown(f"{field.label}{' (カスタム)' if field.custom else ''}")
        with col2:
            if field.custom:
                if st.button("削除", key=f"delete_{field.key}"):
                    target = next(f for f in custom_fields if f.id == field.field_id)
                    try:
                        delete_custom_field(repo, target)
                        st.rerun()
                    except TrackerError as e:
                        report_error(e, "項目の削除")
            elif st.button("非表示", key=f"hide_{field.key}"):
                try:
                    toggle_hidden_field(repo, user_id, field.key, hidden_keys)
                    st.rerun()
                except TrackerError as e:
                    report_error(e, "項目の非表示")

    hidden = hidden_fields(tab, hidden_keys)
    if hidden:
        st.markdown("**非表示の項目**")
        for field in hidden:
            col1, col2 = st.columns([4, 1])
            with col1:
                st.markdown(f"~~{field.label}~~")
            with col2:
                if st.button("表示", key=f"show_{field.key}"):
                    try:
                        toggle_hidden_field(repo, user_id, field.key, hidden_keys)
                        st.rerun()
                    except TrackerError as e:
                        report_error(e, "項目の表示")

    with st.form("add_field_form", clear_on_submit=True):
        field_name = st.text_input("新しい項目名")
        if st.form_submit_button("項目を追加"):
            try:
                add_custom_field(repo, user_id, field_name, tab, len(custom_fields))
                st.rerun()
            except TrackerError as e:
                report_error(e, "項目の追加")
