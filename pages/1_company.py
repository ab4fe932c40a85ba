"""
Company Page - View and edit one company, its tasks and selection flow
"""
import streamlit as st

from backend.dates import format_long
from backend.errors import TrackerError
from backend.services import (
    PRESET_STEPS,
    add_selection_step,
    add_task,
    company_form,
    delete_company,
    delete_selection_step,
    delete_task,
    list_company_tasks,
    move_selection_step,
    save_company,
    save_step_memo,
    set_task_completed,
)
from core.session import init_session, show_user_sidebar
from core.ui import SELECTED_COMPANY_KEY, apply_style, open_company, report_error, selected_company_id, stars

st.set_page_config(page_title="企業詳細", page_icon="🏢", layout="wide")

apply_style()

ctx = init_session()
show_user_sidebar()

repo = ctx.repository
user_id = ctx.user_id

st.title("🏢 企業詳細")

try:
    companies = repo.list_companies(user_id)
except TrackerError as e:
    report_error(e, "企業一覧の取得")
    st.stop()

if not companies:
    st.info("企業が登録されていません。ホームから追加してください。")
    st.stop()

names = {c.id: c.name for c in companies}
ids = list(names)
company_id = st.selectbox(
    "企業を選択",
    ids,
    index=ids.index(selected_company_id(ids)),
    format_func=names.get,
)
st.session_state[SELECTED_COMPANY_KEY] = company_id
company = next(c for c in companies if c.id == company_id)

# ============ Header ============

col1, col2 = st.columns([1, 3])
with col1:
    if company.image_url:
        st.image(company.image_url, use_container_width=True)
    else:
        st.markdown("🖼️ 画像なし")
with col2:
    st.subheader(company.name)
    st.markdown(f"{stars(company.motivation_level)}　{company.industry or ''}")
    if company.website:
        st.markdown(f"🔗 [{company.website}]({company.website})")
    st.markdown(f"**次回選考日:** {format_long(company.next_selection_date)}")
    if st.button("📊 企業分析を開く"):
        open_company(company.id, "pages/2_company_analysis.py")

tab_info, tab_tasks, tab_steps = st.tabs(["📝 基本情報", "✅ タスク", "🪜 選考フロー"])

# ============ Edit form ============

with tab_info:
    uploaded = st.file_uploader("企業画像を変更", type=["png", "jpg", "jpeg", "gif", "webp"])
    if uploaded is not None and st.button("画像をアップロード"):
        try:
            url = repo.replace_company_image(
                user_id, company, uploaded.name, uploaded.getvalue(), uploaded.type or "image/png"
            )
            save_company(repo, company.id, {"image_url": url})
            st.success("画像を更新しました")
            st.rerun()
        except TrackerError as e:
            report_error(e, "画像のアップロード")

    form = company_form(company)
    with st.form("edit_company_form"):
        col1, col2 = st.columns(2)
        with col1:
            form["name"] = st.text_input("企業名 *", value=form["name"])
            form["industry"] = st.text_input("業界", value=form["industry"])
            form["location"] = st.text_input("所在地", value=form["location"])
            form["website"] = st.text_input("Webサイト", value=form["website"])
            form["current_status"] = st.text_input("選考状況", value=form["current_status"])
            form["motivation_level"] = st.slider("志望度", 1, 5, value=form["motivation_level"])
        with col2:
            form["next_selection_date"] = st.date_input("次回選考日", value=form["next_selection_date"])
            form["es_deadline"] = st.date_input("ES締切", value=form["es_deadline"])
            form["webtest_deadline"] = st.date_input("Webテスト締切", value=form["webtest_deadline"])
            form["webtest_format"] = st.text_input("Webテスト形式", value=form["webtest_format"])
            form["mypage_id"] = st.text_input("マイページID", value=form["mypage_id"])
            form["mypage_password"] = st.text_input(
                "マイページパスワード", value=form["mypage_password"], type="password"
            )
        form["selection_process"] = st.text_area("選考プロセス", value=form["selection_process"], height=80)
        form["memo"] = st.text_area("メモ", value=form["memo"], height=120)

        if st.form_submit_button("💾 保存", use_container_width=True):
            try:
                save_company(repo, company.id, form)
                st.success("保存しました")
                st.rerun()
            except TrackerError as e:
                report_error(e, "企業情報の保存")

    with st.expander("🗑️ 企業を削除"):
        st.warning("タスク・選考フロー・ESもすべて削除されます。")
        confirm = st.checkbox("削除することを確認しました")
        if st.button("削除する", disabled=not confirm):
            try:
                delete_company(repo, company)
                st.session_state.pop(SELECTED_COMPANY_KEY, None)
                st.switch_page("app.py")
            except TrackerError as e:
                report_error(e, "企業の削除")

# ============ Tasks ============

with tab_tasks:
    try:
        tasks = list_company_tasks(repo, user_id, company.id)
    except TrackerError as e:
        report_error(e, "タスクの取得")
        tasks = []

    with st.form("add_company_task", clear_on_submit=True):
        col1, col2, col3 = st.columns([3, 2, 1])
        with col1:
            title = st.text_input("タスク名", label_visibility="collapsed", placeholder="タスク名")
        with col2:
            due = st.date_input("期限", value=None, label_visibility="collapsed")
        with col3:
            if st.form_submit_button("追加"):
                try:
                    add_task(repo, user_id, title, due, company.id)
                    st.rerun()
                except TrackerError as e:
                    report_error(e, "タスクの追加")

    if not tasks:
        st.caption("タスクはありません")

    for task in tasks:
        col1, col2, col3 = st.columns([4, 2, 1])
        with col1:
            done = st.checkbox(task.title, value=task.completed, key=f"task_{task.id}")
            if done != task.completed:
                try:
                    set_task_completed(repo, task.id, done)
                    st.rerun()
                except TrackerError as e:
                    report_error(e, "タスクの更新")
        with col2:
            st.caption(format_long(task.due_date))
        with col3:
            if st.button("🗑️", key=f"del_task_{task.id}"):
                try:
                    delete_task(repo, task.id)
                    st.rerun()
                except TrackerError as e:
                    report_error(e, "タスクの削除")

# ============ Selection flow ============

with tab_steps:
    try:
        steps = repo.list_steps(company.id)
    except TrackerError as e:
        report_error(e, "選考フローの取得")
        steps = []

    col1, col2 = st.columns([3, 1])
    with col1:
        preset = st.selectbox("ステップを追加", ["(自由入力)"] + PRESET_STEPS)
        custom_name = st.text_input("ステップ名", disabled=preset != "(自由入力)")
    with col2:
        st.write("")
        if st.button("追加", key="add_step", use_container_width=True):
            step_name = custom_name if preset == "(自由入力)" else preset
            try:
                add_selection_step(repo, company.id, steps, step_name)
                st.rerun()
            except TrackerError as e:
                report_error(e, "ステップの追加")

    for i, step in enumerate(steps):
        with st.container(border=True):
            col1, col2, col3, col4 = st.columns([5, 1, 1, 1])
            with col1:
                st.markdown(f"**{i + 1}. {step.step_name}**")
            for col, direction, label in ((col2, "up", "⬆️"), (col3, "down", "⬇️")):
                with col:
                    if st.button(label, key=f"{direction}_{step.id}"):
                        try:
                            if move_selection_step(repo, steps, step.id, direction):
                                st.rerun()
                        except TrackerError as e:
                            report_error(e, "並び替え")
            with col4:
                if st.button("🗑️", key=f"del_step_{step.id}"):
                    try:
                        delete_selection_step(repo, step.id)
                        st.rerun()
                    except TrackerError as e:
                        report_error(e, "ステップの削除")

            memo = st.text_area("メモ", value=step.memo, key=f"memo_{step.id}", height=68)
            if memo != step.memo and st.button("メモを保存", key=f"save_memo_{step.id}"):
                try:
                    save_step_memo(repo, step.id, memo)
                    st.rerun()
                except TrackerError as e:
                    report_error(e, "メモの保存")
