"""
就活基地 - Main Streamlit Entry Point
Upcoming deadlines and the company list.
"""
import pandas as pd
import streamlit as st

from backend.dates import format_long, format_short, remaining_label
from backend.deadlines import complete_task, load_company_deadlines, load_upcoming_deadlines
from backend.errors import TrackerError
from backend.export import get_csv_bytes
from backend.models import DeadlineKind
from backend.filtering import ALL_INDUSTRIES, SORT_LABELS, SortKey, company_view, industry_options
from backend.services import add_company, add_task
from core.session import init_session, show_user_sidebar
from core.ui import KIND_ICONS, KIND_LABELS, apply_style, open_company, report_error, stars

st.set_page_config(
    page_title="就活基地",
    page_icon="🏢",
    layout="wide",
    initial_sidebar_state="expanded",
)

apply_style()

ctx = init_session()
show_user_sidebar()

repo = ctx.repository
user_id = ctx.user_id
today = ctx.today()

st.title("🏢 就活基地")
if not ctx.is_authenticated:
    st.info("デモデータを表示中です。ログインすると自分のデータを管理できます。")

try:
    companies = repo.list_companies(user_id)
except TrackerError as e:
    report_error(e, "企業一覧の取得")
    companies = []

# ============ Deadlines sidebar ============

with st.sidebar:
    st.subheader("⏰ 締切")
    show_all = st.toggle("全て表示", value=False, help="オフのときは直近の締切のみ表示します")

    try:
        deadlines = load_upcoming_deadlines(
            repo,
            user_id,
            today,
            show_all=show_all,
            window_days=ctx.settings.deadline_window_days,
            limit=ctx.settings.upcoming_limit,
        )
    except TrackerError as e:
        report_error(e, "締切の取得")
        deadlines = []

    if not deadlines:
        st.caption("締切はありません")

    for item in deadlines:
        col1, col2 = st.columns([5, 1])
        with col1:
            company = f" ({item.company_name})" if item.company_name else ""
            st.markdown(
                f"{KIND_ICONS[item.type]} **{format_short(item.due_date)}** {item.title}{company}"
            )
            st.caption(f"{KIND_LABELS[item.type]}・{remaining_label(item.due_date, today)}")
        with col2:
            if st.button("✓", key=f"done_{item.id}", disabled=item.type is not DeadlineKind.TASK,
                         help="完了にする"):
                try:
                    complete_task(repo, item.ref)
                    st.rerun()
                except TrackerError as e:
                    report_error(e, "タスクの更新")

    with st.expander("➕ タスクを追加"):
        with st.form("add_task_form", clear_on_submit=True):
            title = st.text_input("タスク名")
            due = st.date_input("期限", value=None)
            options = {"": "(企業なし)"}
            options.update({c.id: c.name for c in companies})
            company_id = st.selectbox("企業", list(options), format_func=options.get)
            if st.form_submit_button("追加", use_container_width=True):
                try:
                    add_task(repo, user_id, title, due, company_id or None)
                    st.rerun()
                except TrackerError as e:
                    report_error(e, "タスクの追加")

# ============ Stats ============

if companies:
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("登録企業", len(companies))
    with col2:
        st.metric("ES締切あり", sum(1 for c in companies if c.es_deadline))
    with col3:
        st.metric("Webテストあり", sum(1 for c in companies if c.webtest_deadline))
    with col4:
        st.metric("志望度4以上", sum(1 for c in companies if c.motivation_level >= 4))

# ============ Company list ============

st.subheader("📋 企業一覧")

col1, col2, col3 = st.columns([3, 2, 2])
with col1:
    query = st.text_input("🔍 検索", placeholder="企業名・業界・所在地")
with col2:
    industries = industry_options(companies)
    industry = st.selectbox(
        "業界", industries, format_func=lambda v: "すべて" if v == ALL_INDUSTRIES else v
    )
with col3:
    sort_key = st.selectbox("並び順", list(SortKey), format_func=SORT_LABELS.get)

visible = company_view(companies, query, industry, sort_key)
st.caption(f"{len(visible)} / {len(companies)} 社")

for company in visible:
    header = f"{company.name}　{stars(company.motivation_level)}"
    with st.expander(header):
        col1, col2 = st.columns([3, 1])
        with col1:
            st.markdown(f"**業界:** {company.industry or '-'}　**所在地:** {company.location or '-'}")
            st.markdown(f"**選考状況:** {company.current_status or '-'}")
            st.markdown(
                f"**ES締切:** {format_long(company.es_deadline)}　"
                f"**Webテスト締切:** {format_long(company.webtest_deadline)}"
            )
        with col2:
            if company.image_url:
                st.image(company.image_url, width=120)
            if st.button("詳細を開く", key=f"open_{company.id}", use_container_width=True):
                open_company(company.id)

        # Loaded on demand
        if st.toggle("締切一覧を表示", key=f"deadlines_{company.id}"):
            try:
                items = load_company_deadlines(repo, user_id, company.id)
            except TrackerError as e:
                report_error(e, "締切の取得")
                items = []
            if not items:
                st.caption("締切はありません")
            for item in items:
                mark = "✅" if item.completed else KIND_ICONS[item.type]
                st.markdown(
                    f"- {mark} {format_long(item.due_date)} {KIND_LABELS[item.type]} {item.title}"
                )

if not companies:
    st.info("まだ企業が登録されていません。下のフォームから追加してください。")

# ============ Add company ============

with st.expander("➕ 企業を追加", expanded=not companies):
    with st.form("add_company_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("企業名 *")
            new_industry = st.text_input("業界")
        with col2:
            location = st.text_input("所在地")
            website = st.text_input("Webサイト")
        description = st.text_area("概要", height=80)

        if st.form_submit_button("追加", use_container_width=True):
            try:
                company = add_company(repo, user_id, name, new_industry, website, location, description)
                st.success(f"{company.name} を追加しました")
                st.rerun()
            except TrackerError as e:
                report_error(e, "企業の追加")

# ============ Export ============

if companies:
    st.markdown("---")
    table = pd.DataFrame([
        {
            "企業名": c.name,
            "業界": c.industry,
            "選考状況": c.current_status or "",
            "志望度": c.motivation_level,
            "ES締切": format_long(c.es_deadline),
        }
        for c in visible
    ])
    st.dataframe(table, use_container_width=True, hide_index=True)

    st.download_button(
        "📥 CSVをダウンロード",
        data=get_csv_bytes(companies),
        file_name="companies.csv",
        mime="text/csv",
    )
