"""
How To Use Page
"""
import streamlit as st

from core.session import init_session, show_user_sidebar
from core.ui import apply_style

st.set_page_config(page_title="使い方", page_icon="❓", layout="wide")

apply_style()
init_session()
show_user_sidebar()

st.title("❓ 使い方")

st.markdown("""
就活基地は、エントリーした企業・締切・ES・面接対策をひとつにまとめる就活管理ツールです。

### はじめに

ログインしていない間はデモデータが表示されます。サイドバーから新規登録・ログインすると、
自分のデータを保存できるようになります。

### ページ一覧

1. **ホーム** - 直近の締切と企業一覧。検索・業界での絞り込み・並び替えができます
2. **企業詳細** - 企業情報の編集、画像の登録、タスク、選考フローの管理
3. **企業分析** - 売上高や社風などの分析メモ。項目の追加・非表示もできます
4. **ES一覧** - 企業ごとのESと、使い回せるESテンプレート
5. **面接対策** - よく聞かれる質問と回答の準備
6. **アカウント設定** - プロフィール・メールアドレス・パスワードの変更

### 締切について

- サイドバーの締切には、タスク・ES締切・Webテスト締切がまとめて表示されます
- 通常は今日から7日以内の締切を近い順に最大5件表示します
- 「全て表示」をオンにすると、今日以降のすべての締切を表示します
- タスクは ✓ ボタンで完了にできます。ES・Webテストの締切は企業詳細で変更してください

### データの書き出し

ホームの一番下から、企業一覧をCSVファイルとしてダウンロードできます。
マイページのID・パスワードは書き出されません。
""")
