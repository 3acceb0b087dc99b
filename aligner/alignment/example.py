"""実行サンプル.

拉齐解析と追問生成の動作確認用スクリプト。
Slack連携なしでローカルで実行できる。
"""

from datetime import datetime, timedelta

from dotenv import load_dotenv

from aligner.config import TIMEZONE
from aligner.service import run_alignment
from aligner.workspace import get_store


def main() -> None:
    """サンプル実行."""
    load_dotenv()

    now = datetime.now(TIMEZONE)
    store = get_store()
    user_id = "demo_user"

    # サンプルのワークスペース
    store.add_todo(user_id, "登录页面")
    store.add_todo(user_id, "对接支付接口", is_blocker=True)
    store.add_milestone(user_id, "广告投放", due_date=now + timedelta(days=2))

    test_inputs = [
        "完成了登录页面。支付接口卡住了，担心赶不上上线！决定下周切换到新供应商",
        "广告投放里程碑进度提升到 55%\nmemo: 季度目标 每周复盘一次",
    ]

    for text in test_inputs:
        print("=" * 60)
        print(f"入力: {text}")
        print("-" * 60)

        outcome = run_alignment(user_id, text, now)
        print(f"要約: {outcome.result.summary}")

        if outcome.applied.completed_todos:
            print(f"完了: {', '.join(outcome.applied.completed_todos)}")
        if outcome.applied.updated_milestones:
            print(f"進捗更新: {', '.join(outcome.applied.updated_milestones)}")

        print("\n追問:")
        for inquiry in outcome.inquiries:
            print(f"  [{inquiry.priority}] {inquiry.question}（{inquiry.context}）")

        print()


if __name__ == "__main__":
    main()
