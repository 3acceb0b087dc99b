"""LangGraphワークフロー定義.

追問生成のルールを優先順に並べたグラフを構築。
"""

from collections.abc import Iterable
from datetime import datetime

from langgraph.graph import END, StateGraph

from aligner.alignment.state import Signals
from aligner.inquiry.nodes import (
    blocked_todos_node,
    context_change_node,
    risk_signal_node,
    risky_milestones_node,
    route_by_budget,
    since_last_align_node,
    stale_memo_node,
)
from aligner.inquiry.state import Inquiry, InquiryRequest, InquiryState
from aligner.inquiry.tools import MAX_INQUIRIES
from aligner.workspace.schema import Memo, Milestone, Todo, to_local_datetime

# ルールの優先順
_RULES = (
    ("blocked_todos", blocked_todos_node),
    ("risky_milestones", risky_milestones_node),
    ("risk_signal", risk_signal_node),
    ("context_change", context_change_node),
    ("stale_memo", stale_memo_node),
    ("since_last_align", since_last_align_node),
)


def compile_graph() -> StateGraph:
    """追問生成のワークフローグラフをコンパイル.

    ワークフロー:
    1. blocked_todos: 阻塞中・期限切れのTodo
    2. risky_milestones: 遅延リスクのあるマイルストーン
    3. risk_signal: リスクシグナル
    4. context_change: 状況変化シグナル
    5. stale_memo: 長くレビューされていないメモ
    6. since_last_align: 前回の拉齐からの経過時間

    各ノードの後で枠（3件）が埋まっていれば終了する。

    Returns:
        StateGraph: コンパイル済みのグラフ
    """
    workflow = StateGraph(InquiryState)

    # ノードの追加
    for name, node in _RULES:
        workflow.add_node(name, node)

    # エッジの定義
    workflow.set_entry_point(_RULES[0][0])
    for (name, _), (next_name, _) in zip(_RULES, _RULES[1:]):
        workflow.add_conditional_edges(
            name,
            route_by_budget,
            {
                "continue": next_name,
                "end": END,
            },
        )
    workflow.add_edge(_RULES[-1][0], END)

    return workflow.compile()


# コンパイル済みグラフのエクスポート
app = compile_graph()


def build_inquiries(request: InquiryRequest, now: datetime) -> list[Inquiry]:
    """検証済みのスナップショットから追問を生成.

    Args:
        request: エンティティのスナップショット
        now: 基準時刻

    Returns:
        list[Inquiry]: 最大3件の追問（優先順）
    """
    initial_state = InquiryState(
        todos=request.todos,
        milestones=request.milestones,
        memos=request.memos,
        signals=request.signals,
        last_align_at=request.last_align_at,
        now=to_local_datetime(now),
    )
    result = app.invoke(initial_state)
    inquiries = [Inquiry.model_validate(item) for item in result.get("inquiries", [])]
    return inquiries[:MAX_INQUIRIES]


def rank_inquiries(
    todos: Iterable[Todo | dict] = (),
    milestones: Iterable[Milestone | dict] = (),
    memos: Iterable[Memo | dict] = (),
    signals: Signals | dict | None = None,
    last_align_at: datetime | str | None = None,
    *,
    now: datetime,
) -> list[Inquiry]:
    """現在の状態から、価値の高い追問を最大3件選ぶ.

    Args:
        todos: Todo一覧
        milestones: マイルストーン一覧
        memos: メモ一覧
        signals: リスク・状況変化シグナル
        last_align_at: 前回の拉齐日時
        now: 基準時刻

    Returns:
        list[Inquiry]: 追問リスト

    Raises:
        pydantic.ValidationError: 入力がスキーマに違反する場合
    """
    request = InquiryRequest.model_validate(
        {
            "todos": list(todos),
            "milestones": list(milestones),
            "memos": list(memos),
            "signals": signals if signals is not None else Signals(),
            "last_align_at": last_align_at,
        }
    )
    return build_inquiries(request, now)
