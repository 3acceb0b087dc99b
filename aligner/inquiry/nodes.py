"""追問生成のノード関数.

各ルールを優先順に1ノードずつ実装する。
どのノードも残り枠（最大3件）を超えて追問を追加しない。
"""

import logging
from typing import Literal

from aligner.inquiry.state import Inquiry, InquiryState
from aligner.inquiry.tools import (
    MAX_INQUIRIES,
    context_change_inquiry,
    find_attention_todos,
    find_risky_milestones,
    find_stalest_memo,
    is_alignment_stale,
    memo_inquiry,
    milestone_inquiry,
    risk_inquiry,
    stale_alignment_inquiry,
    todo_inquiry,
)

logger = logging.getLogger(__name__)


def _remaining(state: InquiryState) -> int:
    return max(0, MAX_INQUIRIES - len(state.inquiries))


def _fill(state: InquiryState, candidates: list[Inquiry]) -> dict:
    return {"inquiries": candidates[: _remaining(state)]}


def blocked_todos_node(state: InquiryState) -> dict:
    """阻塞中・期限切れのTodoについて追問（優先度1）.

    Args:
        state: 現在の状態

    Returns:
        更新された状態の部分辞書
    """
    todos = find_attention_todos(state.todos, state.now)
    logger.debug(f"{len(todos)} blocked or overdue todos")
    return _fill(state, [todo_inquiry(todo) for todo in todos])


def risky_milestones_node(state: InquiryState) -> dict:
    """遅延リスクのあるマイルストーンについて追問（優先度1）.

    Args:
        state: 現在の状態

    Returns:
        更新された状態の部分辞書
    """
    milestones = find_risky_milestones(state.milestones, state.now)
    logger.debug(f"{len(milestones)} milestones at risk")
    return _fill(
        state, [milestone_inquiry(milestone, days) for milestone, days in milestones]
    )


def risk_signal_node(state: InquiryState) -> dict:
    """最初のリスクシグナルについて追問（優先度2）."""
    if not state.signals.risks:
        return {}
    return _fill(state, [risk_inquiry(state.signals.risks[0])])


def context_change_node(state: InquiryState) -> dict:
    """最初の状況変化シグナルについて追問（優先度2）."""
    if not state.signals.context_changes:
        return {}
    return _fill(state, [context_change_inquiry(state.signals.context_changes[0])])


def stale_memo_node(state: InquiryState) -> dict:
    """最も古いメモの見直しを追問（優先度3）."""
    memo = find_stalest_memo(state.memos)
    if memo is None:
        return {}
    return _fill(state, [memo_inquiry(memo)])


def since_last_align_node(state: InquiryState) -> dict:
    """前回の拉齐から時間が空いていれば近況を追問（優先度3）."""
    if not is_alignment_stale(state.last_align_at, state.now):
        return {}
    return _fill(state, [stale_alignment_inquiry(state.last_align_at)])


def route_by_budget(state: InquiryState) -> Literal["continue", "end"]:
    """残り枠があれば次のルールへ進む.

    Args:
        state: 現在の状態

    Returns:
        次の遷移先 ("continue" or "end")
    """
    return "continue" if _remaining(state) > 0 else "end"
