"""追問生成用のツール.

日付計算・リスク判定・質問文の組み立てを行う決定的な処理群。
時刻はすべて引数で受け取る。
"""

import math
from datetime import datetime

from aligner.config import TIMEZONE
from aligner.inquiry.state import Inquiry
from aligner.workspace.schema import Memo, Milestone, Todo, TodoStatus

MAX_INQUIRIES = 3
STALE_ALIGN_HOURS = 5

_SECONDS_PER_DAY = 60 * 60 * 24
_SECONDS_PER_HOUR = 60 * 60

_STATUS_LABELS = {
    "completed": "已完成",
    "in_progress": "进行中",
}


def diff_in_days(now: datetime, due: datetime) -> int:
    """締め切りまでの日数（切り上げ）を計算."""
    return math.ceil((due - now).total_seconds() / _SECONDS_PER_DAY)


def is_same_day(a: datetime, b: datetime) -> bool:
    """TIMEZONE上で同じ日付かどうか."""
    return a.astimezone(TIMEZONE).date() == b.astimezone(TIMEZONE).date()


def is_overdue(due: datetime | None, now: datetime) -> bool:
    """期限切れかどうか.

    締め切り当日（時刻を問わず）は期限切れとみなさない。
    """
    if due is None:
        return False
    return due < now and not is_same_day(due, now)


def format_date(value: datetime) -> str:
    """日付を「月/日」形式に整形."""
    local = value.astimezone(TIMEZONE)
    return f"{local.month}/{local.day}"


def format_datetime(value: datetime) -> str:
    """日時を「月/日 時:分」形式に整形."""
    local = value.astimezone(TIMEZONE)
    return f"{local.month}/{local.day} {local.hour:02d}:{local.minute:02d}"


def map_status(status: TodoStatus) -> str:
    """Todoの状態を表示用ラベルに変換."""
    return _STATUS_LABELS.get(status, "未开始")


def is_milestone_at_risk(progress: int, days_to_due: int | None) -> bool:
    """マイルストーンが遅延リスクを抱えているか判定.

    - 締め切りなし: 進捗50%未満
    - 残り3日以内: 進捗90%未満
    - 残り7日以内: 進捗70%未満
    """
    if progress >= 100:
        return False
    if days_to_due is None:
        return progress < 50
    if days_to_due <= 3:
        return progress < 90
    if days_to_due <= 7:
        return progress < 70
    return False


def find_risky_milestones(
    milestones: list[Milestone], now: datetime
) -> list[tuple[Milestone, int | None]]:
    """リスクのあるマイルストーンを締め切りが近い順に返す.

    締め切りのないものは最後に並ぶ。

    Args:
        milestones: マイルストーン一覧
        now: 基準時刻

    Returns:
        list[tuple[Milestone, int | None]]: (マイルストーン, 残り日数)のリスト
    """
    candidates = []
    for milestone in milestones:
        days = diff_in_days(now, milestone.due_date) if milestone.due_date else None
        if is_milestone_at_risk(milestone.progress, days):
            candidates.append((milestone, days))
    return sorted(candidates, key=lambda item: math.inf if item[1] is None else item[1])


def find_attention_todos(todos: list[Todo], now: datetime) -> list[Todo]:
    """阻塞中のTodo、続いて期限切れのTodoを返す（完了済みは除く）.

    阻塞かつ期限切れのTodoは両方のリストに現れる。
    """
    blockers = [t for t in todos if t.is_blocker and t.status != "completed"]
    overdue = [
        t for t in todos if is_overdue(t.due_date, now) and t.status != "completed"
    ]
    return blockers + overdue


def find_stalest_memo(memos: list[Memo]) -> Memo | None:
    """最も長くレビューされていないメモを返す（未レビューは最古扱い）."""
    if not memos:
        return None
    return min(
        memos,
        key=lambda m: m.last_reviewed_at.timestamp() if m.last_reviewed_at else 0.0,
    )


def is_alignment_stale(last_align_at: datetime | None, now: datetime) -> bool:
    """前回の拉齐から5時間以上経過しているか."""
    if last_align_at is None:
        return False
    hours = math.floor((now - last_align_at).total_seconds() / _SECONDS_PER_HOUR)
    return hours >= STALE_ALIGN_HOURS


def todo_inquiry(todo: Todo) -> Inquiry:
    if todo.last_commitment:
        context = f"上次承诺：{todo.last_commitment}"
    else:
        context = f"状态：{map_status(todo.status)}"
    return Inquiry(
        question=f"「{todo.title}」目前进展如何？需要额外支持来解除阻塞吗？",
        context=context,
        priority=1,
    )


def milestone_inquiry(milestone: Milestone, days_to_due: int | None) -> Inquiry:
    if milestone.due_date:
        context = f"截止 {format_date(milestone.due_date)} 仅剩 {days_to_due} 天"
    else:
        context = "无明确截止时间"
    return Inquiry(
        question=(
            f"里程碑「{milestone.title}」当前进度 {milestone.progress}% ，"
            "按这个节奏能否完成目标？"
        ),
        context=context,
        priority=1,
    )


def risk_inquiry(risk: str) -> Inquiry:
    return Inquiry(
        question=f"关于提到的风险「{risk}」，现在的状况有没有变化？",
        context="风险追踪",
        priority=2,
    )


def context_change_inquiry(change: str) -> Inquiry:
    return Inquiry(
        question=f"由于「{change}」导致的变化，需要我们调整计划吗？",
        context="上下文变更",
        priority=2,
    )


def memo_inquiry(memo: Memo) -> Inquiry:
    return Inquiry(
        question=f"长记忆「{memo.key}」还保持有效吗？需要更新相关判断吗？",
        context=f"分类：{memo.category}" if memo.category else "长期记忆复核",
        priority=3,
    )


def stale_alignment_inquiry(last_align_at: datetime) -> Inquiry:
    return Inquiry(
        question="距离上次拉齐已经超过 5 小时，有没有新的进展需要同步？",
        context=f"上次拉齐：{format_datetime(last_align_at)}",
        priority=3,
    )
