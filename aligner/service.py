"""拉齐の一連の処理.

解析 → ワークスペースへの反映 → 追問生成 をまとめて実行する。
HTTP APIとSlack Botの両方から使う。
"""

from datetime import datetime

from pydantic import BaseModel

from aligner.alignment import AlignResult, parse_alignment
from aligner.inquiry import Inquiry, InquiryRequest, build_inquiries
from aligner.workspace import AppliedUpdates, WorkspaceStore, get_store


class AlignmentOutcome(BaseModel):
    """拉齐処理の結果."""

    result: AlignResult
    applied: AppliedUpdates
    inquiries: list[Inquiry]


def run_alignment(
    user_id: str, text: str, now: datetime, store: WorkspaceStore | None = None
) -> AlignmentOutcome:
    """拉齐テキストを解析・反映し、追問を生成.

    追問は今回の拉齐より前の拉齐日時を基準に判定する。

    Args:
        user_id: ユーザーID
        text: 拉齐テキスト
        now: 基準時刻
        store: 使用するストア（省略時は共有ストア）

    Returns:
        AlignmentOutcome: 解析結果・反映結果・追問

    Raises:
        pydantic.ValidationError: テキストが空の場合
    """
    store = store or get_store()
    result = parse_alignment(text)
    previous_align_at = store.last_align_at(user_id)
    applied = store.apply_alignment(user_id, text, result, now)

    snapshot = store.snapshot(user_id)
    request = InquiryRequest(
        todos=snapshot["todos"],
        milestones=snapshot["milestones"],
        memos=snapshot["memos"],
        signals=result.signals,
        last_align_at=previous_align_at,
    )
    return AlignmentOutcome(
        result=result, applied=applied, inquiries=build_inquiries(request, now)
    )
