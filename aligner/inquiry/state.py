"""状態スキーマ定義.

追問（Inquiry）生成で使用する入力・出力・中間状態のスキーマを定義。
"""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from aligner.alignment.state import Signals
from aligner.workspace.schema import LocalDateTime, Memo, Milestone, Todo


class Inquiry(BaseModel):
    """追問.

    priority は 1 が最も緊急（阻塞・期限切れ）、3 が定期的な振り返り。
    """

    question: str = Field(..., description="ユーザーへの質問")
    context: str = Field(..., description="質問の背景")
    priority: Literal[1, 2, 3] = Field(..., description="優先度（1が最優先）")


class InquiryRequest(BaseModel):
    """追問生成リクエスト（現在のエンティティのスナップショット）."""

    model_config = ConfigDict(populate_by_name=True)

    todos: list[Todo] = Field(default_factory=list)
    milestones: list[Milestone] = Field(default_factory=list)
    memos: list[Memo] = Field(default_factory=list)
    signals: Signals = Field(default_factory=Signals)
    last_align_at: LocalDateTime = Field(
        default=None, alias="lastAlignAt", description="前回の拉齐日時"
    )


def add_inquiries(existing: list[Inquiry], new: list[Inquiry]) -> list[Inquiry]:
    """追問リストを追加するリデューサー."""
    return existing + new


class InquiryState(InquiryRequest):
    """追問生成ワークフローの状態スキーマ.

    LangGraphのワークフローで共有される状態を定義。
    """

    # 基準時刻（壁時計は読まない）
    now: datetime = Field(..., description="判定の基準時刻")

    # 出力
    inquiries: Annotated[list[Inquiry], add_inquiries] = Field(
        default_factory=list, description="生成された追問（優先順）"
    )
