"""状態スキーマ定義.

拉齐（アラインメント）解析の入力・中間状態・出力のスキーマを定義。
"""

from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError


class Tag(str, Enum):
    """文の意味分類タグ.

    1つの文に複数のタグが付くことがある（排他的ではない）。
    """

    ACHIEVEMENT = "achievement"
    BLOCKER = "blocker"
    DECISION = "decision"
    MEMO = "memo"
    CONTEXT_CHANGE = "context-change"
    RISK = "risk"


class AlignRequest(BaseModel):
    """拉齐リクエスト."""

    text: str = Field(
        default="", validate_default=True, description="拉齐するフリーテキスト"
    )

    @field_validator("text")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError("empty_text", "请提供需要拉齐的文本")
        return value


class Parsed(BaseModel):
    """分類済みの文リスト."""

    achievements: list[str] = Field(default_factory=list, description="成果")
    blockers: list[str] = Field(default_factory=list, description="阻塞")
    decisions: list[str] = Field(default_factory=list, description="決定事項")


class MilestoneProgress(BaseModel):
    """マイルストーン進捗の更新."""

    id: str = Field(..., description="マイルストーン名のスラッグ")
    progress: int = Field(..., ge=0, le=100, description="進捗率")


class NewMemo(BaseModel):
    """新規メモ候補."""

    key: str = Field(..., description="メモキー（スラッグ）")
    content: str = Field(..., description="元の文")
    category: str | None = Field(default=None, description="goal または risk")


class Updates(BaseModel):
    """構造化された更新内容."""

    completed_todos: list[str] = Field(
        default_factory=list, description="完了と推定されたTodoのスラッグ"
    )
    milestone_progress: list[MilestoneProgress] = Field(
        default_factory=list, description="マイルストーン進捗"
    )
    new_memos: list[NewMemo] = Field(default_factory=list, description="新規メモ")


class Signals(BaseModel):
    """追問生成に使うシグナル."""

    risks: list[str] = Field(default_factory=list, description="リスク文")
    context_changes: list[str] = Field(
        default_factory=list, description="状況変化の文（リスク文を除く）"
    )


class AlignResult(BaseModel):
    """1回の拉齐解析の結果."""

    parsed: Parsed = Field(default_factory=Parsed)
    updates: Updates = Field(default_factory=Updates)
    signals: Signals = Field(default_factory=Signals)
    summary: str = Field(default="", description="人間向けの要約")


class AlignState(BaseModel):
    """拉齐解析ワークフローの状態.

    LangGraphのワークフローで共有される状態を定義。
    """

    # 入力
    text: str = Field(default="", description="拉齐するフリーテキスト")

    # 中間結果
    sentences: list[str] = Field(default_factory=list, description="分割された文")
    tags: list[frozenset[Tag]] = Field(
        default_factory=list, description="文ごとの分類タグ（sentencesと同じ順序）"
    )

    # 出力
    parsed: Parsed = Field(default_factory=Parsed)
    updates: Updates = Field(default_factory=Updates)
    signals: Signals = Field(default_factory=Signals)
    summary: str = Field(default="", description="人間向けの要約")
