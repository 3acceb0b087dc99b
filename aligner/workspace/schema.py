"""ワークスペースのエンティティスキーマ.

Todo・マイルストーン・メモ・対話記録をPydanticモデルで定義する。
JSONのキーはキャメルケース（dueDate など）も受け付ける。
"""

from datetime import date, datetime, time
from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from aligner.config import TIMEZONE

TodoStatus = Literal["pending", "in_progress", "completed"]
Priority = Literal["low", "medium", "high", "urgent"]


def to_local_datetime(value: object) -> datetime | None:
    """日時を設定タイムゾーン付きのdatetimeに変換.

    ISO 8601の日時文字列・日付のみの文字列・date/datetimeを受け付ける。
    タイムゾーンを持たない値は TIMEZONE のローカル時刻とみなす。

    Args:
        value: 変換する値

    Returns:
        datetime | None: タイムゾーン付きdatetime。空の場合はNone

    Raises:
        ValueError: 日時として解釈できない場合
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip())
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time())
    if not isinstance(value, datetime):
        raise ValueError(f"日時として解釈できません: {value!r}")
    if value.tzinfo is None:
        value = value.replace(tzinfo=TIMEZONE)
    return value


LocalDateTime = Annotated[datetime | None, BeforeValidator(to_local_datetime)]


class Todo(BaseModel):
    """Todoアイテム."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="TodoのID")
    title: str = Field(..., description="Todoのタイトル")
    status: TodoStatus = Field(..., description="進行状態")
    due_date: LocalDateTime = Field(default=None, alias="dueDate", description="締め切り")
    is_blocker: bool = Field(
        default=False, alias="isBlocker", description="ブロッカー（阻塞）かどうか"
    )
    last_commitment: str | None = Field(
        default=None, alias="lastCommitment", description="前回のコミットメント"
    )
    description: str | None = Field(default=None, description="詳細説明")
    priority: Priority = Field(default="medium", description="優先度")
    completed_at: LocalDateTime = Field(
        default=None, alias="completedAt", description="完了日時"
    )


class Milestone(BaseModel):
    """マイルストーン."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="マイルストーンのID")
    title: str = Field(..., description="マイルストーンのタイトル")
    progress: int = Field(default=0, ge=0, le=100, description="進捗率（0-100）")
    due_date: LocalDateTime = Field(default=None, alias="dueDate", description="締め切り")
    target: str | None = Field(default=None, description="目標の説明")
    description: str | None = Field(default=None, description="詳細説明")
    priority: Priority = Field(default="medium", description="優先度")


class Memo(BaseModel):
    """長期記憶メモ."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="メモのID")
    key: str = Field(..., description="メモの一意キー（スラッグ）")
    content: str = Field(..., description="メモの内容")
    category: str | None = Field(default=None, description="分類（goal, risk など）")
    last_reviewed_at: LocalDateTime = Field(
        default=None, alias="lastReviewedAt", description="最終レビュー日時"
    )


class Interaction(BaseModel):
    """対話記録."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: Literal["align", "plan"] = "align"
    user_input: str = Field(..., alias="userInput")
    ai_response: str = Field(..., alias="aiResponse")
    created_at: LocalDateTime = Field(default=None, alias="createdAt")
