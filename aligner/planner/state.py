"""Plannerエージェントの状態スキーマ.

目標の分析結果と、提案されたTodoを管理するPydanticモデル。
"""

from typing import Literal

from pydantic import BaseModel, Field

from aligner.workspace.schema import Priority


class SuggestedTodo(BaseModel):
    """LLMが提案するTodo."""

    title: str = Field(description="Todoのタイトル。具体的で実行可能なもの")
    description: str = Field(default="", description="詳細な説明")
    priority: Priority = Field(
        default="medium", description="優先度（low, medium, high, urgent）"
    )
    estimated_hours: float | None = Field(
        default=None, description="見積もり時間（時間単位）"
    )


class TodoPlan(BaseModel):
    """LLM構造化出力用のTodo計画スキーマ."""

    todos: list[SuggestedTodo] = Field(
        default_factory=list,
        description="時系列または優先度順に並べた5〜8個のTodo",
    )


class PlannerState(BaseModel):
    """Plannerエージェントの状態.

    Attributes:
        user_id: Todoを保存するユーザーのID
        goal: ユーザーが表明した目標・計画
        context: 追加の背景情報
        analysis: LLMによる目標の分析テキスト
        suggested_todos: LLMが提案したTodo
        created_titles: ワークスペースに保存したTodoのタイトル
        status: 処理ステータス
        error_message: エラーメッセージ（失敗時のみ）
    """

    # Input
    user_id: str = Field(description="ユーザーID")
    goal: str = Field(description="ユーザーが表明した目標・計画")
    context: str | None = Field(default=None, description="追加の背景情報")

    # Intermediate
    analysis: str | None = Field(default=None, description="目標の分析テキスト")
    suggested_todos: list[SuggestedTodo] = Field(
        default_factory=list, description="提案されたTodo"
    )

    # Output
    created_titles: list[str] = Field(
        default_factory=list, description="保存したTodoのタイトル"
    )

    # Control
    status: Literal[
        "pending", "analyzing", "planning", "saving", "completed", "failed"
    ] = Field(default="pending", description="処理ステータス")
    error_message: str | None = Field(
        default=None, description="エラーメッセージ（失敗時のみ）"
    )
