"""ワークスペースのデータストア.

ユーザーごとのTodo・マイルストーン・メモ・対話記録を保持する
インメモリ実装。拉齐結果の反映（スラッグ照合）もここで行う。
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, TypeVar
from uuid import uuid4

from pydantic import BaseModel, Field

from aligner.alignment.state import AlignResult
from aligner.alignment.tools import slugify
from aligner.workspace.schema import (
    Interaction,
    Memo,
    Milestone,
    Priority,
    Todo,
    to_local_datetime,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AppliedUpdates(BaseModel):
    """拉齐結果をワークスペースに反映した結果."""

    completed_todos: list[str] = Field(
        default_factory=list, description="完了にしたTodoのタイトル"
    )
    updated_milestones: list[str] = Field(
        default_factory=list, description="進捗を更新したマイルストーンのタイトル"
    )
    saved_memos: list[str] = Field(default_factory=list, description="保存したメモのキー")
    unmatched_todos: list[str] = Field(
        default_factory=list, description="一致するTodoがなかったスラッグ"
    )
    unmatched_milestones: list[str] = Field(
        default_factory=list, description="一致するマイルストーンがなかったスラッグ"
    )


@dataclass
class _UserData:
    todos: dict[str, Todo] = field(default_factory=dict)
    milestones: dict[str, Milestone] = field(default_factory=dict)
    memos: dict[str, Memo] = field(default_factory=dict)
    interactions: list[Interaction] = field(default_factory=list)
    last_align_at: datetime | None = None


def _new_id() -> str:
    return uuid4().hex


def _contains(text: str, keyword: str) -> bool:
    return keyword.lower() in text.lower()


def find_by_slug(items: list[T], slug: str, label: Callable[[T], str]) -> T | None:
    """スラッグに一致する要素を探す.

    1. ラベルのスラッグが完全一致
    2. ラベルのスラッグがスラッグを含む
    3. スラッグがラベルのスラッグを含む

    の順に判定する。

    Args:
        items: 候補のリスト
        slug: 抽出されたスラッグ
        label: 要素からラベルを取り出す関数

    Returns:
        T | None: 一致した要素。見つからない場合はNone
    """
    if not slug:
        return None
    slugged = [(item, slugify(label(item))) for item in items]
    for item, item_slug in slugged:
        if item_slug == slug:
            return item
    for item, item_slug in slugged:
        if item_slug and slug in item_slug:
            return item
    for item, item_slug in slugged:
        if item_slug and item_slug in slug:
            return item
    return None


class WorkspaceStore:
    """ユーザーごとのエンティティを保持するストア."""

    def __init__(self) -> None:
        self._users: dict[str, _UserData] = {}
        self._lock = threading.Lock()

    def _user(self, user_id: str) -> _UserData:
        return self._users.setdefault(user_id, _UserData())

    # ----- Todo -----

    def add_todo(
        self,
        user_id: str,
        title: str,
        description: str | None = None,
        is_blocker: bool = False,
        due_date: datetime | str | None = None,
        priority: Priority = "medium",
    ) -> Todo:
        todo = Todo(
            id=_new_id(),
            title=title,
            status="pending",
            description=description,
            is_blocker=is_blocker,
            due_date=due_date,
            priority=priority,
        )
        with self._lock:
            self._user(user_id).todos[todo.id] = todo
        return todo

    def list_todos(self, user_id: str) -> list[Todo]:
        with self._lock:
            return list(self._user(user_id).todos.values())

    def delete_todo(self, user_id: str, keyword: str) -> Todo | None:
        """タイトルにキーワードを含む最初のTodoを削除."""
        with self._lock:
            todos = self._user(user_id).todos
            for todo in todos.values():
                if _contains(todo.title, keyword):
                    return todos.pop(todo.id)
        return None

    @staticmethod
    def _complete(todos: dict[str, Todo], todo: Todo, now: datetime) -> Todo:
        completed = todo.model_copy(
            update={"status": "completed", "completed_at": to_local_datetime(now)}
        )
        todos[todo.id] = completed
        return completed

    # ----- Milestone -----

    def add_milestone(
        self,
        user_id: str,
        title: str,
        description: str | None = None,
        target: str | None = None,
        due_date: datetime | str | None = None,
        priority: Priority = "medium",
    ) -> Milestone:
        milestone = Milestone(
            id=_new_id(),
            title=title,
            description=description,
            target=target,
            due_date=due_date,
            priority=priority,
        )
        with self._lock:
            self._user(user_id).milestones[milestone.id] = milestone
        return milestone

    def list_milestones(self, user_id: str) -> list[Milestone]:
        with self._lock:
            return list(self._user(user_id).milestones.values())

    def delete_milestone(self, user_id: str, name: str) -> Milestone | None:
        with self._lock:
            milestones = self._user(user_id).milestones
            for milestone in milestones.values():
                if _contains(milestone.title, name):
                    return milestones.pop(milestone.id)
        return None

    @staticmethod
    def _set_progress(
        milestones: dict[str, Milestone], milestone: Milestone, progress: int
    ) -> Milestone:
        updated = milestone.model_copy(
            update={"progress": min(100, max(0, progress))}
        )
        milestones[milestone.id] = updated
        return updated

    # ----- Memo -----

    def save_memo(
        self,
        user_id: str,
        key: str,
        content: str,
        now: datetime,
        category: str | None = None,
    ) -> Memo:
        """メモを保存（同じキーがあれば上書き）し、レビュー日時を更新."""
        reviewed_at = to_local_datetime(now)
        with self._lock:
            memos = self._user(user_id).memos
            existing = memos.get(key)
            memo = Memo(
                id=existing.id if existing else _new_id(),
                key=key,
                content=content,
                category=category,
                last_reviewed_at=reviewed_at,
            )
            memos[key] = memo
        return memo

    def list_memos(self, user_id: str) -> list[Memo]:
        with self._lock:
            return list(self._user(user_id).memos.values())

    def delete_memo(self, user_id: str, keyword: str) -> Memo | None:
        with self._lock:
            memos = self._user(user_id).memos
            for key in list(memos):
                if _contains(key, keyword):
                    return memos.pop(key)
        return None

    # ----- Interaction -----

    def save_interaction(
        self,
        user_id: str,
        user_input: str,
        summary: str,
        now: datetime,
        kind: Literal["align", "plan"] = "align",
    ) -> Interaction:
        interaction = Interaction(
            id=_new_id(),
            type=kind,
            user_input=user_input,
            ai_response=summary,
            created_at=now,
        )
        with self._lock:
            self._user(user_id).interactions.append(interaction)
        return interaction

    def list_interactions(self, user_id: str) -> list[Interaction]:
        with self._lock:
            return list(self._user(user_id).interactions)

    # ----- 拉齐 -----

    def apply_alignment(
        self, user_id: str, text: str, result: AlignResult, now: datetime
    ) -> AppliedUpdates:
        """拉齐結果をワークスペースに反映.

        完了Todoとマイルストーンはタイトルのスラッグで照合する。
        新規メモはキーで上書き保存する。

        Args:
            user_id: ユーザーID
            text: 元の拉齐テキスト
            result: 解析結果
            now: 基準時刻

        Returns:
            AppliedUpdates: 反映結果
        """
        applied = AppliedUpdates()
        now = to_local_datetime(now)

        with self._lock:
            data = self._user(user_id)

            for slug in result.updates.completed_todos:
                open_todos = [t for t in data.todos.values() if t.status != "completed"]
                todo = find_by_slug(open_todos, slug, lambda t: t.title)
                if todo is None:
                    applied.unmatched_todos.append(slug)
                    continue
                self._complete(data.todos, todo, now)
                applied.completed_todos.append(todo.title)

            for update in result.updates.milestone_progress:
                milestone = find_by_slug(
                    list(data.milestones.values()), update.id, lambda m: m.title
                )
                if milestone is None:
                    applied.unmatched_milestones.append(update.id)
                    continue
                self._set_progress(data.milestones, milestone, update.progress)
                applied.updated_milestones.append(milestone.title)

            data.last_align_at = now

        for memo in result.updates.new_memos:
            self.save_memo(user_id, memo.key, memo.content, now, memo.category)
            applied.saved_memos.append(memo.key)

        self.save_interaction(user_id, text, result.summary, now)

        logger.info(
            f"Applied alignment for {user_id}: "
            f"{len(applied.completed_todos)} todos, "
            f"{len(applied.updated_milestones)} milestones, "
            f"{len(applied.saved_memos)} memos"
        )
        return applied

    def last_align_at(self, user_id: str) -> datetime | None:
        with self._lock:
            return self._user(user_id).last_align_at

    def snapshot(self, user_id: str) -> dict:
        """追問生成に渡すスナップショットを作成.

        Returns:
            dict: todos / milestones / memos / lastAlignAt を持つ辞書
        """
        return {
            "todos": self.list_todos(user_id),
            "milestones": self.list_milestones(user_id),
            "memos": self.list_memos(user_id),
            "lastAlignAt": self.last_align_at(user_id),
        }


# アプリケーション全体で共有するストア
STORE = WorkspaceStore()


def get_store() -> WorkspaceStore:
    """共有ストアを取得."""
    return STORE
