"""ユーザーごとのTodo・マイルストーン・メモを保持するワークスペース."""

from aligner.workspace.store import STORE, AppliedUpdates, WorkspaceStore, get_store

__all__ = ["STORE", "AppliedUpdates", "WorkspaceStore", "get_store"]
