"""Alignment Agent.

フリーテキストの状況報告（拉齐）を解析し、
完了Todo・マイルストーン進捗・メモ候補・シグナルに変換する。
"""

from aligner.alignment.graph import compile_graph, parse_alignment
from aligner.alignment.state import AlignResult
from aligner.alignment.tools import slugify

__all__ = ["AlignResult", "compile_graph", "parse_alignment", "slugify"]
