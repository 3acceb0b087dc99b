"""拉齐テキスト解析ツール.

フリーテキストを文に分割し、キーワードで分類し、
完了Todo・マイルストーン進捗・メモ候補を抽出する決定的な処理群。
LLMは使用しない。
"""

import re
from collections.abc import Callable, Hashable, Iterable
from typing import TypeVar

from aligner.alignment.state import MilestoneProgress, NewMemo, Tag

T = TypeVar("T")

KEYWORDS: dict[Tag, tuple[str, ...]] = {
    Tag.ACHIEVEMENT: ("完成", "搞定", "实现", "交付", "上线"),
    Tag.BLOCKER: ("卡住", "阻塞", "问题", "困难", "风险", "挑战", "延迟"),
    Tag.DECISION: ("决定", "计划", "准备", "打算", "安排", "调整"),
    Tag.MEMO: ("记得", "需要记录", "memo", "提醒", "长期", "灵感"),
    Tag.CONTEXT_CHANGE: ("调整", "变化", "改成", "切换", "更换"),
    Tag.RISK: ("风险", "担心", "隐患", "紧急", "压力"),
}

SUMMARY_SEPARATOR = " · "
EMPTY_SUMMARY = "已解析输入，等待下一步操作"

_SENTENCE_DELIMITERS = re.compile(r"[。！？!?\n]+")
_SLUG_INVALID = re.compile(r"[^a-z0-9一-龥]+")

# 完了Todoのラベル
_COMPLETION_VERB = re.compile(r"(?:完成|搞定|收尾)了?")
_LABEL_CHARS = re.compile(r"[A-Za-z0-9_\s\-/]*")
_LABEL_SUFFIXES = ("任务", "todo", "事项", "工作")
_LABEL_TERMINATORS = frozenset(",，。；;!！?？")

# マイルストーン進捗
_MILESTONE_MARKER = re.compile(r"里程碑|milestone|阶段", re.IGNORECASE)
_NAME_TOKEN = re.compile(r"\s*([A-Za-z0-9_\-/一-龥]+)")
_PERCENT_TOKEN = re.compile(r"(?<![0-9])([0-9]{1,3})%")

# メモキー
_MEMO_KEY = re.compile(r"memo[:：]?\s*([A-Za-z0-9_\-/一-龥]+)", re.IGNORECASE)


def slugify(value: str) -> str:
    """ラベルを識別子用のスラッグに正規化.

    - 小文字に変換
    - 英数字・漢字以外の連続を1つのハイフンに置換
    - 前後のハイフンを削除

    抽出側とTodo照合側で必ずこの関数を使うこと。

    Args:
        value: 正規化するラベル

    Returns:
        str: スラッグ
    """
    return _SLUG_INVALID.sub("-", value.lower()).strip("-")


def unique(items: Iterable[T]) -> list[T]:
    """出現順を保ったまま重複を除去."""
    return list(dict.fromkeys(items))


def dedupe_by(items: Iterable[T], key: Callable[[T], Hashable]) -> list[T]:
    """キーで重複を除去する（最初の出現を優先）.

    Args:
        items: 対象のリスト
        key: 重複判定に使うキー関数

    Returns:
        list[T]: キーごとに最初の要素だけを残したリスト
    """
    kept: dict[Hashable, T] = {}
    for item in items:
        kept.setdefault(key(item), item)
    return list(kept.values())


def split_sentences(text: str) -> list[str]:
    """テキストを文に分割.

    句点・感嘆符・疑問符・改行で区切り、前後の空白を除去して空の文を捨てる。
    """
    return [s.strip() for s in _SENTENCE_DELIMITERS.split(text) if s.strip()]


def has_keyword(sentence: str, keywords: Iterable[str]) -> bool:
    """文がいずれかのキーワードを含むか（大文字小文字を区別しない）."""
    lowered = sentence.lower()
    return any(keyword.lower() in lowered for keyword in keywords)


def classify(sentence: str) -> frozenset[Tag]:
    """文に該当するタグをすべて返す."""
    return frozenset(
        tag for tag, keywords in KEYWORDS.items() if has_keyword(sentence, keywords)
    )


def collect_tagged(
    sentences: list[str], tags: list[frozenset[Tag]], tag: Tag
) -> list[str]:
    """指定タグを持つ文を、出現順・重複なしで集める."""
    return unique(s for s, s_tags in zip(sentences, tags) if tag in s_tags)


def _closes_label(text: str) -> bool:
    if not text or text[0] in _LABEL_TERMINATORS:
        return True
    lowered = text.lower()
    for suffix in _LABEL_SUFFIXES:
        if lowered.startswith(suffix):
            rest = text[len(suffix):]
            if not rest or rest[0] in _LABEL_TERMINATORS:
                return True
    return False


def match_completed_label(sentence: str) -> str | None:
    """完了動詞（完成/搞定/收尾）の後ろにあるTodoラベルを取り出す.

    ラベルは英数字・空白・ハイフン・スラッシュのみで構成され、
    任意の接尾辞（任务/todo/事项/工作）の後に文末か句読点が続く必要がある。
    ラベルはできるだけ短く取る。

    Args:
        sentence: 対象の文

    Returns:
        str | None: 前後の空白を除いたラベル（空文字の場合あり）。
            パターンに一致しない場合はNone
    """
    for verb in _COMPLETION_VERB.finditer(sentence):
        rest = sentence[verb.end():]
        run = _LABEL_CHARS.match(rest).group(0)
        for end in range(len(run) + 1):
            if _closes_label(rest[end:]):
                return run[:end].strip()
    return None


def match_milestone(sentence: str) -> tuple[str | None, str] | None:
    """マイルストーン名と進捗率の文字列を取り出す.

    マーカー（里程碑/milestone/阶段）の後ろで最初に現れる「数字%」を進捗率、
    マーカー直後の名前トークン（数字%の手前まで）を名前とする。

    Args:
        sentence: 対象の文

    Returns:
        tuple[str | None, str] | None: (名前, 進捗率の数字文字列)。
            名前がない場合はNone。マーカーか数字%がない場合はNone
    """
    for marker in _MILESTONE_MARKER.finditer(sentence):
        rest = sentence[marker.end():]
        percent = _PERCENT_TOKEN.search(rest)
        if percent is None:
            continue
        name = _NAME_TOKEN.match(rest[: percent.start()])
        return (name.group(1) if name else None), percent.group(1)
    return None


def match_memo_key(sentence: str) -> str | None:
    """「memo:」マーカーの後ろにある明示的なキーを取り出す."""
    match = _MEMO_KEY.search(sentence)
    return match.group(1) if match else None


def parse_progress(raw: str | None) -> int:
    """進捗率の文字列を整数に変換.

    100を超える値は100に丸める。数値として解釈できない場合は0になる
    （スキップはしない）。
    """
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return 0
    return min(100, value)


def memo_category(sentence: str) -> str | None:
    """メモの分類を判定（目标 を 风险 より優先）."""
    if "目标" in sentence:
        return "goal"
    if "风险" in sentence:
        return "risk"
    return None


def extract_completed_todos(
    sentences: list[str], tags: list[frozenset[Tag]]
) -> list[str]:
    """成果文から完了Todoのスラッグを抽出.

    ラベルが取れない場合は文全体をスラッグ化する。
    成果タグのない文は対象外。
    """
    completed = []
    for sentence, sentence_tags in zip(sentences, tags):
        if Tag.ACHIEVEMENT not in sentence_tags:
            continue
        label = match_completed_label(sentence)
        completed.append((slugify(label) if label else "") or slugify(sentence))
    return unique(completed)


def extract_milestone_progress(sentences: list[str]) -> list[MilestoneProgress]:
    """全文からマイルストーン進捗を抽出（同じIDは最初の出現を優先）."""
    updates = []
    for sentence in sentences:
        match = match_milestone(sentence)
        if match is None:
            continue
        name, raw_progress = match
        updates.append(
            MilestoneProgress(
                id=slugify(name or sentence), progress=parse_progress(raw_progress)
            )
        )
    return dedupe_by(updates, lambda item: item.id)


def extract_memos(sentences: list[str], tags: list[frozenset[Tag]]) -> list[NewMemo]:
    """メモタグの文からメモ候補を抽出（同じキーは最初の出現を優先）."""
    memos = []
    for sentence, sentence_tags in zip(sentences, tags):
        if Tag.MEMO not in sentence_tags:
            continue
        key = slugify(match_memo_key(sentence) or sentence)
        memos.append(
            NewMemo(key=key, content=sentence, category=memo_category(sentence))
        )
    return dedupe_by(memos, lambda item: item.key)


def build_summary(
    achievements: list[str],
    milestone_progress: list[MilestoneProgress],
    blockers: list[str],
    decisions: list[str],
    risks: list[str],
) -> str:
    """抽出件数から要約文を組み立てる.

    Returns:
        str: 「 · 」区切りの要約。何も抽出されなかった場合は待機メッセージ
    """
    parts = []
    if achievements:
        parts.append(f"识别到 {len(achievements)} 条成就")
    if milestone_progress:
        parts.append(f"更新了 {len(milestone_progress)} 个里程碑进度")
    if blockers:
        parts.append(f"存在 {len(blockers)} 个潜在阻塞")
    if decisions:
        parts.append(f"记录 {len(decisions)} 项决策")
    if risks:
        parts.append(f"监控 {len(risks)} 个风险信号")
    return SUMMARY_SEPARATOR.join(parts) or EMPTY_SUMMARY
