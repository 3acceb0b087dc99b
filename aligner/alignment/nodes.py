"""拉齐解析のノード関数.

各処理ステップを実装するノード関数群。すべて純粋関数でI/Oを行わない。
"""

import logging

from aligner.alignment.state import AlignState, Parsed, Signals, Tag, Updates
from aligner.alignment.tools import (
    build_summary,
    classify,
    collect_tagged,
    extract_completed_todos,
    extract_memos,
    extract_milestone_progress,
    split_sentences,
)

logger = logging.getLogger(__name__)


def segment_node(state: AlignState) -> dict:
    """入力テキストを文に分割.

    Args:
        state: 現在の状態

    Returns:
        更新された状態の部分辞書
    """
    sentences = split_sentences(state.text)
    logger.debug(f"Segmented {len(sentences)} sentences")
    return {"sentences": sentences}


def classify_node(state: AlignState) -> dict:
    """各文にタグを付与し、成果・阻塞・決定を集める.

    Args:
        state: 現在の状態

    Returns:
        更新された状態の部分辞書
    """
    tags = [classify(sentence) for sentence in state.sentences]
    parsed = Parsed(
        achievements=collect_tagged(state.sentences, tags, Tag.ACHIEVEMENT),
        blockers=collect_tagged(state.sentences, tags, Tag.BLOCKER),
        decisions=collect_tagged(state.sentences, tags, Tag.DECISION),
    )
    return {"tags": tags, "parsed": parsed}


def extract_node(state: AlignState) -> dict:
    """更新内容とシグナルを抽出.

    リスクと状況変化の両方に該当する文はリスク側にのみ入れる。

    Args:
        state: 現在の状態

    Returns:
        更新された状態の部分辞書
    """
    updates = Updates(
        completed_todos=extract_completed_todos(state.sentences, state.tags),
        milestone_progress=extract_milestone_progress(state.sentences),
        new_memos=extract_memos(state.sentences, state.tags),
    )

    risks = collect_tagged(state.sentences, state.tags, Tag.RISK)
    context_changes = [
        sentence
        for sentence in collect_tagged(state.sentences, state.tags, Tag.CONTEXT_CHANGE)
        if sentence not in risks
    ]

    logger.debug(
        f"Extracted {len(updates.completed_todos)} completed todos, "
        f"{len(updates.milestone_progress)} milestone updates, "
        f"{len(updates.new_memos)} memos"
    )
    return {
        "updates": updates,
        "signals": Signals(risks=risks, context_changes=context_changes),
    }


def summarize_node(state: AlignState) -> dict:
    """抽出件数から要約を作成.

    Args:
        state: 現在の状態

    Returns:
        更新された状態の部分辞書
    """
    summary = build_summary(
        achievements=state.parsed.achievements,
        milestone_progress=state.updates.milestone_progress,
        blockers=state.parsed.blockers,
        decisions=state.parsed.decisions,
        risks=state.signals.risks,
    )
    return {"summary": summary}
