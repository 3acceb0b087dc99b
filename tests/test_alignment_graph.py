import pytest
from pydantic import ValidationError

from aligner.alignment import parse_alignment, slugify
from aligner.alignment.tools import EMPTY_SUMMARY


def test_parse_is_pure():
    text = "完成了A。广告投放里程碑进度提升到 55%！担心预算，记得复盘"
    assert parse_alignment(text).model_dump_json() == parse_alignment(text).model_dump_json()


def test_parse_basic_update():
    result = parse_alignment("完成了A。遇到问题！决定调整")

    assert result.parsed.achievements == ["完成了A"]
    assert result.parsed.blockers == ["遇到问题"]
    assert result.parsed.decisions == ["决定调整"]
    assert result.updates.completed_todos == ["a"]
    assert result.signals.risks == []
    assert result.signals.context_changes == ["决定调整"]
    assert result.summary == "识别到 1 条成就 · 存在 1 个潜在阻塞 · 记录 1 项决策"


def test_identical_achievements_are_deduplicated():
    result = parse_alignment("完成了A。  完成了A  \n完成了B")
    assert result.parsed.achievements == ["完成了A", "完成了B"]
    assert result.updates.completed_todos == ["a", "b"]


def test_completed_todo_falls_back_to_sentence_slug():
    result = parse_alignment("今天完成了登录页面")
    assert result.updates.completed_todos == [slugify("今天完成了登录页面")]


def test_non_achievement_sentence_is_not_a_completed_todo():
    # 收尾 is a completion verb but not an achievement keyword.
    result = parse_alignment("收尾了 cleanup")
    assert result.updates.completed_todos == []


def test_milestone_first_mention_wins():
    result = parse_alignment(
        "广告投放里程碑进度提升到 55%。广告投放里程碑进度提升到 80%"
    )
    assert [m.model_dump() for m in result.updates.milestone_progress] == [
        {"id": slugify("进度提升到"), "progress": 55}
    ]
    assert result.summary.startswith("更新了 1 个里程碑进度")


def test_milestone_progress_is_clamped():
    result = parse_alignment("里程碑 M2 已经 150%")
    assert result.updates.milestone_progress[0].id == "m2"
    assert result.updates.milestone_progress[0].progress == 100


def test_four_digit_percentage_is_not_a_milestone_update():
    result = parse_alignment("阶段 A 1234%")
    assert result.updates.milestone_progress == []


def test_milestone_without_name_uses_sentence_slug():
    result = parse_alignment("milestone 80%")
    assert result.updates.milestone_progress[0].id == "milestone-80"


def test_risk_takes_precedence_over_context_change():
    result = parse_alignment("压力很大，需求改成了新版本。下周切换到新平台")
    assert result.signals.risks == ["压力很大，需求改成了新版本"]
    assert result.signals.context_changes == ["下周切换到新平台"]


def test_memo_extraction():
    result = parse_alignment(
        "memo: 长期目标 坚持写作。记得检查风险清单。记得检查风险清单。提醒自己早睡"
    )
    memos = [m.model_dump() for m in result.updates.new_memos]
    assert memos == [
        {"key": "长期目标", "content": "memo: 长期目标 坚持写作", "category": "goal"},
        {"key": "记得检查风险清单", "content": "记得检查风险清单", "category": "risk"},
        {"key": "提醒自己早睡", "content": "提醒自己早睡", "category": None},
    ]


def test_no_matches_gives_waiting_summary():
    result = parse_alignment("今天天气不错")
    assert result.summary == EMPTY_SUMMARY
    assert result.updates.completed_todos == []


@pytest.mark.parametrize("text", ["", "   \n  "])
def test_blank_text_is_rejected(text):
    with pytest.raises(ValidationError) as exc_info:
        parse_alignment(text)
    assert exc_info.value.errors()[0]["msg"] == "请提供需要拉齐的文本"
