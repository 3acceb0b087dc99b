from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from aligner.alignment.state import Signals
from aligner.config import TIMEZONE
from aligner.inquiry import rank_inquiries
from aligner.inquiry.tools import diff_in_days, is_overdue
from aligner.workspace.schema import Memo, Milestone, Todo

NOW = datetime(2026, 10, 19, 10, 0, tzinfo=TIMEZONE)


def _todo(id, **kwargs):
    kwargs.setdefault("status", "pending")
    return Todo(id=id, title=f"任务{id}", **kwargs)


class TestDateHelpers:
    def test_days_to_due_rounds_up(self):
        assert diff_in_days(NOW, NOW + timedelta(days=1, hours=12)) == 2
        assert diff_in_days(NOW, NOW + timedelta(days=2)) == 2
        assert diff_in_days(NOW, NOW - timedelta(hours=12)) == 0

    def test_same_day_is_never_overdue(self):
        assert not is_overdue(NOW.replace(hour=0, minute=1), NOW)
        assert not is_overdue(NOW.replace(hour=23, minute=59), NOW)

    def test_previous_day_is_overdue(self):
        assert is_overdue(NOW.replace(hour=0, minute=0) - timedelta(minutes=1), NOW)

    def test_missing_due_date(self):
        assert not is_overdue(None, NOW)


class TestTodoRules:
    def test_budget_caps_at_three(self):
        todos = [_todo(str(i), is_blocker=True) for i in range(5)]
        milestones = [
            Milestone(id=f"m{i}", title=f"M{i}", progress=10) for i in range(3)
        ]

        inquiries = rank_inquiries(todos, milestones, now=NOW)

        assert len(inquiries) == 3
        assert [i.priority for i in inquiries] == [1, 1, 1]
        assert [i.question for i in inquiries] == [
            "「任务0」目前进展如何？需要额外支持来解除阻塞吗？",
            "「任务1」目前进展如何？需要额外支持来解除阻塞吗？",
            "「任务2」目前进展如何？需要额外支持来解除阻塞吗？",
        ]

    def test_blockers_come_before_overdue(self):
        todos = [
            _todo("late", due_date=NOW - timedelta(days=3)),
            _todo("blocked", is_blocker=True, status="in_progress"),
        ]

        inquiries = rank_inquiries(todos, now=NOW)

        assert "任务blocked" in inquiries[0].question
        assert "任务late" in inquiries[1].question
        assert inquiries[0].context == "状态：进行中"
        assert inquiries[1].context == "状态：未开始"

    def test_last_commitment_is_used_as_context(self):
        todos = [_todo("1", is_blocker=True, last_commitment="周五前给出方案")]
        inquiries = rank_inquiries(todos, now=NOW)
        assert inquiries[0].context == "上次承诺：周五前给出方案"

    def test_completed_todos_are_ignored(self):
        todos = [
            _todo("1", is_blocker=True, status="completed"),
            _todo("2", status="completed", due_date=NOW - timedelta(days=5)),
        ]
        assert rank_inquiries(todos, now=NOW) == []

    def test_due_today_is_not_asked(self):
        todos = [_todo("1", due_date=NOW.replace(hour=1))]
        assert rank_inquiries(todos, now=NOW) == []

    def test_accepts_camel_case_payload(self):
        todos = [
            {
                "id": "1",
                "title": "写周报",
                "status": "pending",
                "dueDate": "2026-10-18",
            }
        ]
        inquiries = rank_inquiries(todos, now=NOW)
        assert inquiries[0].question == "「写周报」目前进展如何？需要额外支持来解除阻塞吗？"


class TestMilestoneRules:
    def test_risk_thresholds(self):
        milestones = [
            Milestone(id="a", title="无期限低进度", progress=40),
            Milestone(id="b", title="无期限高进度", progress=60),
            Milestone(id="c", title="三天内", progress=85, due_date=NOW + timedelta(days=2)),
            Milestone(id="d", title="七天内", progress=65, due_date=NOW + timedelta(days=6)),
            Milestone(id="e", title="七天内达标", progress=75, due_date=NOW + timedelta(days=6)),
            Milestone(id="f", title="还早", progress=10, due_date=NOW + timedelta(days=10)),
            Milestone(id="g", title="已完成", progress=100),
        ]

        inquiries = rank_inquiries(milestones=milestones, now=NOW)

        assert [i.question for i in inquiries] == [
            "里程碑「三天内」当前进度 85% ，按这个节奏能否完成目标？",
            "里程碑「七天内」当前进度 65% ，按这个节奏能否完成目标？",
            "里程碑「无期限低进度」当前进度 40% ，按这个节奏能否完成目标？",
        ]
        assert [i.context for i in inquiries] == [
            "截止 10/21 仅剩 2 天",
            "截止 10/25 仅剩 6 天",
            "无明确截止时间",
        ]
        assert all(i.priority == 1 for i in inquiries)

    def test_todo_without_status_is_rejected(self):
        with pytest.raises(ValidationError):
            rank_inquiries([{"id": "1", "title": "t"}], now=NOW)

    def test_progress_outside_range_is_rejected(self):
        with pytest.raises(ValidationError):
            rank_inquiries(milestones=[{"id": "m", "title": "M", "progress": 120}], now=NOW)


class TestSignalAndReviewRules:
    def test_risk_then_context_change(self):
        signals = Signals(risks=["预算超支", "人手不足"], context_changes=["需求改成 B 方案"])

        inquiries = rank_inquiries(signals=signals, now=NOW)

        assert [(i.priority, i.context) for i in inquiries] == [
            (2, "风险追踪"),
            (2, "上下文变更"),
        ]
        assert inquiries[0].question == "关于提到的风险「预算超支」，现在的状况有没有变化？"
        assert inquiries[1].question == "由于「需求改成 B 方案」导致的变化，需要我们调整计划吗？"

    def test_signals_fill_remaining_slots_only(self):
        todos = [_todo("1", is_blocker=True), _todo("2", is_blocker=True)]
        signals = {"risks": ["预算超支"], "context_changes": ["换了负责人"]}

        inquiries = rank_inquiries(todos, signals=signals, now=NOW)

        assert [i.priority for i in inquiries] == [1, 1, 2]
        assert inquiries[2].context == "风险追踪"

    def test_stalest_memo_is_reviewed(self):
        memos = [
            Memo(id="1", key="q4-goal", content="...", category="goal",
                 last_reviewed_at=NOW - timedelta(days=1)),
            Memo(id="2", key="health", content="..."),
        ]

        inquiries = rank_inquiries(memos=memos, now=NOW)

        assert len(inquiries) == 1
        assert inquiries[0].question == "长记忆「health」还保持有效吗？需要更新相关判断吗？"
        assert inquiries[0].context == "长期记忆复核"
        assert inquiries[0].priority == 3

    def test_memo_category_is_shown(self):
        memos = [Memo(id="1", key="q4-goal", content="...", category="goal")]
        inquiries = rank_inquiries(memos=memos, now=NOW)
        assert inquiries[0].context == "分类：goal"

    def test_stale_alignment_after_five_hours(self):
        inquiries = rank_inquiries(
            last_align_at=NOW - timedelta(hours=5, minutes=1), now=NOW
        )
        assert len(inquiries) == 1
        assert inquiries[0].priority == 3
        assert inquiries[0].context == "上次拉齐：10/19 04:59"

    def test_recent_alignment_is_not_asked(self):
        inquiries = rank_inquiries(
            last_align_at=NOW - timedelta(hours=4, minutes=59), now=NOW
        )
        assert inquiries == []

    def test_nothing_to_ask(self):
        assert rank_inquiries(now=NOW) == []
