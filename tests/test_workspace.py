from datetime import datetime, timedelta

from aligner.alignment import parse_alignment, slugify
from aligner.config import TIMEZONE
from aligner.inquiry import rank_inquiries
from aligner.service import run_alignment
from aligner.workspace.schema import Todo
from aligner.workspace.store import find_by_slug

NOW = datetime(2026, 10, 19, 10, 0, tzinfo=TIMEZONE)


class TestFindBySlug:
    def test_exact_match_wins_over_contains(self):
        todos = [
            Todo(id="1", title="deploy api", status="pending"),
            Todo(id="2", title="deploy", status="pending"),
        ]
        assert find_by_slug(todos, "deploy", lambda t: t.title).id == "2"

    def test_title_contains_slug(self):
        todos = [Todo(id="1", title="PitchLab 第二集脚本", status="pending")]
        assert find_by_slug(todos, "第二集", lambda t: t.title).id == "1"

    def test_slug_contains_title(self):
        todos = [Todo(id="1", title="登录页面", status="pending")]
        slug = slugify("今天完成了登录页面")
        assert find_by_slug(todos, slug, lambda t: t.title).id == "1"

    def test_empty_slug_matches_nothing(self):
        todos = [Todo(id="1", title="A", status="pending")]
        assert find_by_slug(todos, "", lambda t: t.title) is None


class TestDeleteOps:
    def test_users_are_isolated(self, store):
        store.add_todo("u1", "写周报")
        assert store.list_todos("u2") == []

    def test_delete_todo_by_keyword(self, store):
        store.add_todo("u1", "写周报")
        store.add_todo("u1", "整理发票")

        assert store.delete_todo("u1", "周报").title == "写周报"
        assert [t.title for t in store.list_todos("u1")] == ["整理发票"]
        assert store.delete_todo("u1", "周报") is None

    def test_delete_milestone_ignores_case(self, store):
        store.add_milestone("u1", "Beta 发布")

        assert store.delete_milestone("u1", "beta").title == "Beta 发布"
        assert store.list_milestones("u1") == []
        assert store.delete_milestone("u1", "beta") is None


class TestMemos:
    def test_save_memo_upserts_by_key(self, store):
        first = store.save_memo("u1", "q4-goal", "上线新版本", NOW - timedelta(days=3), "goal")
        second = store.save_memo("u1", "q4-goal", "上线并推广", NOW)

        memos = store.list_memos("u1")
        assert len(memos) == 1
        assert second.id == first.id
        assert memos[0].content == "上线并推广"
        assert memos[0].last_reviewed_at == NOW

    def test_delete_memo_by_key(self, store):
        store.save_memo("u1", "q4-goal", "上线", NOW, "goal")
        store.save_memo("u1", "health", "早睡", NOW)

        assert store.delete_memo("u1", "HEALTH").key == "health"
        assert store.delete_memo("u1", "health") is None


class TestApplyAlignment:
    def test_applies_completed_todos_and_milestones(self, store):
        store.add_todo("u1", "deploy")
        store.add_milestone("u1", "M2 上线")
        text = "完成了 deploy 任务。里程碑 M2 已经 60%。完成了 unknown"
        result = parse_alignment(text)

        applied = store.apply_alignment("u1", text, result, NOW)

        assert applied.completed_todos == ["deploy"]
        assert applied.unmatched_todos == ["unknown"]
        assert applied.updated_milestones == ["M2 上线"]
        assert store.list_todos("u1")[0].status == "completed"
        assert store.list_milestones("u1")[0].progress == 60
        assert store.last_align_at("u1") == NOW

    def test_already_completed_todo_is_not_matched_again(self, store):
        store.add_todo("u1", "deploy")
        result = parse_alignment("完成了 deploy")
        store.apply_alignment("u1", "完成了 deploy", result, NOW)

        applied = store.apply_alignment("u1", "完成了 deploy", result, NOW)

        assert applied.completed_todos == []
        assert applied.unmatched_todos == ["deploy"]

    def test_memos_and_interaction_are_saved(self, store):
        text = "memo: 长期目标 坚持写作"
        result = parse_alignment(text)

        applied = store.apply_alignment("u1", text, result, NOW)

        assert applied.saved_memos == ["长期目标"]
        assert store.list_memos("u1")[0].category == "goal"
        interactions = store.list_interactions("u1")
        assert len(interactions) == 1
        assert interactions[0].type == "align"
        assert interactions[0].user_input == text
        assert interactions[0].ai_response == result.summary

    def test_snapshot_feeds_inquiry_ranking(self, store):
        store.add_todo("u1", "修复支付", is_blocker=True)
        store.save_memo("u1", "health", "早睡", NOW - timedelta(days=7))
        snapshot = store.snapshot("u1")

        inquiries = rank_inquiries(
            snapshot["todos"],
            snapshot["milestones"],
            snapshot["memos"],
            last_align_at=snapshot["lastAlignAt"],
            now=NOW,
        )

        assert [i.priority for i in inquiries] == [1, 3]
        assert "修复支付" in inquiries[0].question


class TestRunAlignment:
    def test_uses_previous_alignment_time(self, store):
        run_alignment("u1", "今天天气不错", NOW - timedelta(hours=6))

        outcome = run_alignment("u1", "担心预算不够", NOW)

        assert [(i.priority, i.context) for i in outcome.inquiries] == [
            (2, "风险追踪"),
            (3, "上次拉齐：10/19 04:00"),
        ]
        assert store.last_align_at("u1") == NOW

    def test_first_alignment_has_no_stale_question(self, store):
        outcome = run_alignment("u1", "今天天气不错", NOW)
        assert outcome.inquiries == []
