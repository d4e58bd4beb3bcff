"""
TaskGeneratorのテスト
"""

import json
from datetime import date
from unittest.mock import MagicMock

import pytest

from src.growth_tracker.ai_client import OpenRouterClient
from src.growth_tracker.exceptions import AIResponseError, AITimeoutError
from src.growth_tracker.prompt_templates import SYSTEM_PROMPT, TaskPromptBuilder
from src.growth_tracker.task_generator import (
    FALLBACK_FOCUS_AREA,
    FALLBACK_QUOTE,
    TaskGenerator,
    decode_plan,
    fallback_plan,
)
from src.storage import Goal, GoalDuration, JournalEntry, TaskPriority

TODAY = date(2025, 11, 14)


def make_journal(entry_date, content="Felt productive", title="Day"):
    return JournalEntry(
        id=1,
        user_id=1,
        date=entry_date,
        title=title,
        content=content,
        mood="🙂",
        created_at="2025-11-01T00:00:00+00:00",
    )


def make_goal():
    return Goal(
        id=42,
        user_id=1,
        title="Read 12 books",
        description="One book per month",
        target_value=12,
        current_value=3,
        unit="books",
        duration=GoalDuration.YEARLY,
        completed=False,
        created_at="2025-11-01T00:00:00+00:00",
    )


def ai_payload(**overrides):
    payload = {
        "tasks": [
            {
                "title": "Read chapter 4",
                "description": "Continue the current book",
                "category": "Learning",
                "timeEstimate": 30,
                "priority": "high",
                "relatedGoalId": 42,
            },
            {
                "title": "Evening stretch",
                "description": "10 minutes of stretching",
                "category": "Wellness",
                "timeEstimate": 10,
                "priority": "low",
                "relatedGoalId": None,
            },
        ],
        "dailyQuote": "Small steps every day.",
        "focusArea": "Keep the reading habit going.",
    }
    payload.update(overrides)
    return payload


def assert_is_fallback(plan):
    assert plan.is_fallback
    assert len(plan.tasks) == 5
    assert plan.daily_quote == FALLBACK_QUOTE
    assert plan.focus_area == FALLBACK_FOCUS_AREA
    assert [task.category for task in plan.tasks] == [
        "Mindfulness",
        "Productivity",
        "Learning",
        "Wellness",
        "Planning",
    ]


class TestDecodePlan:
    """AI応答デコーダのテスト"""

    def test_valid_response(self):
        result = decode_plan(json.dumps(ai_payload()))

        assert result.ok
        plan = result.plan
        assert plan.source == "ai"
        assert len(plan.tasks) == 2
        assert plan.tasks[0].priority is TaskPriority.HIGH
        assert plan.tasks[0].related_goal_id == 42
        assert plan.tasks[1].related_goal_id is None
        assert plan.daily_quote == "Small steps every day."

    def test_code_fenced_response(self):
        text = "Here you go:\n```json\n" + json.dumps(ai_payload()) + "\n```"
        result = decode_plan(text)
        assert result.ok
        assert len(result.plan.tasks) == 2

    @pytest.mark.parametrize(
        "text, reason",
        [
            ("", "empty response"),
            ("I cannot help with that.", "no JSON object in response"),
            ("{not json}", "invalid JSON"),
            (json.dumps({"dailyQuote": "q", "focusArea": "f"}), "tasks array missing"),
            (json.dumps(ai_payload(tasks="read")), "tasks array missing"),
            (json.dumps(ai_payload(tasks=[{"description": "no title"}])), "no usable tasks"),
            (json.dumps(ai_payload(dailyQuote="")), "dailyQuote missing"),
            (json.dumps(ai_payload(focusArea=None)), "focusArea missing"),
        ],
    )
    def test_malformed_responses_fail_without_raising(self, text, reason):
        result = decode_plan(text)
        assert not result.ok
        assert result.plan is None
        assert reason in result.reason

    def test_task_fields_are_normalized(self):
        payload = ai_payload(
            tasks=[
                {"title": "  Meditate  ", "timeEstimate": 120, "priority": "URGENT"},
                {"title": "Journal", "timeEstimate": "2", "priority": "High", "relatedGoalId": "7"},
                {"title": "Walk", "timeEstimate": "soon", "relatedGoalId": "abc"},
                "not a task",
            ]
        )
        result = decode_plan(json.dumps(payload))

        assert result.ok
        meditate, journal, walk = result.plan.tasks
        assert meditate.title == "Meditate"
        assert meditate.time_estimate == 45
        assert meditate.priority is TaskPriority.MEDIUM
        assert meditate.category == "General"
        assert meditate.description == ""
        assert journal.time_estimate == 5
        assert journal.priority is TaskPriority.HIGH
        assert journal.related_goal_id == 7
        assert walk.time_estimate == 15
        assert walk.related_goal_id is None

    @pytest.mark.parametrize("constant", ["Infinity", "-Infinity", "NaN"])
    def test_non_finite_numbers_are_rejected(self, constant):
        text = (
            '{"tasks": [{"title": "Read", "timeEstimate": %s}], '
            '"dailyQuote": "q", "focusArea": "f"}' % constant
        )
        result = decode_plan(text)
        assert not result.ok
        assert "invalid JSON" in result.reason

    def test_overflowing_and_non_ascii_numbers_use_defaults(self):
        text = (
            '{"tasks": ['
            '{"title": "Read", "timeEstimate": 1e400, "relatedGoalId": 1e400},'
            '{"title": "Walk", "timeEstimate": "²", "relatedGoalId": "²"},'
            '{"title": "Plan", "timeEstimate": 20.7, "relatedGoalId": 3.0}'
            '], "dailyQuote": "q", "focusArea": "f"}'
        )
        result = decode_plan(text)

        assert result.ok
        read, walk, plan = result.plan.tasks
        assert read.time_estimate == 15
        assert read.related_goal_id is None
        assert walk.time_estimate == 15
        assert walk.related_goal_id is None
        assert plan.time_estimate == 20
        assert plan.related_goal_id is None

    def test_at_most_seven_tasks_are_kept(self):
        tasks = [{"title": f"Task {i}"} for i in range(10)]
        result = decode_plan(json.dumps(ai_payload(tasks=tasks)))
        assert result.ok
        assert [task.title for task in result.plan.tasks] == [f"Task {i}" for i in range(7)]


class TestFallbackPlan:
    """フォールバックプランのテスト"""

    def test_shape(self):
        plan = fallback_plan("test")
        assert_is_fallback(plan)
        assert plan.failure_reason == "test"
        assert all(5 <= task.time_estimate <= 45 for task in plan.tasks)

    def test_each_call_returns_independent_copy(self):
        first = fallback_plan()
        first.tasks.clear()
        assert len(fallback_plan().tasks) == 5

    def test_to_dict(self):
        data = fallback_plan().to_dict()
        assert set(data) == {"tasks", "dailyQuote", "focusArea"}
        assert data["tasks"][0]["timeEstimate"] == 5
        assert "relatedGoalId" not in data["tasks"][0]


class TestTaskGenerator:
    """TaskGeneratorのテストクラス"""

    @pytest.fixture
    def mock_ai_client(self):
        """AIクライアントのモック"""
        client = MagicMock(spec=OpenRouterClient)
        client.is_configured = True
        return client

    def test_missing_credential_returns_fallback(self):
        client = OpenRouterClient(api_key=None, session=MagicMock())
        generator = TaskGenerator(client)

        plan = generator.generate_daily_tasks([], [], today=TODAY)

        assert_is_fallback(plan)
        client.session.post.assert_not_called()

    def test_success_returns_ai_plan(self, mock_ai_client):
        mock_ai_client.chat.return_value = json.dumps(ai_payload())
        generator = TaskGenerator(mock_ai_client)

        plan = generator.generate_daily_tasks(
            [make_journal("2025-11-13")], [make_goal()], today=TODAY, user_id=1
        )

        assert not plan.is_fallback
        assert [task.title for task in plan.tasks] == ["Read chapter 4", "Evening stretch"]
        mock_ai_client.chat.assert_called_once()
        messages = mock_ai_client.chat.call_args[0][0]
        assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert messages[1]["role"] == "user"
        assert "Read 12 books" in messages[1]["content"]
        assert "Felt productive" in messages[1]["content"]

    def test_http_500_returns_fallback(self, mock_ai_client):
        mock_ai_client.chat.side_effect = AIResponseError("AI service error: 500", status_code=500)
        generator = TaskGenerator(mock_ai_client)

        plan = generator.generate_daily_tasks([], [], today=TODAY)

        assert_is_fallback(plan)
        assert "500" in plan.failure_reason

    def test_timeout_returns_fallback(self, mock_ai_client):
        mock_ai_client.chat.side_effect = AITimeoutError("timed out")
        plan = TaskGenerator(mock_ai_client).generate_daily_tasks([], [], today=TODAY)
        assert_is_fallback(plan)

    def test_unexpected_error_returns_fallback(self, mock_ai_client):
        mock_ai_client.chat.side_effect = RuntimeError("unexpected")
        plan = TaskGenerator(mock_ai_client).generate_daily_tasks([], [], today=TODAY)
        assert_is_fallback(plan)

    def test_invalid_json_returns_fallback(self, mock_ai_client):
        mock_ai_client.chat.return_value = "Sure! Here are some tasks: read, walk."
        plan = TaskGenerator(mock_ai_client).generate_daily_tasks([], [], today=TODAY)
        assert_is_fallback(plan)
        assert plan.failure_reason == "no JSON object in response"

    def test_missing_tasks_returns_fallback(self, mock_ai_client):
        mock_ai_client.chat.return_value = json.dumps({"dailyQuote": "q", "focusArea": "f"})
        plan = TaskGenerator(mock_ai_client).generate_daily_tasks([], [], today=TODAY)
        assert_is_fallback(plan)

    def test_non_finite_time_estimate_returns_fallback(self, mock_ai_client):
        mock_ai_client.chat.return_value = (
            '{"tasks": [{"title": "Read", "timeEstimate": Infinity}], '
            '"dailyQuote": "q", "focusArea": "f"}'
        )
        plan = TaskGenerator(mock_ai_client).generate_daily_tasks([], [], today=TODAY)
        assert_is_fallback(plan)


class TestTaskPromptBuilder:
    """プロンプト構築のテスト"""

    def test_partition_journals_by_age(self):
        builder = TaskPromptBuilder(recent_days=7, medium_days=30)
        journals = [
            make_journal("2025-11-14"),
            make_journal("2025-11-07"),  # 7日前 -> recent
            make_journal("2025-11-06"),  # 8日前 -> medium
            make_journal("2025-10-15"),  # 30日前 -> medium
            make_journal("2025-10-14"),  # 31日前 -> 除外
            make_journal("not-a-date"),
        ]

        tiers = builder.partition_journals(journals, TODAY)

        assert [j.date for j in tiers.recent] == ["2025-11-14", "2025-11-07"]
        assert [j.date for j in tiers.medium] == ["2025-11-06", "2025-10-15"]

    def test_build_includes_sections_and_constraints(self):
        builder = TaskPromptBuilder(recent_excerpt_chars=500, medium_excerpt_chars=10)
        journals = [
            make_journal("2025-11-13", content="Recent reflection about work"),
            make_journal("2025-10-20", content="An older and much longer reflection"),
            make_journal("2025-09-01", content="Ancient history"),
        ]

        prompt = builder.build(journals, [make_goal()], TODAY)

        assert "Recent reflection about work" in prompt
        assert "An older a..." in prompt
        assert "much longer reflection" not in prompt
        assert "Ancient history" not in prompt
        assert "[id: 42]" in prompt
        assert "yearly" in prompt
        assert "25% complete" in prompt
        assert "Generate 5-7 tasks" in prompt
        assert "between 5-45 minutes" in prompt
        assert '"dailyQuote"' in prompt

    def test_build_without_data(self):
        prompt = TaskPromptBuilder().build([], [], TODAY)
        assert "No recent journal entries available." in prompt
        assert "No active goals set." in prompt
