import itertools
import json
from datetime import date
from unittest.mock import MagicMock

import pytest

from lesson_planner.errors import (
    EmptyUpstreamResponse,
    InvalidResponseShape,
    InvalidUpstreamPayload,
    LessonPlanError,
    UpstreamCredentialRejected,
    UpstreamQuotaExceeded,
    UpstreamRunFailed,
    UpstreamTimeout,
    UpstreamUploadFailed,
)
from lesson_planner.openai_generation import generate_lesson_plans, wait_for_run
from lesson_planner.scheduling import is_weekend
from tests.factories import make_lesson_plans, make_message, make_openai_client

PDF = b"%PDF-1.4 fake textbook"
FRIDAY = date(2025, 3, 7)


def run_generation(client, sleep=None, **kwargs):
    kwargs.setdefault("today", FRIDAY)
    return generate_lesson_plans(
        client,
        PDF,
        kwargs.pop("duration", 7),
        kwargs.pop("teacher_prompt", ""),
        sleep=sleep or MagicMock(),
        **kwargs,
    )


class TestPolling:
    def test_returns_after_three_polls(self, plans_json, no_sleep):
        client = make_openai_client(["queued", "in_progress", "completed"], plans_json)

        run_generation(client, sleep=no_sleep)

        assert client.beta.threads.runs.retrieve.call_count == 3
        assert no_sleep.call_count == 2
        client.beta.threads.messages.list.assert_called_once()

    def test_failed_run_stops_polling(self, plans_json, no_sleep):
        client = make_openai_client(
            ["in_progress", "failed"],
            plans_json,
            last_error={"code": "server_error", "message": "Something broke"},
        )

        with pytest.raises(UpstreamRunFailed) as exc_info:
            run_generation(client, sleep=no_sleep)

        err = exc_info.value
        assert err.status == "failed"
        assert err.details == {"code": "server_error", "message": "Something broke"}
        assert client.beta.threads.runs.retrieve.call_count == 2
        client.beta.threads.messages.list.assert_not_called()

    @pytest.mark.parametrize("status", ["cancelled", "expired"])
    def test_other_terminal_statuses_fail(self, status, plans_json):
        client = make_openai_client([status], plans_json)

        with pytest.raises(UpstreamRunFailed) as exc_info:
            run_generation(client)

        assert exc_info.value.details == status

    def test_timeout(self, no_sleep):
        client = make_openai_client(["in_progress"] * 10)
        ticks = itertools.count(0, 30)

        with pytest.raises(UpstreamTimeout) as exc_info:
            wait_for_run(
                client,
                "thread-1",
                "run-1",
                poll_interval=1.5,
                timeout=90,
                sleep=no_sleep,
                clock=lambda: next(ticks),
            )

        assert exc_info.value.status_code == 504
        # clock: 0 at start, then 30, 60, 90, 120 -> gives up on the 4th poll
        assert client.beta.threads.runs.retrieve.call_count == 4
        no_sleep.assert_called_with(1.5)


class TestWorkflow:
    def test_end_to_end_week_of_weekday_plans(self, no_sleep):
        start = date(2025, 3, 10)
        plans = make_lesson_plans(start, 7)
        client = make_openai_client(["completed"], f"```json\n{json.dumps({'lessonPlans': plans})}\n```")

        result = run_generation(client, sleep=no_sleep)

        assert len(result) == 7
        for key in result:
            day = date.fromisoformat(key)
            assert not is_weekend(day)
            assert day >= start
        no_sleep.assert_not_called()

    def test_requests_sent_to_openai(self, plans_json):
        client = make_openai_client(["completed"], plans_json)

        run_generation(client, duration=14, teacher_prompt="Focus on labs", model="gpt-test")

        client.files.create.assert_called_once_with(
            file=("textbook.pdf", PDF), purpose="assistants"
        )

        assistant_kwargs = client.beta.assistants.create.call_args.kwargs
        assert assistant_kwargs["model"] == "gpt-test"
        assert assistant_kwargs["tools"] == [{"type": "file_search"}]
        assert "Start on 2025-03-10" in assistant_kwargs["instructions"]
        assert '"dayNumber"' in assistant_kwargs["instructions"]

        message_call = client.beta.threads.messages.create.call_args
        assert message_call.args == ("thread-1",)
        content = message_call.kwargs["content"]
        assert "14-day lesson plan" in content
        assert "Additional instructions: Focus on labs" in content
        assert "Start on 2025-03-10" in content
        assert message_call.kwargs["attachments"] == [
            {"file_id": "file-1", "tools": [{"type": "file_search"}]}
        ]

        client.beta.threads.runs.create.assert_called_once_with(
            thread_id="thread-1", assistant_id="asst-1"
        )

    def test_blank_teacher_prompt_is_left_out(self, plans_json):
        client = make_openai_client(["completed"], plans_json)

        run_generation(client, teacher_prompt="   ")

        content = client.beta.threads.messages.create.call_args.kwargs["content"]
        assert "Additional instructions" not in content

    def test_upload_failure(self):
        client = make_openai_client()
        client.files.create.side_effect = RuntimeError("connection reset")

        with pytest.raises(UpstreamUploadFailed) as exc_info:
            run_generation(client)

        assert exc_info.value.details == "connection reset"
        client.beta.assistants.create.assert_not_called()

    def test_upload_rejected_for_bad_key(self):
        client = make_openai_client()
        client.files.create.side_effect = RuntimeError("Incorrect API key provided")

        with pytest.raises(UpstreamCredentialRejected):
            run_generation(client)

    def test_quota_error_while_running(self):
        client = make_openai_client()
        client.beta.threads.runs.create.side_effect = RuntimeError(
            "You exceeded your current quota"
        )

        with pytest.raises(UpstreamQuotaExceeded):
            run_generation(client)

    def test_empty_response(self):
        client = make_openai_client(["completed"], messages=[make_message("user", "prompt")])

        with pytest.raises(EmptyUpstreamResponse):
            run_generation(client)

    def test_assistant_message_without_text(self):
        client = make_openai_client(["completed"], messages=[make_message("assistant")])

        with pytest.raises(EmptyUpstreamResponse):
            run_generation(client)

    def test_invalid_json(self):
        client = make_openai_client(["completed"], "Sorry, I can't help with that.")

        with pytest.raises(InvalidUpstreamPayload):
            run_generation(client)

    def test_wrong_shape(self):
        client = make_openai_client(["completed"], '{"lessonPlans": []}')

        with pytest.raises(InvalidResponseShape):
            run_generation(client)

    def test_loose_entries_are_returned_unchanged(self, week_of_plans):
        keys = sorted(week_of_plans)
        week_of_plans[keys[0]]["chapter"] = 3
        week_of_plans[keys[1]]["miniQuiz"][0]["correctAnswer"] = 4
        del week_of_plans[keys[2]]["standards"]
        client = make_openai_client(["completed"], json.dumps({"lessonPlans": week_of_plans}))

        result = run_generation(client)

        assert result == week_of_plans
        assert result[keys[0]]["chapter"] == 3


class TestCleanup:
    def test_resources_deleted_after_success(self, plans_json):
        client = make_openai_client(["completed"], plans_json)

        run_generation(client)

        client.beta.threads.delete.assert_called_once_with("thread-1")
        client.beta.assistants.delete.assert_called_once_with("asst-1")
        client.files.delete.assert_called_once_with("file-1")

    def test_resources_deleted_after_failure(self):
        client = make_openai_client(["failed"])

        with pytest.raises(UpstreamRunFailed):
            run_generation(client)

        client.beta.threads.delete.assert_called_once_with("thread-1")
        client.files.delete.assert_called_once_with("file-1")

    def test_only_created_resources_are_deleted(self):
        client = make_openai_client()
        client.beta.assistants.create.side_effect = RuntimeError("boom")

        with pytest.raises(LessonPlanError):
            run_generation(client)

        client.files.delete.assert_called_once_with("file-1")
        client.beta.assistants.delete.assert_not_called()
        client.beta.threads.delete.assert_not_called()

    def test_cleanup_failure_does_not_hide_result(self, plans_json, week_of_plans):
        client = make_openai_client(["completed"], plans_json)
        client.beta.threads.delete.side_effect = RuntimeError("not found")

        assert run_generation(client) == week_of_plans
        client.files.delete.assert_called_once_with("file-1")

    def test_cleanup_can_be_disabled(self, plans_json):
        client = make_openai_client(["completed"], plans_json)

        run_generation(client, cleanup=False)

        client.files.delete.assert_not_called()
        client.beta.threads.delete.assert_not_called()
