from unittest.mock import MagicMock

import pytest
import requests

from lesson_planner.client.api import NO_PLANS_MESSAGE, GenerationFailed, LessonPlanApi


class FakeResponse:
    def __init__(self, status_code, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("No JSON object could be decoded")
        return self._body

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.fixture
def pdf_path(tmp_path):
    path = tmp_path / "physics.pdf"
    path.write_bytes(b"%PDF-1.4 fake textbook")
    return path


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


def test_generate_posts_form_fields(session, pdf_path, week_of_plans):
    session.post.return_value = FakeResponse(200, {"lessonPlans": week_of_plans})
    api = LessonPlanApi("http://planner.test/", session=session)

    plans = api.generate(str(pdf_path), 14, "Focus on labs")

    assert plans == week_of_plans
    args, kwargs = session.post.call_args
    assert args == ("http://planner.test/api/generate-lesson-plan",)
    assert kwargs["data"] == {"duration": "14", "teacherPrompt": "Focus on labs"}
    name, _, content_type = kwargs["files"]["pdf"]
    assert name == "physics.pdf"
    assert content_type == "application/pdf"


def test_server_error_message_is_shown_verbatim(session, pdf_path):
    session.post.return_value = FakeResponse(
        429, {"error": "OpenAI API quota exceeded. Please check your billing settings."}
    )
    api = LessonPlanApi("http://planner.test", session=session)

    with pytest.raises(GenerationFailed) as exc_info:
        api.generate(str(pdf_path), 7)

    assert exc_info.value.message == "OpenAI API quota exceeded. Please check your billing settings."
    assert exc_info.value.status_code == 429


def test_error_without_json_body(session, pdf_path):
    session.post.return_value = FakeResponse(502, text="Bad Gateway")
    api = LessonPlanApi("http://planner.test", session=session)

    with pytest.raises(GenerationFailed) as exc_info:
        api.generate(str(pdf_path), 7)

    assert exc_info.value.message == "Server error: 502"


def test_validation_error_list_is_not_shown_raw(session, pdf_path):
    session.post.return_value = FakeResponse(
        422,
        {"detail": [{"loc": ["body", "duration"], "msg": "Field required", "type": "missing"}]},
    )
    api = LessonPlanApi("http://planner.test", session=session)

    with pytest.raises(GenerationFailed) as exc_info:
        api.generate(str(pdf_path), 7)

    assert exc_info.value.message == "Server error: 422"


def test_string_detail_is_shown(session, week_of_plans):
    session.post.return_value = FakeResponse(401, {"detail": "Not connected to Google"})
    api = LessonPlanApi("http://planner.test", session=session)

    with pytest.raises(GenerationFailed) as exc_info:
        api.sync_to_google(week_of_plans)

    assert exc_info.value.message == "Not connected to Google"


@pytest.mark.parametrize("body", [{"lessonPlans": {}}, {}, {"lessonPlans": None}])
def test_empty_result_is_an_error(session, pdf_path, body):
    session.post.return_value = FakeResponse(200, body)
    api = LessonPlanApi("http://planner.test", session=session)

    with pytest.raises(GenerationFailed) as exc_info:
        api.generate(str(pdf_path), 7)

    assert exc_info.value.message == NO_PLANS_MESSAGE


def test_connection_error(session, pdf_path):
    session.post.side_effect = requests.ConnectionError("Connection refused")
    api = LessonPlanApi("http://planner.test", session=session)

    with pytest.raises(GenerationFailed) as exc_info:
        api.generate(str(pdf_path), 7)

    assert "Connection refused" in exc_info.value.message


def test_health(session):
    session.get.return_value = FakeResponse(200, {"message": "Lesson Plan Generator API"})
    api = LessonPlanApi("http://planner.test", session=session)

    assert api.health() == {"message": "Lesson Plan Generator API"}


def test_sync_to_google_sends_plans(session, week_of_plans):
    session.post.return_value = FakeResponse(200, {"synced": []})
    api = LessonPlanApi("http://planner.test", session=session)

    assert api.sync_to_google(week_of_plans) == {"synced": []}
    args, kwargs = session.post.call_args
    assert args == ("http://planner.test/api/calendar/sync-google",)
    assert kwargs["json"] == {"lessonPlans": week_of_plans}


def test_sync_to_google_not_connected(session, week_of_plans):
    session.post.return_value = FakeResponse(401, {"detail": "Google auth failed: Not connected to Google"})
    api = LessonPlanApi("http://planner.test", session=session)

    with pytest.raises(GenerationFailed) as exc_info:
        api.sync_to_google(week_of_plans)

    assert exc_info.value.status_code == 401
    assert "Not connected" in exc_info.value.message
