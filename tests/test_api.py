import pytest

from learnhub.core.exceptions import QuizAlreadyPassedError
from learnhub.schemas.user_schema import TokenData


@pytest.fixture()
def course(builder):
    module = builder.module("Module 1")
    first_chapter = builder.chapter(module, "C1")
    content_a = builder.content(first_chapter, duration=120, title="A")
    content_b = builder.content(first_chapter, duration=60, title="B")
    quiz = builder.quiz(first_chapter, passing_score=70)
    second_chapter = builder.chapter(module, "C2")
    content_c = builder.content(second_chapter, duration=30, title="C")
    return {"module": module, "quiz": quiz, "a": content_a, "b": content_b, "c": content_c}


def post_progress(client, content, watch_time):
    return client.post(f"/api/v1/learn/content-progress/{content.id}", json={"watch_time": watch_time})


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "LearnHub" in response.json()["message"]


def test_anonymous_hierarchy_is_fully_locked(client, course):
    response = client.get("/api/v1/learn/modules")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["user_stats"] is None
    module = body["modules"][0]
    assert module["is_unlocked"] is False
    assert module["lock_reason"] == "not_authenticated"
    for chapter in module["chapters"]:
        assert chapter["is_unlocked"] is False
        assert all(content["is_unlocked"] is False for content in chapter["contents"])


def test_learner_hierarchy_has_progress_and_stats(client, auth, learner, course):
    auth.user = learner
    post_progress(client, course["a"], 60)

    body = client.get("/api/v1/learn/modules").json()

    chapter = body["modules"][0]["chapters"][0]
    assert chapter["is_unlocked"] is True
    assert chapter["contents"][0]["progress"] == 50
    assert chapter["contents"][0]["watch_time"] == 60
    assert chapter["contents"][1]["is_unlocked"] is False
    assert chapter["contents"][1]["lock_reason"] == "previous_content_incomplete"
    assert chapter["quiz"]["is_accessible"] is False
    assert body["user_stats"] == {"total_modules": 1, "completed_modules": 0, "total_watch_time": 60, "average_score": 0}


def test_progress_endpoint_clamps_and_completes(client, auth, learner, course):
    auth.user = learner

    response = post_progress(client, course["a"], 620)

    assert response.status_code == 200
    body = response.json()
    assert body["watch_time"] == 120
    assert body["is_completed"] is True
    assert body["progress"] == 100
    assert body["message"] == "Content completed successfully!"


def test_progress_on_locked_content_explains_why(client, auth, learner, course):
    auth.user = learner

    response = post_progress(client, course["b"], 10)

    assert response.status_code == 403
    body = response.json()
    assert body["reason"] == "content_locked"
    assert body["lock_reason"] == "previous_content_incomplete"
    assert "previous item" in body["detail"]


def test_progress_validation_and_not_found(client, auth, learner, course):
    auth.user = learner

    negative = post_progress(client, course["a"], -5)
    assert negative.status_code == 400
    assert negative.json()["reason"] == "invalid_input"
    assert client.post(f"/api/v1/learn/content-progress/{course['a'].id}", json={}).status_code == 422

    infinite = client.post(
        f"/api/v1/learn/content-progress/{course['a'].id}",
        content=b'{"watch_time": Infinity}',
        headers={"Content-Type": "application/json"},
    )
    assert infinite.status_code == 400
    assert infinite.json()["reason"] == "invalid_input"

    missing = client.post("/api/v1/learn/content-progress/9999", json={"watch_time": 5})
    assert missing.status_code == 404
    assert missing.json()["reason"] == "not_found"


def test_progress_requires_identity(client, course):
    assert post_progress(client, course["a"], 10).status_code == 401


def test_unverified_email_is_refused(client, auth, unverified_learner, course):
    auth.user = unverified_learner

    for response in (
        client.get("/api/v1/learn/modules"),
        post_progress(client, course["a"], 10),
        client.get(f"/api/v1/learn/quizzes/{course['quiz'].id}"),
    ):
        assert response.status_code == 403
        assert response.json()["email_not_verified"] is True


def test_quiz_flow_over_http(client, auth, learner, course, correct_answers):
    auth.user = learner
    quiz = course["quiz"]

    locked = client.get(f"/api/v1/learn/quizzes/{quiz.id}")
    assert locked.status_code == 403
    assert locked.json()["reason"] == "chapter_incomplete"

    post_progress(client, course["a"], 120)
    post_progress(client, course["b"], 60)

    fetched = client.get(f"/api/v1/learn/quizzes/{quiz.id}")
    assert fetched.status_code == 200
    payload = fetched.json()
    assert payload["time_limit"] == 30
    assert payload["chapter"]["module"]["title"] == "Module 1"
    assert all("correct_answer" not in question for question in payload["questions"])

    failing = {str(question_id): (not answer if isinstance(answer, bool) else 0) for question_id, answer in correct_answers(quiz).items()}
    failed = client.post(f"/api/v1/learn/quizzes/{quiz.id}/submit", json={"answers": failing})
    assert failed.status_code == 200
    assert failed.json()["passed"] is False
    assert failed.json()["score"] == 0

    answers = {str(question_id): answer for question_id, answer in correct_answers(quiz).items()}
    passed = client.post(f"/api/v1/learn/quizzes/{quiz.id}/submit", json={"answers": answers})
    assert passed.status_code == 200
    assert passed.json()["passed"] is True
    assert passed.json()["chapter_completed"] is True

    again = client.post(f"/api/v1/learn/quizzes/{quiz.id}/submit", json={"answers": answers})
    assert again.status_code == 409
    assert again.json()["reason"] == QuizAlreadyPassedError.reason
    assert again.json()["already_completed"] is True
    assert again.json()["result"]["score"] == 100

    refetch = client.get(f"/api/v1/learn/quizzes/{quiz.id}")
    assert refetch.status_code == 409

    chapters = client.get("/api/v1/learn/modules").json()["modules"][0]["chapters"]
    assert chapters[0]["is_completed"] is True
    assert chapters[1]["contents"][0]["is_unlocked"] is True


def test_malformed_quiz_answers(client, auth, learner, course):
    auth.user = learner
    post_progress(client, course["a"], 120)
    post_progress(client, course["b"], 60)
    quiz_id = course["quiz"].id

    unknown = client.post(f"/api/v1/learn/quizzes/{quiz_id}/submit", json={"answers": {"9999": 1}})
    assert unknown.status_code == 400
    assert unknown.json()["reason"] == "invalid_input"

    wrong_shape = client.post(f"/api/v1/learn/quizzes/{quiz_id}/submit", json={"answers": {"1": "one"}})
    assert wrong_shape.status_code == 422

    assert client.get("/api/v1/learn/quizzes/9999").status_code == 404


def test_module_completion_notification_listed(client, auth, learner, course, correct_answers):
    auth.user = learner
    post_progress(client, course["a"], 120)
    post_progress(client, course["b"], 60)
    answers = {str(question_id): answer for question_id, answer in correct_answers(course["quiz"]).items()}
    client.post(f"/api/v1/learn/quizzes/{course['quiz'].id}/submit", json={"answers": answers})

    assert client.get("/api/v1/learn/notifications").json() == []

    completed = post_progress(client, course["c"], 30)
    assert completed.json()["is_completed"] is True

    notifications = client.get("/api/v1/learn/notifications").json()
    assert len(notifications) == 1
    assert notifications[0]["title"] == "Module completed!"
    assert notifications[0]["notification_type"] == "SUCCESS"

    stats = client.get("/api/v1/learn/modules").json()["user_stats"]
    assert stats["completed_modules"] == 1
    assert stats["average_score"] == 100


def test_admin_reconcile(client, auth, db, learner, admin, course):
    from learnhub.crud import user_progress_crud
    for key in ("a", "b"):
        content = course[key]
        user_progress_crud.upsert_content_watch_time(db, learner.id, content.id, content.duration_seconds)
        user_progress_crud.mark_content_completed(db, learner.id, content.id)

    auth.user = learner
    assert client.post(f"/api/v1/admin/users/{learner.id}/reconcile").status_code == 403

    auth.user = admin
    response = client.post(f"/api/v1/admin/users/{learner.id}/reconcile")
    assert response.status_code == 200
    # C1 still waits for its quiz
    assert response.json() == {"user_id": learner.id, "chapters_completed": [], "modules_completed": []}

    assert client.post("/api/v1/admin/users/9999/reconcile").status_code == 404


def test_register_and_login_sync_verified_flag(client, auth, db, monkeypatch):
    from learnhub.routes import auth_routes

    token = {"data": TokenData(firebase_uid="fb-new", email="new@learnhub.io", email_verified=False, name="New Learner")}
    monkeypatch.setattr(auth_routes, "verify_firebase_id_token", lambda id_token: token["data"])

    registered = client.post("/api/v1/auth/register", json={"firebase_id_token": "token"})
    assert registered.status_code == 201
    user = registered.json()["user"]
    assert user["role"] == "Learner"
    assert user["display_name"] == "New Learner"
    assert user["email_verified"] is False

    assert client.post("/api/v1/auth/register", json={"firebase_id_token": "token"}).status_code == 409

    token["data"] = TokenData(firebase_uid="fb-new", email="new@learnhub.io", email_verified=True)
    logged_in = client.post("/api/v1/auth/login", json={"firebase_id_token": "token"})
    assert logged_in.status_code == 200
    assert logged_in.json()["user"]["email_verified"] is True

    token["data"] = TokenData(firebase_uid="fb-unknown", email="ghost@learnhub.io")
    assert client.post("/api/v1/auth/login", json={"firebase_id_token": "token"}).status_code == 404
