import pytest

from learnhub.core.exceptions import (
    ChapterIncompleteError, InvalidInputError, QuizAlreadyPassedError, ResourceNotFoundError
)
from learnhub.crud import user_progress_crud
from learnhub.models import QuizResult
from learnhub.services import completion_cascade, quiz_gate
from learnhub.services.quiz_gate import QuizState


@pytest.fixture()
def quiz_chapter(builder):
    module = builder.module("Module 1")
    chapter = builder.chapter(module, "Chapter 1")
    contents = [builder.content(chapter, duration=120), builder.content(chapter, duration=60)]
    next_chapter = builder.chapter(module, "Chapter 2")
    builder.content(next_chapter, duration=30)
    quiz = builder.quiz(chapter, passing_score=70)
    return chapter, contents, quiz


def finish_contents(db, user, contents):
    for content in contents:
        user_progress_crud.upsert_content_watch_time(db, user.id, content.id, content.duration_seconds)
        completion_cascade.complete_content(db, user.id, content.id, content.chapter_id)


def question_ids(quiz):
    multiple_choice, true_false = quiz.questions
    return multiple_choice.id, true_false.id


def test_state_machine_progression(db, learner, quiz_chapter, correct_answers):
    _, contents, quiz = quiz_chapter
    mc, tf = question_ids(quiz)

    assert quiz_gate.quiz_state(db, learner.id, quiz) == QuizState.LOCKED
    finish_contents(db, learner, contents)
    assert quiz_gate.quiz_state(db, learner.id, quiz) == QuizState.AVAILABLE

    quiz_gate.submit_quiz(db, learner.id, quiz.id, {mc: 0, tf: True})
    assert quiz_gate.quiz_state(db, learner.id, quiz) == QuizState.FAILED

    quiz_gate.submit_quiz(db, learner.id, quiz.id, correct_answers(quiz))
    assert quiz_gate.quiz_state(db, learner.id, quiz) == QuizState.PASSED


def test_fetch_rejected_while_chapter_incomplete(db, learner, quiz_chapter):
    _, contents, quiz = quiz_chapter
    finish_contents(db, learner, contents[:1])

    with pytest.raises(ChapterIncompleteError) as excinfo:
        quiz_gate.fetch_quiz(db, learner.id, quiz.id)
    assert excinfo.value.reason == "chapter_incomplete"
    assert excinfo.value.status_code == 403


def test_fetch_redacts_answers_and_fills_defaults(db, learner, quiz_chapter):
    chapter, contents, quiz = quiz_chapter
    finish_contents(db, learner, contents)

    payload = quiz_gate.fetch_quiz(db, learner.id, quiz.id)

    assert payload.id == quiz.id
    assert payload.chapter_id == chapter.id
    assert payload.passing_score == 70
    assert payload.time_limit == 30
    assert payload.chapter.title == "Chapter 1"
    assert payload.chapter.module.title == "Module 1"
    assert [q.kind for q in payload.questions] == ["MULTIPLE_CHOICE", "TRUE_FALSE"]
    assert payload.questions[0].options == ["zero", "one", "two", "three"]
    assert payload.questions[1].options is None
    for question in payload.model_dump()["questions"]:
        assert "correct_answer" not in question
        assert "explanation" not in question


def test_failed_attempt_is_stored_and_retry_allowed(db, learner, quiz_chapter):
    chapter, contents, quiz = quiz_chapter
    mc, tf = question_ids(quiz)
    finish_contents(db, learner, contents)

    result = quiz_gate.submit_quiz(db, learner.id, quiz.id, {mc: 1, tf: False})

    assert result.score == 50
    assert not result.passed
    assert result.correct_answers == 1
    assert result.total_questions == 2
    assert not result.chapter_completed
    assert result.message == "Insufficient score (50%). Minimum required: 70%"
    feedback = {item.question_id: item for item in result.results}
    assert feedback[mc].is_correct and feedback[mc].correct_answer == 1
    assert not feedback[tf].is_correct and feedback[tf].correct_answer is True
    assert feedback[tf].explanation == "Completed nodes never revert."

    # FAILED re-serves the questions
    assert quiz_gate.fetch_quiz(db, learner.id, quiz.id).id == quiz.id
    assert not user_progress_crud.is_chapter_completed(db, learner.id, chapter.id)

    quiz_gate.submit_quiz(db, learner.id, quiz.id, {mc: 2})
    rows = db.query(QuizResult).filter_by(user_id=learner.id, quiz_id=quiz.id).all()
    assert len(rows) == 1
    assert rows[0].score == 0


def test_pass_completes_chapter_and_is_terminal(db, learner, quiz_chapter, correct_answers):
    chapter, contents, quiz = quiz_chapter
    mc, tf = question_ids(quiz)
    finish_contents(db, learner, contents)

    result = quiz_gate.submit_quiz(db, learner.id, quiz.id, correct_answers(quiz))

    assert result.passed
    assert result.score == 100
    assert result.chapter_completed
    assert result.message == "Quiz passed!"
    assert user_progress_crud.is_chapter_completed(db, learner.id, chapter.id)

    with pytest.raises(QuizAlreadyPassedError) as excinfo:
        quiz_gate.submit_quiz(db, learner.id, quiz.id, {mc: 0, tf: False})
    body = excinfo.value.to_dict()
    assert body["already_completed"] is True
    assert body["result"]["score"] == 100
    assert body["result"]["passed"] is True

    with pytest.raises(QuizAlreadyPassedError):
        quiz_gate.fetch_quiz(db, learner.id, quiz.id)

    stored = user_progress_crud.get_quiz_result(db, learner.id, quiz.id)
    assert (stored.score, stored.passed) == (100, True)
    assert user_progress_crud.is_chapter_completed(db, learner.id, chapter.id)


def test_passing_score_boundary_is_inclusive(db, learner, builder):
    module = builder.module()
    chapter = builder.chapter(module)
    content = builder.content(chapter, duration=10)
    quiz = builder.quiz(chapter, passing_score=50)
    finish_contents(db, learner, [content])
    mc, tf = question_ids(quiz)

    result = quiz_gate.submit_quiz(db, learner.id, quiz.id, {mc: 1, tf: False})

    assert result.score == 50
    assert result.passed


def test_score_is_rounded_to_nearest_integer(db, learner, builder):
    module = builder.module()
    chapter = builder.chapter(module)
    content = builder.content(chapter, duration=10)
    quiz = builder.quiz(chapter, passing_score=60, questions=[
        {"kind": "TRUE_FALSE", "question_text": f"Statement {i}", "correct_answer": True} for i in range(3)
    ])
    finish_contents(db, learner, [content])
    ids = [question.id for question in quiz.questions]

    result = quiz_gate.submit_quiz(db, learner.id, quiz.id, {ids[0]: True, ids[1]: True, ids[2]: False})

    assert result.score == 67
    assert result.passed


def test_unanswered_questions_count_as_wrong(db, learner, quiz_chapter):
    _, contents, quiz = quiz_chapter
    mc, _ = question_ids(quiz)
    finish_contents(db, learner, contents)

    result = quiz_gate.submit_quiz(db, learner.id, quiz.id, {mc: 1})

    assert result.correct_answers == 1
    assert result.score == 50
    assert [item.submitted_answer for item in result.results] == [1, None]


@pytest.mark.parametrize("make_answers", [
    lambda mc, tf: {9999: True},
    lambda mc, tf: {mc: True},
    lambda mc, tf: {mc: 4},
    lambda mc, tf: {mc: -1},
    lambda mc, tf: {tf: 1},
])
def test_malformed_answers_rejected_before_any_write(db, learner, quiz_chapter, make_answers):
    _, contents, quiz = quiz_chapter
    finish_contents(db, learner, contents)

    with pytest.raises(InvalidInputError):
        quiz_gate.submit_quiz(db, learner.id, quiz.id, make_answers(*question_ids(quiz)))
    assert user_progress_crud.get_quiz_result(db, learner.id, quiz.id) is None


def test_missing_or_empty_quiz_is_not_found(db, learner, builder):
    with pytest.raises(ResourceNotFoundError):
        quiz_gate.fetch_quiz(db, learner.id, 404)

    module = builder.module()
    chapter = builder.chapter(module)
    empty_quiz = builder.quiz(chapter, questions=[])
    with pytest.raises(ResourceNotFoundError):
        quiz_gate.submit_quiz(db, learner.id, empty_quiz.id, {})


def test_quiz_of_inactive_chapter_is_not_found(db, learner, builder):
    module = builder.module()
    chapter = builder.chapter(module, is_active=False)
    quiz = builder.quiz(chapter)

    with pytest.raises(ResourceNotFoundError):
        quiz_gate.fetch_quiz(db, learner.id, quiz.id)


def test_passed_quiz_request_finishes_interrupted_chapter(db, learner, quiz_chapter):
    chapter, contents, quiz = quiz_chapter
    finish_contents(db, learner, contents)
    # The pass was stored but the chapter tier never ran
    user_progress_crud.replace_quiz_result(db, learner.id, quiz.id, 100, {}, passed=True)
    assert not user_progress_crud.is_chapter_completed(db, learner.id, chapter.id)

    with pytest.raises(QuizAlreadyPassedError):
        quiz_gate.fetch_quiz(db, learner.id, quiz.id)

    assert user_progress_crud.is_chapter_completed(db, learner.id, chapter.id)
