from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError

from learnhub.crud import course_crud, user_progress_crud
from learnhub.models import ChapterProgress, ContentProgress, QuizResult
from learnhub.models.enums import QuestionKind


@pytest.fixture()
def chapter_with_contents(builder):
    module = builder.module("Foundations")
    chapter = builder.chapter(module, "Getting started")
    first = builder.content(chapter, duration=120, title="Intro")
    second = builder.content(chapter, duration=60, title="Setup")
    return module, chapter, first, second


def test_watch_time_upsert_creates_then_keeps_furthest_position(db, learner, chapter_with_contents):
    _, _, first, _ = chapter_with_contents

    row = user_progress_crud.upsert_content_watch_time(db, learner.id, first.id, 40)
    assert row.watch_time_seconds == 40
    assert not row.is_completed

    assert user_progress_crud.upsert_content_watch_time(db, learner.id, first.id, 90).watch_time_seconds == 90
    assert user_progress_crud.upsert_content_watch_time(db, learner.id, first.id, 10).watch_time_seconds == 90
    assert db.query(ContentProgress).filter_by(user_id=learner.id, content_id=first.id).count() == 1


def test_mark_completed_reports_transition_once(db, learner, chapter_with_contents):
    _, _, first, _ = chapter_with_contents
    user_progress_crud.upsert_content_watch_time(db, learner.id, first.id, 120)

    assert user_progress_crud.mark_content_completed(db, learner.id, first.id) is True
    assert user_progress_crud.mark_content_completed(db, learner.id, first.id) is False

    row = user_progress_crud.get_content_progress(db, learner.id, first.id)
    assert row.is_completed
    assert row.completed_at is not None


def test_completion_survives_later_lower_samples(db, learner, chapter_with_contents):
    _, _, first, _ = chapter_with_contents
    user_progress_crud.upsert_content_watch_time(db, learner.id, first.id, 120)
    user_progress_crud.mark_content_completed(db, learner.id, first.id)

    row = user_progress_crud.upsert_content_watch_time(db, learner.id, first.id, 5)
    assert row.is_completed
    assert row.watch_time_seconds == 120


def test_mark_completed_creates_missing_row(db, learner, chapter_with_contents):
    _, chapter, _, _ = chapter_with_contents

    assert user_progress_crud.mark_chapter_completed(db, learner.id, chapter.id) is True
    assert user_progress_crud.mark_chapter_completed(db, learner.id, chapter.id) is False
    assert db.query(ChapterProgress).filter_by(user_id=learner.id, chapter_id=chapter.id).count() == 1
    assert user_progress_crud.is_chapter_completed(db, learner.id, chapter.id)


def test_failed_quiz_result_is_replaced_and_passing_result_is_final(db, learner, builder, chapter_with_contents):
    _, chapter, _, _ = chapter_with_contents
    quiz = builder.quiz(chapter)

    user_progress_crud.replace_quiz_result(db, learner.id, quiz.id, 50, {"1": 0}, passed=False)
    user_progress_crud.replace_quiz_result(db, learner.id, quiz.id, 60, {"1": 2}, passed=False)
    rows = db.query(QuizResult).filter_by(user_id=learner.id, quiz_id=quiz.id).all()
    assert [(row.score, row.passed) for row in rows] == [(60, False)]

    user_progress_crud.replace_quiz_result(db, learner.id, quiz.id, 100, {"1": 1}, passed=True)
    assert user_progress_crud.has_passed_quiz(db, learner.id, quiz.id)

    with pytest.raises(IntegrityError):
        user_progress_crud.replace_quiz_result(db, learner.id, quiz.id, 0, {}, passed=False)
    stored = user_progress_crud.get_quiz_result(db, learner.id, quiz.id)
    assert (stored.score, stored.passed) == (100, True)


def test_progress_snapshot_collects_all_tiers(db, learner, builder, chapter_with_contents):
    module, chapter, first, second = chapter_with_contents
    quiz = builder.quiz(chapter)
    user_progress_crud.upsert_content_watch_time(db, learner.id, first.id, 120)
    user_progress_crud.mark_content_completed(db, learner.id, first.id)
    user_progress_crud.upsert_content_watch_time(db, learner.id, second.id, 30)
    user_progress_crud.mark_chapter_completed(db, learner.id, chapter.id)
    user_progress_crud.mark_module_completed(db, learner.id, module.id)
    user_progress_crud.replace_quiz_result(db, learner.id, quiz.id, 100, {}, passed=True)

    snapshot = user_progress_crud.load_progress_snapshot(db, learner.id)

    assert snapshot.user_id == learner.id
    assert snapshot.contents[first.id].is_completed
    assert snapshot.contents[second.id].watch_time == 30
    assert not snapshot.contents[second.id].is_completed
    assert snapshot.completed_chapter_ids == {chapter.id}
    assert snapshot.completed_module_ids == {module.id}
    assert snapshot.passed_quiz_scores == {chapter.id: 100}


def test_snapshot_is_scoped_to_one_learner(db, learner, admin, chapter_with_contents):
    _, _, first, _ = chapter_with_contents
    user_progress_crud.upsert_content_watch_time(db, admin.id, first.id, 120)
    user_progress_crud.mark_content_completed(db, admin.id, first.id)

    assert user_progress_crud.load_progress_snapshot(db, learner.id).contents == {}


def test_authoring_orders_default_to_last_plus_one(db, builder):
    first = builder.module("One")
    second = builder.module("Two")
    chapter = builder.chapter(first)
    contents = [builder.content(chapter), builder.content(chapter), builder.content(chapter)]

    assert (first.module_order, second.module_order) == (1, 2)
    assert chapter.chapter_order == 1
    assert [c.content_order for c in contents] == [1, 2, 3]
    assert builder.chapter(second).chapter_order == 1


def test_create_quiz_stores_tagged_questions(db, builder, chapter_with_contents):
    _, chapter, _, _ = chapter_with_contents
    quiz = builder.quiz(chapter, passing_score=80)
    loaded = course_crud.get_quiz_with_questions(db, quiz.id)

    assert loaded.passing_score == 80
    multiple_choice, true_false = loaded.questions
    assert multiple_choice.kind == QuestionKind.MULTIPLE_CHOICE
    assert multiple_choice.options == ["zero", "one", "two", "three"]
    assert multiple_choice.correct_answer == 1
    assert true_false.kind == QuestionKind.TRUE_FALSE
    assert true_false.correct_answer is True
    assert true_false.options is None

    with pytest.raises(ValueError):
        builder.quiz(chapter)


def test_active_hierarchy_skips_inactive_nodes(db, builder):
    hidden_module = builder.module("Hidden", is_active=False)
    builder.chapter(hidden_module)
    module = builder.module("Visible")
    builder.chapter(module, "Draft", is_active=False)
    chapter = builder.chapter(module, "Live")
    builder.content(chapter, title="Retired", is_active=False)
    kept = builder.content(chapter, title="Current")

    hierarchy = course_crud.load_active_hierarchy(db)

    assert [m.title for m in hierarchy] == ["Visible"]
    assert [c.title for c in hierarchy[0].chapters] == ["Live"]
    assert [c.id for c in hierarchy[0].chapters[0].contents] == [kept.id]
    assert course_crud.get_active_content_ids_for_chapter(db, chapter.id) == [kept.id]
    assert course_crud.get_active_chapter_ids_for_module(db, module.id) == [chapter.id]


def test_unsupported_dialect_is_rejected():
    mysql_session = SimpleNamespace(get_bind=lambda: SimpleNamespace(dialect=SimpleNamespace(name="mysql")))

    with pytest.raises(ValueError, match="mysql"):
        user_progress_crud.upsert_content_watch_time(mysql_session, 1, 1, 10)
