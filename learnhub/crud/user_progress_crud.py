from sqlalchemy import case, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Any, Callable, Dict, Iterable, Optional, Set
import logging
from datetime import datetime, timezone

from learnhub.models.course_model import Quiz
from learnhub.models.user_progress_model import ContentProgress, ChapterProgress, ModuleProgress, QuizResult
from learnhub.services.unlock_evaluator import ProgressSnapshot, ContentProgressState

logger = logging.getLogger(__name__)

# Every write below is keyed by the (user, entity) composite and committed on its own.
# Concurrent duplicates (two tabs reporting the same content) resolve inside the
# database through INSERT ... ON CONFLICT rather than a read-then-write.

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

def _dialect_insert(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise ValueError(f"Unsupported database dialect '{dialect}': DATABASE_URL must point to PostgreSQL or SQLite.")

def _commit(db: Session, description: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error saving {description}: {e}", exc_info=True)
        raise

# --- Content progress ---
def upsert_content_watch_time(db: Session, user_id: int, content_id: int, watch_time_seconds: int) -> ContentProgress:
    """
    Creates the content progress row or raises its stored watch time.
    The stored value is the furthest position reported; a smaller sample never lowers it.
    """
    logger.debug(f"Upserting watch time {watch_time_seconds}s for user_id {user_id}, content_id {content_id}")
    table = ContentProgress.__table__
    now = _utcnow()

    stmt = _dialect_insert(db)(table).values(
        user_id=user_id,
        content_id=content_id,
        watch_time_seconds=watch_time_seconds,
        is_completed=False,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.user_id, table.c.content_id],
        set_={
            "watch_time_seconds": case(
                (table.c.watch_time_seconds > stmt.excluded.watch_time_seconds, table.c.watch_time_seconds),
                else_=stmt.excluded.watch_time_seconds,
            ),
            "updated_at": now,
        },
    )
    try:
        db.execute(stmt)
    except SQLAlchemyError:
        db.rollback()
        raise
    _commit(db, f"content progress for user {user_id}, content {content_id}")
    return get_content_progress(db, user_id, content_id)

def _mark_completed(db: Session, model, entity_column, user_id: int, entity_id: int,
                    on_transition: Optional[Callable[[], None]] = None) -> bool:
    """
    Sets `is_completed` for the (user, entity) row, creating the row if needed.

    Returns True only for the call that performed the false -> true transition, so
    side effects hanging off a transition (notifications) fire once even when the
    same cascade runs concurrently or is retried. `on_transition` runs inside the same
    transaction before the commit; if it fails, the transition is rolled back with it.
    """
    now = _utcnow()
    try:
        result = db.execute(
            update(model)
            .where(model.user_id == user_id, entity_column == entity_id, model.is_completed.is_(False))
            .values(is_completed=True, completed_at=now)
            .execution_options(synchronize_session=False)
        )
        transitioned = result.rowcount == 1
        if not transitioned:
            table = model.__table__
            stmt = _dialect_insert(db)(table).values(
                user_id=user_id,
                **{entity_column.key: entity_id},
                is_completed=True,
                completed_at=now,
            ).on_conflict_do_nothing(index_elements=[table.c.user_id, table.c[entity_column.key]])
            transitioned = db.execute(stmt).rowcount == 1
        if transitioned and on_transition is not None:
            on_transition()
    except SQLAlchemyError:
        db.rollback()
        raise
    _commit(db, f"{model.__tablename__} completion for user {user_id}, {entity_column.key} {entity_id}")
    if transitioned:
        logger.info(f"{model.__name__} completed for user {user_id}, {entity_column.key} {entity_id}.")
    return transitioned

def mark_content_completed(db: Session, user_id: int, content_id: int) -> bool:
    return _mark_completed(db, ContentProgress, ContentProgress.content_id, user_id, content_id)

def get_content_progress(db: Session, user_id: int, content_id: int) -> Optional[ContentProgress]:
    logger.debug(f"Fetching content progress for user_id {user_id}, content_id {content_id}")
    return db.query(ContentProgress).filter(
        ContentProgress.user_id == user_id,
        ContentProgress.content_id == content_id
    ).first()

def get_completed_content_ids(db: Session, user_id: int, content_ids: Iterable[int]) -> Set[int]:
    content_ids = list(content_ids)
    if not content_ids:
        return set()
    rows = db.query(ContentProgress.content_id).filter(
        ContentProgress.user_id == user_id,
        ContentProgress.content_id.in_(content_ids),
        ContentProgress.is_completed.is_(True)
    ).all()
    return {row[0] for row in rows}

# --- Chapter progress ---
def mark_chapter_completed(db: Session, user_id: int, chapter_id: int) -> bool:
    return _mark_completed(db, ChapterProgress, ChapterProgress.chapter_id, user_id, chapter_id)

def get_completed_chapter_ids(db: Session, user_id: int, chapter_ids: Iterable[int]) -> Set[int]:
    chapter_ids = list(chapter_ids)
    if not chapter_ids:
        return set()
    rows = db.query(ChapterProgress.chapter_id).filter(
        ChapterProgress.user_id == user_id,
        ChapterProgress.chapter_id.in_(chapter_ids),
        ChapterProgress.is_completed.is_(True)
    ).all()
    return {row[0] for row in rows}

def is_chapter_completed(db: Session, user_id: int, chapter_id: int) -> bool:
    return chapter_id in get_completed_chapter_ids(db, user_id, [chapter_id])

# --- Module progress ---
def mark_module_completed(db: Session, user_id: int, module_id: int,
                          on_transition: Optional[Callable[[], None]] = None) -> bool:
    return _mark_completed(db, ModuleProgress, ModuleProgress.module_id, user_id, module_id, on_transition)

def get_module_progress(db: Session, user_id: int, module_id: int) -> Optional[ModuleProgress]:
    return db.query(ModuleProgress).filter(
        ModuleProgress.user_id == user_id,
        ModuleProgress.module_id == module_id
    ).first()

# --- Quiz results ---
def get_quiz_result(db: Session, user_id: int, quiz_id: int) -> Optional[QuizResult]:
    logger.debug(f"Fetching quiz result for user_id {user_id}, quiz_id {quiz_id}")
    return db.query(QuizResult).filter(
        QuizResult.user_id == user_id,
        QuizResult.quiz_id == quiz_id
    ).first()

def has_passed_quiz(db: Session, user_id: int, quiz_id: int) -> bool:
    return db.query(QuizResult.id).filter(
        QuizResult.user_id == user_id,
        QuizResult.quiz_id == quiz_id,
        QuizResult.passed.is_(True)
    ).first() is not None

def replace_quiz_result(db: Session, user_id: int, quiz_id: int, score: int, answers: Dict[str, Any], passed: bool) -> QuizResult:
    """
    Stores a new attempt for (user, quiz): any prior non-passing result is deleted and the
    new row created in the same transaction. A passing row is never deleted here, so a
    racing insert after a pass fails on the unique constraint instead of overwriting it.
    """
    logger.debug(f"Replacing quiz result for user_id {user_id}, quiz_id {quiz_id} (score {score}, passed {passed})")
    try:
        db.query(QuizResult).filter(
            QuizResult.user_id == user_id,
            QuizResult.quiz_id == quiz_id,
            QuizResult.passed.is_(False)
        ).delete(synchronize_session=False)
        result = QuizResult(user_id=user_id, quiz_id=quiz_id, score=score, answers=answers, passed=passed)
        db.add(result)
        db.commit()
        db.refresh(result)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error saving quiz result for user {user_id}, quiz {quiz_id}: {e}", exc_info=True)
        raise
    logger.info(f"Quiz result saved for user {user_id}, quiz {quiz_id} (ID: {result.id}, passed: {passed}).")
    return result

# --- Snapshot for the unlock evaluator ---
def load_progress_snapshot(db: Session, user_id: int) -> ProgressSnapshot:
    """Reads every progress row of one learner into the evaluator's snapshot shape."""
    logger.debug(f"Loading progress snapshot for user_id {user_id}")
    contents = {
        row.content_id: ContentProgressState(watch_time=row.watch_time_seconds or 0, is_completed=bool(row.is_completed))
        for row in db.query(ContentProgress).filter(ContentProgress.user_id == user_id).all()
    }
    completed_chapters = {
        row[0] for row in db.query(ChapterProgress.chapter_id).filter(
            ChapterProgress.user_id == user_id,
            ChapterProgress.is_completed.is_(True)
        ).all()
    }
    completed_modules = {
        row[0] for row in db.query(ModuleProgress.module_id).filter(
            ModuleProgress.user_id == user_id,
            ModuleProgress.is_completed.is_(True)
        ).all()
    }
    passed_scores = {
        chapter_id: score for chapter_id, score in db.query(Quiz.chapter_id, QuizResult.score).join(
            Quiz, Quiz.id == QuizResult.quiz_id
        ).filter(
            QuizResult.user_id == user_id,
            QuizResult.passed.is_(True)
        ).all()
    }
    return ProgressSnapshot(
        user_id=user_id,
        contents=contents,
        completed_chapter_ids=completed_chapters,
        completed_module_ids=completed_modules,
        passed_quiz_scores=passed_scores,
    )