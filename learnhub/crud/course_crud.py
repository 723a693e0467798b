from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload, joinedload
from typing import List, Optional
import logging

from learnhub.models.enums import QuestionKind
from learnhub.models.course_model import Module, Chapter, Content, Quiz, QuizQuestion
from learnhub.schemas import course_schema as schemas
from learnhub.services.unlock_evaluator import ModuleNode, ChapterNode, ContentNode, QuizNode

logger = logging.getLogger(__name__)

# The hierarchy is read-only for learners; the create helpers below are the authoring
# seam used for seeding and by the test-suite.

def _next_order(db: Session, column, *filters) -> int:
    current_max = db.query(func.max(column)).filter(*filters).scalar()
    return 1 if current_max is None else current_max + 1

# --- Module ---
def create_module(db: Session, module_in: schemas.ModuleCreate) -> Module:
    logger.debug(f"Creating module titled '{module_in.title}'")
    data = module_in.model_dump()
    if data["module_order"] is None:
        data["module_order"] = _next_order(db, Module.module_order)
    db_module = Module(**data)
    db.add(db_module)
    db.commit()
    db.refresh(db_module)
    logger.info(f"Module '{db_module.title}' (ID: {db_module.id}, order {db_module.module_order}) created successfully.")
    return db_module

def get_module(db: Session, module_id: int) -> Optional[Module]:
    logger.debug(f"Fetching module with ID: {module_id}")
    return db.query(Module).filter(Module.id == module_id).first()

# --- Chapter ---
def create_chapter(db: Session, chapter_in: schemas.ChapterCreate, module_id: int) -> Chapter:
    logger.debug(f"Creating chapter '{chapter_in.title}' for module_id {module_id}")
    if not get_module(db, module_id):
        logger.error(f"Module with ID {module_id} not found. Cannot create chapter.")
        raise ValueError(f"Module with ID {module_id} not found.")

    data = chapter_in.model_dump()
    if data["chapter_order"] is None:
        data["chapter_order"] = _next_order(db, Chapter.chapter_order, Chapter.module_id == module_id)
    db_chapter = Chapter(**data, module_id=module_id)
    db.add(db_chapter)
    db.commit()
    db.refresh(db_chapter)
    logger.info(f"Chapter '{db_chapter.title}' (ID: {db_chapter.id}) created for module ID {module_id}.")
    return db_chapter

def get_chapter(db: Session, chapter_id: int) -> Optional[Chapter]:
    logger.debug(f"Fetching chapter with ID: {chapter_id}")
    return db.query(Chapter).filter(Chapter.id == chapter_id).first()

def get_active_chapter_ids_for_module(db: Session, module_id: int) -> List[int]:
    rows = db.query(Chapter.id).filter(
        Chapter.module_id == module_id,
        Chapter.is_active.is_(True)
    ).order_by(Chapter.chapter_order).all()
    return [row[0] for row in rows]

# --- Content ---
def create_content(db: Session, content_in: schemas.ContentCreate, chapter_id: int) -> Content:
    logger.debug(f"Creating content '{content_in.title}' for chapter_id {chapter_id}")
    if not get_chapter(db, chapter_id):
        logger.error(f"Chapter with ID {chapter_id} not found. Cannot create content.")
        raise ValueError(f"Chapter with ID {chapter_id} not found.")

    data = content_in.model_dump()
    if data["content_order"] is None:
        data["content_order"] = _next_order(db, Content.content_order, Content.chapter_id == chapter_id)
    db_content = Content(**data, chapter_id=chapter_id)
    db.add(db_content)
    db.commit()
    db.refresh(db_content)
    logger.info(f"Content '{db_content.title}' (ID: {db_content.id}, {db_content.duration_seconds}s) created for chapter ID {chapter_id}.")
    return db_content

def get_content(db: Session, content_id: int) -> Optional[Content]:
    logger.debug(f"Fetching content with ID: {content_id}")
    return db.query(Content).filter(Content.id == content_id).first()

def get_active_content_ids_for_chapter(db: Session, chapter_id: int) -> List[int]:
    rows = db.query(Content.id).filter(
        Content.chapter_id == chapter_id,
        Content.is_active.is_(True)
    ).order_by(Content.content_order).all()
    return [row[0] for row in rows]

# --- Quiz ---
def create_quiz(db: Session, quiz_in: schemas.QuizCreate, chapter_id: int) -> Quiz:
    logger.debug(f"Creating quiz '{quiz_in.title}' for chapter_id {chapter_id}")
    chapter = get_chapter(db, chapter_id)
    if not chapter:
        logger.error(f"Chapter with ID {chapter_id} not found. Cannot create quiz.")
        raise ValueError(f"Chapter with ID {chapter_id} not found.")
    if chapter.quiz is not None:
        raise ValueError(f"Chapter with ID {chapter_id} already has a quiz (ID: {chapter.quiz.id}).")

    db_quiz = Quiz(
        chapter_id=chapter_id,
        title=quiz_in.title,
        description=quiz_in.description,
        passing_score=quiz_in.passing_score,
        time_limit_minutes=quiz_in.time_limit_minutes,
    )
    db.add(db_quiz)
    db.flush() # Get quiz id for the questions

    for position, question_in in enumerate(quiz_in.questions, start=1):
        db_question = QuizQuestion(
            quiz_id=db_quiz.id,
            question_text=question_in.question_text,
            kind=QuestionKind(question_in.kind),
            question_order=position,
            explanation=question_in.explanation,
        )
        if isinstance(question_in, schemas.MultipleChoiceQuestionCreate):
            db_question.options = list(question_in.options)
            db_question.correct_option_index = question_in.correct_answer
        else:
            db_question.correct_boolean = question_in.correct_answer
        db.add(db_question)

    db.commit() # Commit quiz and questions together
    db.refresh(db_quiz)
    logger.info(f"Quiz '{db_quiz.title}' (ID: {db_quiz.id}) with {len(quiz_in.questions)} questions created for chapter ID {chapter_id}.")
    return db_quiz

def get_quiz_with_questions(db: Session, quiz_id: int) -> Optional[Quiz]:
    logger.debug(f"Fetching quiz with ID: {quiz_id} along with questions")
    return db.query(Quiz).options(
        selectinload(Quiz.questions),
        joinedload(Quiz.chapter).joinedload(Chapter.module)
    ).filter(Quiz.id == quiz_id).first()

# --- Active hierarchy snapshot ---
def get_active_modules(db: Session) -> List[Module]:
    logger.debug("Fetching active modules with chapters, contents and quizzes")
    return db.query(Module).options(
        selectinload(Module.chapters).selectinload(Chapter.contents),
        selectinload(Module.chapters).selectinload(Chapter.quiz),
    ).filter(Module.is_active.is_(True)).order_by(Module.module_order).all()

def load_active_hierarchy(db: Session) -> List[ModuleNode]:
    """
    Builds the immutable hierarchy snapshot consumed by the unlock evaluator.
    Inactive chapters and contents are dropped here, so they never count as a
    previous gate.
    """
    hierarchy = []
    for module in get_active_modules(db):
        chapters = []
        for chapter in module.chapters:
            if not chapter.is_active:
                continue
            contents = tuple(
                ContentNode(
                    id=content.id,
                    title=content.title,
                    content_type=content.content_type,
                    duration=content.duration_seconds,
                    order=content.content_order,
                )
                for content in chapter.contents if content.is_active
            )
            quiz = None
            if chapter.quiz is not None:
                quiz = QuizNode(id=chapter.quiz.id, title=chapter.quiz.title, passing_score=chapter.quiz.passing_score)
            chapters.append(ChapterNode(
                id=chapter.id,
                module_id=module.id,
                title=chapter.title,
                description=chapter.description,
                order=chapter.chapter_order,
                contents=contents,
                quiz=quiz,
            ))
        hierarchy.append(ModuleNode(
            id=module.id,
            title=module.title,
            description=module.description,
            order=module.module_order,
            chapters=tuple(chapters),
        ))
    return hierarchy
