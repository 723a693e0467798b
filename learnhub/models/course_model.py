from sqlalchemy import (
    Column, Integer, String, Text, Boolean, ForeignKey, TIMESTAMP, JSON,
    Enum as SAEnum, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from learnhub.core.database import Base
from learnhub.models.enums import ContentType, QuestionKind

class Module(Base):
    __tablename__ = "modules"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    module_order = Column(Integer, nullable=False, default=0) # Ranking among modules, ascending defines the sequence
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), default=func.now(), onupdate=func.now())

    # Relationships
    chapters = relationship("Chapter", back_populates="module", cascade="all, delete-orphan", order_by="Chapter.chapter_order")
    progress_entries = relationship("ModuleProgress", back_populates="module", cascade="all, delete-orphan")

    __table_args__ = (UniqueConstraint('module_order', name='uq_module_order'),)

    def __repr__(self):
        return f"<Module(id={self.id}, title='{self.title}', order={self.module_order})>"

class Chapter(Base):
    __tablename__ = "chapters"

    id = Column(Integer, primary_key=True, index=True)
    module_id = Column(Integer, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    chapter_order = Column(Integer, nullable=False, default=0) # To order chapters within a module
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), default=func.now(), onupdate=func.now())

    # Relationships
    module = relationship("Module", back_populates="chapters")
    contents = relationship("Content", back_populates="chapter", cascade="all, delete-orphan", order_by="Content.content_order")
    # One-to-zero-or-one: the quiz gating this chapter's completion
    quiz = relationship("Quiz", back_populates="chapter", uselist=False, cascade="all, delete-orphan")
    progress_entries = relationship("ChapterProgress", back_populates="chapter", cascade="all, delete-orphan")

    __table_args__ = (UniqueConstraint('module_id', 'chapter_order', name='uq_module_chapter_order'),)

    def __repr__(self):
        return f"<Chapter(id={self.id}, title='{self.title}', module_id={self.module_id})>"

class Content(Base):
    __tablename__ = "contents"

    id = Column(Integer, primary_key=True, index=True)
    chapter_id = Column(Integer, ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    content_order = Column(Integer, nullable=False, default=0) # To order content within a chapter
    content_type = Column(SAEnum(ContentType, name="content_type_enum", values_callable=lambda obj: [e.value for e in obj]), nullable=False)
    url = Column(String(1024), nullable=False)
    duration_seconds = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), default=func.now(), onupdate=func.now())

    # Relationships
    chapter = relationship("Chapter", back_populates="contents")
    progress_entries = relationship("ContentProgress", back_populates="content", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('chapter_id', 'content_order', name='uq_chapter_content_order'),
        CheckConstraint('duration_seconds > 0', name='ck_content_duration_positive'),
    )

    def __repr__(self):
        return f"<Content(id={self.id}, title='{self.title}', type='{self.content_type}')>"

class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(Integer, primary_key=True, index=True)
    chapter_id = Column(Integer, ForeignKey("chapters.id", ondelete="CASCADE"), unique=True, nullable=False)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    passing_score = Column(Integer, nullable=False, default=70) # Percentage, inclusive
    time_limit_minutes = Column(Integer, nullable=True) # Falls back to settings.QUIZ_TIME_LIMIT_MINUTES

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), default=func.now(), onupdate=func.now())

    # Relationships
    chapter = relationship("Chapter", back_populates="quiz")
    questions = relationship("QuizQuestion", back_populates="quiz", cascade="all, delete-orphan", order_by="QuizQuestion.question_order")
    results = relationship("QuizResult", back_populates="quiz", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint('passing_score >= 0 AND passing_score <= 100', name='ck_quiz_passing_score_range'),
    )

    def __repr__(self):
        return f"<Quiz(id={self.id}, title='{self.title}', chapter_id={self.chapter_id})>"

class QuizQuestion(Base):
    __tablename__ = "quiz_questions"

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False)
    question_text = Column(Text, nullable=False)
    kind = Column(SAEnum(QuestionKind, name="question_kind_enum", values_callable=lambda obj: [e.value for e in obj]), nullable=False)
    question_order = Column(Integer, nullable=False, default=0)
    explanation = Column(Text, nullable=True)

    # Kind-specific payload: MULTIPLE_CHOICE uses options + correct_option_index, TRUE_FALSE uses correct_boolean
    options = Column(JSON, nullable=True)
    correct_option_index = Column(Integer, nullable=True)
    correct_boolean = Column(Boolean, nullable=True)

    # Relationships
    quiz = relationship("Quiz", back_populates="questions")

    __table_args__ = (UniqueConstraint('quiz_id', 'question_order', name='uq_quiz_question_order'),)

    @property
    def correct_answer(self):
        if self.kind == QuestionKind.TRUE_FALSE:
            return bool(self.correct_boolean)
        return self.correct_option_index

    def __repr__(self):
        return f"<QuizQuestion(id={self.id}, quiz_id={self.quiz_id}, kind='{self.kind}')>"
