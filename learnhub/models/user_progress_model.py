from sqlalchemy import Column, Integer, Boolean, TIMESTAMP, ForeignKey, UniqueConstraint, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from learnhub.core.database import Base

# Progress rows are created lazily on first interaction and are never deleted by learner
# actions. `is_completed` is monotonic: once true it is never written back to false.

class ContentProgress(Base):
    __tablename__ = "content_progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content_id = Column(Integer, ForeignKey("contents.id", ondelete="CASCADE"), nullable=False)

    watch_time_seconds = Column(Integer, nullable=False, default=0) # Furthest position reported, clamped to the duration
    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(TIMESTAMP(timezone=True), nullable=True)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="content_progress_entries")
    content = relationship("Content", back_populates="progress_entries")

    __table_args__ = (
        UniqueConstraint('user_id', 'content_id', name='uq_user_content_progress'),
    )

    def __repr__(self):
        return f"<ContentProgress(user_id={self.user_id}, content_id={self.content_id}, watch_time={self.watch_time_seconds}, completed={self.is_completed})>"

class ChapterProgress(Base):
    __tablename__ = "chapter_progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    chapter_id = Column(Integer, ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False)

    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(TIMESTAMP(timezone=True), nullable=True)

    # Relationships
    user = relationship("User", back_populates="chapter_progress_entries")
    chapter = relationship("Chapter", back_populates="progress_entries")

    __table_args__ = (
        UniqueConstraint('user_id', 'chapter_id', name='uq_user_chapter_progress'),
    )

    def __repr__(self):
        return f"<ChapterProgress(user_id={self.user_id}, chapter_id={self.chapter_id}, completed={self.is_completed})>"

class ModuleProgress(Base):
    __tablename__ = "module_progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    module_id = Column(Integer, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False)

    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(TIMESTAMP(timezone=True), nullable=True)

    # Relationships
    user = relationship("User", back_populates="module_progress_entries")
    module = relationship("Module", back_populates="progress_entries")

    __table_args__ = (
        UniqueConstraint('user_id', 'module_id', name='uq_user_module_progress'),
    )

    def __repr__(self):
        return f"<ModuleProgress(user_id={self.user_id}, module_id={self.module_id}, completed={self.is_completed})>"

class QuizResult(Base):
    __tablename__ = "quiz_results"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False)

    score = Column(Integer, nullable=False) # 0-100, rounded half up
    answers = Column(JSON, nullable=False)  # question id (as string) -> submitted answer
    passed = Column(Boolean, nullable=False, default=False)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="quiz_results")
    quiz = relationship("Quiz", back_populates="results")

    # At most one row per (user, quiz): failed attempts are replaced, a passing one is final
    __table_args__ = (
        UniqueConstraint('user_id', 'quiz_id', name='uq_user_quiz_result'),
    )

    def __repr__(self):
        return f"<QuizResult(user_id={self.user_id}, quiz_id={self.quiz_id}, score={self.score}, passed={self.passed})>"
