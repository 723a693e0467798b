"""
Derives unlock, completion and percentage state for every node of the course hierarchy.

Everything here is pure: the caller passes an explicit snapshot of the active hierarchy
(modules -> chapters -> contents, plus the optional quiz of each chapter) and of one
learner's stored progress, and gets back the view models served to the presentation
layer. Nothing is read from or written to the database, so the same functions serve
the read path (hierarchy view) and the write-time gate checks of the playback tracker.

Unlock rules (strictly linear within each sibling list, `order` ascending):

- the first module is unlocked; module i is unlocked iff module i-1 is completed
- inside an unlocked module, the first chapter is unlocked; chapter j iff chapter j-1 is completed
- inside an unlocked chapter, the first content is unlocked; content k iff content k-1 is completed
- a chapter quiz is accessible iff every content of the chapter is completed

Without an identity nothing is unlocked, not even the first content. A container with
no children is never completed.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from learnhub.models.enums import ContentType
from learnhub.schemas.user_progress_schema import (
    ContentView, QuizView, ChapterView, ModuleView, UserStats
)

logger = logging.getLogger(__name__)

# Lock reasons reported on locked nodes
NOT_AUTHENTICATED = "not_authenticated"
PREVIOUS_MODULE_INCOMPLETE = "previous_module_incomplete"
MODULE_LOCKED = "module_locked"
PREVIOUS_CHAPTER_INCOMPLETE = "previous_chapter_incomplete"
CHAPTER_LOCKED = "chapter_locked"
PREVIOUS_CONTENT_INCOMPLETE = "previous_content_incomplete"

LOCK_REASON_MESSAGES = {
    NOT_AUTHENTICATED: "Sign in to access this content.",
    PREVIOUS_MODULE_INCOMPLETE: "The previous module is not completed.",
    MODULE_LOCKED: "This module is locked.",
    PREVIOUS_CHAPTER_INCOMPLETE: "The previous chapter is not completed.",
    CHAPTER_LOCKED: "This chapter is locked.",
    PREVIOUS_CONTENT_INCOMPLETE: "The previous item is not completed.",
}


# --- Snapshot types ---

@dataclass(frozen=True)
class ContentNode:
    id: int
    title: str
    content_type: ContentType
    duration: int
    order: int

@dataclass(frozen=True)
class QuizNode:
    id: int
    title: str
    passing_score: int

@dataclass(frozen=True)
class ChapterNode:
    id: int
    module_id: int
    title: str
    order: int
    contents: Tuple[ContentNode, ...] = ()
    quiz: Optional[QuizNode] = None
    description: Optional[str] = None

@dataclass(frozen=True)
class ModuleNode:
    id: int
    title: str
    order: int
    chapters: Tuple[ChapterNode, ...] = ()
    description: Optional[str] = None

@dataclass(frozen=True)
class ContentProgressState:
    watch_time: int = 0
    is_completed: bool = False

@dataclass
class ProgressSnapshot:
    """One learner's stored progress rows, reduced to what the evaluator needs."""
    user_id: int
    contents: Dict[int, ContentProgressState] = field(default_factory=dict)
    completed_chapter_ids: Set[int] = field(default_factory=set)
    completed_module_ids: Set[int] = field(default_factory=set)
    # chapter id -> score of the passing result of that chapter's quiz
    passed_quiz_scores: Dict[int, int] = field(default_factory=dict)

    def content_completed(self, content_id: int) -> bool:
        state = self.contents.get(content_id)
        return bool(state and state.is_completed)


# --- Numeric helpers ---

def round_half_up(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def percent(part: int, whole: int) -> int:
    """`round(100 * part / whole)` with half-up rounding; 0 for an empty whole."""
    if whole <= 0:
        return 0
    return round_half_up(Decimal(part) * 100 / Decimal(whole))

def content_percent(watch_time: int, duration: int) -> int:
    if duration <= 0:
        return 0
    return min(100, percent(watch_time, duration))

def all_completed(ids: Iterable[int], is_completed: Callable[[int], bool]) -> bool:
    """True iff `ids` is non-empty and every id is completed (no vacuous truth)."""
    ids = list(ids)
    return len(ids) > 0 and all(is_completed(i) for i in ids)


# --- Evaluation ---

def _sorted(nodes):
    return sorted(nodes, key=lambda node: node.order)

def _sibling_lock(index: int, parent_unlocked: bool, parent_reason: str,
                  previous_completed: bool, previous_reason: str) -> Tuple[bool, Optional[str]]:
    if not parent_unlocked:
        return False, parent_reason
    if index == 0 or previous_completed:
        return True, None
    return False, previous_reason

def _locked_chapter_view(chapter: ChapterNode) -> ChapterView:
    return ChapterView(
        id=chapter.id,
        title=chapter.title,
        description=chapter.description,
        order=chapter.order,
        contents=[
            ContentView(
                id=content.id, title=content.title, content_type=content.content_type,
                duration=content.duration, order=content.order, lock_reason=NOT_AUTHENTICATED,
            )
            for content in _sorted(chapter.contents)
        ],
        quiz=QuizView(id=chapter.quiz.id, title=chapter.quiz.title, passing_score=chapter.quiz.passing_score) if chapter.quiz else None,
        lock_reason=NOT_AUTHENTICATED,
    )

def _anonymous_view(modules: Sequence[ModuleNode]) -> List[ModuleView]:
    return [
        ModuleView(
            id=module.id,
            title=module.title,
            description=module.description,
            order=module.order,
            chapters=[_locked_chapter_view(chapter) for chapter in _sorted(module.chapters)],
            lock_reason=NOT_AUTHENTICATED,
        )
        for module in _sorted(modules)
    ]

def _evaluate_chapter(chapter: ChapterNode, index: int, previous: Optional[ChapterView],
                      module_unlocked: bool, snapshot: ProgressSnapshot) -> ChapterView:
    unlocked, reason = _sibling_lock(
        index, module_unlocked, MODULE_LOCKED,
        previous is not None and previous.is_completed, PREVIOUS_CHAPTER_INCOMPLETE,
    )

    contents: List[ContentView] = []
    for k, content in enumerate(_sorted(chapter.contents)):
        state = snapshot.contents.get(content.id, ContentProgressState())
        content_unlocked, content_reason = _sibling_lock(
            k, unlocked, CHAPTER_LOCKED,
            k > 0 and contents[k - 1].is_completed, PREVIOUS_CONTENT_INCOMPLETE,
        )
        contents.append(ContentView(
            id=content.id,
            title=content.title,
            content_type=content.content_type,
            duration=content.duration,
            order=content.order,
            is_completed=state.is_completed,
            is_unlocked=content_unlocked,
            lock_reason=content_reason,
            progress=content_percent(state.watch_time, content.duration),
            watch_time=state.watch_time,
        ))

    contents_done = all_completed((c.id for c in contents), snapshot.content_completed)
    quiz_passed = chapter.id in snapshot.passed_quiz_scores if chapter.quiz else True
    quiz_view = None
    if chapter.quiz:
        quiz_view = QuizView(
            id=chapter.quiz.id,
            title=chapter.quiz.title,
            passing_score=chapter.quiz.passing_score,
            is_passed=quiz_passed,
            is_accessible=contents_done,
        )

    return ChapterView(
        id=chapter.id,
        title=chapter.title,
        description=chapter.description,
        order=chapter.order,
        contents=contents,
        quiz=quiz_view,
        is_completed=bool(contents) and chapter.id in snapshot.completed_chapter_ids,
        is_unlocked=unlocked,
        lock_reason=reason,
        all_contents_completed=contents_done,
        quiz_passed=quiz_passed,
    )

def evaluate_hierarchy(modules: Sequence[ModuleNode], snapshot: Optional[ProgressSnapshot]) -> List[ModuleView]:
    """
    Annotates every node of the active hierarchy for one learner.

    `snapshot=None` means there is no identity: every node is reported locked and
    incomplete. Runs in a single pass, O(total nodes).
    """
    if snapshot is None:
        return _anonymous_view(modules)

    views: List[ModuleView] = []
    for i, module in enumerate(_sorted(modules)):
        unlocked, reason = _sibling_lock(
            i, True, NOT_AUTHENTICATED,
            i > 0 and views[i - 1].is_completed, PREVIOUS_MODULE_INCOMPLETE,
        )

        chapters: List[ChapterView] = []
        for j, chapter in enumerate(_sorted(module.chapters)):
            chapters.append(_evaluate_chapter(chapter, j, chapters[j - 1] if j > 0 else None, unlocked, snapshot))

        total_contents = sum(len(c.contents) for c in chapters)
        completed_contents = sum(1 for c in chapters for content in c.contents if content.is_completed)

        views.append(ModuleView(
            id=module.id,
            title=module.title,
            description=module.description,
            order=module.order,
            chapters=chapters,
            is_completed=bool(chapters) and module.id in snapshot.completed_module_ids,
            is_unlocked=unlocked,
            lock_reason=reason,
            progress=percent(completed_contents, total_contents),
            all_chapters_completed=all_completed((c.id for c in chapters), {c.id for c in chapters if c.is_completed}.__contains__),
        ))
    return views

def compute_user_stats(module_views: Sequence[ModuleView], snapshot: ProgressSnapshot) -> UserStats:
    scores = list(snapshot.passed_quiz_scores.values())
    average = round_half_up(Decimal(sum(scores)) / len(scores)) if scores else 0
    return UserStats(
        total_modules=len(module_views),
        completed_modules=sum(1 for m in module_views if m.is_completed),
        total_watch_time=sum(state.watch_time for state in snapshot.contents.values()),
        average_score=average,
    )


# --- Lookups used by the write-path gate checks ---

def locate_content(module_views: Sequence[ModuleView], content_id: int) -> Optional[Tuple[ModuleView, ChapterView, ContentView]]:
    for module in module_views:
        for chapter in module.chapters:
            for content in chapter.contents:
                if content.id == content_id:
                    return module, chapter, content
    return None

def locate_chapter(module_views: Sequence[ModuleView], chapter_id: int) -> Optional[Tuple[ModuleView, ChapterView]]:
    for module in module_views:
        for chapter in module.chapters:
            if chapter.id == chapter_id:
                return module, chapter
    return None

def describe_lock(reason: Optional[str]) -> str:
    return LOCK_REASON_MESSAGES.get(reason, "This item is locked.")
