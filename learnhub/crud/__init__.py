# This file makes the 'crud' directory a Python package.

from .user_crud import (
    get_user_by_id,
    get_user_by_email,
    get_user_by_firebase_uid,
    create_user,
    update_email_verified
)

from .course_crud import (
    create_module, get_module,
    create_chapter, get_chapter, get_active_chapter_ids_for_module,
    create_content, get_content, get_active_content_ids_for_chapter,
    create_quiz, get_quiz_with_questions,
    get_active_modules, load_active_hierarchy
)

from .user_progress_crud import (
    upsert_content_watch_time, mark_content_completed, get_content_progress,
    get_completed_content_ids,
    mark_chapter_completed, get_completed_chapter_ids, is_chapter_completed,
    mark_module_completed, get_module_progress,
    get_quiz_result, has_passed_quiz, replace_quiz_result,
    load_progress_snapshot
)

from .notification_crud import (
    create_notification,
    get_notifications_for_user
)


__all__ = [
    # User CRUD
    "get_user_by_id", "get_user_by_email", "get_user_by_firebase_uid", "create_user", "update_email_verified",

    # Course CRUD
    "create_module", "get_module",
    "create_chapter", "get_chapter", "get_active_chapter_ids_for_module",
    "create_content", "get_content", "get_active_content_ids_for_chapter",
    "create_quiz", "get_quiz_with_questions",
    "get_active_modules", "load_active_hierarchy",

    # User Progress CRUD
    "upsert_content_watch_time", "mark_content_completed", "get_content_progress",
    "get_completed_content_ids",
    "mark_chapter_completed", "get_completed_chapter_ids", "is_chapter_completed",
    "mark_module_completed", "get_module_progress",
    "get_quiz_result", "has_passed_quiz", "replace_quiz_result",
    "load_progress_snapshot",

    # Notification CRUD
    "create_notification", "get_notifications_for_user",
]
