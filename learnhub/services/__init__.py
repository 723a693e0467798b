# This package contains the progression business logic.
# The cascade, quiz gate and playback tracker import the crud layer, which itself
# depends on unlock_evaluator, so only the leaf services are imported here.

from . import unlock_evaluator
from . import email_service

__all__ = [
    "unlock_evaluator",
    "email_service",
]
