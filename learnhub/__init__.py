"""LearnHub progression and unlock engine."""
