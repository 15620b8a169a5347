"""
Learning System Enums

Defines the recall-quality grades used by the SM-2 scheduler.
"""

from enum import Enum


class Grade(int, Enum):
    """
    SM-2 recall-quality grades.

    Learner self-assessment after answering a card. Grades at or above
    GOOD count as a passing recall; anything lower is a failure and
    restarts the repetition streak.
    """

    BLACKOUT = 0  # No memory of the item at all
    INCORRECT = 1  # Wrong answer, but the item felt familiar
    HARD = 2  # Recalled with serious difficulty
    GOOD = 3  # Correct after some hesitation
    EASY = 4  # Perfect, effortless recall

    @property
    def is_passing(self) -> bool:
        """Whether this grade counts as a successful recall."""
        return self >= Grade.GOOD


PASSING_GRADE = Grade.GOOD
