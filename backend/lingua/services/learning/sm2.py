"""
SM-2 (SuperMemo 2) Scheduling Algorithm

This module implements the SM-2 family of spaced repetition scheduling
used for vocabulary review. Each (learner, item) pair carries a small
ReviewState; after every answer the scheduler computes the next state
from the current one and a recall-quality grade.

Key Concepts:
- Ease factor: Multiplier controlling interval growth (never below 1.3)
- Interval: Days until the item is next due (0 = new / due now)
- Repetitions: Consecutive passing recalls since the last failure

Interval ladder for consecutive passing grades:
    1 day → 6 days → round(previous_interval × ease) → ...

Usage:
    from lingua.services.learning.sm2 import create_scheduler, create_initial_state

    scheduler = create_scheduler()
    state = create_initial_state()

    # Review an item
    new_state = scheduler.review(state, Grade.GOOD)

    # Check whether it is due
    is_due(new_state)
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from lingua.config.settings import settings
from lingua.enums.learning import Grade


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ReviewState:
    """
    SM-2 scheduling state for one (learner, vocabulary item) pair.

    Maps to columns in the review_states table and to the snapshot
    columns on session_cards.

    All datetimes are timezone-aware UTC.
    """

    ease_factor: float = 2.5
    interval: int = 0  # Days until next review, 0 for never scheduled
    repetitions: int = 0  # Consecutive passing recalls
    next_review_date: datetime = field(default_factory=_utc_now)

    def is_new(self) -> bool:
        """Check if this item has never been scheduled."""
        return self.interval == 0 and self.repetitions == 0


def _round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(math.floor(value + 0.5))


class SM2Scheduler:
    """
    SM-2 scheduler.

    Pure and deterministic: given the same state, grade and review time
    it always produces the same result. No I/O.

    Attributes:
        initial_ease_factor: Ease assigned to brand-new items (default 2.5)
        minimum_ease_factor: Floor the ease factor can never drop below (default 1.3)
    """

    FIRST_INTERVAL_DAYS = 1
    SECOND_INTERVAL_DAYS = 6
    FAILED_INTERVAL_DAYS = 1

    def __init__(
        self,
        initial_ease_factor: float = 2.5,
        minimum_ease_factor: float = 1.3,
    ):
        self.initial_ease_factor = initial_ease_factor
        self.minimum_ease_factor = minimum_ease_factor

    def initial_state(self, now: Optional[datetime] = None) -> ReviewState:
        """Create the state for an item that has never been reviewed."""
        return ReviewState(
            ease_factor=self.initial_ease_factor,
            interval=0,
            repetitions=0,
            next_review_date=now or _utc_now(),
        )

    def next_ease_factor(self, ease_factor: float, grade: Grade) -> float:
        """
        Apply the SM-2 ease adjustment for a grade.

        EASY adds 0.1, GOOD leaves the ease unchanged and each lower grade
        subtracts progressively more. The result is floored at
        minimum_ease_factor so an item can never become unschedulable.
        """
        distance = Grade.EASY - grade
        adjusted = ease_factor + (0.1 - distance * (0.08 + distance * 0.02))
        return max(self.minimum_ease_factor, adjusted)

    def review(
        self,
        state: ReviewState,
        grade: Grade,
        review_time: Optional[datetime] = None,
    ) -> ReviewState:
        """
        Compute the next scheduling state after an answer.

        A failing grade (below GOOD) resets the repetition streak and
        schedules a re-test the next day regardless of history. A passing
        grade extends the streak and walks the interval ladder: 1 day,
        then 6 days, then the previous interval scaled by the new ease.

        Args:
            state: Current scheduling state of the item.
            grade: Recall quality, one of the five Grade levels. Anything
                else is a caller error and raises ValueError.
            review_time: Timestamp of the answer. Defaults to current UTC
                time. Pass an explicit time for batch processing or tests.

        Returns:
            The new ReviewState. The input state is not modified.

        Example:
            >>> scheduler = SM2Scheduler()
            >>> state = scheduler.initial_state()
            >>> state = scheduler.review(state, Grade.GOOD)
            >>> state.interval
            1
        """
        grade = Grade(grade)
        review_time = review_time or _utc_now()

        ease_factor = self.next_ease_factor(state.ease_factor, grade)

        if not grade.is_passing:
            repetitions = 0
            interval = self.FAILED_INTERVAL_DAYS
        else:
            repetitions = state.repetitions + 1
            if repetitions == 1:
                interval = self.FIRST_INTERVAL_DAYS
            elif repetitions == 2:
                interval = self.SECOND_INTERVAL_DAYS
            else:
                interval = _round_half_up(state.interval * ease_factor)

        return ReviewState(
            ease_factor=ease_factor,
            interval=interval,
            repetitions=repetitions,
            next_review_date=review_time + timedelta(days=interval),
        )


def create_scheduler(
    initial_ease_factor: Optional[float] = None,
    minimum_ease_factor: Optional[float] = None,
) -> SM2Scheduler:
    """
    Create a configured SM-2 scheduler.

    Args:
        initial_ease_factor: Ease for new items
            (defaults to settings.SM2_INITIAL_EASE_FACTOR)
        minimum_ease_factor: Ease floor
            (defaults to settings.SM2_MINIMUM_EASE_FACTOR)

    Returns:
        Configured SM2Scheduler instance
    """
    if initial_ease_factor is None:
        initial_ease_factor = settings.SM2_INITIAL_EASE_FACTOR
    if minimum_ease_factor is None:
        minimum_ease_factor = settings.SM2_MINIMUM_EASE_FACTOR

    return SM2Scheduler(
        initial_ease_factor=initial_ease_factor,
        minimum_ease_factor=minimum_ease_factor,
    )


def create_initial_state(now: Optional[datetime] = None) -> ReviewState:
    """Fresh ReviewState using the configured initial ease factor."""
    return create_scheduler().initial_state(now)


def calculate_next_review(
    state: ReviewState,
    grade: Grade,
    review_time: Optional[datetime] = None,
) -> ReviewState:
    """Shortcut for create_scheduler().review(...)."""
    return create_scheduler().review(state, grade, review_time)


def is_due(state: ReviewState, as_of: Optional[datetime] = None) -> bool:
    """An item is due once its next review date has passed."""
    return state.next_review_date <= (as_of or _utc_now())


def describe_interval(interval: int) -> str:
    """
    Human-readable label for an interval in days.

    Examples: "New card", "1 day", "4 days", "2 week(s)", "3 month(s)".
    """
    if interval == 0:
        return "New card"
    if interval == 1:
        return "1 day"
    if interval < 7:
        return f"{interval} days"
    if interval < 30:
        return f"{_round_half_up(interval / 7)} week(s)"
    if interval < 365:
        return f"{_round_half_up(interval / 30)} month(s)"
    return f"{_round_half_up(interval / 365)} year(s)"


def get_review_forecast(
    states: Iterable[ReviewState],
    as_of: Optional[datetime] = None,
) -> dict[str, int]:
    """
    Get forecast of upcoming reviews.

    Buckets use UTC calendar-day boundaries and do not overlap.

    Args:
        states: Review states to bucket
        as_of: Reference time (default: now)

    Returns:
        Dict with counts: overdue, today, tomorrow, this_week, later
    """
    as_of = as_of or _utc_now()
    today_start = as_of.astimezone(timezone.utc).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    tomorrow_start = today_start + timedelta(days=1)
    day_after_tomorrow = tomorrow_start + timedelta(days=1)
    week_end = today_start + timedelta(days=7)

    forecast = {
        "overdue": 0,
        "today": 0,
        "tomorrow": 0,
        "this_week": 0,
        "later": 0,
    }

    for state in states:
        due = state.next_review_date
        if due < today_start:
            forecast["overdue"] += 1
        elif due < tomorrow_start:
            forecast["today"] += 1
        elif due < day_after_tomorrow:
            forecast["tomorrow"] += 1
        elif due < week_end:
            forecast["this_week"] += 1
        else:
            forecast["later"] += 1

    return forecast
