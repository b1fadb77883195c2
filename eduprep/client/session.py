"""
Client-side test session state machine

One session per attempt, owned by the client that created it:
NOT_STARTED -> IN_PROGRESS -> COMPLETED, with restart as an explicit
reinitialisation. Transitions return a ``Transition`` and never raise.
"""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from eduprep.config import settings
from eduprep.errors import EduPlatformError, ValidationError
from eduprep.schemas.test import Question, ScoredResult
from eduprep.services.scoring_service import Answer, scoring_service

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Transition:
    """Outcome of a state machine operation; ``error`` is set when ``ok`` is False"""
    ok: bool
    error: Optional[EduPlatformError] = None

    @classmethod
    def success(cls) -> "Transition":
        return cls(ok=True)

    @classmethod
    def failure(cls, message: str) -> "Transition":
        return cls(ok=False, error=ValidationError(message))


SessionListener = Callable[["TestSession"], None]


class TestSession:
    """
    Orchestrates a single quiz attempt

    ``questions`` is fixed for the lifetime of an attempt. ``answers`` holds
    one committed (question_id, selected_option_index) pair per advance, in
    question order. When the countdown reaches zero the attempt completes
    with the answers recorded so far; unanswered questions are left out.
    """

    __test__ = False

    def __init__(
        self,
        seconds_per_question: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.seconds_per_question = (
            settings.SECONDS_PER_QUESTION if seconds_per_question is None else seconds_per_question
        )
        self._clock = clock
        self._complete_listeners: List[SessionListener] = []
        self._exit_listeners: List[SessionListener] = []
        self.attempt = 0
        self._reset()

    def _reset(self) -> None:
        self.status = SessionStatus.NOT_STARTED
        self.questions: List[Question] = []
        self.current_index = 0
        self.answers: List[Answer] = []
        self.pending_choice: Optional[int] = None
        self.time_remaining_seconds: Optional[int] = None
        self.result: Optional[ScoredResult] = None
        self._started_at: Optional[float] = None
        self._timed = False
        self._time_limit: Optional[int] = None

    # Listeners

    def on_complete(self, listener: SessionListener) -> None:
        """Called once per attempt, after the result has been scored"""
        self._complete_listeners.append(listener)

    def on_exit(self, listener: SessionListener) -> None:
        """Called whenever an attempt leaves IN_PROGRESS (completed or cancelled)"""
        self._exit_listeners.append(listener)

    def _notify(self, listeners: Sequence[SessionListener]) -> None:
        for listener in list(listeners):
            try:
                listener(self)
            except Exception:
                logger.exception(f"Session listener {listener!r} failed")

    # State queries

    @property
    def in_progress(self) -> bool:
        return self.status is SessionStatus.IN_PROGRESS

    @property
    def current_question(self) -> Optional[Question]:
        if not self.in_progress:
            return None
        return self.questions[self.current_index]

    @property
    def time_spent_seconds(self) -> int:
        if self._started_at is None:
            return 0
        return max(0, int(self._clock() - self._started_at))

    # Transitions

    def start(
        self,
        questions: Sequence[Any],
        timed: bool = True,
        time_limit: Optional[int] = None
    ) -> Transition:
        """
        Begin a new attempt

        Args:
            questions: Non-empty sequence of ``Question`` (or dicts in wire form)
            timed: Run a countdown for this attempt
            time_limit: Countdown length in seconds; defaults to
                ``len(questions) * seconds_per_question``
        """
        if self.in_progress:
            return Transition.failure("session already in progress")
        if not questions:
            return Transition.failure("cannot start a test without questions")

        try:
            parsed = [
                question if isinstance(question, Question) else Question.model_validate(question)
                for question in questions
            ]
        except ValueError as e:
            logger.warning(f"Rejected question set: {str(e)}")
            return Transition.failure(f"invalid question: {str(e)}")

        self._reset()
        self.attempt += 1
        self.questions = parsed
        self.status = SessionStatus.IN_PROGRESS
        self._started_at = self._clock()
        self._timed = timed
        self._time_limit = time_limit
        if timed:
            self.time_remaining_seconds = (
                time_limit if time_limit is not None else len(parsed) * self.seconds_per_question
            )

        logger.debug(f"Session attempt {self.attempt} started with {len(parsed)} questions")
        return Transition.success()

    def select_answer(self, option_index: int) -> Transition:
        """Set the pending choice for the current question; the pointer does not move"""
        if not self.in_progress:
            return Transition.failure("session is not in progress")

        option_count = len(self.current_question.options)
        if isinstance(option_index, bool) or not isinstance(option_index, int) \
                or not 0 <= option_index < option_count:
            return Transition.failure(
                f"option index {option_index!r} out of range for {option_count} options"
            )

        self.pending_choice = option_index
        return Transition.success()

    def advance(self) -> Transition:
        """Commit the pending choice; completes the attempt after the last question"""
        if not self.in_progress:
            return Transition.failure("session is not in progress")
        if self.pending_choice is None:
            return Transition.failure("no answer selected")

        self.answers.append(Answer(self.current_question.id, self.pending_choice))
        self.pending_choice = None

        if self.current_index == len(self.questions) - 1:
            self._complete()
        else:
            self.current_index += 1
        return Transition.success()

    def tick(self) -> Transition:
        """One elapsed second; at zero the attempt completes. No-op outside IN_PROGRESS."""
        if not self.in_progress or self.time_remaining_seconds is None:
            return Transition.success()

        self.time_remaining_seconds = max(0, self.time_remaining_seconds - 1)
        if self.time_remaining_seconds == 0:
            logger.info(
                f"Time is up after {len(self.answers)}/{len(self.questions)} answers"
            )
            self.pending_choice = None
            self._complete()
        return Transition.success()

    def cancel(self) -> Transition:
        """Abandon the attempt and discard its state"""
        if not self.in_progress:
            return Transition.failure("session is not in progress")

        self._reset()
        self._notify(self._exit_listeners)
        return Transition.success()

    def restart(self) -> Transition:
        """Start over with the same questions and timer settings"""
        if not self.questions:
            return Transition.failure("nothing to restart")

        questions, timed, time_limit = self.questions, self._timed, self._time_limit
        if self.in_progress:
            self._reset()
            self._notify(self._exit_listeners)
        else:
            self.status = SessionStatus.NOT_STARTED
        return self.start(questions, timed=timed, time_limit=time_limit)

    def _complete(self) -> None:
        if self._timed and self.time_remaining_seconds == 0 and self._time_limit_seconds is not None:
            spent = self._time_limit_seconds
        else:
            spent = self.time_spent_seconds

        self.result = scoring_service.score(self.questions, self.answers, spent)
        self.status = SessionStatus.COMPLETED
        logger.info(
            f"Session attempt {self.attempt} completed: "
            f"{self.result.score}/{self.result.total} ({self.result.percentage}%)"
        )
        self._notify(self._exit_listeners)
        self._notify(self._complete_listeners)

    @property
    def _time_limit_seconds(self) -> Optional[int]:
        if not self._timed:
            return None
        if self._time_limit is not None:
            return self._time_limit
        return len(self.questions) * self.seconds_per_question
