"""
Quiz Engine

Three-round question flow:

    AWAITING_ANSWER(n) -> ROUND_COMPLETE(n) -> SPIN_ELIGIBLE(n) -> AWAITING_ANSWER(n+1)

and SESSION_COMPLETE once the last round's spin resolves or is skipped.
Correct answers credit the "quiz" category immediately; XP is not rolled back
if the session is abandoned.
"""

import logging
import random
from typing import Dict, List, Optional, Sequence

from habit_quest import config
from habit_quest.exceptions import QuizStateError, ValidationError
from habit_quest.gamification.reward_wheel import RandomSource, RewardWheel, can_spin, resolve_spin
from habit_quest.gamification.xp_system import ProgressionLedger
from habit_quest.models.quiz import QuizQuestion, QuizSession, QuizState
from habit_quest.models.reward import WheelSpin

logger = logging.getLogger(__name__)

QUIZ_CATEGORY = "quiz"

DEFAULT_QUESTIONS: List[QuizQuestion] = [
    QuizQuestion(
        id="habit-formation",
        prompt="Roughly how long does it take on average for a new habit to become automatic?",
        choices=["7 days", "21 days", "66 days", "1 year"],
        answer_index=2,
    ),
    QuizQuestion(
        id="water-intake",
        prompt="Which habit helps most with afternoon energy dips?",
        choices=["Skipping lunch", "Drinking water", "Extra coffee at 5pm", "Staying seated"],
        answer_index=1,
    ),
    QuizQuestion(
        id="sleep-hours",
        prompt="How many hours of sleep are recommended for most adults?",
        choices=["4-5", "5-6", "7-9", "10-12"],
        answer_index=2,
    ),
    QuizQuestion(
        id="habit-stacking",
        prompt="Attaching a new habit to an existing routine is called...",
        choices=["Habit stacking", "Temptation bundling", "Streak freezing", "Goal shifting"],
        answer_index=0,
    ),
    QuizQuestion(
        id="exercise-minutes",
        prompt="How many minutes of moderate activity per week do health guidelines suggest?",
        choices=["30", "75", "150", "500"],
        answer_index=2,
    ),
    QuizQuestion(
        id="relapse",
        prompt="After a missed day, the best next step is to...",
        choices=["Give up", "Restart the next day", "Wait for Monday", "Double everything"],
        answer_index=1,
    ),
]


class QuizEngine:
    """
    State machine for one quiz playthrough.

    The engine never decides on its own whether the reward wheel appears:
    complete_round() always moves to SPIN_ELIGIBLE and the wheel's gate
    (can_spin) decides whether spin() is allowed.
    """

    def __init__(
        self,
        ledger: ProgressionLedger,
        wheel: RewardWheel,
        questions: Optional[Sequence[QuizQuestion]] = None,
        session: Optional[QuizSession] = None,
        rounds: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        self.ledger = ledger
        self.wheel = wheel
        self.pool: List[QuizQuestion] = list(questions if questions is not None else DEFAULT_QUESTIONS)
        self.session = session or QuizSession()
        self.rounds = config.QUIZ_ROUNDS if rounds is None else rounds
        self._rng = rng or random.Random()
        self.last_spin: Optional[WheelSpin] = None

        if self.rounds < 1:
            raise ValidationError("A quiz needs at least one round", field="rounds", value=self.rounds)
        if len(self.pool) < self.rounds:
            raise ValidationError(
                f"Question pool has {len(self.pool)} questions, {self.rounds} rounds need one each",
                field="questions",
                value=len(self.pool),
            )

        self.current_question: Optional[QuizQuestion] = None
        self._draw_question()
        self.state = QuizState.AWAITING_ANSWER

    def _require(self, *states: QuizState) -> None:
        if self.state not in states:
            raise QuizStateError(
                f"Action not allowed in state {self.state.value}",
                state=self.state.value,
            )

    def _draw_question(self) -> None:
        remaining = [q for q in self.pool if q.id not in self.session.asked_question_ids]
        question = self._rng.choice(remaining)
        self.session.asked_question_ids.add(question.id)
        self.current_question = question

    @property
    def round_index(self) -> int:
        return self.session.round_index

    @property
    def is_last_round(self) -> bool:
        return self.session.round_index >= self.rounds - 1

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def submit_answer(self, choice_index: int) -> Dict[str, object]:
        """
        Score the current question.

        Returns:
            {'correct': bool, 'xp_awarded': int, 'round': int}
        """
        self._require(QuizState.AWAITING_ANSWER)
        question = self.current_question
        correct = question.is_correct(choice_index)

        xp_awarded = 0
        if correct:
            self.session.correct_count += 1
            self.ledger.add_points(QUIZ_CATEGORY, config.QUIZ_CORRECT_XP)
            xp_awarded = config.QUIZ_CORRECT_XP

        self.state = QuizState.ROUND_COMPLETE
        logger.info(
            f"Quiz round {self.round_index + 1}/{self.rounds}: "
            f"{'correct' if correct else 'incorrect'} answer to '{question.id}'"
        )

        return {"correct": correct, "xp_awarded": xp_awarded, "round": self.round_index}

    def complete_round(self) -> bool:
        """
        Move to SPIN_ELIGIBLE.

        Returns:
            Whether the wheel gate currently allows a spin
        """
        self._require(QuizState.ROUND_COMPLETE)
        self.state = QuizState.SPIN_ELIGIBLE
        return can_spin(self.session)

    def can_spin(self) -> bool:
        return self.state == QuizState.SPIN_ELIGIBLE and can_spin(self.session)

    def ensure_can_spin(self) -> None:
        """Raise QuizStateError unless a spin is allowed right now"""
        self._require(QuizState.SPIN_ELIGIBLE)
        if not can_spin(self.session):
            raise QuizStateError(
                "Reward wheel already shown this round or today",
                state=self.state.value,
            )

    def spin(self, random_source: Optional[RandomSource] = None) -> WheelSpin:
        """Spin the wheel (gate permitting), credit the reward and advance"""
        self.ensure_can_spin()
        spin = self.wheel.spin(random_source)
        resolve_spin(self.session, spin, self.ledger)
        self.last_spin = spin
        self._advance()
        return spin

    def skip_spin(self) -> None:
        """Continue without spinning (wheel ineligible or dismissed)"""
        self._require(QuizState.SPIN_ELIGIBLE)
        self._advance()

    def _advance(self) -> None:
        if self.is_last_round:
            self.state = QuizState.SESSION_COMPLETE
            self.current_question = None
            logger.info(f"Quiz complete: {self.session.correct_count}/{self.rounds} correct")
            return

        self.session.round_index += 1
        self.session.wheel_shown_this_round = False
        self._draw_question()
        self.state = QuizState.AWAITING_ANSWER

    def abandon(self) -> None:
        """Drop the in-memory session; XP already credited stays"""
        logger.info(f"Quiz abandoned in round {self.round_index + 1} ({self.state.value})")
        self.session = QuizSession(wheel_shown_today=self.session.wheel_shown_today)
        self.current_question = None
        self.state = QuizState.SESSION_COMPLETE
