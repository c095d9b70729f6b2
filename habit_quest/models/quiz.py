"""Quiz models"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Set
from pydantic import BaseModel, Field


class QuizState(str, Enum):
    """Quiz engine states"""
    AWAITING_ANSWER = "awaiting_answer"
    ROUND_COMPLETE = "round_complete"
    SPIN_ELIGIBLE = "spin_eligible"
    SESSION_COMPLETE = "session_complete"


class QuizQuestion(BaseModel):
    """Multiple-choice question"""
    id: str
    prompt: str
    choices: List[str] = Field(min_length=2)
    answer_index: int = Field(ge=0)

    def is_correct(self, choice_index: int) -> bool:
        return choice_index == self.answer_index


@dataclass
class QuizSession:
    """Transient state of one playthrough; only wheel_shown_today outlives it"""
    round_index: int = 0
    asked_question_ids: Set[str] = field(default_factory=set)
    correct_count: int = 0
    wheel_shown_this_round: bool = False
    wheel_shown_today: bool = False
