from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional


@dataclass
class SanitizedAnswer:
    question_id: int
    alternative_id: Optional[int] = None
    free_text: Optional[str] = None


@dataclass
class AnswerScore:
    question_id: int
    alternative_id: Optional[int]
    free_text: Optional[str]
    is_correct: Optional[bool]
    points_awarded: Optional[Decimal]


@dataclass
class ScoringResult:
    score: Optional[Decimal]
    total_points: Decimal
    total_weight: Decimal
    answers: List[AnswerScore] = field(default_factory=list)
    dropped: int = 0

    @property
    def answers_received(self) -> int:
        return len(self.answers)
