from .base import SanitizedAnswer, AnswerScore, ScoringResult
from .scoring import sanitize_answers, score_answers, score_submission, is_passing

__all__ = [
    'SanitizedAnswer', 'AnswerScore', 'ScoringResult',
    'sanitize_answers', 'score_answers', 'score_submission', 'is_passing'
]
