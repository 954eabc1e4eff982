"""
Weighted scoring of questionnaire submissions.

Pure functions over the questionnaire's questions and alternatives; nothing
here touches the database. Only multiple-choice answers contribute to the
score. Essay answers are recorded for manual review with no verdict.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from .base import AnswerScore, SanitizedAnswer, ScoringResult

logger = logging.getLogger(__name__)

MULTIPLE_CHOICE = 'multiple_choice'
ESSAY = 'essay'

TWO_PLACES = Decimal('0.01')


def quantize(value) -> Decimal:
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _coerce_id(value):
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def sanitize_answers(questions, alternatives, raw_answers):
    """
    Keep only answers that can be trusted.

    Drops answers for questions outside the questionnaire, multiple-choice
    answers with no alternative or with an alternative that belongs to a
    different question, and repeated answers to the same question (the first
    one wins). Essay text is stripped; blank text becomes None.
    """
    question_kinds = {q.id: q.kind for q in questions}
    alternative_owner = {a.id: a.question_id for a in alternatives}

    sanitized = []
    seen = set()
    for raw in raw_answers or []:
        question_id = _coerce_id(raw.get('question_id'))
        kind = question_kinds.get(question_id)
        if kind is None or question_id in seen:
            continue

        if kind == MULTIPLE_CHOICE:
            alternative_id = _coerce_id(raw.get('alternative_id'))
            if alternative_id is None or alternative_owner.get(alternative_id) != question_id:
                logger.warning(
                    f"ANSWER_DROPPED | Question: {question_id} | "
                    f"Alternative: {raw.get('alternative_id')} does not belong to it"
                )
                continue
            sanitized.append(SanitizedAnswer(question_id=question_id, alternative_id=alternative_id))
        else:
            text = raw.get('free_text')
            text = text.strip() if isinstance(text, str) else None
            sanitized.append(SanitizedAnswer(question_id=question_id, free_text=text or None))

        seen.add(question_id)

    return sanitized


def score_answers(questions, alternatives, answers):
    weights = {q.id: Decimal(q.weight) for q in questions}
    kinds = {q.id: q.kind for q in questions}
    correct = {a.id for a in alternatives if a.is_correct}

    total_points = Decimal('0')
    total_weight = Decimal('0')
    scored = []

    for answer in answers:
        if kinds.get(answer.question_id) == MULTIPLE_CHOICE:
            weight = weights[answer.question_id]
            is_correct = answer.alternative_id in correct
            points = weight if is_correct else Decimal('0')
            total_weight += weight
            total_points += points
            scored.append(AnswerScore(
                question_id=answer.question_id,
                alternative_id=answer.alternative_id,
                free_text=None,
                is_correct=is_correct,
                points_awarded=quantize(points),
            ))
        else:
            scored.append(AnswerScore(
                question_id=answer.question_id,
                alternative_id=None,
                free_text=answer.free_text,
                is_correct=None,
                points_awarded=None,
            ))

    score = None
    if total_weight > 0:
        score = quantize(total_points / total_weight * 100)

    return ScoringResult(
        score=score,
        total_points=quantize(total_points),
        total_weight=quantize(total_weight),
        answers=scored,
    )


def score_submission(questions, alternatives, raw_answers):
    """Sanitize then score; ``dropped`` counts the answers that were discarded."""
    questions = list(questions)
    alternatives = list(alternatives)
    raw_answers = list(raw_answers or [])
    sanitized = sanitize_answers(questions, alternatives, raw_answers)
    result = score_answers(questions, alternatives, sanitized)
    result.dropped = len(raw_answers) - len(sanitized)
    return result


def is_passing(score, min_score):
    """False unless there is both a score and a threshold to compare it with."""
    if score is None or min_score is None:
        return False
    return Decimal(score) >= Decimal(min_score)
