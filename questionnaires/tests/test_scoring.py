"""
Tests for the scoring engine. Plain objects stand in for models; scoring
never touches the database.
"""
from decimal import Decimal
from types import SimpleNamespace

from django.test import SimpleTestCase

from questionnaires.grading import is_passing, sanitize_answers, score_answers, score_submission


def question(qid, kind='multiple_choice', weight='5.00'):
    return SimpleNamespace(id=qid, kind=kind, weight=Decimal(weight))


def alternative(aid, qid, is_correct=False):
    return SimpleNamespace(id=aid, question_id=qid, is_correct=is_correct)


class ScoringTests(SimpleTestCase):
    """Weighted scoring over multiple choice answers."""

    def setUp(self):
        self.questions = [question(1), question(2)]
        self.alternatives = [
            alternative(10, 1, True), alternative(11, 1),
            alternative(20, 2, True), alternative(21, 2),
        ]

    def test_half_right_scores_fifty(self):
        """Two weight-5 questions, one right and one wrong, score 50.00."""
        result = score_submission(self.questions, self.alternatives, [
            {'question_id': 1, 'alternative_id': 10},
            {'question_id': 2, 'alternative_id': 21},
        ])
        self.assertEqual(result.score, Decimal('50.00'))
        self.assertEqual(result.total_points, Decimal('5.00'))
        self.assertEqual(result.total_weight, Decimal('10.00'))
        self.assertEqual([a.is_correct for a in result.answers], [True, False])
        self.assertEqual([a.points_awarded for a in result.answers], [Decimal('5.00'), Decimal('0.00')])

    def test_uneven_weights_round_half_up(self):
        """Scores are rounded half-up to two decimals."""
        questions = [question(1, weight='1.00'), question(2, weight='2.00')]
        alternatives = [alternative(10, 1, True), alternative(20, 2, True), alternative(21, 2)]
        result = score_submission(questions, alternatives, [
            {'question_id': 1, 'alternative_id': 10},
            {'question_id': 2, 'alternative_id': 21},
        ])
        # 1 / 3 * 100 = 33.333...
        self.assertEqual(result.score, Decimal('33.33'))

    def test_unanswered_questions_do_not_count(self):
        """Only answered multiple choice questions add to the weight total."""
        result = score_submission(self.questions, self.alternatives, [
            {'question_id': 1, 'alternative_id': 10},
        ])
        self.assertEqual(result.score, Decimal('100.00'))
        self.assertEqual(result.total_weight, Decimal('5.00'))

    def test_essay_only_scores_null(self):
        """A submission with only essay answers has no score."""
        questions = [question(1, kind='essay'), question(2, kind='essay')]
        result = score_submission(questions, [], [
            {'question_id': 1, 'free_text': 'Some thoughts'},
            {'question_id': 2, 'free_text': 'More thoughts'},
        ])
        self.assertIsNone(result.score)
        self.assertEqual(result.total_weight, Decimal('0.00'))
        self.assertTrue(all(a.is_correct is None and a.points_awarded is None for a in result.answers))

    def test_empty_submission_scores_null(self):
        """No answers means no score."""
        result = score_submission(self.questions, self.alternatives, [])
        self.assertIsNone(result.score)
        self.assertEqual(result.answers_received, 0)


class SanitizeAnswersTests(SimpleTestCase):
    """Answer sanitization drops anything that cannot be trusted."""

    def setUp(self):
        self.questions = [question(1), question(2), question(3, kind='essay')]
        self.alternatives = [
            alternative(10, 1, True), alternative(11, 1),
            alternative(20, 2, True), alternative(21, 2),
        ]

    def test_alternative_from_other_question_is_dropped(self):
        """Pointing question 1 at question 2's correct alternative is never scored."""
        result = score_submission(self.questions, self.alternatives, [
            {'question_id': 1, 'alternative_id': 20},
        ])
        self.assertEqual(result.answers, [])
        self.assertEqual(result.dropped, 1)
        self.assertIsNone(result.score)

    def test_unknown_question_is_dropped(self):
        """Answers to questions outside the questionnaire are ignored."""
        sanitized = sanitize_answers(self.questions, self.alternatives, [
            {'question_id': 99, 'alternative_id': 10},
        ])
        self.assertEqual(sanitized, [])

    def test_multiple_choice_without_alternative_is_dropped(self):
        """A multiple choice answer needs an alternative."""
        sanitized = sanitize_answers(self.questions, self.alternatives, [
            {'question_id': 1, 'free_text': 'guess'},
        ])
        self.assertEqual(sanitized, [])

    def test_first_answer_per_question_wins(self):
        """Repeated answers to one question keep the first."""
        sanitized = sanitize_answers(self.questions, self.alternatives, [
            {'question_id': 1, 'alternative_id': 11},
            {'question_id': 1, 'alternative_id': 10},
        ])
        self.assertEqual(len(sanitized), 1)
        self.assertEqual(sanitized[0].alternative_id, 11)

    def test_essay_text_is_trimmed(self):
        """Essay text is stripped and blank text becomes None."""
        sanitized = sanitize_answers(self.questions, self.alternatives, [
            {'question_id': 3, 'free_text': '  an answer  '},
        ])
        self.assertEqual(sanitized[0].free_text, 'an answer')

        sanitized = sanitize_answers(self.questions, self.alternatives, [
            {'question_id': 3, 'free_text': '   '},
        ])
        self.assertIsNone(sanitized[0].free_text)

    def test_string_ids_are_accepted(self):
        """Numeric strings are coerced to ids."""
        sanitized = sanitize_answers(self.questions, self.alternatives, [
            {'question_id': '1', 'alternative_id': '10'},
        ])
        self.assertEqual(sanitized[0].question_id, 1)
        self.assertEqual(sanitized[0].alternative_id, 10)

    def test_score_answers_ignores_essay_weight(self):
        """Essay answers never add to the weight total."""
        sanitized = sanitize_answers(self.questions, self.alternatives, [
            {'question_id': 1, 'alternative_id': 10},
            {'question_id': 3, 'free_text': 'text'},
        ])
        result = score_answers(self.questions, self.alternatives, sanitized)
        self.assertEqual(result.total_weight, Decimal('5.00'))
        self.assertEqual(result.score, Decimal('100.00'))
        self.assertIsNone(result.answers[1].is_correct)
        self.assertIsNone(result.answers[1].points_awarded)


class PassingTests(SimpleTestCase):
    def test_passing(self):
        """Passing needs both a score and a threshold."""
        self.assertTrue(is_passing(Decimal('70.00'), Decimal('70.00')))
        self.assertFalse(is_passing(Decimal('69.99'), Decimal('70.00')))
        self.assertFalse(is_passing(None, Decimal('70.00')))
        self.assertFalse(is_passing(Decimal('80.00'), None))
