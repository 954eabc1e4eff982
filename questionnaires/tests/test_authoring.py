from datetime import date
from decimal import Decimal

from django.test import TestCase

from questionnaires.exceptions import (
    AccessDeniedError, InvalidInputError, NotFoundError, PublishRejectedError
)
from questionnaires.models import (
    Alternative, AuditLog, CourseClass, Question, Questionnaire, UserProfile
)
from questionnaires.services import QuestionnaireAuthoringService
from questionnaires.services.authoring import publish_deadline
from .base import AFTER_END, BEFORE_END, CLASS_END, FixedClock, QuestionnaireFixtureMixin, make_user


class AuthoringTests(QuestionnaireFixtureMixin, TestCase):
    """Tests for building a questionnaire."""

    def setUp(self):
        self.instructor = make_user('instructor', role=UserProfile.Role.INSTRUCTOR)
        self.other_instructor = make_user('other', role=UserProfile.Role.INSTRUCTOR)
        self.learner = make_user('learner')
        self.create_course()
        self.event.instructors.add(self.instructor)
        self.service = QuestionnaireAuthoringService(self.instructor, clock=FixedClock(BEFORE_END))

    def test_draft_is_created_once(self):
        """Getting the draft twice returns the same questionnaire."""
        first, created = self.service.get_or_create_draft(self.event.pk)
        second, created_again = self.service.get_or_create_draft(self.event.pk)

        self.assertTrue(created)
        self.assertFalse(created_again)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(first.status, Questionnaire.Status.DRAFT)
        self.assertTrue(first.mandatory)
        self.assertEqual(first.title, 'Learning Questionnaire')
        self.assertEqual(Questionnaire.objects.filter(event=self.event).count(), 1)
        self.assertTrue(AuditLog.objects.filter(event_type=AuditLog.EventType.DRAFT_CREATED).exists())

    def test_unknown_event(self):
        """A missing event is a 404."""
        with self.assertRaises(NotFoundError):
            self.service.get_or_create_draft(999999)

    def test_instructor_of_other_event_is_denied(self):
        """Only the event's own instructors may author."""
        service = QuestionnaireAuthoringService(self.other_instructor)
        with self.assertRaises(AccessDeniedError):
            service.get_or_create_draft(self.event.pk)
        self.assertTrue(AuditLog.objects.filter(
            event_type=AuditLog.EventType.PERMISSION_DENIED, user=self.other_instructor
        ).exists())

    def test_administrator_authors_any_event(self):
        """Administrators do not need to teach the event."""
        admin = make_user('admin', role=UserProfile.Role.ADMINISTRATOR)
        questionnaire, created = QuestionnaireAuthoringService(admin).get_or_create_draft(self.event.pk)
        self.assertTrue(created)
        self.assertEqual(questionnaire.created_by, admin)

    def test_update_metadata(self):
        """Only the given fields change."""
        questionnaire, _ = self.service.get_or_create_draft(self.event.pk)
        self.service.update_metadata(questionnaire.pk, {'min_score': Decimal('70.00'), 'max_attempts': 2})

        questionnaire.refresh_from_db()
        self.assertEqual(questionnaire.min_score, Decimal('70.00'))
        self.assertEqual(questionnaire.max_attempts, 2)
        self.assertEqual(questionnaire.title, 'Learning Questionnaire')

    def test_question_defaults(self):
        """New questions default to weight 1."""
        questionnaire, _ = self.service.get_or_create_draft(self.event.pk)
        question = self.service.add_question(questionnaire.pk, {'kind': 'essay', 'prompt': 'Reflect'})
        self.assertEqual(question.weight, Decimal('1.00'))

    def test_alternatives_only_on_multiple_choice(self):
        """Essay questions take no alternatives."""
        questionnaire, _ = self.service.get_or_create_draft(self.event.pk)
        essay = self.service.add_question(questionnaire.pk, {'kind': 'essay', 'prompt': 'Reflect'})
        with self.assertRaises(InvalidInputError) as ctx:
            self.service.add_alternative(essay.pk, {'text': 'No'})
        self.assertEqual(ctx.exception.code, 'not_multiple_choice')

    def test_cannot_turn_question_with_alternatives_into_essay(self):
        """Alternatives must be removed before a question becomes an essay."""
        self.create_questionnaire(status=Questionnaire.Status.DRAFT)
        with self.assertRaises(InvalidInputError) as ctx:
            self.service.update_question(self.questionnaire.pk, self.q1.pk, {'kind': 'essay'})
        self.assertEqual(ctx.exception.code, 'question_has_alternatives')

    def test_question_must_belong_to_questionnaire(self):
        """Questions are addressed through their own questionnaire."""
        self.create_questionnaire(status=Questionnaire.Status.DRAFT)
        with self.assertRaises(NotFoundError):
            self.service.update_question(self.questionnaire.pk, 999999, {'prompt': 'x'})

    def test_delete_alternative(self):
        """Alternatives can be removed."""
        self.create_questionnaire(status=Questionnaire.Status.DRAFT)
        self.service.delete_alternative(self.q1.pk, self.q1_wrong.pk)
        self.assertFalse(Alternative.objects.filter(pk=self.q1_wrong.pk).exists())


class PublishTests(QuestionnaireFixtureMixin, TestCase):
    """Tests for publish validation."""

    def setUp(self):
        self.instructor = make_user('instructor', role=UserProfile.Role.INSTRUCTOR)
        self.admin = make_user('admin', role=UserProfile.Role.ADMINISTRATOR)
        self.create_course()
        self.event.instructors.add(self.instructor)
        self.create_questionnaire(status=Questionnaire.Status.DRAFT)

    def publish(self, user=None, now=BEFORE_END):
        service = QuestionnaireAuthoringService(user or self.instructor, clock=FixedClock(now))
        return service.publish(self.questionnaire.pk)

    def rejected_codes(self, **kwargs):
        with self.assertRaises(PublishRejectedError) as ctx:
            self.publish(**kwargs)
        return [issue.code for issue in ctx.exception.issues]

    def test_publish(self):
        """A valid questionnaire is published."""
        questionnaire = self.publish()
        self.assertEqual(questionnaire.status, Questionnaire.Status.PUBLISHED)
        self.assertIsNotNone(questionnaire.published_at)
        self.assertTrue(AuditLog.objects.filter(event_type=AuditLog.EventType.PUBLISHED).exists())

    def test_publish_is_repeatable(self):
        """Publishing again re-validates and succeeds."""
        self.publish()
        self.assertEqual(self.publish().status, Questionnaire.Status.PUBLISHED)

    def test_no_questions(self):
        """An empty questionnaire cannot be published."""
        self.questionnaire.questions.all().delete()
        self.assertEqual(self.rejected_codes(), ['no_questions'])

    def test_weight_sum_must_be_exact(self):
        """9.99 is not 10."""
        Question.objects.filter(pk=self.q2.pk).update(weight=Decimal('4.99'))
        self.assertEqual(self.rejected_codes(), ['weight_sum'])

    def test_three_way_weights(self):
        """3.33 + 3.33 + 3.34 adds up to exactly 10."""
        Question.objects.filter(pk=self.q1.pk).update(weight=Decimal('3.33'))
        Question.objects.filter(pk=self.q2.pk).update(weight=Decimal('3.33'))
        Question.objects.create(
            questionnaire=self.questionnaire, kind=Question.Kind.ESSAY,
            prompt='Reflect', order=3, weight=Decimal('3.34')
        )
        self.assertEqual(self.publish().status, Questionnaire.Status.PUBLISHED)

    def test_all_issues_reported_together(self):
        """Every unmet rule is reported in one rejection."""
        Question.objects.filter(pk=self.q1.pk).update(weight=Decimal('1.00'))
        self.q1_wrong.delete()
        Alternative.objects.filter(pk=self.q2_wrong.pk).update(is_correct=True)

        codes = self.rejected_codes(now=AFTER_END)
        self.assertEqual(codes, ['weight_sum', 'mcq_alternatives', 'mcq_correct', 'deadline_passed'])

        self.questionnaire.refresh_from_db()
        self.assertEqual(self.questionnaire.status, Questionnaire.Status.DRAFT)
        log = AuditLog.objects.get(event_type=AuditLog.EventType.PUBLISH_REJECTED)
        self.assertEqual(log.metadata['errors'], codes)

    def test_no_correct_alternative(self):
        """A multiple choice question needs exactly one correct alternative."""
        Alternative.objects.filter(pk=self.q1_right.pk).update(is_correct=False)
        self.assertEqual(self.rejected_codes(), ['mcq_correct'])

    def test_deadline_for_instructor(self):
        """Instructors cannot publish after the first class ends."""
        self.assertEqual(self.rejected_codes(now=AFTER_END), ['deadline_passed'])

    def test_deadline_on_the_minute(self):
        """Publishing exactly when the class ends is still allowed."""
        self.assertEqual(self.publish(now=CLASS_END).status, Questionnaire.Status.PUBLISHED)

    def test_administrator_ignores_deadline(self):
        """Administrators can publish after classes end."""
        questionnaire = self.publish(user=self.admin, now=AFTER_END)
        self.assertEqual(questionnaire.status, Questionnaire.Status.PUBLISHED)

    def test_deadline_is_earliest_class(self):
        """The earliest-ending class of the event sets the deadline."""
        CourseClass.objects.create(
            event=self.event, name='Early', start_date=date(2024, 3, 1), end_date=date(2024, 3, 2)
        )
        self.assertEqual(publish_deadline(self.event).date(), date(2024, 3, 2))
        self.assertEqual(self.rejected_codes(now=BEFORE_END), ['deadline_passed'])

    def test_publish_denied_for_other_instructor(self):
        """Publishing goes through the same authoring check."""
        outsider = make_user('outsider', role=UserProfile.Role.INSTRUCTOR)
        with self.assertRaises(AccessDeniedError):
            self.publish(user=outsider)
