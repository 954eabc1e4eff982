"""
Questionnaire authoring and publication.

Instructors of an event (and administrators) build one questionnaire per
event: metadata, questions and, for multiple-choice questions, alternatives.
Publishing re-validates the whole questionnaire every time and reports every
unmet rule at once.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from questionnaires.clock import CivilClock, format_civil
from questionnaires.exceptions import (
    AccessDeniedError, InvalidInputError, NotFoundError, PublishRejectedError
)
from questionnaires.grading.scoring import quantize
from questionnaires.models import Alternative, AuditLog, Event, Question, Questionnaire
from questionnaires.models.questionnaire import DEFAULT_DESCRIPTION, DEFAULT_TITLE
from questionnaires.permissions import can_author_event, is_administrator
from .eligibility import class_end_timestamp

logger = logging.getLogger(__name__)

METADATA_FIELDS = ('title', 'description', 'mandatory', 'min_score', 'max_attempts')
QUESTION_FIELDS = ('kind', 'prompt', 'order', 'weight')
ALTERNATIVE_FIELDS = ('text', 'is_correct', 'order')


@dataclass
class PublishIssue:
    code: str
    detail: str
    question_id: Optional[int] = None

    def as_dict(self) -> dict:
        data = {'code': self.code, 'detail': self.detail}
        if self.question_id is not None:
            data['question_id'] = self.question_id
        return data


def get_required_weight_sum() -> Decimal:
    return quantize(settings.QUESTIONNAIRES.get('REQUIRED_WEIGHT_SUM', 10))


def publish_deadline(event):
    """End of the event's earliest-ending class, or None when no class has an end."""
    ends = [class_end_timestamp(c) for c in event.classes.all()]
    ends = [end for end in ends if end is not None]
    return min(ends) if ends else None


class PublishValidator:
    def __init__(self, clock=None):
        self.clock = clock or CivilClock()

    def validate(self, questionnaire, user):
        issues = []
        questions = list(
            questionnaire.questions.annotate(
                alternative_count=Count('alternatives'),
                correct_count=Count('alternatives', filter=Q(alternatives__is_correct=True)),
            ).order_by('order', 'id')
        )

        if not questions:
            issues.append(PublishIssue('no_questions', "Add at least one question before publishing."))

        weight_sum = quantize(sum((q.weight for q in questions), Decimal('0')))
        required = get_required_weight_sum()
        if questions and weight_sum != required:
            issues.append(PublishIssue(
                'weight_sum',
                f"Question weights must add up to exactly {required} (currently {weight_sum})."
            ))

        for question in questions:
            if not question.is_multiple_choice:
                continue
            if question.alternative_count < 2:
                issues.append(PublishIssue(
                    'mcq_alternatives',
                    f"Question {question.id}: multiple choice needs at least 2 alternatives.",
                    question_id=question.id
                ))
            if question.correct_count != 1:
                issues.append(PublishIssue(
                    'mcq_correct',
                    f"Question {question.id}: exactly 1 alternative must be marked correct "
                    f"(found {question.correct_count}).",
                    question_id=question.id
                ))

        deadline = publish_deadline(questionnaire.event)
        if deadline is not None and not is_administrator(user):
            now = self.clock.now()
            if now > deadline:
                issues.append(PublishIssue(
                    'deadline_passed',
                    f"Publishing closed when the first class ended at {format_civil(deadline)} "
                    f"(now {format_civil(now)})."
                ))

        return issues


class QuestionnaireAuthoringService:
    def __init__(self, user, clock=None, request=None):
        self.user = user
        self.clock = clock or CivilClock()
        self.request = request

    # ------------------------------------------------------------------
    # Lookups and authorization
    # ------------------------------------------------------------------

    def _ensure_can_author(self, event):
        if can_author_event(self.user, event):
            return
        logger.warning(
            f"PERMISSION_DENIED | User: {self.user.pk} | Event: {event.pk} | Action: author questionnaire"
        )
        AuditLog.log(
            event_type=AuditLog.EventType.PERMISSION_DENIED,
            description=f"Authoring denied for event {event.pk}",
            request=self.request,
            user=self.user,
            metadata={'event_id': event.pk}
        )
        raise AccessDeniedError("Only the event's instructors or an administrator can edit its questionnaire.")

    def _get_event(self, event_id):
        event = Event.objects.filter(pk=event_id).first()
        if event is None:
            raise NotFoundError("Event not found.")
        return event

    def _get_questionnaire(self, questionnaire_id):
        questionnaire = Questionnaire.objects.select_related('event').filter(pk=questionnaire_id).first()
        if questionnaire is None:
            raise NotFoundError("Questionnaire not found.")
        self._ensure_can_author(questionnaire.event)
        return questionnaire

    def _get_question(self, questionnaire_id, question_id):
        questionnaire = self._get_questionnaire(questionnaire_id)
        question = questionnaire.questions.filter(pk=question_id).first()
        if question is None:
            raise NotFoundError("Question not found in this questionnaire.")
        return question

    def _get_question_by_id(self, question_id):
        question = Question.objects.select_related('questionnaire__event').filter(pk=question_id).first()
        if question is None:
            raise NotFoundError("Question not found.")
        self._ensure_can_author(question.questionnaire.event)
        return question

    def _get_alternative(self, question_id, alternative_id):
        question = self._get_question_by_id(question_id)
        alternative = question.alternatives.filter(pk=alternative_id).first()
        if alternative is None:
            raise NotFoundError("Alternative not found for this question.")
        return alternative

    # ------------------------------------------------------------------
    # Questionnaire
    # ------------------------------------------------------------------

    def get_or_create_draft(self, event_id):
        event = self._get_event(event_id)
        self._ensure_can_author(event)

        questionnaire, created = Questionnaire.objects.get_or_create(
            event=event,
            defaults={
                'title': settings.QUESTIONNAIRES.get('DEFAULT_TITLE', DEFAULT_TITLE),
                'description': settings.QUESTIONNAIRES.get('DEFAULT_DESCRIPTION', DEFAULT_DESCRIPTION),
                'mandatory': True,
                'status': Questionnaire.Status.DRAFT,
                'created_by': self.user,
            }
        )

        if created:
            logger.info(f"DRAFT_CREATED | Questionnaire: {questionnaire.pk} | Event: {event.pk} | User: {self.user.pk}")
            AuditLog.log(
                event_type=AuditLog.EventType.DRAFT_CREATED,
                description=f"Draft questionnaire created for {event.title}",
                request=self.request,
                user=self.user,
                metadata={'event_id': event.pk, 'questionnaire_id': questionnaire.pk}
            )
        return questionnaire, created

    def get_for_event(self, event_id):
        event = self._get_event(event_id)
        self._ensure_can_author(event)
        questionnaire = Questionnaire.objects.filter(event=event).prefetch_related(
            'questions__alternatives'
        ).first()
        if questionnaire is None:
            raise NotFoundError("This event has no questionnaire yet.")
        return questionnaire

    def update_metadata(self, questionnaire_id, data):
        questionnaire = self._get_questionnaire(questionnaire_id)
        changed = [name for name in METADATA_FIELDS if name in data]
        for name in changed:
            setattr(questionnaire, name, data[name])
        if changed:
            questionnaire.save(update_fields=changed + ['updated_at'])
        return questionnaire

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    def add_question(self, questionnaire_id, data):
        questionnaire = self._get_questionnaire(questionnaire_id)
        return Question.objects.create(
            questionnaire=questionnaire,
            **{name: data[name] for name in QUESTION_FIELDS if name in data}
        )

    def update_question(self, questionnaire_id, question_id, data):
        question = self._get_question(questionnaire_id, question_id)

        new_kind = data.get('kind')
        if new_kind == Question.Kind.ESSAY and question.kind != new_kind and question.alternatives.exists():
            raise InvalidInputError(
                "Remove the question's alternatives before turning it into an essay question.",
                code='question_has_alternatives'
            )

        changed = [name for name in QUESTION_FIELDS if name in data]
        for name in changed:
            setattr(question, name, data[name])
        if changed:
            question.save(update_fields=changed + ['updated_at'])
        return question

    def delete_question(self, questionnaire_id, question_id):
        question = self._get_question(questionnaire_id, question_id)
        question.delete()

    # ------------------------------------------------------------------
    # Alternatives
    # ------------------------------------------------------------------

    def add_alternative(self, question_id, data):
        question = self._get_question_by_id(question_id)
        if not question.is_multiple_choice:
            raise InvalidInputError(
                "Alternatives can only be added to multiple choice questions.",
                code='not_multiple_choice'
            )
        return Alternative.objects.create(
            question=question,
            **{name: data[name] for name in ALTERNATIVE_FIELDS if name in data}
        )

    def update_alternative(self, question_id, alternative_id, data):
        alternative = self._get_alternative(question_id, alternative_id)
        changed = [name for name in ALTERNATIVE_FIELDS if name in data]
        for name in changed:
            setattr(alternative, name, data[name])
        if changed:
            alternative.save(update_fields=changed)
        return alternative

    def delete_alternative(self, question_id, alternative_id):
        alternative = self._get_alternative(question_id, alternative_id)
        alternative.delete()

    # ------------------------------------------------------------------
    # Publication
    # ------------------------------------------------------------------

    def publish(self, questionnaire_id):
        validator = PublishValidator(clock=self.clock)
        self._get_questionnaire(questionnaire_id)

        with transaction.atomic():
            questionnaire = Questionnaire.objects.select_for_update().get(pk=questionnaire_id)
            issues = validator.validate(questionnaire, self.user)
            if not issues:
                questionnaire.status = Questionnaire.Status.PUBLISHED
                questionnaire.published_at = timezone.now()
                questionnaire.save(update_fields=['status', 'published_at', 'updated_at'])

        if issues:
            codes = [issue.code for issue in issues]
            logger.info(f"PUBLISH_REJECTED | Questionnaire: {questionnaire.pk} | User: {self.user.pk} | Rules: {codes}")
            AuditLog.log(
                event_type=AuditLog.EventType.PUBLISH_REJECTED,
                description=f"Publish rejected: {', '.join(codes)}",
                request=self.request,
                user=self.user,
                metadata={'questionnaire_id': questionnaire.pk, 'errors': codes}
            )
            raise PublishRejectedError(issues)

        logger.info(f"PUBLISHED | Questionnaire: {questionnaire.pk} | User: {self.user.pk}")
        AuditLog.log(
            event_type=AuditLog.EventType.PUBLISHED,
            description=f"Published: {questionnaire.title}",
            request=self.request,
            user=self.user,
            metadata={'questionnaire_id': questionnaire.pk, 'event_id': questionnaire.event_id}
        )
        return questionnaire
