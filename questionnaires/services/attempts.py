"""
Attempt lifecycle: (none) -> started -> submitted.

Every learner-facing operation goes through the same access gate: the
questionnaire belongs to the class's event, the caller is enrolled, the
caller is eligible and the questionnaire is published. Administrators bypass
enrollment, eligibility and the publish check.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from django.db import IntegrityError, transaction
from django.db.models import Count, Max, Q
from django.utils import timezone

from questionnaires.clock import CivilClock
from questionnaires.exceptions import AccessDeniedError, ConflictError, NotFoundError
from questionnaires.grading import is_passing, score_submission
from questionnaires.grading.scoring import quantize
from questionnaires.locks import submission_lock
from questionnaires.models import (
    Alternative, Answer, Attempt, AuditLog, CourseClass, Enrollment, Questionnaire
)
from questionnaires.permissions import Capability, has_capability
from .eligibility import EligibilityEvaluator, EligibilityResult
from .presentation import present

logger = logging.getLogger(__name__)


@dataclass
class AccessContext:
    questionnaire: Questionnaire
    course_class: CourseClass
    eligibility: Optional[EligibilityResult]
    bypass: bool


@dataclass
class SubmissionOutcome:
    attempt: Attempt
    score: Optional[Decimal]
    passed: bool
    min_score: Optional[Decimal]
    total_points: Decimal
    total_weight: Decimal
    answers_received: int
    already_submitted: bool = False
    dropped: int = 0

    @property
    def status(self):
        return self.attempt.status

    @property
    def attempt_id(self):
        return self.attempt.pk


@dataclass
class AvailableQuestionnaire:
    questionnaire: Questionnaire
    course_class: CourseClass
    eligibility: EligibilityResult
    attempts_submitted: int
    last_attempt_id: Optional[int]
    last_score: Optional[Decimal]

    @property
    def event(self):
        return self.course_class.event

    @property
    def blocked_by_attempt_limit(self) -> bool:
        limit = self.questionnaire.max_attempts
        return limit is not None and self.attempts_submitted >= limit

    @property
    def class_end(self) -> Optional[datetime]:
        return self.eligibility.class_end


class AttemptService:
    def __init__(self, user, clock=None, evaluator=None, request=None):
        self.user = user
        self.clock = clock or CivilClock()
        self.evaluator = evaluator or EligibilityEvaluator(clock=self.clock)
        self.request = request
        self.bypass = has_capability(user, Capability.BYPASS_GATES)

    # ------------------------------------------------------------------
    # Access gate
    # ------------------------------------------------------------------

    def resolve_access(self, questionnaire_id, course_class_id, require_published=True, check_eligibility=True):
        questionnaire = Questionnaire.objects.select_related('event').filter(pk=questionnaire_id).first()
        if questionnaire is None:
            raise NotFoundError("Questionnaire not found.")
        course_class = CourseClass.objects.select_related('event').filter(pk=course_class_id).first()
        if course_class is None:
            raise NotFoundError("Class not found.")
        if course_class.event_id != questionnaire.event_id:
            raise NotFoundError("Questionnaire is not linked to this class.", code='not_linked')

        if not self.bypass:
            enrolled = Enrollment.objects.filter(user=self.user, course_class=course_class).exists()
            if not enrolled:
                self._deny(f"Not enrolled in class {course_class.pk}", course_class)
                raise AccessDeniedError("You are not enrolled in this class.", code='not_enrolled')

        eligibility = None
        if check_eligibility:
            eligibility = self.evaluator.evaluate(self.user.pk, course_class.pk, bypass=self.bypass)
            if not eligibility.eligible:
                raise ConflictError(
                    eligibility.message or "You are not eligible yet.",
                    code='not_eligible',
                    **eligibility.as_dict()
                )

        if require_published:
            self._ensure_published(questionnaire)

        return AccessContext(questionnaire, course_class, eligibility, self.bypass)

    def _ensure_published(self, questionnaire):
        if not questionnaire.is_published and not self.bypass:
            raise ConflictError("This questionnaire has not been published yet.", code='not_published')

    def _deny(self, description, course_class):
        logger.warning(f"PERMISSION_DENIED | User: {self.user.pk} | {description}")
        AuditLog.log(
            event_type=AuditLog.EventType.PERMISSION_DENIED,
            description=description,
            request=self.request,
            user=self.user,
            metadata={'course_class_id': course_class.pk}
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _attempts_for(self, questionnaire, course_class, user_id=None):
        return Attempt.objects.filter(
            questionnaire=questionnaire,
            user_id=user_id or self.user.pk,
            course_class=course_class
        )

    def _check_attempt_limit(self, questionnaire, course_class):
        if questionnaire.max_attempts is None:
            return
        submitted = self._attempts_for(questionnaire, course_class).filter(
            status=Attempt.Status.SUBMITTED
        ).count()
        if submitted >= questionnaire.max_attempts:
            raise ConflictError(
                "Attempt limit reached.",
                code='attempt_limit_reached',
                max_attempts=questionnaire.max_attempts
            )

    def fetch_for_responding(self, questionnaire_id, course_class_id, rng=None):
        ctx = self.resolve_access(questionnaire_id, course_class_id)
        return present(ctx.questionnaire, ctx.course_class, rng=rng)

    def latest_attempt(self, questionnaire_id, course_class_id):
        ctx = self.resolve_access(
            questionnaire_id, course_class_id, require_published=False, check_eligibility=False
        )
        attempt = self._attempts_for(ctx.questionnaire, ctx.course_class).prefetch_related(
            'answers'
        ).order_by('-id').first()
        if attempt is None:
            raise NotFoundError("No attempt found for this class.", code='no_attempt')
        return attempt

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    def start(self, questionnaire_id, course_class_id):
        """Return ``(attempt, created)``. An open attempt is returned unchanged."""
        ctx = self.resolve_access(questionnaire_id, course_class_id)
        questionnaire, course_class = ctx.questionnaire, ctx.course_class

        latest = self._attempts_for(questionnaire, course_class).order_by('-id').first()
        if latest is not None and latest.status == Attempt.Status.STARTED:
            return latest, False

        self._check_attempt_limit(questionnaire, course_class)

        try:
            with transaction.atomic():
                attempt = Attempt.objects.create(
                    questionnaire=questionnaire,
                    user=self.user,
                    course_class=course_class,
                    status=Attempt.Status.STARTED
                )
        except IntegrityError:
            # A concurrent start won the partial unique constraint.
            attempt = self._attempts_for(questionnaire, course_class).filter(
                status=Attempt.Status.STARTED
            ).first()
            if attempt is None:
                raise
            return attempt, False

        logger.info(
            f"ATTEMPT_START | Attempt: {attempt.pk} | User: {self.user.pk} | "
            f"Questionnaire: {questionnaire.pk} | Class: {course_class.pk}"
        )
        AuditLog.log(
            event_type=AuditLog.EventType.ATTEMPT_START,
            description=f"Started: {questionnaire.title}",
            request=self.request,
            user=self.user,
            metadata={
                'questionnaire_id': questionnaire.pk,
                'course_class_id': course_class.pk,
                'attempt_id': attempt.pk
            }
        )
        return attempt, True

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    def submit(self, questionnaire_id, course_class_id, answers):
        # Gate again in case the class or enrollment changed since start.
        ctx = self.resolve_access(questionnaire_id, course_class_id, require_published=False)
        course_class = ctx.course_class

        with submission_lock(ctx.questionnaire.pk, self.user.pk, course_class.pk):
            with transaction.atomic():
                attempt = self._attempts_for(ctx.questionnaire, course_class).select_for_update().order_by('-id').first()
                if attempt is None:
                    raise ConflictError("No attempt has been started.", code='no_attempt_started')

                if attempt.is_submitted:
                    logger.info(f"SUBMIT_REPLAY | Attempt: {attempt.pk} | User: {self.user.pk}")
                    return self._stored_outcome(attempt, ctx.questionnaire)

                questionnaire = Questionnaire.objects.get(pk=ctx.questionnaire.pk)
                self._ensure_published(questionnaire)
                self._check_attempt_limit(questionnaire, course_class)

                questions = list(questionnaire.questions.all())
                alternatives = list(Alternative.objects.filter(question__questionnaire=questionnaire))
                result = score_submission(questions, alternatives, answers)

                attempt.answers.all().delete()
                Answer.objects.bulk_create([
                    Answer(
                        attempt=attempt,
                        question_id=scored.question_id,
                        alternative_id=scored.alternative_id,
                        free_text=scored.free_text,
                        is_correct=scored.is_correct,
                        points_awarded=scored.points_awarded,
                    )
                    for scored in result.answers
                ])

                attempt.status = Attempt.Status.SUBMITTED
                attempt.score = result.score
                attempt.total_points = result.total_points
                attempt.total_weight = result.total_weight
                attempt.submitted_at = timezone.now()
                attempt.save(update_fields=['status', 'score', 'total_points', 'total_weight', 'submitted_at'])

                AuditLog.log(
                    event_type=AuditLog.EventType.ATTEMPT_SUBMIT,
                    description=f"Submitted: {questionnaire.title}",
                    request=self.request,
                    user=self.user,
                    metadata={
                        'attempt_id': attempt.pk,
                        'score': str(result.score) if result.score is not None else None,
                        'answers_received': result.answers_received,
                        'dropped': result.dropped
                    }
                )

        if result.dropped:
            logger.warning(f"SUBMIT_DROPPED_ANSWERS | Attempt: {attempt.pk} | Count: {result.dropped}")
        logger.info(f"ATTEMPT_SUBMIT | Attempt: {attempt.pk} | User: {self.user.pk} | Score: {result.score}")

        return SubmissionOutcome(
            attempt=attempt,
            score=result.score,
            passed=is_passing(result.score, questionnaire.min_score),
            min_score=questionnaire.min_score,
            total_points=result.total_points,
            total_weight=result.total_weight,
            answers_received=result.answers_received,
            dropped=result.dropped,
        )

    def _stored_outcome(self, attempt, questionnaire):
        # Totals come from the attempt row so later weight edits do not change a replay.
        return SubmissionOutcome(
            attempt=attempt,
            score=attempt.score,
            passed=is_passing(attempt.score, questionnaire.min_score),
            min_score=questionnaire.min_score,
            total_points=quantize(attempt.total_points),
            total_weight=quantize(attempt.total_weight),
            answers_received=attempt.answers.count(),
            already_submitted=True,
        )

    # ------------------------------------------------------------------
    # Available questionnaires
    # ------------------------------------------------------------------

    def list_available(self, user_id):
        if user_id != self.user.pk and not has_capability(self.user, Capability.VIEW_ANY_LEARNER):
            raise AccessDeniedError("You can only list your own questionnaires.")

        enrollments = Enrollment.objects.filter(
            user_id=user_id,
            course_class__event__questionnaire__status=Questionnaire.Status.PUBLISHED,
            course_class__event__questionnaire__mandatory=True,
        ).select_related(
            'course_class__event__questionnaire'
        ).order_by('-course_class_id')

        available = []
        for enrollment in enrollments:
            course_class = enrollment.course_class
            questionnaire = course_class.event.questionnaire

            eligibility = self.evaluator.evaluate(user_id, course_class.pk)
            if not eligibility.eligible:
                continue

            attempts = self._attempts_for(questionnaire, course_class, user_id=user_id)
            stats = attempts.aggregate(
                submitted=Count('id', filter=Q(status=Attempt.Status.SUBMITTED)),
                last_id=Max('id'),
            )
            last_submitted = attempts.filter(status=Attempt.Status.SUBMITTED).order_by('-id').first()

            available.append(AvailableQuestionnaire(
                questionnaire=questionnaire,
                course_class=course_class,
                eligibility=eligibility,
                attempts_submitted=stats['submitted'] or 0,
                last_attempt_id=stats['last_id'],
                last_score=last_submitted.score if last_submitted else None,
            ))

        # Latest real end first; sessions can end a class after its own end date.
        available.sort(key=lambda item: (item.class_end, item.course_class.pk), reverse=True)
        return available
