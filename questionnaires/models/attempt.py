from decimal import Decimal

from django.db import models
from django.contrib.auth.models import User


class Attempt(models.Model):
    """
    One learner's try at a questionnaire for a specific class.

    Rows for the same (questionnaire, user, course_class) tuple accumulate as
    history; the one with the highest id is authoritative.
    """
    class Status(models.TextChoices):
        STARTED = 'started', 'Started'
        SUBMITTED = 'submitted', 'Submitted'

    questionnaire = models.ForeignKey(
        'Questionnaire',
        on_delete=models.CASCADE,
        related_name='attempts',
        db_index=True
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='questionnaire_attempts',
        db_index=True
    )
    course_class = models.ForeignKey(
        'CourseClass',
        on_delete=models.CASCADE,
        related_name='attempts',
        db_index=True
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.STARTED,
        db_index=True
    )
    started_at = models.DateTimeField(auto_now_add=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    score = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    # Weighted totals as scored at submit time; replays report these unchanged.
    total_points = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal('0.00'))
    total_weight = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal('0.00'))

    class Meta:
        ordering = ['-id']
        indexes = [
            models.Index(fields=['questionnaire', 'user', 'course_class'], name='attempt_tuple_idx'),
            models.Index(fields=['user', 'status'], name='attempt_user_status_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['questionnaire', 'user', 'course_class'],
                condition=models.Q(status='started'),
                name='unique_started_attempt'
            )
        ]

    def __str__(self):
        return f"{self.user.username} - {self.questionnaire.title} ({self.get_status_display()})"

    @property
    def is_submitted(self):
        return self.status == self.Status.SUBMITTED
