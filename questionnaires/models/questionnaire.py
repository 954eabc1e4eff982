from django.db import models
from django.contrib.auth.models import User
from django.core.validators import MinValueValidator, MaxValueValidator

DEFAULT_TITLE = 'Learning Questionnaire'
DEFAULT_DESCRIPTION = 'Content absorption check (before the institutional evaluation).'


class Questionnaire(models.Model):
    class Status(models.TextChoices):
        DRAFT = 'draft', 'Draft'
        PUBLISHED = 'published', 'Published'

    event = models.OneToOneField(
        'Event',
        on_delete=models.CASCADE,
        related_name='questionnaire'
    )
    title = models.CharField(max_length=300, default=DEFAULT_TITLE)
    description = models.TextField(blank=True, default=DEFAULT_DESCRIPTION)
    mandatory = models.BooleanField(default=True)
    min_score = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text="Passing threshold (0-100). Empty means no pass/fail verdict."
    )
    max_attempts = models.PositiveIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(50)],
        help_text="Empty means unlimited submitted attempts."
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.DRAFT,
        db_index=True
    )

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_questionnaires'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    published_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'mandatory'], name='questionnaire_status_mand_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.event})"

    @property
    def is_published(self):
        return self.status == self.Status.PUBLISHED
