from decimal import Decimal

from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator


class Question(models.Model):
    class Kind(models.TextChoices):
        MULTIPLE_CHOICE = 'multiple_choice', 'Multiple Choice'
        ESSAY = 'essay', 'Essay'

    questionnaire = models.ForeignKey(
        'Questionnaire',
        on_delete=models.CASCADE,
        related_name='questions',
        db_index=True
    )
    kind = models.CharField(
        max_length=20,
        choices=Kind.choices,
        db_index=True
    )
    prompt = models.TextField()
    order = models.PositiveIntegerField(default=1)
    weight = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('1.00'),
        validators=[MinValueValidator(Decimal('0.01')), MaxValueValidator(100)]
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['order', 'id']
        indexes = [
            models.Index(fields=['questionnaire', 'order'], name='question_questionnaire_ord_idx'),
        ]

    def __str__(self):
        return f"Q{self.order}: {self.prompt[:50]}..."

    @property
    def is_multiple_choice(self):
        return self.kind == self.Kind.MULTIPLE_CHOICE


class Alternative(models.Model):
    question = models.ForeignKey(
        Question,
        on_delete=models.CASCADE,
        related_name='alternatives',
        db_index=True
    )
    text = models.TextField()
    is_correct = models.BooleanField(default=False)
    order = models.PositiveIntegerField(default=1)

    class Meta:
        ordering = ['order', 'id']

    def __str__(self):
        mark = ' (correct)' if self.is_correct else ''
        return f"{self.text[:50]}{mark}"
