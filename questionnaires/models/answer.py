from django.db import models


class Answer(models.Model):
    attempt = models.ForeignKey(
        'Attempt',
        on_delete=models.CASCADE,
        related_name='answers',
        db_index=True
    )
    question = models.ForeignKey(
        'Question',
        on_delete=models.CASCADE,
        related_name='answers',
        db_index=True
    )
    alternative = models.ForeignKey(
        'Alternative',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='answers'
    )
    free_text = models.TextField(null=True, blank=True)

    # Null for essay answers; those are kept for manual review.
    is_correct = models.BooleanField(null=True)
    points_awarded = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    answered_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['question__order', 'question_id']
        constraints = [
            models.UniqueConstraint(
                fields=['attempt', 'question'],
                name='unique_attempt_question'
            )
        ]

    def __str__(self):
        return f"Answer to Q{self.question.order} by {self.attempt.user.username}"
