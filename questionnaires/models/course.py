from django.db import models
from django.contrib.auth.models import User


class Event(models.Model):
    """A course offering. Owns at most one questionnaire and any number of classes."""
    title = models.CharField(max_length=300)
    instructors = models.ManyToManyField(User, related_name='instructed_events', blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.title


class CourseClass(models.Model):
    event = models.ForeignKey(
        Event,
        on_delete=models.CASCADE,
        related_name='classes',
        db_index=True
    )
    name = models.CharField(max_length=200)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)

    class Meta:
        ordering = ['end_date', 'end_time', 'id']
        verbose_name_plural = 'course classes'

    def __str__(self):
        return f"{self.event.title} - {self.name}"


class ClassSession(models.Model):
    """Explicit per-date schedule entry. Overrides the class-level date range when present."""
    course_class = models.ForeignKey(
        CourseClass,
        on_delete=models.CASCADE,
        related_name='sessions',
        db_index=True
    )
    date = models.DateField()
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)

    class Meta:
        ordering = ['date', 'start_time']
        constraints = [
            models.UniqueConstraint(
                fields=['course_class', 'date'],
                name='unique_class_session_date'
            )
        ]

    def __str__(self):
        return f"{self.course_class} @ {self.date}"


class Enrollment(models.Model):
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='class_enrollments',
        db_index=True
    )
    course_class = models.ForeignKey(
        CourseClass,
        on_delete=models.CASCADE,
        related_name='enrollments',
        db_index=True
    )
    enrolled_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-enrolled_at']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'course_class'],
                name='unique_class_enrollment'
            )
        ]

    def __str__(self):
        return f"{self.user.username} in {self.course_class}"


class Attendance(models.Model):
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='attendances',
        db_index=True
    )
    course_class = models.ForeignKey(
        CourseClass,
        on_delete=models.CASCADE,
        related_name='attendances',
        db_index=True
    )
    date = models.DateField()
    present = models.BooleanField(default=False)

    class Meta:
        ordering = ['date']
        indexes = [
            models.Index(fields=['user', 'course_class', 'present'], name='attendance_user_class_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'course_class', 'date'],
                name='unique_attendance_day'
            )
        ]

    def __str__(self):
        mark = 'present' if self.present else 'absent'
        return f"{self.user.username} {self.date} ({mark})"
