from django.db import models
from django.contrib.auth.models import User


class AuditLog(models.Model):
    class EventType(models.TextChoices):
        DRAFT_CREATED = 'draft_created', 'Questionnaire Draft Created'
        PUBLISHED = 'published', 'Questionnaire Published'
        PUBLISH_REJECTED = 'publish_rejected', 'Publish Rejected'
        ATTEMPT_START = 'attempt_start', 'Attempt Started'
        ATTEMPT_SUBMIT = 'attempt_submit', 'Attempt Submitted'
        PERMISSION_DENIED = 'permission_denied', 'Permission Denied'

    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs'
    )
    event_type = models.CharField(max_length=30, choices=EventType.choices, db_index=True)
    description = models.TextField()
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'event_type'], name='auditlog_user_event_idx'),
            models.Index(fields=['created_at', 'event_type'], name='auditlog_created_event_idx'),
        ]

    def __str__(self):
        return f"{self.event_type} - {self.user} - {self.created_at}"

    @classmethod
    def log(cls, event_type, description, request=None, user=None, metadata=None):
        ip_address = None
        user_agent = ''

        if request:
            ip_address = get_client_ip(request)
            user_agent = request.META.get('HTTP_USER_AGENT', '')[:500]

            if not user and hasattr(request, 'user') and request.user.is_authenticated:
                user = request.user

        return cls.objects.create(
            user=user,
            event_type=event_type,
            description=description,
            ip_address=ip_address,
            user_agent=user_agent,
            metadata=metadata or {}
        )


def get_client_ip(request):
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')
