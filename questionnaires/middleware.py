"""
Request middleware for the questionnaire API.
Security headers on every response and an audit line for every attempt request.
"""
import logging
import re

from django.conf import settings

from questionnaires.models.audit import get_client_ip

logger = logging.getLogger(__name__)

ATTEMPT_PATH = re.compile(r'^/api/questionnaires/(?P<questionnaire_id>\d+)/(?P<action>start|submit)/classes/(?P<class_id>\d+)/?$')
DOCS_PATHS = ('/api/docs/', '/api/redoc/', '/api/schema/')


class SecurityHeadersMiddleware:
    """Add security headers to all responses."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        response['X-Frame-Options'] = 'DENY'
        response['X-Content-Type-Options'] = 'nosniff'
        response['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response['Permissions-Policy'] = 'geolocation=(), microphone=(), camera=()'

        # Attempts and correct answers must never be cached by intermediaries
        if request.path.startswith('/api/') and request.path not in DOCS_PATHS:
            response['Cache-Control'] = 'no-store, no-cache, must-revalidate, private'
            response['Pragma'] = 'no-cache'

        if not settings.DEBUG or not request.path.startswith('/api/docs'):
            response['Content-Security-Policy'] = (
                "default-src 'self'; "
                "script-src 'self' 'unsafe-inline'; "
                "style-src 'self' 'unsafe-inline'; "
                "img-src 'self' data:; "
                "frame-ancestors 'none'"
            )

        return response


class AttemptAuditMiddleware:
    """Log every start/submit request with its outcome for later audit."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        match = ATTEMPT_PATH.match(request.path) if request.method == 'POST' else None
        response = self.get_response(request)

        if match:
            user = getattr(request, 'user', None)
            user_label = user.pk if user is not None and user.is_authenticated else 'anonymous'
            logger.info(
                f"ATTEMPT_{match.group('action').upper()}_REQUEST | User: {user_label} | "
                f"IP: {get_client_ip(request) or 'unknown'} | Questionnaire: {match.group('questionnaire_id')} | "
                f"Class: {match.group('class_id')} | Status: {response.status_code}"
            )
        return response
