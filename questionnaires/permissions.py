from enum import Enum

from rest_framework import permissions

from questionnaires.models import UserProfile


class Capability(str, Enum):
    AUTHOR_QUESTIONNAIRES = 'author_questionnaires'
    BYPASS_GATES = 'bypass_gates'
    VIEW_ANY_LEARNER = 'view_any_learner'


ROLE_CAPABILITIES = {
    UserProfile.Role.LEARNER: frozenset(),
    UserProfile.Role.INSTRUCTOR: frozenset({Capability.AUTHOR_QUESTIONNAIRES}),
    UserProfile.Role.ADMINISTRATOR: frozenset(Capability),
}


def get_role(user):
    if user is None or not user.is_authenticated:
        return None
    if user.is_superuser:
        return UserProfile.Role.ADMINISTRATOR
    profile = getattr(user, 'profile', None)
    if profile is None:
        return UserProfile.Role.LEARNER
    return UserProfile.Role(profile.role)


def has_capability(user, capability):
    role = get_role(user)
    if role is None:
        return False
    return capability in ROLE_CAPABILITIES[role]


def is_administrator(user):
    return get_role(user) == UserProfile.Role.ADMINISTRATOR


def can_author_event(user, event):
    """Administrators author anything; instructors only the events they teach."""
    if not has_capability(user, Capability.AUTHOR_QUESTIONNAIRES):
        return False
    if is_administrator(user):
        return True
    return event.instructors.filter(pk=user.pk).exists()


class CanAuthorQuestionnaires(permissions.BasePermission):
    message = "Only instructors and administrators can author questionnaires."

    def has_permission(self, request, view):
        return has_capability(request.user, Capability.AUTHOR_QUESTIONNAIRES)
