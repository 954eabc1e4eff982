"""
Eligibility gate for post-course questionnaires.

A learner may answer a class's questionnaire once the class has ended (in
civil time) and they attended at least the configured share of its sessions.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from django.conf import settings
from django.db.models.functions import Coalesce

from questionnaires.clock import CivilClock, civil_timestamp, format_civil
from questionnaires.models import Attendance, CourseClass

logger = logging.getLogger(__name__)


class EligibilityReason(str, Enum):
    INVALID_CLASS = 'invalid_class'
    CLASS_NOT_ENDED = 'class_not_ended'
    NO_SCHEDULED_SESSIONS = 'no_scheduled_sessions'
    INSUFFICIENT_ATTENDANCE = 'insufficient_attendance'


@dataclass
class EligibilityResult:
    eligible: bool
    reason: Optional[EligibilityReason] = None
    attendance_ratio: float = 0.0
    total_sessions: int = 0
    present_sessions: int = 0
    class_end: Optional[datetime] = None
    now: Optional[datetime] = None
    bypassed: bool = False
    message: str = ''

    @property
    def attendance_percent(self) -> float:
        return round(self.attendance_ratio * 100, 1)

    def as_dict(self) -> dict:
        return {
            'eligible': self.eligible,
            'reason': self.reason.value if self.reason else None,
            'attendance_ratio': round(self.attendance_ratio, 4),
            'attendance_percent': self.attendance_percent,
            'present_sessions': self.present_sessions,
            'total_sessions': self.total_sessions,
            'class_end': format_civil(self.class_end),
            'now': format_civil(self.now),
            'bypassed': self.bypassed,
        }


def get_min_attendance_ratio() -> float:
    return float(settings.QUESTIONNAIRES.get('MIN_ATTENDANCE_RATIO', 0.75))


def class_end_timestamp(course_class) -> Optional[datetime]:
    """
    Real end of a class in civil time.

    The latest explicit session wins, using its own end time, else the class
    end time, else 23:59. Without sessions the class end date is used.
    """
    last_session = course_class.sessions.annotate(
        effective_end=Coalesce('end_time', 'course_class__end_time')
    ).order_by('-date', '-effective_end').first()

    if last_session is not None:
        return civil_timestamp(last_session.date, last_session.effective_end)
    if course_class.end_date is None:
        return None
    return civil_timestamp(course_class.end_date, course_class.end_time)


def count_scheduled_sessions(course_class) -> int:
    explicit = course_class.sessions.count()
    if explicit > 0:
        return explicit
    if course_class.start_date is None or course_class.end_date is None:
        return 0
    span = (course_class.end_date - course_class.start_date).days + 1
    return max(span, 0)


def count_present_sessions(user_id, course_class_id) -> int:
    return Attendance.objects.filter(
        user_id=user_id,
        course_class_id=course_class_id,
        present=True
    ).values('date').distinct().count()


class EligibilityEvaluator:
    def __init__(self, clock=None):
        self.clock = clock or CivilClock()

    def evaluate(self, user_id, course_class_id, bypass=False) -> EligibilityResult:
        """
        Evaluate the gate for one learner and class.

        With ``bypass`` (administrators) the result is always eligible, but the
        reason and attendance figures are still computed and reported.
        """
        result = self._compute(user_id, course_class_id)
        if bypass and not result.eligible:
            logger.info(
                f"ELIGIBILITY_BYPASS | User: {user_id} | Class: {course_class_id} | "
                f"Reason: {result.reason.value}"
            )
            result.eligible = True
            result.bypassed = True
        return result

    def _compute(self, user_id, course_class_id) -> EligibilityResult:
        now = self.clock.now()
        threshold = get_min_attendance_ratio()

        course_class = CourseClass.objects.filter(pk=course_class_id).first()
        class_end = class_end_timestamp(course_class) if course_class else None
        if class_end is None:
            return EligibilityResult(
                eligible=False,
                reason=EligibilityReason.INVALID_CLASS,
                now=now,
                message="Class not found or has no end date."
            )

        total = count_scheduled_sessions(course_class)
        present = count_present_sessions(user_id, course_class_id)
        ratio = present / total if total > 0 else 0.0

        result = EligibilityResult(
            eligible=False,
            attendance_ratio=ratio,
            total_sessions=total,
            present_sessions=present,
            class_end=class_end,
            now=now,
        )

        if now < class_end:
            result.reason = EligibilityReason.CLASS_NOT_ENDED
            result.message = f"Class ends at {format_civil(class_end)} (now {format_civil(now)})."
        elif total <= 0:
            result.reason = EligibilityReason.NO_SCHEDULED_SESSIONS
            result.message = "Class has no scheduled sessions."
        elif ratio < threshold:
            result.reason = EligibilityReason.INSUFFICIENT_ATTENDANCE
            result.message = (
                f"{present} of {total} sessions attended, "
                f"{ratio * 100:.0f}% < {threshold * 100:.0f}% required."
            )
        else:
            result.eligible = True
        return result
