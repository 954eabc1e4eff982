from .course import Event, CourseClass, ClassSession, Enrollment, Attendance
from .user_profile import UserProfile
from .questionnaire import Questionnaire
from .question import Question, Alternative
from .attempt import Attempt
from .answer import Answer
from .audit import AuditLog

__all__ = [
    'Event', 'CourseClass', 'ClassSession', 'Enrollment', 'Attendance',
    'UserProfile', 'Questionnaire', 'Question', 'Alternative',
    'Attempt', 'Answer', 'AuditLog'
]
