from datetime import date, datetime, time, timedelta
from decimal import Decimal

from django.contrib.auth.models import User

from questionnaires.models import (
    Alternative, Attendance, ClassSession, CourseClass, Enrollment, Event,
    Question, Questionnaire, UserProfile
)

CLASS_START = date(2024, 3, 7)
CLASS_END_DATE = date(2024, 3, 10)
CLASS_END_TIME = time(17, 0)
CLASS_END = datetime(2024, 3, 10, 17, 0)
BEFORE_END = datetime(2024, 3, 10, 16, 59)
AFTER_END = datetime(2024, 3, 11, 9, 0)


class FixedClock:
    def __init__(self, now):
        self.value = now

    def now(self):
        return self.value


class ReversingRandom:
    """Deterministic stand-in for random.Random: shuffle reverses in place."""

    def shuffle(self, items):
        items.reverse()


def make_user(username, role=UserProfile.Role.LEARNER):
    user = User.objects.create_user(username, f'{username}@test.com', 'testpass123')
    if role != UserProfile.Role.LEARNER:
        user.profile.role = role
        user.profile.save()
    return user


class QuestionnaireFixtureMixin:
    """Builds an event with one four-session class ending 2024-03-10 17:00."""

    def create_course(self, sessions=4, title='Data Literacy'):
        self.event = Event.objects.create(title=title)
        self.course_class = CourseClass.objects.create(
            event=self.event,
            name='Class A',
            start_date=CLASS_START,
            end_date=CLASS_END_DATE,
            end_time=CLASS_END_TIME,
        )
        for offset in range(sessions):
            ClassSession.objects.create(
                course_class=self.course_class,
                date=CLASS_START + timedelta(days=offset),
            )
        return self.course_class

    def enroll(self, user, course_class=None, attended=4):
        course_class = course_class or self.course_class
        Enrollment.objects.create(user=user, course_class=course_class)
        for offset in range(attended):
            Attendance.objects.create(
                user=user,
                course_class=course_class,
                date=CLASS_START + timedelta(days=offset),
                present=True,
            )

    def create_questionnaire(self, status=Questionnaire.Status.PUBLISHED, min_score=None, max_attempts=None):
        """Two multiple choice questions of weight 5, two alternatives each, one correct."""
        self.questionnaire = Questionnaire.objects.create(
            event=self.event,
            status=status,
            min_score=min_score,
            max_attempts=max_attempts,
        )
        self.q1 = Question.objects.create(
            questionnaire=self.questionnaire, kind=Question.Kind.MULTIPLE_CHOICE,
            prompt='First question', order=1, weight=Decimal('5.00')
        )
        self.q1_right = Alternative.objects.create(question=self.q1, text='Right', is_correct=True, order=1)
        self.q1_wrong = Alternative.objects.create(question=self.q1, text='Wrong', is_correct=False, order=2)
        self.q2 = Question.objects.create(
            questionnaire=self.questionnaire, kind=Question.Kind.MULTIPLE_CHOICE,
            prompt='Second question', order=2, weight=Decimal('5.00')
        )
        self.q2_right = Alternative.objects.create(question=self.q2, text='Right', is_correct=True, order=1)
        self.q2_wrong = Alternative.objects.create(question=self.q2, text='Wrong', is_correct=False, order=2)
        return self.questionnaire

    def half_right_answers(self):
        return [
            {'question_id': self.q1.id, 'alternative_id': self.q1_right.id},
            {'question_id': self.q2.id, 'alternative_id': self.q2_wrong.id},
        ]
