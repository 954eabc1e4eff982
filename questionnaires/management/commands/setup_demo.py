"""
Management command to set up demo data for the questionnaire service.
Creates demo users, an ended event with one class, attendance and a
published questionnaire ready to be answered.
"""
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.contrib.auth.models import User
from django.db import transaction
from rest_framework.authtoken.models import Token

from questionnaires.clock import CivilClock
from questionnaires.models import (
    Alternative, Attendance, ClassSession, CourseClass, Enrollment, Event,
    Question, Questionnaire, UserProfile
)

DEMO_USERS = [
    # username, password, role, is_staff, is_superuser
    ('learner', 'learner123', UserProfile.Role.LEARNER, False, False),
    ('instructor', 'instructor123', UserProfile.Role.INSTRUCTOR, True, False),
    ('admin', 'admin123', UserProfile.Role.ADMINISTRATOR, True, True),
]

DEMO_QUESTIONS = [
    {
        'prompt': 'What does the attendance threshold for the questionnaire require?',
        'weight': Decimal('4.00'),
        'alternatives': [
            ('At least 75% of the class sessions', True),
            ('At least half of the class sessions', False),
            ('Only the last session', False),
        ],
    },
    {
        'prompt': 'When does the questionnaire open for a class?',
        'weight': Decimal('4.00'),
        'alternatives': [
            ('Right after enrollment', False),
            ('Once the class has ended', True),
        ],
    },
]


class Command(BaseCommand):
    help = 'Set up demo data for testing'

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.NOTICE('\nSetting up questionnaire demo data...\n'))

        users = {}
        for username, password, role, is_staff, is_superuser in DEMO_USERS:
            user, created = User.objects.get_or_create(
                username=username,
                defaults={
                    'email': f'{username}@example.com',
                    'is_staff': is_staff,
                    'is_superuser': is_superuser,
                    'is_active': True
                }
            )
            if created:
                user.set_password(password)
                user.save()
                user.profile.role = role
                user.profile.save()
                self.stdout.write(self.style.SUCCESS(f'✓ Created {role.label.lower()}: {username} / {password}'))
            else:
                self.stdout.write(f'  {username} already exists')
            Token.objects.get_or_create(user=user)
            users[username] = user

        event, created = Event.objects.get_or_create(title='Introduction to Data Literacy')
        event.instructors.add(users['instructor'])
        if not created:
            self.stdout.write('  Demo event already exists, skipping content')
            self._print_tokens(users)
            return

        # A class that ended yesterday, with four sessions
        today = CivilClock().now().date()
        start = today - timedelta(days=4)
        course_class = CourseClass.objects.create(
            event=event,
            name='Morning class',
            start_date=start,
            end_date=today - timedelta(days=1),
        )
        for offset in range(4):
            day = start + timedelta(days=offset)
            ClassSession.objects.create(course_class=course_class, date=day)
            Attendance.objects.create(
                user=users['learner'], course_class=course_class, date=day, present=offset != 0
            )
        Enrollment.objects.create(user=users['learner'], course_class=course_class)
        self.stdout.write(self.style.SUCCESS(f'✓ Created event "{event.title}" with class "{course_class.name}"'))

        questionnaire = Questionnaire.objects.create(
            event=event,
            min_score=Decimal('60.00'),
            max_attempts=2,
            status=Questionnaire.Status.PUBLISHED,
            created_by=users['instructor'],
        )
        for order, data in enumerate(DEMO_QUESTIONS, start=1):
            question = Question.objects.create(
                questionnaire=questionnaire,
                kind=Question.Kind.MULTIPLE_CHOICE,
                prompt=data['prompt'],
                order=order,
                weight=data['weight'],
            )
            for alt_order, (text, is_correct) in enumerate(data['alternatives'], start=1):
                Alternative.objects.create(question=question, text=text, is_correct=is_correct, order=alt_order)
        Question.objects.create(
            questionnaire=questionnaire,
            kind=Question.Kind.ESSAY,
            prompt='Describe one idea from the class you will apply at work.',
            order=len(DEMO_QUESTIONS) + 1,
            weight=Decimal('2.00'),
        )
        self.stdout.write(self.style.SUCCESS(f'✓ Created published questionnaire "{questionnaire.title}"'))

        self._print_tokens(users)

    def _print_tokens(self, users):
        self.stdout.write(self.style.NOTICE('\nAPI tokens:'))
        for username, user in users.items():
            token = Token.objects.get(user=user)
            self.stdout.write(f'  {username}: {token.key}')
        self.stdout.write(self.style.SUCCESS('\nDemo setup complete.\n'))
