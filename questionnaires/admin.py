from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import User
from .models import (
    Alternative, Answer, Attempt, Attendance, AuditLog, ClassSession,
    CourseClass, Enrollment, Event, Question, Questionnaire, UserProfile
)


class UserProfileInline(admin.StackedInline):
    model = UserProfile
    can_delete = False
    verbose_name_plural = 'Profile'


class UserAdmin(BaseUserAdmin):
    inlines = [UserProfileInline]
    list_display = ['username', 'email', 'first_name', 'last_name', 'get_role', 'is_staff']
    list_filter = ['is_staff', 'is_superuser', 'is_active', 'profile__role']

    def get_role(self, obj):
        return obj.profile.get_role_display() if hasattr(obj, 'profile') else '-'
    get_role.short_description = 'Role'


admin.site.unregister(User)
admin.site.register(User, UserAdmin)


# External collaborator data: events, classes, schedule, enrollment, attendance

class CourseClassInline(admin.TabularInline):
    model = CourseClass
    extra = 0
    fields = ['name', 'start_date', 'end_date', 'start_time', 'end_time']


class ClassSessionInline(admin.TabularInline):
    model = ClassSession
    extra = 0


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ['title', 'created_at']
    search_fields = ['title']
    filter_horizontal = ['instructors']
    inlines = [CourseClassInline]


@admin.register(CourseClass)
class CourseClassAdmin(admin.ModelAdmin):
    list_display = ['name', 'event', 'start_date', 'end_date', 'end_time']
    list_filter = ['event']
    search_fields = ['name', 'event__title']
    inlines = [ClassSessionInline]


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ['user', 'course_class', 'enrolled_at']
    search_fields = ['user__username', 'course_class__name']


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ['user', 'course_class', 'date', 'present']
    list_filter = ['present', 'course_class']
    search_fields = ['user__username']


# Questionnaires

class QuestionInline(admin.TabularInline):
    model = Question
    extra = 0
    fields = ['order', 'kind', 'prompt', 'weight']


class AlternativeInline(admin.TabularInline):
    model = Alternative
    extra = 0
    fields = ['order', 'text', 'is_correct']


class AnswerInline(admin.TabularInline):
    model = Answer
    extra = 0
    readonly_fields = ['question', 'alternative', 'free_text', 'is_correct', 'points_awarded']
    can_delete = False


@admin.register(Questionnaire)
class QuestionnaireAdmin(admin.ModelAdmin):
    list_display = ['title', 'event', 'status', 'mandatory', 'min_score', 'max_attempts', 'published_at']
    list_filter = ['status', 'mandatory']
    search_fields = ['title', 'event__title']
    inlines = [QuestionInline]
    # Publishing goes through the API so the publish rules are always applied
    readonly_fields = ['status', 'created_at', 'updated_at', 'published_at']


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ['id', 'questionnaire', 'kind', 'prompt_preview', 'weight', 'order']
    list_filter = ['kind']
    search_fields = ['prompt']
    inlines = [AlternativeInline]

    def prompt_preview(self, obj):
        return obj.prompt[:50] + '...' if len(obj.prompt) > 50 else obj.prompt
    prompt_preview.short_description = 'Prompt'


@admin.register(Attempt)
class AttemptAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'questionnaire', 'course_class', 'status', 'score', 'submitted_at']
    list_filter = ['status', 'questionnaire']
    search_fields = ['user__username', 'questionnaire__title']
    inlines = [AnswerInline]
    readonly_fields = ['started_at', 'submitted_at', 'score', 'total_points', 'total_weight']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'event_type', 'user', 'ip_address', 'description_preview']
    list_filter = ['event_type', 'created_at']
    search_fields = ['user__username', 'description', 'ip_address']
    readonly_fields = ['user', 'event_type', 'description', 'ip_address', 'user_agent', 'metadata', 'created_at']
    ordering = ['-created_at']

    def description_preview(self, obj):
        return obj.description[:50] + '...' if len(obj.description) > 50 else obj.description
    description_preview.short_description = 'Description'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
