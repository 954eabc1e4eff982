from django.urls import path
from .api.views import (
    # Authoring
    QuestionnaireDraftView, EventQuestionnaireView, QuestionnaireMetadataView,
    QuestionCreateView, QuestionDetailView,
    AlternativeCreateView, AlternativeDetailView,
    PublishQuestionnaireView,
    # Learners
    AvailableQuestionnairesView, RespondQuestionnaireView,
    StartAttemptView, SubmitAttemptView, MyAttemptView,
)

urlpatterns = [
    # ============================================
    # AUTHORING
    # ============================================
    path('questionnaires/events/<int:event_id>/draft/', QuestionnaireDraftView.as_view(), name='questionnaire-draft'),
    path('questionnaires/events/<int:event_id>/', EventQuestionnaireView.as_view(), name='event-questionnaire'),
    path('questionnaires/<int:questionnaire_id>/', QuestionnaireMetadataView.as_view(), name='questionnaire-metadata'),
    path('questionnaires/<int:questionnaire_id>/questions/', QuestionCreateView.as_view(), name='question-create'),
    path(
        'questionnaires/<int:questionnaire_id>/questions/<int:question_id>/',
        QuestionDetailView.as_view(),
        name='question-detail'
    ),
    path('questions/<int:question_id>/alternatives/', AlternativeCreateView.as_view(), name='alternative-create'),
    path(
        'questions/<int:question_id>/alternatives/<int:alternative_id>/',
        AlternativeDetailView.as_view(),
        name='alternative-detail'
    ),
    path('questionnaires/<int:questionnaire_id>/publish/', PublishQuestionnaireView.as_view(), name='questionnaire-publish'),

    # ============================================
    # LEARNERS
    # ============================================
    path('questionnaires/available/users/<int:user_id>/', AvailableQuestionnairesView.as_view(), name='available-questionnaires'),
    path(
        'questionnaires/<int:questionnaire_id>/respond/classes/<int:class_id>/',
        RespondQuestionnaireView.as_view(),
        name='questionnaire-respond'
    ),
    path(
        'questionnaires/<int:questionnaire_id>/start/classes/<int:class_id>/',
        StartAttemptView.as_view(),
        name='attempt-start'
    ),
    path(
        'questionnaires/<int:questionnaire_id>/submit/classes/<int:class_id>/',
        SubmitAttemptView.as_view(),
        name='attempt-submit'
    ),
    path(
        'questionnaires/<int:questionnaire_id>/my-attempt/classes/<int:class_id>/',
        MyAttemptView.as_view(),
        name='my-attempt'
    ),
]
