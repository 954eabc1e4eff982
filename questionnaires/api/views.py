"""
API views for post-course questionnaires.

Authoring endpoints are for the event's instructors and administrators.
Learner endpoints gate every call on enrollment, eligibility and publication.
"""
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiResponse

from questionnaires.permissions import CanAuthorQuestionnaires
from questionnaires.services import AttemptService, QuestionnaireAuthoringService
from questionnaires.throttling import SubmissionRateThrottle
from .serializers import (
    AlternativeSerializer, AlternativeWriteSerializer,
    AttemptDetailSerializer, AttemptSerializer, AvailableQuestionnaireSerializer,
    PresentedQuestionnaireSerializer, QuestionSerializer, QuestionWriteSerializer,
    QuestionnaireDetailSerializer, QuestionnaireMetadataSerializer, QuestionnaireSerializer,
    SubmissionOutcomeSerializer, SubmitSerializer,
)

ERROR_RESPONSES = {
    403: OpenApiResponse(description="Not allowed for this user."),
    404: OpenApiResponse(description="Questionnaire, class or event not found."),
}


class AuthoringView(APIView):
    permission_classes = [IsAuthenticated, CanAuthorQuestionnaires]

    def get_service(self):
        return QuestionnaireAuthoringService(self.request.user, request=self.request)


class LearnerView(APIView):
    permission_classes = [IsAuthenticated]

    def get_service(self):
        return AttemptService(self.request.user, request=self.request)


# =============================================================================
# AUTHORING
# =============================================================================

@extend_schema(tags=['Authoring'])
class QuestionnaireDraftView(AuthoringView):
    @extend_schema(
        summary="Get or create the event's questionnaire",
        description="""
Idempotent. Creates a draft questionnaire for the event the first time
(**201**) and returns the existing one on later calls (**200**).
""",
        request=None,
        responses={200: QuestionnaireSerializer, 201: QuestionnaireSerializer, **ERROR_RESPONSES}
    )
    def post(self, request, event_id):
        questionnaire, created = self.get_service().get_or_create_draft(event_id)
        return Response(
            QuestionnaireSerializer(questionnaire).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )


@extend_schema(tags=['Authoring'])
class EventQuestionnaireView(AuthoringView):
    @extend_schema(
        summary="Get the event's questionnaire for editing",
        description="Includes every question and alternative, with correct answers marked.",
        responses={200: QuestionnaireDetailSerializer, **ERROR_RESPONSES}
    )
    def get(self, request, event_id):
        questionnaire = self.get_service().get_for_event(event_id)
        return Response(QuestionnaireDetailSerializer(questionnaire).data)


@extend_schema(tags=['Authoring'])
class QuestionnaireMetadataView(AuthoringView):
    @extend_schema(
        summary="Update questionnaire metadata",
        description="Partial update of title, description, mandatory, min_score (0-100) and max_attempts (1-50).",
        request=QuestionnaireMetadataSerializer,
        responses={200: QuestionnaireSerializer, **ERROR_RESPONSES},
        examples=[
            OpenApiExample(
                'Request Example',
                value={"title": "Module 1 check", "min_score": 70, "max_attempts": 2},
                request_only=True
            )
        ]
    )
    def put(self, request, questionnaire_id):
        serializer = QuestionnaireMetadataSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        questionnaire = self.get_service().update_metadata(questionnaire_id, serializer.validated_data)
        return Response(QuestionnaireSerializer(questionnaire).data)

    @extend_schema(
        summary="Update questionnaire metadata",
        request=QuestionnaireMetadataSerializer,
        responses={200: QuestionnaireSerializer, **ERROR_RESPONSES}
    )
    def patch(self, request, questionnaire_id):
        return self.put(request, questionnaire_id)


@extend_schema(tags=['Authoring'])
class QuestionCreateView(AuthoringView):
    @extend_schema(
        summary="Add a question",
        description="`kind` is `multiple_choice` or `essay`; `weight` must be in (0, 100], default 1.",
        request=QuestionWriteSerializer,
        responses={201: QuestionSerializer, **ERROR_RESPONSES},
        examples=[
            OpenApiExample(
                'Request Example',
                value={"kind": "multiple_choice", "prompt": "Which statement is true?", "order": 1, "weight": 5},
                request_only=True
            )
        ]
    )
    def post(self, request, questionnaire_id):
        serializer = QuestionWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        question = self.get_service().add_question(questionnaire_id, serializer.validated_data)
        return Response(QuestionSerializer(question).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=['Authoring'])
class QuestionDetailView(AuthoringView):
    @extend_schema(
        summary="Update a question",
        request=QuestionWriteSerializer,
        responses={200: QuestionSerializer, **ERROR_RESPONSES}
    )
    def put(self, request, questionnaire_id, question_id):
        serializer = QuestionWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        question = self.get_service().update_question(questionnaire_id, question_id, serializer.validated_data)
        return Response(QuestionSerializer(question).data)

    @extend_schema(
        summary="Update a question",
        request=QuestionWriteSerializer,
        responses={200: QuestionSerializer, **ERROR_RESPONSES}
    )
    def patch(self, request, questionnaire_id, question_id):
        return self.put(request, questionnaire_id, question_id)

    @extend_schema(summary="Delete a question", responses={204: None, **ERROR_RESPONSES})
    def delete(self, request, questionnaire_id, question_id):
        self.get_service().delete_question(questionnaire_id, question_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(tags=['Authoring'])
class AlternativeCreateView(AuthoringView):
    @extend_schema(
        summary="Add an alternative",
        description="Only multiple choice questions take alternatives. `is_correct` defaults to false.",
        request=AlternativeWriteSerializer,
        responses={201: AlternativeSerializer, **ERROR_RESPONSES}
    )
    def post(self, request, question_id):
        serializer = AlternativeWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        alternative = self.get_service().add_alternative(question_id, serializer.validated_data)
        return Response(AlternativeSerializer(alternative).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=['Authoring'])
class AlternativeDetailView(AuthoringView):
    @extend_schema(
        summary="Update an alternative",
        request=AlternativeWriteSerializer,
        responses={200: AlternativeSerializer, **ERROR_RESPONSES}
    )
    def put(self, request, question_id, alternative_id):
        serializer = AlternativeWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        alternative = self.get_service().update_alternative(question_id, alternative_id, serializer.validated_data)
        return Response(AlternativeSerializer(alternative).data)

    @extend_schema(
        summary="Update an alternative",
        request=AlternativeWriteSerializer,
        responses={200: AlternativeSerializer, **ERROR_RESPONSES}
    )
    def patch(self, request, question_id, alternative_id):
        return self.put(request, question_id, alternative_id)

    @extend_schema(summary="Delete an alternative", responses={204: None, **ERROR_RESPONSES})
    def delete(self, request, question_id, alternative_id):
        self.get_service().delete_alternative(question_id, alternative_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(tags=['Authoring'])
class PublishQuestionnaireView(AuthoringView):
    @extend_schema(
        summary="Publish questionnaire",
        description="""
Validates the whole questionnaire and publishes it. Can be repeated after edits.

**Rules (all are reported together on failure):**
- at least one question
- question weights add up to exactly 10
- every multiple choice question has at least 2 alternatives and exactly 1 correct
- instructors cannot publish after the event's first class has ended (administrators can)
""",
        request=None,
        responses={
            200: QuestionnaireSerializer,
            400: OpenApiResponse(description="Rejected. `errors` lists every unmet rule as `{code, detail}`."),
            **ERROR_RESPONSES
        }
    )
    def post(self, request, questionnaire_id):
        questionnaire = self.get_service().publish(questionnaire_id)
        return Response(QuestionnaireSerializer(questionnaire).data)


# =============================================================================
# LEARNERS
# =============================================================================

@extend_schema(tags=['Learners'])
class AvailableQuestionnairesView(LearnerView):
    @extend_schema(
        summary="List questionnaires the user can answer",
        description="""
Published, mandatory questionnaires for the user's classes that have ended and
where the user attended at least 75% of sessions. Learners can only list
themselves; administrators can list anyone.
""",
        responses={200: AvailableQuestionnaireSerializer(many=True), 403: ERROR_RESPONSES[403]}
    )
    def get(self, request, user_id):
        available = self.get_service().list_available(user_id)
        return Response(AvailableQuestionnaireSerializer(available, many=True).data)


@extend_schema(tags=['Learners'])
class RespondQuestionnaireView(LearnerView):
    @extend_schema(
        summary="Get questionnaire for answering",
        description="Questions and alternatives come back in a new random order on every call, without correct answers.",
        responses={
            200: PresentedQuestionnaireSerializer,
            409: OpenApiResponse(description="Not eligible yet or not published."),
            **ERROR_RESPONSES
        }
    )
    def get(self, request, questionnaire_id, class_id):
        payload = self.get_service().fetch_for_responding(questionnaire_id, class_id)
        return Response(PresentedQuestionnaireSerializer(payload).data)


@extend_schema(tags=['Learners'])
class StartAttemptView(LearnerView):
    @extend_schema(
        summary="Start an attempt",
        description="Idempotent: an attempt that is already open is returned with **200**; a new one with **201**.",
        request=None,
        responses={
            200: AttemptSerializer,
            201: AttemptSerializer,
            409: OpenApiResponse(description="Not eligible, not published, or attempt limit reached."),
            **ERROR_RESPONSES
        }
    )
    def post(self, request, questionnaire_id, class_id):
        attempt, created = self.get_service().start(questionnaire_id, class_id)
        return Response(
            AttemptSerializer(attempt).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )


@extend_schema(tags=['Learners'])
class SubmitAttemptView(LearnerView):
    throttle_classes = [SubmissionRateThrottle]

    @extend_schema(
        summary="Submit answers",
        description="""
Scores the open attempt. Only multiple choice answers count toward the score;
essay answers are stored for manual review. Answers pointing at another
question's alternative are discarded.

Submitting again after the attempt was scored returns the stored result with
`already_submitted: true`.
""",
        request=SubmitSerializer,
        responses={
            200: SubmissionOutcomeSerializer,
            409: OpenApiResponse(description="No attempt started, not eligible, or attempt limit reached."),
            **ERROR_RESPONSES
        },
        examples=[
            OpenApiExample(
                'Request Example',
                value={
                    "answers": [
                        {"question_id": 1, "alternative_id": 3},
                        {"question_id": 2, "free_text": "The key idea is..."}
                    ]
                },
                request_only=True
            )
        ]
    )
    def post(self, request, questionnaire_id, class_id):
        serializer = SubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        outcome = self.get_service().submit(
            questionnaire_id, class_id, serializer.validated_data.get('answers', [])
        )
        return Response(SubmissionOutcomeSerializer(outcome).data)


@extend_schema(tags=['Learners'])
class MyAttemptView(LearnerView):
    @extend_schema(
        summary="Get my latest attempt",
        responses={200: AttemptDetailSerializer, **ERROR_RESPONSES}
    )
    def get(self, request, questionnaire_id, class_id):
        attempt = self.get_service().latest_attempt(questionnaire_id, class_id)
        return Response(AttemptDetailSerializer(attempt).data)
