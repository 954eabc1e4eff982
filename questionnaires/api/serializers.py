from decimal import Decimal

from rest_framework import serializers
from drf_spectacular.utils import extend_schema_field

from questionnaires.clock import format_civil
from questionnaires.models import Alternative, Answer, Attempt, Question, Questionnaire


# =============================================================================
# AUTHORING (instructors / administrators)
# =============================================================================

class AlternativeSerializer(serializers.ModelSerializer):
    class Meta:
        model = Alternative
        fields = ['id', 'question', 'text', 'is_correct', 'order']
        read_only_fields = fields


class QuestionSerializer(serializers.ModelSerializer):
    alternatives = AlternativeSerializer(many=True, read_only=True)

    class Meta:
        model = Question
        fields = [
            'id', 'questionnaire', 'kind', 'prompt', 'order', 'weight',
            'alternatives', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class QuestionnaireSerializer(serializers.ModelSerializer):
    class Meta:
        model = Questionnaire
        fields = [
            'id', 'event', 'title', 'description', 'mandatory', 'min_score',
            'max_attempts', 'status', 'created_by', 'created_at', 'updated_at', 'published_at'
        ]
        read_only_fields = fields


class QuestionnaireDetailSerializer(QuestionnaireSerializer):
    questions = QuestionSerializer(many=True, read_only=True)
    weight_sum = serializers.SerializerMethodField()

    class Meta(QuestionnaireSerializer.Meta):
        fields = QuestionnaireSerializer.Meta.fields + ['weight_sum', 'questions']
        read_only_fields = fields

    @extend_schema_field(serializers.DecimalField(max_digits=7, decimal_places=2))
    def get_weight_sum(self, obj):
        total = sum((q.weight for q in obj.questions.all()), Decimal('0'))
        return f"{total:.2f}"


class QuestionnaireMetadataSerializer(serializers.Serializer):
    """Writable questionnaire metadata. Status only changes through publish."""
    title = serializers.CharField(max_length=300, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    mandatory = serializers.BooleanField(required=False)
    min_score = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal('0'), max_value=Decimal('100'),
        required=False, allow_null=True
    )
    max_attempts = serializers.IntegerField(min_value=1, max_value=50, required=False, allow_null=True)

    def validate(self, attrs):
        if 'status' in self.initial_data:
            raise serializers.ValidationError({'status': "Use the publish endpoint to change status."})
        return attrs


class QuestionWriteSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=Question.Kind.choices)
    prompt = serializers.CharField()
    order = serializers.IntegerField(min_value=0, required=False)
    weight = serializers.DecimalField(
        max_digits=5, decimal_places=2, max_value=Decimal('100'), required=False
    )

    def validate_weight(self, value):
        if value <= 0:
            raise serializers.ValidationError("Weight must be greater than 0 and at most 100.")
        return value


class AlternativeWriteSerializer(serializers.Serializer):
    text = serializers.CharField()
    is_correct = serializers.BooleanField(required=False)
    order = serializers.IntegerField(min_value=0, required=False)


# =============================================================================
# LEARNER FLOW
# =============================================================================

class PresentedAlternativeSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    text = serializers.CharField()
    order = serializers.IntegerField()


class PresentedQuestionSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    kind = serializers.ChoiceField(choices=Question.Kind.choices)
    prompt = serializers.CharField()
    order = serializers.IntegerField()
    weight = serializers.DecimalField(max_digits=5, decimal_places=2)
    alternatives = PresentedAlternativeSerializer(many=True)


class PresentedQuestionnaireSerializer(serializers.Serializer):
    """Questionnaire as shown to a learner: shuffled, without correct answers."""
    id = serializers.IntegerField()
    event_id = serializers.IntegerField()
    class_id = serializers.IntegerField(allow_null=True)
    title = serializers.CharField()
    description = serializers.CharField()
    min_score = serializers.DecimalField(max_digits=5, decimal_places=2, allow_null=True)
    max_attempts = serializers.IntegerField(allow_null=True)
    questions = PresentedQuestionSerializer(many=True)


class AnswerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Answer
        fields = ['id', 'question', 'alternative', 'free_text', 'is_correct', 'points_awarded', 'answered_at']
        read_only_fields = fields


class AttemptSerializer(serializers.ModelSerializer):
    class Meta:
        model = Attempt
        fields = [
            'id', 'questionnaire', 'user', 'course_class', 'status', 'score',
            'total_points', 'total_weight', 'started_at', 'submitted_at'
        ]
        read_only_fields = fields


class AttemptDetailSerializer(AttemptSerializer):
    answers = AnswerSerializer(many=True, read_only=True)

    class Meta(AttemptSerializer.Meta):
        fields = AttemptSerializer.Meta.fields + ['answers']
        read_only_fields = fields


class SubmitAnswerSerializer(serializers.Serializer):
    question_id = serializers.IntegerField()
    alternative_id = serializers.IntegerField(required=False, allow_null=True)
    free_text = serializers.CharField(required=False, allow_null=True, allow_blank=True, trim_whitespace=False)


class SubmitSerializer(serializers.Serializer):
    answers = SubmitAnswerSerializer(many=True, required=False)


class WeightedTotalsSerializer(serializers.Serializer):
    total_points = serializers.DecimalField(max_digits=7, decimal_places=2)
    total_weight = serializers.DecimalField(max_digits=7, decimal_places=2)


class SubmissionOutcomeSerializer(serializers.Serializer):
    attempt_id = serializers.IntegerField()
    status = serializers.CharField()
    score = serializers.DecimalField(max_digits=5, decimal_places=2, allow_null=True)
    passed = serializers.BooleanField()
    min_score = serializers.DecimalField(max_digits=5, decimal_places=2, allow_null=True)
    weighted_totals = serializers.SerializerMethodField()
    answers_received = serializers.IntegerField()
    already_submitted = serializers.BooleanField()
    submitted_at = serializers.DateTimeField(source='attempt.submitted_at')

    @extend_schema_field(WeightedTotalsSerializer)
    def get_weighted_totals(self, obj):
        return WeightedTotalsSerializer({
            'total_points': obj.total_points,
            'total_weight': obj.total_weight,
        }).data


class AvailableQuestionnaireSerializer(serializers.Serializer):
    class_id = serializers.IntegerField(source='course_class.id')
    class_name = serializers.CharField(source='course_class.name')
    event_id = serializers.IntegerField(source='event.id')
    event_title = serializers.CharField(source='event.title')
    questionnaire_id = serializers.IntegerField(source='questionnaire.id')
    questionnaire_title = serializers.CharField(source='questionnaire.title')
    min_score = serializers.DecimalField(source='questionnaire.min_score', max_digits=5, decimal_places=2, allow_null=True)
    max_attempts = serializers.IntegerField(source='questionnaire.max_attempts', allow_null=True)
    attendance_percent = serializers.FloatField(source='eligibility.attendance_percent')
    present_sessions = serializers.IntegerField(source='eligibility.present_sessions')
    total_sessions = serializers.IntegerField(source='eligibility.total_sessions')
    class_end = serializers.SerializerMethodField()
    attempts_submitted = serializers.IntegerField()
    blocked_by_attempt_limit = serializers.BooleanField()
    last_attempt_id = serializers.IntegerField(allow_null=True)
    last_score = serializers.DecimalField(max_digits=5, decimal_places=2, allow_null=True)

    @extend_schema_field(serializers.CharField())
    def get_class_end(self, obj):
        return format_civil(obj.class_end)
