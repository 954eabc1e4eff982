from .eligibility import EligibilityEvaluator, EligibilityReason, EligibilityResult
from .authoring import QuestionnaireAuthoringService, PublishValidator, PublishIssue
from .attempts import AttemptService, SubmissionOutcome, AvailableQuestionnaire
from .presentation import present

__all__ = [
    'EligibilityEvaluator', 'EligibilityReason', 'EligibilityResult',
    'QuestionnaireAuthoringService', 'PublishValidator', 'PublishIssue',
    'AttemptService', 'SubmissionOutcome', 'AvailableQuestionnaire',
    'present'
]
