import random


def _shuffled(items, rng):
    items = list(items)
    rng.shuffle(items)
    return items


def present(questionnaire, course_class=None, rng=None):
    """
    Build the learner-facing payload for answering a questionnaire.

    Question order and each multiple-choice question's alternative order are
    shuffled independently on every call and never stored. ``is_correct`` is
    never included.
    """
    rng = rng or random.Random()
    questions = questionnaire.questions.prefetch_related('alternatives')

    payload_questions = []
    for question in _shuffled(questions, rng):
        alternatives = []
        if question.is_multiple_choice:
            alternatives = [
                {'id': alt.id, 'text': alt.text, 'order': alt.order}
                for alt in _shuffled(question.alternatives.all(), rng)
            ]
        payload_questions.append({
            'id': question.id,
            'kind': question.kind,
            'prompt': question.prompt,
            'order': question.order,
            'weight': question.weight,
            'alternatives': alternatives,
        })

    return {
        'id': questionnaire.id,
        'event_id': questionnaire.event_id,
        'class_id': course_class.id if course_class else None,
        'title': questionnaire.title,
        'description': questionnaire.description,
        'min_score': questionnaire.min_score,
        'max_attempts': questionnaire.max_attempts,
        'questions': payload_questions,
    }
