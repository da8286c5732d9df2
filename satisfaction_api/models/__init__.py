from satisfaction_api.models.question import Question
from satisfaction_api.models.survey import Survey, SurveyAnswer, LowSatisfactionContact

__all__ = [
    "Question",
    "Survey",
    "SurveyAnswer",
    "LowSatisfactionContact",
]
