from satisfaction_api.schemas.question import (
    QuestionType,
    QuestionUpsert,
    QuestionCatalogEdit,
    QuestionResponse,
    QuestionCatalogResponse,
)
from satisfaction_api.schemas.survey import (
    SurveyStart,
    SurveyStartResponse,
    AnswerUpdate,
    EscalationResult,
    SurveySessionResponse,
    ContactDetails,
    ContactResolutionResponse,
    SubmissionResult,
    ScoringRequest,
    ScoringResult,
)
from satisfaction_api.schemas.analytics import (
    SurveyAnswers,
    FeedbackAnalysisItem,
    FeedbackAnalyzeRequest,
    FeedbackAnalyzeResponse,
    SentimentSummary,
    CommentItem,
    LowSatisfactionContactResponse,
)
