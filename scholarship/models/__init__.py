"""
Models package for the Scholarship Evaluation Service
"""

from .document import (
    MIME_TYPES_BY_EXTENSION,
    Document,
    IncomeVerificationContext,
    ExtractOnlyRequest,
    SimpleRequest,
    IncomeVerifyRequest,
    PipelineRequest,
    PipelineOutcome
)

from .evaluation import (
    ExtractedData,
    CriterionCheck,
    IncomeCheck,
    CriteriaEvaluation,
    EvaluationResult,
    ApplicationStatus,
    DecisionRecord
)

__all__ = [
    # Document models
    "MIME_TYPES_BY_EXTENSION",
    "Document",
    "IncomeVerificationContext",
    "ExtractOnlyRequest",
    "SimpleRequest",
    "IncomeVerifyRequest",
    "PipelineRequest",
    "PipelineOutcome",

    # Evaluation models
    "ExtractedData",
    "CriterionCheck",
    "IncomeCheck",
    "CriteriaEvaluation",
    "EvaluationResult",
    "ApplicationStatus",
    "DecisionRecord"
]
