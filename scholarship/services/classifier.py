"""
Maps an evaluation result to a workflow status
"""
from ..models import ApplicationStatus, EvaluationResult

MANUAL_REVIEW_THRESHOLD = 60


def classify(result: EvaluationResult) -> ApplicationStatus:
    """Low confidence always goes to manual review, even when qualified"""
    if result.confidence_score < MANUAL_REVIEW_THRESHOLD:
        return ApplicationStatus.MANUAL_REVIEW
    if result.qualified:
        return ApplicationStatus.QUALIFIED
    return ApplicationStatus.DISQUALIFIED
