"""
Pydantic models for evaluation results and decision records
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator


def get_current_utc_time():
    """Get current UTC time for default values"""
    return datetime.now(timezone.utc)


class StrictModel(BaseModel):
    """Base for the reasoning engine contract: unknown keys are rejected"""
    model_config = ConfigDict(extra="forbid")


class ExtractedData(StrictModel):
    """Facts read from the submitted documents"""
    applicant_name: Optional[str] = Field(..., description="Applicant's full name")
    mother_income: Optional[float] = Field(..., description="Mother's monthly income")
    father_income: Optional[float] = Field(..., description="Father's monthly income")
    total_income: Optional[float] = Field(..., description="Combined monthly household income")
    gwa: Optional[float] = Field(..., description="General Weighted Average")
    enrollment_status: Optional[str] = Field(..., description="Enrollment status")
    school: Optional[str] = Field(..., description="School name")
    course: Optional[str] = Field(..., description="Course or program")


class CriterionCheck(StrictModel):
    """Outcome of a single qualification criterion"""
    passed: bool
    value_found: Optional[float] = None
    threshold: float
    reason: str


class IncomeCheck(CriterionCheck):
    """Income criterion, cross-checked against both parent certificates"""
    mother_value_found: Optional[float] = None
    father_value_found: Optional[float] = None
    total_value_found: Optional[float] = None
    income_verified: bool


class CriteriaEvaluation(StrictModel):
    income_check: IncomeCheck
    gwa_check: CriterionCheck


class EvaluationResult(StrictModel):
    """Structured decision returned by an evaluation engine"""
    qualified: bool
    extracted_data: ExtractedData
    evaluation: CriteriaEvaluation
    disqualification_reasons: List[str] = Field(...)
    confidence_score: int = Field(..., ge=0, le=100)
    ocr_quality: Literal["good", "fair", "poor"]
    notes: str

    @model_validator(mode="after")
    def check_qualification_consistency(self):
        both_passed = self.evaluation.income_check.passed and self.evaluation.gwa_check.passed
        if self.qualified != both_passed:
            raise ValueError(
                "qualified must be true exactly when both income_check and gwa_check passed"
            )
        return self


class ApplicationStatus(str, Enum):
    """Workflow status derived from an EvaluationResult"""
    QUALIFIED = "qualified"
    DISQUALIFIED = "disqualified"
    MANUAL_REVIEW = "manual_review"


class DecisionRecord(BaseModel):
    """Application record persisted after an income-verification run"""
    id: Optional[str] = Field(default=None, alias="_id")
    mother_certificate_url: str = Field(..., description="Object store reference")
    father_certificate_url: str = Field(..., description="Object store reference")
    report_card_url: str = Field(..., description="Object store reference")
    mother_income: float = Field(..., ge=0)
    father_income: float = Field(..., ge=0)
    extracted_text: str
    evaluation_result: Dict[str, Any]
    qualified: bool
    confidence_score: int = Field(..., ge=0, le=100)
    status: ApplicationStatus
    submitted_at: datetime = Field(default_factory=get_current_utc_time)

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "mother_certificate_url": "gridfs://documents/6650f1a2c3d4e5f607182930",
                "father_certificate_url": "gridfs://documents/6650f1a2c3d4e5f607182931",
                "report_card_url": "gridfs://documents/6650f1a2c3d4e5f607182932",
                "mother_income": 15000,
                "father_income": 12000,
                "extracted_text": "Mother's Income Certificate:\n...",
                "evaluation_result": {"qualified": True, "confidence_score": 88},
                "qualified": True,
                "confidence_score": 88,
                "status": "qualified"
            }
        }
    )
