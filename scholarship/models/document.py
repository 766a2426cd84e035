"""
Pydantic models for transient documents and pipeline requests
"""
from pathlib import Path
from typing import Literal, Optional, Union
from pydantic import BaseModel, Field, ConfigDict

from .evaluation import EvaluationResult


MIME_TYPES_BY_EXTENSION = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".pdf": "application/pdf",
    ".txt": "text/plain",
}


class Document(BaseModel):
    """An uploaded file waiting on local disk for extraction"""
    path: Path = Field(..., description="Temporary file location")
    mime_type: str = Field(..., description="Declared MIME type")
    size_bytes: int = Field(..., ge=0, description="File size in bytes")
    filename: Optional[str] = Field(None, description="Original client filename")

    model_config = ConfigDict(frozen=True)


class IncomeVerificationContext(BaseModel):
    """Claimed parent incomes plus the text of every submitted document"""
    mother_income: float = Field(..., ge=0)
    father_income: float = Field(..., ge=0)
    mother_text: str
    father_text: str
    report_text: str
    combined_text: str

    model_config = ConfigDict(frozen=True)

    @property
    def claimed_total(self) -> float:
        return self.mother_income + self.father_income

    @staticmethod
    def combine_texts(mother_text: str, father_text: str, report_text: str) -> str:
        """Labeled concatenation in fixed order: mother, father, report card"""
        return (
            f"Mother's Income Certificate:\n{mother_text}\n\n"
            f"Father's Income Certificate:\n{father_text}\n\n"
            f"Report Card:\n{report_text}"
        )

    @classmethod
    def build(
        cls,
        mother_income: float,
        father_income: float,
        mother_text: str,
        father_text: str,
        report_text: str,
    ) -> "IncomeVerificationContext":
        return cls(
            mother_income=mother_income,
            father_income=father_income,
            mother_text=mother_text,
            father_text=father_text,
            report_text=report_text,
            combined_text=cls.combine_texts(mother_text, father_text, report_text),
        )


class ExtractOnlyRequest(BaseModel):
    """Diagnostic run: extract text from one document, no evaluation"""
    kind: Literal["extract_only"] = "extract_only"
    document: Document


class SimpleRequest(BaseModel):
    """Evaluate a single document against the rules"""
    kind: Literal["simple"] = "simple"
    document: Document


class IncomeVerifyRequest(BaseModel):
    """Evaluate both parent certificates and the report card together"""
    kind: Literal["income_verify"] = "income_verify"
    mother_document: Document
    father_document: Document
    report_document: Document
    mother_income: float = Field(..., ge=0, description="Claimed monthly income of the mother")
    father_income: float = Field(..., ge=0, description="Claimed monthly income of the father")


PipelineRequest = Union[ExtractOnlyRequest, SimpleRequest, IncomeVerifyRequest]


class PipelineOutcome(BaseModel):
    """What the orchestrator hands back to its caller"""
    extracted_text: str
    evaluation: Optional[EvaluationResult] = None
