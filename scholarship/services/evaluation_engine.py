"""
Evaluation engines: deterministic mock and AI-backed implementations
"""
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from ..config import Settings
from ..errors import ConfigurationError, EvaluationParseError
from ..models import (
    CriteriaEvaluation,
    CriterionCheck,
    EvaluationResult,
    ExtractedData,
    IncomeCheck,
    IncomeVerificationContext,
)
from ..utils.retry import RetryConfig, retry_async
from .llm_service import LLMService, ReasoningRequest
from .request_builder import EvaluationRequestBuilder, format_peso
from .rule_repository import resolve_thresholds

logger = logging.getLogger(__name__)


class EvaluationEngine(ABC):
    """Turns extracted text and rules into an EvaluationResult"""

    name = "base"

    @abstractmethod
    async def evaluate(
        self,
        text: str,
        rules: Mapping[str, Any],
        income_context: Optional[IncomeVerificationContext] = None,
    ) -> EvaluationResult:
        ...

    async def close(self):
        """Release any client resources"""


class MockEvaluator(EvaluationEngine):
    """
    Offline evaluator for development and tests

    Ignores the document content and scores a fixed synthetic applicant
    against the supplied thresholds, so qualification still follows the
    configured rules.
    """

    name = "mock"

    MOTHER_INCOME = 12000
    FATHER_INCOME = 13000
    GWA = 2.5
    CONFIDENCE_SCORE = 95

    async def evaluate(
        self,
        text: str,
        rules: Mapping[str, Any],
        income_context: Optional[IncomeVerificationContext] = None,
    ) -> EvaluationResult:
        logger.info("Using MOCK evaluation (no reasoning service call)")

        thresholds = resolve_thresholds(rules)
        total_income = self.MOTHER_INCOME + self.FATHER_INCOME

        income_pass = total_income <= thresholds.max_monthly_income
        gwa_pass = self.GWA <= thresholds.max_gwa
        qualified = income_pass and gwa_pass

        total_text = format_peso(total_income)
        max_income_text = format_peso(thresholds.max_monthly_income)
        if income_pass:
            income_reason = f"Combined income {total_text} is within threshold {max_income_text}"
        else:
            income_reason = f"Combined income {total_text} exceeds threshold {max_income_text}"

        if gwa_pass:
            gwa_reason = f"GWA {self.GWA} meets requirement (<= {thresholds.max_gwa})"
        else:
            gwa_reason = f"GWA {self.GWA} does not meet requirement (> {thresholds.max_gwa})"

        disqualification_reasons = []
        if not income_pass:
            disqualification_reasons.append("Combined income exceeds limit")
        if not gwa_pass:
            disqualification_reasons.append("GWA above maximum allowed")

        return EvaluationResult(
            qualified=qualified,
            extracted_data=ExtractedData(
                applicant_name="Test Applicant (Mock)",
                mother_income=self.MOTHER_INCOME,
                father_income=self.FATHER_INCOME,
                total_income=total_income,
                gwa=self.GWA,
                enrollment_status="Currently Enrolled",
                school="Mock University",
                course="Computer Science",
            ),
            evaluation=CriteriaEvaluation(
                income_check=IncomeCheck(
                    passed=income_pass,
                    value_found=total_income,
                    mother_value_found=self.MOTHER_INCOME,
                    father_value_found=self.FATHER_INCOME,
                    total_value_found=total_income,
                    threshold=thresholds.max_monthly_income,
                    income_verified=True,
                    reason=income_reason,
                ),
                gwa_check=CriterionCheck(
                    passed=gwa_pass,
                    value_found=self.GWA,
                    threshold=thresholds.max_gwa,
                    reason=gwa_reason,
                ),
            ),
            disqualification_reasons=disqualification_reasons,
            confidence_score=self.CONFIDENCE_SCORE,
            ocr_quality="good",
            notes="MOCK EVALUATION - simulated data, no reasoning service was called",
        )


class AIEvaluator(EvaluationEngine):
    """Delegates evaluation to an external reasoning service"""

    name = "ai"

    def __init__(
        self,
        llm_service: LLMService,
        model: str,
        temperature: float = 0.1,
        max_tokens: Optional[int] = None,
        builder: Optional[EvaluationRequestBuilder] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        self.llm_service = llm_service
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.builder = builder or EvaluationRequestBuilder()
        self.retry_config = retry_config or RetryConfig(max_attempts=1)

    async def evaluate(
        self,
        text: str,
        rules: Mapping[str, Any],
        income_context: Optional[IncomeVerificationContext] = None,
    ) -> EvaluationResult:
        request = self.builder.build(text, rules, income_context)
        reasoning_request = ReasoningRequest(
            model=self.model,
            system_instruction=request.system_instruction,
            user_instruction=request.user_instruction,
            temperature=self.temperature,
            force_json_output=True,
            max_tokens=self.max_tokens,
        )

        response = await retry_async(
            lambda: self.llm_service.complete(reasoning_request),
            self.retry_config,
        )
        logger.info(f"Reasoning service answered ({response.tokens_used} tokens)")
        return self.parse_result(response.text)

    @staticmethod
    def parse_result(content: str) -> EvaluationResult:
        """Validate the raw response against the EvaluationResult schema"""
        try:
            return EvaluationResult.model_validate_json(content)
        except PydanticValidationError as e:
            logger.warning(f"Reasoning service response rejected: {e.error_count()} schema errors")
            raise EvaluationParseError(
                "Evaluation response does not match the required schema",
                details={"errors": json.loads(e.json(include_url=False))},
            ) from e

    async def close(self):
        await self.llm_service.close()


def create_engine(settings: Settings) -> EvaluationEngine:
    """Choose the evaluation engine once, from configuration"""
    if settings.evaluation_engine == "mock":
        logger.warning("Running in MOCK EVALUATION mode")
        return MockEvaluator()

    if settings.evaluation_engine == "ai":
        llm_service = LLMService(
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            timeout=settings.llm_timeout_seconds,
        )
        logger.info(f"Using reasoning service model {settings.llm_model} for evaluation")
        return AIEvaluator(
            llm_service=llm_service,
            model=settings.llm_model,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            retry_config=RetryConfig(
                max_attempts=settings.evaluation_max_attempts,
                initial_delay_seconds=settings.evaluation_retry_delay_seconds,
            ),
        )

    raise ConfigurationError(f"Unknown evaluation engine: {settings.evaluation_engine}")
