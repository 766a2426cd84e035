"""
Pipeline orchestrator: extraction, rule loading, evaluation and cleanup
"""
import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Awaitable, List, Mapping, Optional, Tuple

from ..errors import EvaluationEngineError, ExtractionError
from ..models import (
    Document,
    EvaluationResult,
    ExtractOnlyRequest,
    IncomeVerificationContext,
    IncomeVerifyRequest,
    PipelineOutcome,
    PipelineRequest,
    SimpleRequest,
)
from ..utils.validators import validate_document
from .evaluation_engine import EvaluationEngine
from .rule_repository import RuleRepository
from .text_extractor import TextExtractor

logger = logging.getLogger(__name__)


@asynccontextmanager
async def transient_documents(*documents: Document):
    """Delete every document's file on exit, whatever happened inside"""
    try:
        yield documents
    finally:
        for document in documents:
            try:
                document.path.unlink(missing_ok=True)
            except OSError as e:
                logger.error(f"Failed to delete transient file {document.path}: {e}")


async def gather_or_cancel(*aws: Awaitable[Any]) -> List[Any]:
    """Like asyncio.gather, but cancels the siblings when one fails"""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def request_documents(request: PipelineRequest) -> List[Tuple[str, Document]]:
    """Documents owned by a request, keyed by the field they came from"""
    if isinstance(request, IncomeVerifyRequest):
        return [
            ("mother_certificate", request.mother_document),
            ("father_certificate", request.father_document),
            ("report_card", request.report_document),
        ]
    return [("document", request.document)]


class Orchestrator:
    """Runs one pipeline request in extract-only, simple or income-verify mode"""

    def __init__(
        self,
        extractor: TextExtractor,
        rule_repository: RuleRepository,
        engine: EvaluationEngine,
        extraction_timeout: Optional[float] = None,
        evaluation_timeout: Optional[float] = None,
    ):
        self.extractor = extractor
        self.rule_repository = rule_repository
        self.engine = engine
        self.extraction_timeout = extraction_timeout
        self.evaluation_timeout = evaluation_timeout

    async def process(self, request: PipelineRequest) -> PipelineOutcome:
        """
        Process a request and release its transient files on every exit path

        Raises:
            UnsupportedFileType, ValidationError: before any extraction starts
            ExtractionError, RuleLoadError, EvaluationEngineError,
            EvaluationParseError: the request is aborted as a whole
        """
        documents = request_documents(request)
        start_time = time.time()

        async with transient_documents(*(document for _, document in documents)):
            for field, document in documents:
                validate_document(document, field=field)

            if isinstance(request, ExtractOnlyRequest):
                outcome = PipelineOutcome(extracted_text=await self.extract(request.document))
            elif isinstance(request, SimpleRequest):
                outcome = await self._process_simple(request)
            elif isinstance(request, IncomeVerifyRequest):
                outcome = await self._process_income_verification(request)
            else:
                raise TypeError(f"Unknown pipeline request: {type(request).__name__}")

        processing_time = (time.time() - start_time) * 1000
        logger.info(f"Processed {request.kind} request in {processing_time:.0f} ms")
        return outcome

    async def _process_simple(self, request: SimpleRequest) -> PipelineOutcome:
        extracted_text, rules = await gather_or_cancel(
            self.extract(request.document),
            self.rule_repository.load_all(),
        )
        evaluation = await self.evaluate(extracted_text, rules)
        return PipelineOutcome(extracted_text=extracted_text, evaluation=evaluation)

    async def _process_income_verification(self, request: IncomeVerifyRequest) -> PipelineOutcome:
        mother_text, father_text, report_text, rules = await gather_or_cancel(
            self.extract(request.mother_document),
            self.extract(request.father_document),
            self.extract(request.report_document),
            self.rule_repository.load_all(),
        )

        context = IncomeVerificationContext.build(
            mother_income=request.mother_income,
            father_income=request.father_income,
            mother_text=mother_text,
            father_text=father_text,
            report_text=report_text,
        )
        evaluation = await self.evaluate(context.combined_text, rules, context)
        return PipelineOutcome(extracted_text=context.combined_text, evaluation=evaluation)

    async def extract(self, document: Document) -> str:
        """Extract one document within the extraction deadline"""
        try:
            return await asyncio.wait_for(
                self.extractor.extract(document), timeout=self.extraction_timeout
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Extraction timed out after {self.extraction_timeout}s: {document.path.name}")
            raise ExtractionError(f"Extraction timed out for {document.path.name}") from e

    async def evaluate(
        self,
        text: str,
        rules: Mapping[str, Any],
        income_context: Optional[IncomeVerificationContext] = None,
    ) -> EvaluationResult:
        """Run the configured engine within the evaluation deadline"""
        logger.info(f"Evaluating with {self.engine.name} engine")
        try:
            return await asyncio.wait_for(
                self.engine.evaluate(text, rules, income_context),
                timeout=self.evaluation_timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Evaluation timed out after {self.evaluation_timeout}s")
            raise EvaluationEngineError("Evaluation timed out") from e
