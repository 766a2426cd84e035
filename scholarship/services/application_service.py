"""
Application submission: store documents, evaluate, classify, persist
"""
import asyncio
import logging
import time
from typing import Tuple

from ..models import DecisionRecord, Document, IncomeVerifyRequest
from ..errors import ExtractionError
from ..utils.validators import sanitize_filename, validate_document
from .classifier import classify
from .mongo_service import MongoService
from .orchestrator import Orchestrator, transient_documents

logger = logging.getLogger(__name__)


class ApplicationService:
    """Runs a full income-verification submission for one applicant"""

    def __init__(self, orchestrator: Orchestrator, store: MongoService):
        self.orchestrator = orchestrator
        self.store = store

    async def _store_original(self, document: Document, kind: str, timestamp: int) -> str:
        try:
            content = await asyncio.to_thread(document.path.read_bytes)
        except OSError as e:
            raise ExtractionError(f"Cannot read uploaded {kind} document: {e}") from e
        name = sanitize_filename(document.filename or document.path.name)
        key = f"documents/{timestamp}_{kind}_{name}"
        # Content type is stored exactly as declared
        return await self.store.store_document(key, content, document.mime_type)

    async def submit(self, request: IncomeVerifyRequest) -> Tuple[str, DecisionRecord]:
        """
        Submit an application and persist its decision record

        Documents already written to the object store stay there when a
        later step fails.

        Returns:
            (application_id, record)
        """
        documents = (request.mother_document, request.father_document, request.report_document)
        async with transient_documents(*documents):
            validate_document(request.mother_document, field="mother_certificate")
            validate_document(request.father_document, field="father_certificate")
            validate_document(request.report_document, field="report_card")

            timestamp = int(time.time() * 1000)
            mother_url = await self._store_original(request.mother_document, "mother_income", timestamp)
            father_url = await self._store_original(request.father_document, "father_income", timestamp)
            report_url = await self._store_original(request.report_document, "report", timestamp)

            outcome = await self.orchestrator.process(request)

        evaluation = outcome.evaluation
        status = classify(evaluation)
        record = DecisionRecord(
            mother_certificate_url=mother_url,
            father_certificate_url=father_url,
            report_card_url=report_url,
            mother_income=request.mother_income,
            father_income=request.father_income,
            extracted_text=outcome.extracted_text,
            evaluation_result=evaluation.model_dump(mode="json"),
            qualified=evaluation.qualified,
            confidence_score=evaluation.confidence_score,
            status=status,
        )
        application_id = await self.store.insert_application(record)
        record.id = application_id

        logger.info(
            f"Application {application_id} evaluated: status={status.value}, "
            f"confidence={evaluation.confidence_score}"
        )
        return application_id, record
