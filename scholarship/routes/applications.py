"""
API routes for scholarship application submission and evaluation
"""
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from ..config import settings
from ..models import Document, ExtractOnlyRequest, IncomeVerifyRequest, SimpleRequest
from ..errors import ValidationError
from ..services import ApplicationService, MongoService, Orchestrator, classify
from ..utils.validators import check_upload, parse_income
from .dependencies import get_application_service, get_orchestrator, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["applications"])


async def read_upload(upload: Optional[UploadFile], field: str) -> Tuple[bytes, str, str]:
    """Read an upload fully and reject it before anything touches disk"""
    if upload is None:
        raise ValidationError(f"Missing required document: {field}", field=field)
    content = await upload.read()
    mime_type = check_upload(upload.filename, len(content), field)
    return content, mime_type, upload.filename


def write_transient(uploads: List[Tuple[bytes, str, str]]) -> List[Document]:
    """Write checked uploads to the upload directory as transient documents"""
    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)

    documents: List[Document] = []
    try:
        for content, mime_type, filename in uploads:
            fd, path = tempfile.mkstemp(dir=upload_dir, suffix=Path(filename).suffix.lower())
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            documents.append(
                Document(path=Path(path), mime_type=mime_type, size_bytes=len(content), filename=filename)
            )
    except OSError:
        for document in documents:
            document.path.unlink(missing_ok=True)
        raise
    return documents


@router.post("/submit")
async def submit_application(
    mother_certificate: Optional[UploadFile] = File(None, description="Mother's income certificate"),
    father_certificate: Optional[UploadFile] = File(None, description="Father's income certificate"),
    report_card: Optional[UploadFile] = File(None, description="Academic report card"),
    mother_income: Optional[str] = Form(None, description="Claimed monthly income of the mother"),
    father_income: Optional[str] = Form(None, description="Claimed monthly income of the father"),
    service: ApplicationService = Depends(get_application_service),
):
    """
    Submit a scholarship application with both parent certificates and a report card
    """
    if not (mother_certificate and father_certificate and report_card):
        raise ValidationError(
            "All three documents are required (mother certificate, father certificate, and report card)"
        )
    mother_income_value = parse_income(mother_income, "mother_income")
    father_income_value = parse_income(father_income, "father_income")

    uploads = [
        await read_upload(mother_certificate, "mother_certificate"),
        await read_upload(father_certificate, "father_certificate"),
        await read_upload(report_card, "report_card"),
    ]
    mother_doc, father_doc, report_doc = write_transient(uploads)
    logger.info(f"Received application documents: {[filename for _, _, filename in uploads]}")

    application_id, record = await service.submit(
        IncomeVerifyRequest(
            mother_document=mother_doc,
            father_document=father_doc,
            report_document=report_doc,
            mother_income=mother_income_value,
            father_income=father_income_value,
        )
    )

    return {"success": True, "application": record.model_dump(by_alias=True, mode="json")}


@router.post("/extract")
async def extract_document(
    document: Optional[UploadFile] = File(None, description="Document to inspect"),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """
    Extract text from a single document without evaluating it
    """
    (doc,) = write_transient([await read_upload(document, "document")])
    outcome = await orchestrator.process(ExtractOnlyRequest(document=doc))
    return {"extracted_text": outcome.extracted_text, "characters": len(outcome.extracted_text)}


@router.post("/evaluate")
async def evaluate_document(
    document: Optional[UploadFile] = File(None, description="Document to evaluate"),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """
    Evaluate a single document against the current rules (not persisted)
    """
    (doc,) = write_transient([await read_upload(document, "document")])
    outcome = await orchestrator.process(SimpleRequest(document=doc))
    return {
        "extracted_text": outcome.extracted_text,
        "evaluation": outcome.evaluation.model_dump(mode="json"),
        "status": classify(outcome.evaluation).value,
    }


@router.get("")
async def list_applications(
    limit: int = Query(50, ge=1, le=200),
    store: MongoService = Depends(get_store),
):
    """
    List stored applications, newest first
    """
    records = await store.list_applications(limit=limit)
    return {"applications": [record.model_dump(by_alias=True, mode="json") for record in records]}


@router.get("/stats")
async def get_application_stats(store: MongoService = Depends(get_store)):
    """
    Count stored applications per status
    """
    return await store.get_application_stats()


@router.get("/{application_id}")
async def get_application(application_id: str, store: MongoService = Depends(get_store)):
    """
    Get a stored application record
    """
    record = await store.get_application(application_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Application not found")
    return {"application": record.model_dump(by_alias=True, mode="json")}
