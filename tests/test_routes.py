from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pymongo.errors import ServerSelectionTimeoutError
from fastapi.testclient import TestClient

from scholarship.config import settings
from scholarship.errors import ConfigurationError, EvaluationEngineError
from scholarship import main as main_module
from scholarship.main import app
from scholarship.routes.dependencies import (
    get_application_service,
    get_orchestrator,
    get_rule_repository,
    get_store,
)
from scholarship.services import (
    ApplicationService,
    MockEvaluator,
    Orchestrator,
    RuleRepository,
    TextExtractor,
)

from fakes import FakeCollection, FakeEngine, FakeStore


SUBMIT_URL = f"{settings.api_prefix}/applications/submit"


def _files(report_name: str = "report.txt", report_type: str = "text/plain", report_body: bytes = b"GWA: 1.75"):
    return {
        "mother_certificate": ("mother.txt", b"Monthly Salary: 12,000", "text/plain"),
        "father_certificate": ("father.txt", b"Monthly Salary: 13,000", "text/plain"),
        "report_card": (report_name, report_body, report_type),
    }


INCOMES = {"mother_income": "12000", "father_income": "13,000"}


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def client(tmp_path, monkeypatch, store, rule_rows):
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path / "uploads"))

    def build(engine=None, raise_server_exceptions=True):
        repository = RuleRepository(FakeCollection(rule_rows))
        orchestrator = Orchestrator(TextExtractor(), repository, engine or MockEvaluator())
        service = ApplicationService(orchestrator, store)
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        app.dependency_overrides[get_application_service] = lambda: service
        app.dependency_overrides[get_rule_repository] = lambda: repository
        app.dependency_overrides[get_store] = lambda: store
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    yield build
    app.dependency_overrides.clear()


def _upload_dir_is_empty(tmp_path) -> bool:
    upload_dir = tmp_path / "uploads"
    return not upload_dir.exists() or not any(upload_dir.iterdir())


def test_submit_application(client, store, tmp_path) -> None:
    response = client().post(SUBMIT_URL, files=_files(), data=INCOMES)

    assert response.status_code == 200
    application = response.json()["application"]
    assert response.json()["success"] is True
    assert application["_id"] in store.applications
    assert application["status"] == "qualified"
    assert application["father_income"] == 13000
    assert application["extracted_text"] == (
        "Mother's Income Certificate:\nMonthly Salary: 12,000\n\n"
        "Father's Income Certificate:\nMonthly Salary: 13,000\n\n"
        "Report Card:\nGWA: 1.75"
    )
    assert len(store.documents) == 3
    assert _upload_dir_is_empty(tmp_path)


def test_submit_requires_all_documents(client, store) -> None:
    files = _files()
    del files["report_card"]

    response = client().post(SUBMIT_URL, files=files, data=INCOMES)

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_input"
    assert "All three documents are required" in response.json()["detail"]
    assert store.documents == []


def test_submit_requires_both_incomes(client, store) -> None:
    response = client().post(SUBMIT_URL, files=_files(), data={"mother_income": "12000"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Both parent income values are required"
    assert store.documents == []


def test_submit_rejects_unsupported_type(client, store, tmp_path) -> None:
    response = client().post(
        SUBMIT_URL, files=_files("report.docx", "application/msword"), data=INCOMES
    )

    assert response.status_code == 415
    assert response.json()["code"] == "UNSUPPORTED_FILE_TYPE"
    assert store.documents == []
    assert _upload_dir_is_empty(tmp_path)


def test_submit_rejects_oversized_file(client, store, monkeypatch) -> None:
    monkeypatch.setattr(settings, "max_file_size", 16)

    response = client().post(SUBMIT_URL, files=_files(report_body=b"x" * 17), data=INCOMES)

    assert response.status_code == 413
    assert store.documents == []


def test_processing_failure_returns_generic_error(client, store, tmp_path) -> None:
    engine = FakeEngine(error=EvaluationEngineError("upstream said: key sk-123 is invalid"))

    response = client(engine).post(SUBMIT_URL, files=_files(), data=INCOMES)

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "processing_failed"
    assert "sk-123" not in body["detail"]
    assert store.applications == {}
    assert _upload_dir_is_empty(tmp_path)


def test_extract_endpoint(client, tmp_path) -> None:
    response = client().post(
        f"{settings.api_prefix}/applications/extract",
        files={"document": ("grades.txt", b"  GWA: 1.50  ", "text/plain")},
    )

    assert response.status_code == 200
    assert response.json() == {"extracted_text": "GWA: 1.50", "characters": 9}
    assert _upload_dir_is_empty(tmp_path)


def test_evaluate_endpoint(client, store) -> None:
    response = client().post(
        f"{settings.api_prefix}/applications/evaluate",
        files={"document": ("grades.txt", b"GWA: 1.50", "text/plain")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "qualified"
    assert body["evaluation"]["confidence_score"] == 95
    assert store.applications == {}


def test_get_application(client) -> None:
    test_client = client()
    application_id = test_client.post(SUBMIT_URL, files=_files(), data=INCOMES).json()["application"]["_id"]

    response = test_client.get(f"{settings.api_prefix}/applications/{application_id}")
    missing = test_client.get(f"{settings.api_prefix}/applications/ffffffffffffffffffffffff")
    stats = test_client.get(f"{settings.api_prefix}/applications/stats")

    assert response.status_code == 200
    assert response.json()["application"]["_id"] == application_id
    assert missing.status_code == 404
    assert stats.json() == {"total_applications": 1, "qualified_applications": 1}


def test_get_rules(client) -> None:
    response = client().get(f"{settings.api_prefix}/rules")

    assert response.status_code == 200
    assert response.json() == {
        "rules": {"max_monthly_income": "30000", "max_gwa": "3.0"},
        "thresholds": {"max_monthly_income": 30000, "max_gwa": 3.0},
    }


def test_health(client) -> None:
    response = client().get(f"{settings.api_prefix}/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_list_applications_newest_first(client, store) -> None:
    test_client = client()
    first = test_client.post(SUBMIT_URL, files=_files(), data=INCOMES).json()["application"]["_id"]
    second = test_client.post(SUBMIT_URL, files=_files(), data=INCOMES).json()["application"]["_id"]
    store.applications[first] = store.applications[first].model_copy(
        update={"submitted_at": datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)}
    )
    store.applications[second] = store.applications[second].model_copy(
        update={"submitted_at": datetime(2024, 6, 2, 8, 0, tzinfo=timezone.utc)}
    )

    response = test_client.get(f"{settings.api_prefix}/applications")
    limited = test_client.get(f"{settings.api_prefix}/applications", params={"limit": 1})

    assert response.status_code == 200
    assert [a["_id"] for a in response.json()["applications"]] == [second, first]
    assert [a["_id"] for a in limited.json()["applications"]] == [second]


def test_unexpected_error_returns_structured_body(client, store, tmp_path) -> None:
    engine = FakeEngine(error=RuntimeError("cannot convert float infinity to integer"))

    response = client(engine, raise_server_exceptions=False).post(SUBMIT_URL, files=_files(), data=INCOMES)

    assert response.status_code == 500
    assert response.json() == {
        "error": "processing_failed",
        "code": "SCHOLARSHIP_ERROR",
        "detail": "Processing failed. Please try again later.",
    }
    assert store.applications == {}
    assert _upload_dir_is_empty(tmp_path)


class ClosingEngine(FakeEngine):
    def __init__(self, closed) -> None:
        super().__init__()
        self.closed = closed

    async def close(self) -> None:
        self.closed.append("engine")


@pytest.mark.asyncio
async def test_failed_startup_releases_engine_and_client(monkeypatch) -> None:
    closed = []

    async def failing_connect() -> None:
        raise ServerSelectionTimeoutError("no servers")

    async def close() -> None:
        closed.append("mongo")

    monkeypatch.setattr(main_module, "create_engine", lambda s: ClosingEngine(closed))
    monkeypatch.setattr(main_module.mongo_service, "connect", failing_connect)
    monkeypatch.setattr(main_module.mongo_service, "close", close)

    with pytest.raises(ServerSelectionTimeoutError):
        async with main_module.lifespan(app):
            pass

    assert closed == ["engine", "mongo"]


@pytest.mark.asyncio
async def test_misconfigured_engine_never_opens_database(monkeypatch) -> None:
    connected = []

    def misconfigured(settings) -> None:
        raise ConfigurationError("LLM_API_KEY must be set")

    async def connect() -> None:
        connected.append(True)

    monkeypatch.setattr(main_module, "create_engine", misconfigured)
    monkeypatch.setattr(main_module.mongo_service, "connect", connect)

    with pytest.raises(ConfigurationError):
        async with main_module.lifespan(app):
            pass

    assert connected == []
