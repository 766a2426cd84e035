import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from scholarship.config import settings
from scholarship.errors import ScholarshipError
from scholarship.routes import applications_router, rules_router
from scholarship.services import (
    ApplicationService,
    Orchestrator,
    RuleRepository,
    TextExtractor,
    create_engine,
    mongo_service,
)

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    engine = create_engine(settings)
    try:
        await mongo_service.connect()
    except Exception:
        await engine.close()
        await mongo_service.close()
        raise
    rule_repository = RuleRepository(mongo_service.rules)
    orchestrator = Orchestrator(
        extractor=TextExtractor(),
        rule_repository=rule_repository,
        engine=engine,
        extraction_timeout=settings.extraction_timeout_seconds,
        evaluation_timeout=settings.evaluation_timeout_seconds,
    )

    app.state.engine = engine
    app.state.store = mongo_service
    app.state.rule_repository = rule_repository
    app.state.orchestrator = orchestrator
    app.state.application_service = ApplicationService(orchestrator, mongo_service)
    logger.info(f"{settings.app_name} started with {engine.name} engine")
    yield
    # Shutdown
    await engine.close()
    await mongo_service.close()
    logger.info("Disconnected from MongoDB")


app = FastAPI(
    title=settings.app_name,
    description="Backend service for scholarship document evaluation",
    version=settings.app_version,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ScholarshipError)
async def scholarship_error_handler(request: Request, exc: ScholarshipError):
    """Map pipeline errors to invalid_input or processing_failed responses"""
    if exc.client_error:
        logger.warning(f"Rejected {request.url.path}: {exc.message}")
    else:
        logger.error(f"Processing failed for {request.url.path}: {exc.message}", exc_info=exc)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    """Anything outside the error taxonomy is reported as a processing failure"""
    logger.error(f"Unexpected error for {request.url.path}: {exc}", exc_info=exc)
    error = ScholarshipError(f"Unexpected error: {exc}")
    return JSONResponse(status_code=error.http_status, content=error.to_dict())


app.include_router(applications_router, prefix=settings.api_prefix)
app.include_router(rules_router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {"message": f"{settings.app_name} is running", "version": settings.app_version}


@app.get(f"{settings.api_prefix}/health")
async def health_check(request: Request):
    """Health check endpoint"""
    store = getattr(request.app.state, "store", None)
    engine = getattr(request.app.state, "engine", None)
    return {
        "status": "ok",
        "engine": engine.name if engine is not None else None,
        "database": await store.health_check() if store is not None else False,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("scholarship.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
