"""
FastAPI dependencies resolving the services built at startup
"""
from fastapi import Request

from ..services import ApplicationService, MongoService, Orchestrator, RuleRepository


def get_rule_repository(request: Request) -> RuleRepository:
    return request.app.state.rule_repository


def get_orchestrator(request: Request) -> Orchestrator:
    return request.app.state.orchestrator


def get_application_service(request: Request) -> ApplicationService:
    return request.app.state.application_service


def get_store(request: Request) -> MongoService:
    return request.app.state.store
