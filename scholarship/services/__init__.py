"""
Services package for the Scholarship Evaluation Service
"""

from .text_extractor import TextExtractor
from .rule_repository import RuleRepository, RuleSet, RuleThresholds, resolve_thresholds
from .request_builder import EvaluationRequest, EvaluationRequestBuilder
from .llm_service import LLMService, ReasoningRequest, ReasoningResponse
from .evaluation_engine import EvaluationEngine, MockEvaluator, AIEvaluator, create_engine
from .classifier import classify
from .orchestrator import Orchestrator, transient_documents
from .mongo_service import MongoService, mongo_service
from .application_service import ApplicationService

__all__ = [
    "TextExtractor",
    "RuleRepository",
    "RuleSet",
    "RuleThresholds",
    "resolve_thresholds",
    "EvaluationRequest",
    "EvaluationRequestBuilder",
    "LLMService",
    "ReasoningRequest",
    "ReasoningResponse",
    "EvaluationEngine",
    "MockEvaluator",
    "AIEvaluator",
    "create_engine",
    "classify",
    "Orchestrator",
    "transient_documents",
    "MongoService",
    "mongo_service",
    "ApplicationService"
]
