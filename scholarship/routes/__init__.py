"""
API routes for the Scholarship Evaluation Service
"""

from .applications import router as applications_router
from .rules import router as rules_router

__all__ = [
    "applications_router",
    "rules_router"
]
