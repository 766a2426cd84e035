"""
Scholarship Evaluation Service

Extracts text from an applicant's income certificates and report card, checks
the family income and grades against configurable rules with a reasoning
engine, and stores a decision record for every application.
"""

__version__ = "1.0.0"
__author__ = "Scholarship Evaluation Team"
__description__ = "AI-powered scholarship document evaluation service"
