"""Application layer - analysis assembly and ingestion use cases."""

from mailtrace.application.analyzer import analyze
from mailtrace.application.use_cases.analyze_email import AnalyzeEmailUseCase

__all__ = [
    "analyze",
    "AnalyzeEmailUseCase",
]
