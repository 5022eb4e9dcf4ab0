"""Data models for the regulatory assessment service."""

from .assessment import ApplicableRegulation, LLMAnalysis, AnalysisResult

__all__ = ["ApplicableRegulation", "LLMAnalysis", "AnalysisResult"]
