"""Onboarding helpers: document ingestion, ROI projection, simulation scenarios."""

from .ingestion import DocumentAnalysis, analyze_document, extract_entries
from .roi import RoiInputs, RoiProjection, project_roi
from .scenarios import Scenario, find_scenario, get_scenarios

__all__ = [
    "DocumentAnalysis",
    "analyze_document",
    "extract_entries",
    "RoiInputs",
    "RoiProjection",
    "project_roi",
    "Scenario",
    "find_scenario",
    "get_scenarios",
]
