"""decision-futures - Explore the possible consequences of a decision, grounded in market evidence."""

from decision_futures.json_extract import ExtractionError, extract_json
from decision_futures.models import (
    Decision,
    InputType,
    Market,
    Scenario,
    SearchResult,
)
from decision_futures.pipeline import ConsequencePipeline, PipelineResult, build_pipeline

__all__ = [
    # Core models
    "Decision",
    "InputType",
    "Market",
    "Scenario",
    "SearchResult",
    # Pipeline
    "ConsequencePipeline",
    "PipelineResult",
    "build_pipeline",
    # Extraction
    "extract_json",
    "ExtractionError",
]
__version__ = "0.3.0"
