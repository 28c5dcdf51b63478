"""Field extraction: strategies, validation, scoring, merging and the pipeline."""

from .confidence import ConfidenceScorer, CrossValidator, get_confidence_level
from .merger import Merger, MergedCandidates, flatten_results, to_job_info
from .pipeline import (
    ExtractionPipeline,
    PipelineState,
    create_pipeline,
    extract,
    extract_quick,
)
from .sources import ExtractionSource, SOURCE_WEIGHTS
from .strategies import BaseExtractionStrategy, StrategyRegistry, StrategyResult
from .validators import RejectionReason, ValidationResult, Validator

__all__ = [
    "BaseExtractionStrategy",
    "ConfidenceScorer",
    "CrossValidator",
    "ExtractionPipeline",
    "ExtractionSource",
    "MergedCandidates",
    "Merger",
    "PipelineState",
    "RejectionReason",
    "SOURCE_WEIGHTS",
    "StrategyRegistry",
    "StrategyResult",
    "ValidationResult",
    "Validator",
    "create_pipeline",
    "extract",
    "extract_quick",
    "flatten_results",
    "get_confidence_level",
    "to_job_info",
]
