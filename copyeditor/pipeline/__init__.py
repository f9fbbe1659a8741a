"""Chunk planning and request orchestration."""

from .chunk_planner import plan_chunks, safety_budget
from .config import ConfigurationError, PipelineConfiguration
from .executor import RequestExecutor
from .orchestrator import PipelineOrchestrator, run_pipeline
from .tokens import IMAGE_TOKEN_COSTS, TokenEstimator

__all__ = [
    "ConfigurationError",
    "IMAGE_TOKEN_COSTS",
    "PipelineConfiguration",
    "PipelineOrchestrator",
    "RequestExecutor",
    "TokenEstimator",
    "plan_chunks",
    "run_pipeline",
    "safety_budget",
]
