"""Figma-to-code steps pipeline."""

from figma_steps.models import INITIAL_STATE, PipelineState, initial_state
from figma_steps.orchestrator import StepsOrchestrator
from figma_steps.store import PipelineStore, apply

__all__ = [
    "INITIAL_STATE",
    "PipelineState",
    "initial_state",
    "PipelineStore",
    "apply",
    "StepsOrchestrator",
]
