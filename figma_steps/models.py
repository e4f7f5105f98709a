"""Shared state models for the Figma-to-code steps pipeline."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Status = Literal["idle", "loading", "success", "error"]

StepKey = Literal["step1", "step2", "step3", "step4"]

BlockKey = Literal["block1", "block2", "block3", "block4"]

STEP_KEYS: tuple[str, ...] = ("step1", "step2", "step3", "step4")

DEFAULT_FIGMA_URL = "https://www.figma.com/design/..."

TOTAL_STEPS = 4


class _Frozen(BaseModel):
    """Immutable base: transitions build copies with model_copy(update=...)."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class DocumentBundle(_Frozen):
    """Everything step 1 fetched for one Figma file."""

    file: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)
    components: Any = None
    styles: Any = None
    file_id: str
    extracted_at: str  # ISO-8601, UTC

    @property
    def name(self) -> str:
        return self.file.get("name") or "Unknown"


class StepData(_Frozen):
    """One field per pipeline artifact.

    ``jsx_code`` and ``more_css_code`` are the user-supplied overrides merged
    in by step 4.
    """

    figma_url: str = DEFAULT_FIGMA_URL
    access_token: str = ""
    figma_data: Optional[DocumentBundle] = None
    svg_code: str = ""
    generated_tsx_code: str = ""
    css_code: str = ""
    jsx_code: str = ""
    more_css_code: str = ""
    final_tsx_code: str = ""
    final_css_code: str = ""


class StepStatus(_Frozen):
    step1: Status = "idle"
    step2: Status = "idle"
    step3: Status = "idle"
    step4: Status = "idle"


class ExpandedBlocks(_Frozen):
    block1: bool = False
    block2: bool = False
    block3: bool = False
    block4: bool = False


class Progress(_Frozen):
    current: int = 0
    total: int = TOTAL_STEPS
    message: str = ""


class UIState(_Frozen):
    """View-only state. ``errors`` maps a step key to its last error message."""

    expanded_blocks: ExpandedBlocks = Field(default_factory=ExpandedBlocks)
    preview_mode: bool = False
    errors: dict[str, str] = Field(default_factory=dict)
    progress: Progress = Field(default_factory=Progress)


class PipelineState(_Frozen):
    """Root of the pipeline state, replaced (never mutated) on every transition."""

    step_data: StepData = Field(default_factory=StepData)
    step_status: StepStatus = Field(default_factory=StepStatus)
    ui_state: UIState = Field(default_factory=UIState)


def initial_state() -> PipelineState:
    """Build the documented initial defaults."""
    return PipelineState()


INITIAL_STATE = initial_state()
