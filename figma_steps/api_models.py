"""Pydantic request/response models for the steps HTTP API."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class CreateSessionResponse(BaseModel):
    """Response from POST /sessions."""

    session_id: str


class SessionStateResponse(BaseModel):
    """Response from GET /sessions/{session_id}."""

    session_id: str
    revision: str  # fingerprint of the state
    busy: bool
    error: Optional[str] = None
    state: dict[str, Any]


class StepDataUpdate(BaseModel):
    """Request body for PATCH /sessions/{session_id}/data.

    Only the user-editable fields; outputs of the steps are not writable.
    """

    model_config = ConfigDict(extra="forbid")

    figma_url: Optional[str] = None
    access_token: Optional[str] = None
    svg_code: Optional[str] = None
    css_code: Optional[str] = None
    jsx_code: Optional[str] = None
    more_css_code: Optional[str] = None


class UIStateUpdate(BaseModel):
    """Request body for PATCH /sessions/{session_id}/ui."""

    model_config = ConfigDict(extra="forbid")

    preview_mode: Optional[bool] = None


class RunStepRequest(BaseModel):
    """Optional body for POST /sessions/{session_id}/steps/{step}."""

    svg_content: Optional[str] = None


class RunStepResponse(BaseModel):
    """Response from POST /sessions/{session_id}/steps/{step}."""

    session_id: str
    step: int
    status: str  # "ACCEPTED"
