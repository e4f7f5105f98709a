"""FastAPI server exposing the steps pipeline to a presentation layer."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Optional

from fastapi import FastAPI, HTTPException, Path
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from figma_steps.api_models import (
    CreateSessionResponse,
    RunStepRequest,
    RunStepResponse,
    SessionStateResponse,
    StepDataUpdate,
    UIStateUpdate,
)
from figma_steps.collaborators import Collaborators
from figma_steps.session_manager import SessionManager, StepsSession, run_step, session_manager
from figma_steps.services import (
    CORS_ORIGINS,
    ENVIRONMENT,
    EXPORT_DIR,
    LOG_LEVEL,
    load_collaborators,
)
from figma_steps.utils import compute_state_fingerprint

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL), format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _state_response(session: StepsSession) -> SessionStateResponse:
    state = session.store.state
    return SessionStateResponse(
        session_id=session.session_id,
        revision=compute_state_fingerprint(state),
        busy=session.busy,
        error=session.error,
        state=state.model_dump(mode="json"),
    )


def create_app(
    collaborators: Optional[Collaborators] = None,
    manager: SessionManager = session_manager,
    export_dir: Optional[str] = EXPORT_DIR,
) -> FastAPI:
    """Build the FastAPI app.

    ``collaborators`` defaults to the environment-configured set. Production
    loads it up front; development waits for the first session.
    """
    if collaborators is None and ENVIRONMENT == "production":
        collaborators = load_collaborators()

    app = FastAPI(title="Figma Steps", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    loaded: dict[str, Collaborators] = {}
    if collaborators is not None:
        loaded["default"] = collaborators

    def _collaborators() -> Collaborators:
        if "default" not in loaded:
            try:
                loaded["default"] = load_collaborators()
            except (RuntimeError, ImportError, AttributeError, ValueError) as e:
                logger.error("Collaborators are not configured: %s", e)
                raise HTTPException(status_code=503, detail=str(e))
        return loaded["default"]

    def _get_session(session_id: str) -> StepsSession:
        session = manager.get_session(session_id)
        if not session:
            raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found.")
        return session

    def _ensure_idle(session: StepsSession) -> None:
        if session.busy:
            raise HTTPException(
                status_code=409,
                detail=f"Session '{session.session_id}' is running a step.",
            )

    # -- REST endpoints --------------------------------------------------------

    @app.get("/health")
    async def health():
        """Health check."""
        return {"status": "healthy"}

    @app.post("/sessions", status_code=201, response_model=CreateSessionResponse)
    async def create_session():
        """Create a new session in its initial state."""
        session_id = str(uuid.uuid4())
        manager.create_session(session_id, _collaborators(), export_dir=export_dir)
        logger.info("[POST /sessions] Created session %s", session_id)
        return CreateSessionResponse(session_id=session_id)

    @app.get("/sessions")
    async def list_sessions():
        """List sessions with their step statuses only."""
        return [
            {
                "session_id": s.session_id,
                "busy": s.busy,
                "step_status": s.store.state.step_status.model_dump(),
            }
            for s in manager.list_sessions()
        ]

    @app.get("/sessions/{session_id}", response_model=SessionStateResponse)
    async def get_session(session_id: str):
        """Get the full pipeline state for a session."""
        return _state_response(_get_session(session_id))

    @app.patch("/sessions/{session_id}/data", response_model=SessionStateResponse)
    async def update_step_data(session_id: str, body: StepDataUpdate):
        """Edit user-supplied step data (URL, token, SVG, CSS, JSX overrides)."""
        session = _get_session(session_id)
        changes = body.model_dump(exclude_none=True)
        if changes:
            session.store.set_step_data(**changes)
        return _state_response(session)

    @app.patch("/sessions/{session_id}/ui", response_model=SessionStateResponse)
    async def update_ui_state(session_id: str, body: UIStateUpdate):
        session = _get_session(session_id)
        changes = body.model_dump(exclude_none=True)
        if changes:
            session.store.set_ui_state(**changes)
        return _state_response(session)

    @app.post("/sessions/{session_id}/blocks/{block}/toggle", response_model=SessionStateResponse)
    async def toggle_block(session_id: str, block: str):
        session = _get_session(session_id)
        try:
            session.store.toggle_block(block)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _state_response(session)

    @app.post(
        "/sessions/{session_id}/steps/{step}",
        status_code=202,
        response_model=RunStepResponse,
    )
    async def start_step(
        session_id: str,
        step: int = Path(..., ge=1, le=4),
        body: Optional[RunStepRequest] = None,
    ):
        """Run one pipeline step in the background.

        Step 1 chains into step 2 on success. Poll GET /sessions/{id} for
        progress and results.
        """
        session = _get_session(session_id)
        _ensure_idle(session)
        if getattr(session.store.state.step_status, f"step{step}") == "loading":
            raise HTTPException(status_code=409, detail=f"step{step} is already running.")

        svg_content = body.svg_content if body else None
        session.task = asyncio.create_task(run_step(session, step, svg_content=svg_content))
        logger.info("[POST /steps] Started step %d for session %s", step, session_id)
        return RunStepResponse(session_id=session_id, step=step, status="ACCEPTED")

    @app.post("/sessions/{session_id}/reset", response_model=SessionStateResponse)
    async def reset_session(session_id: str):
        """Return the session to its initial state."""
        session = _get_session(session_id)
        _ensure_idle(session)
        session.store.reset_all()
        session.error = None
        return _state_response(session)

    @app.get("/sessions/{session_id}/exports/{name}")
    async def download_export(session_id: str, name: str):
        """Download GeneratedComponent.tsx or GeneratedComponent.css."""
        session = _get_session(session_id)
        for item in session.orchestrator.download_code():
            if item.filename == name:
                return Response(
                    content=item.as_bytes(),
                    media_type=item.media_type,
                    headers={"Content-Disposition": f'attachment; filename="{name}"'},
                )
        raise HTTPException(status_code=404, detail=f"Export '{name}' not available.")

    @app.delete("/sessions/{session_id}", status_code=204)
    async def delete_session(session_id: str):
        _get_session(session_id)
        manager.remove_session(session_id)
        return Response(status_code=204)

    return app


fastapi_app = create_app()
