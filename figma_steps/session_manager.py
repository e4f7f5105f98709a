"""SessionManager — one store + orchestrator per UI session, and background step runs."""

from __future__ import annotations

import asyncio
import logging
import pathlib
import time
from dataclasses import dataclass, field
from typing import Optional, Union

from figma_steps.collaborators import Collaborators
from figma_steps.errors import StageBusyError
from figma_steps.orchestrator import StepsOrchestrator
from figma_steps.store import PipelineStore

logger = logging.getLogger(__name__)


@dataclass
class StepsSession:
    """Tracks the pipeline state of a single UI session."""

    session_id: str
    store: PipelineStore
    orchestrator: StepsOrchestrator
    task: Optional[asyncio.Task] = None
    created_at: float = field(default_factory=time.time)
    error: Optional[str] = None

    @property
    def busy(self) -> bool:
        """True while a background step run has not finished."""
        return self.task is not None and not self.task.done()


class SessionManager:
    """Manages per-session pipeline state."""

    def __init__(self) -> None:
        self._sessions: dict[str, StepsSession] = {}

    def create_session(
        self,
        session_id: str,
        collaborators: Collaborators,
        export_dir: Optional[Union[str, pathlib.Path]] = None,
    ) -> StepsSession:
        """Register a new session. Raises ValueError if session_id already exists."""
        if session_id in self._sessions:
            raise ValueError(f"Session '{session_id}' already exists.")
        store = PipelineStore()
        session = StepsSession(
            session_id=session_id,
            store=store,
            orchestrator=StepsOrchestrator(store, collaborators, export_dir=export_dir),
        )
        self._sessions[session_id] = session
        return session

    def get_session(self, session_id: str) -> Optional[StepsSession]:
        """Get a session by ID, or None if not found."""
        return self._sessions.get(session_id)

    def list_sessions(self) -> list[StepsSession]:
        return list(self._sessions.values())

    def remove_session(self, session_id: str) -> None:
        """Remove a session from tracking, cancelling any step still running."""
        session = self._sessions.pop(session_id, None)
        if session and session.busy:
            session.task.cancel()
            logger.info("[SessionManager] Cancelled running step for session %s", session_id)


# Module-level singleton
session_manager = SessionManager()


async def run_step(session: StepsSession, step: int, svg_content: Optional[str] = None) -> None:
    """Background runner for one user-triggered step.

    Step failures are already recorded in the session state by the
    orchestrator; only unexpected errors end up in ``session.error``.
    """
    orchestrator = session.orchestrator
    session.error = None
    try:
        if step == 1:
            await orchestrator.connect_to_figma()
        elif step == 2:
            await orchestrator.generate_svg_code(svg_content)
        elif step == 3:
            orchestrator.save_css_code()
        elif step == 4:
            await orchestrator.generate_final_code()
        else:
            raise ValueError(f"Unknown step: {step}")
        logger.info(
            "[run_step] Step %d finished for session %s, status=%s",
            step,
            session.session_id,
            getattr(orchestrator.state.step_status, f"step{step}"),
        )
    except StageBusyError as e:
        logger.warning("[run_step] %s (session %s)", e, session.session_id)
        session.error = str(e)
    except Exception:
        logger.exception("[run_step] Error in step %d for session %s", step, session.session_id)
        session.error = "Internal pipeline error"
