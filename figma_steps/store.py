"""Pipeline state store — tagged actions and the pure transition function.

``apply(state, action)`` is the only way state changes. Every merge is a
shallow field-level overwrite; unspecified fields keep their previous value
and unchanged branches are shared between the old and the new state.

These functions are used by the stage orchestrator (figma_steps/orchestrator.py) and
by the HTTP endpoints that let the user edit step data directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import BaseModel

from figma_steps.models import PipelineState, initial_state

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetStepData:
    changes: Mapping[str, Any]


@dataclass(frozen=True)
class SetStepStatus:
    changes: Mapping[str, Any]


@dataclass(frozen=True)
class SetUIState:
    changes: Mapping[str, Any]


@dataclass(frozen=True)
class SetError:
    step: str
    error: str


@dataclass(frozen=True)
class ClearErrors:
    pass


@dataclass(frozen=True)
class ToggleBlock:
    block: str


@dataclass(frozen=True)
class SetProgress:
    changes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ResetAll:
    pass


Action = Union[
    SetStepData,
    SetStepStatus,
    SetUIState,
    SetError,
    ClearErrors,
    ToggleBlock,
    SetProgress,
    ResetAll,
]


def _merge(model: BaseModel, changes: Mapping[str, Any]) -> Any:
    """Shallow-merge ``changes`` into ``model``, returning a new instance.

    Unknown field names raise ValueError and bad values raise pydantic's
    ValidationError, both before anything is built.
    """
    unknown = set(changes) - set(type(model).model_fields)
    if unknown:
        raise ValueError(f"Unknown {type(model).__name__} fields: {sorted(unknown)}")
    if not changes:
        return model
    return type(model)(**{**dict(model), **changes})


def apply(state: PipelineState, action: Action) -> PipelineState:
    """Return the state that results from applying ``action`` to ``state``."""
    if isinstance(action, SetStepData):
        return state.model_copy(update={"step_data": _merge(state.step_data, action.changes)})

    if isinstance(action, SetStepStatus):
        return state.model_copy(
            update={"step_status": _merge(state.step_status, action.changes)}
        )

    if isinstance(action, SetUIState):
        return state.model_copy(update={"ui_state": _merge(state.ui_state, action.changes)})

    if isinstance(action, SetError):
        ui = state.ui_state
        errors = {**ui.errors, action.step: action.error}
        return state.model_copy(update={"ui_state": ui.model_copy(update={"errors": errors})})

    if isinstance(action, ClearErrors):
        ui = state.ui_state
        return state.model_copy(update={"ui_state": ui.model_copy(update={"errors": {}})})

    if isinstance(action, ToggleBlock):
        blocks = state.ui_state.expanded_blocks
        if action.block not in type(blocks).model_fields:
            raise ValueError(f"Unknown block: {action.block}")
        flipped = _merge(blocks, {action.block: not getattr(blocks, action.block)})
        ui = state.ui_state.model_copy(update={"expanded_blocks": flipped})
        return state.model_copy(update={"ui_state": ui})

    if isinstance(action, SetProgress):
        ui = state.ui_state
        progress = _merge(ui.progress, action.changes)
        return state.model_copy(update={"ui_state": ui.model_copy(update={"progress": progress})})

    if isinstance(action, ResetAll):
        return initial_state()

    return state


Listener = Callable[[PipelineState], None]


class PipelineStore:
    """Holds the single state root for one UI session.

    All writes go through ``dispatch``; the basic action helpers below are
    thin wrappers kept for the view layer.
    """

    def __init__(self, state: Optional[PipelineState] = None) -> None:
        self._state = state if state is not None else initial_state()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> PipelineState:
        return self._state

    def dispatch(self, action: Action) -> PipelineState:
        self._state = apply(self._state, action)
        logger.debug("[store] %s", type(action).__name__)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for every new state. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- basic actions ---------------------------------------------------------

    def set_step_data(self, **changes: Any) -> PipelineState:
        return self.dispatch(SetStepData(changes))

    def set_step_status(self, **changes: Any) -> PipelineState:
        return self.dispatch(SetStepStatus(changes))

    def set_ui_state(self, **changes: Any) -> PipelineState:
        return self.dispatch(SetUIState(changes))

    def set_error(self, step: str, error: str) -> PipelineState:
        return self.dispatch(SetError(step, error))

    def clear_errors(self) -> PipelineState:
        return self.dispatch(ClearErrors())

    def toggle_block(self, block: str) -> PipelineState:
        return self.dispatch(ToggleBlock(block))

    def set_progress(self, **changes: Any) -> PipelineState:
        return self.dispatch(SetProgress(changes))

    def reset_all(self) -> PipelineState:
        return self.dispatch(ResetAll())
