"""Shared services and configuration for the application.

Collaborator implementations live outside this package. Each one is named by
a ``module:attribute`` path in the environment; the attribute may be an
instance or a zero-argument factory (class or function).
"""

from __future__ import annotations

import importlib
import logging
import os
from typing import Any, Optional

from dotenv import load_dotenv

from figma_steps.collaborators import (
    CodeGenerationEngine,
    Collaborators,
    DocumentSource,
    MarkupTransformer,
)

load_dotenv()

logger = logging.getLogger(__name__)

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")
EXPORT_DIR: Optional[str] = os.getenv("EXPORT_DIR") or None

COLLABORATOR_ENV_VARS = {
    "document_source": ("FIGMA_DOCUMENT_SOURCE", DocumentSource),
    "transformer": ("FIGMA_MARKUP_TRANSFORMER", MarkupTransformer),
    "engine": ("FIGMA_CODEGEN_ENGINE", CodeGenerationEngine),
}


def resolve_object(path: str) -> Any:
    """Import ``module:attribute`` (or ``module.attribute``) and return the attribute."""
    if ":" in path:
        module_name, _, attr = path.partition(":")
    else:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        raise ValueError(f"Invalid object path: {path!r}")
    module = importlib.import_module(module_name)
    return getattr(module, attr)


def load_collaborators(env: Optional[dict[str, str]] = None) -> Collaborators:
    """Build the collaborator set from environment configuration.

    Raises:
        RuntimeError: If a required variable is unset or the object does not
            satisfy its protocol.
    """
    env = os.environ if env is None else env
    resolved = {}
    for name, (var, protocol) in COLLABORATOR_ENV_VARS.items():
        path = env.get(var)
        if not path:
            raise RuntimeError(f"{var} is not set; cannot build the {name} collaborator.")
        obj = resolve_object(path)
        if isinstance(obj, type) or (callable(obj) and not isinstance(obj, protocol)):
            obj = obj()
        if not isinstance(obj, protocol):
            raise RuntimeError(f"{path} does not implement {protocol.__name__}.")
        resolved[name] = obj
        logger.info("Loaded %s collaborator from %s", name, path)
    return Collaborators(**resolved)
