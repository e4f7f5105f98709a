"""Contracts for the external services the pipeline drives.

The Figma API client, the SVG-to-TSX transformer and the code-generation
engine are not part of this package. Implementations are injected (see
figma_steps/services.py) and only need to satisfy these protocols.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

ProgressCallback = Callable[[float, str], None]


class ReferenceValidation(BaseModel):
    """Result of validating a Figma URL."""

    valid: bool
    file_id: Optional[str] = None
    error: Optional[str] = None


class TransformOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    framework: Literal["react"] = "react"
    typescript: bool = True
    styling: Literal["css"] = "css"
    component_name: str = "GeneratedComponent"
    pass_props: bool = True


class OptimizationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    treeshaking: bool = True
    bundle_analysis: bool = True
    codesplitting: bool = True
    lazy_loading: bool = True


class AccessibilityConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    wcag_level: Literal["A", "AA", "AAA"] = "AA"
    screen_reader: bool = True
    keyboard_navigation: bool = True
    color_contrast: bool = True


class GeneratedTestsConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    unit_tests: bool = False
    integration_tests: bool = False
    e2e_tests: bool = False
    visual_regression: bool = False


class GenerationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    framework: Literal["react"] = "react"
    typescript: bool = True
    styling: Literal["css"] = "css"
    component_library: Literal["custom"] = "custom"
    optimization: OptimizationConfig = OptimizationConfig()
    accessibility: AccessibilityConfig = AccessibilityConfig()
    testing: GeneratedTestsConfig = GeneratedTestsConfig()


TRANSFORM_OPTIONS = TransformOptions()

GENERATION_CONFIG = GenerationConfig()


@runtime_checkable
class DocumentSource(Protocol):
    """Figma REST client. Failures carry HTTP status codes in their message."""

    async def validate_reference(self, url: str) -> ReferenceValidation: ...

    async def fetch_document(self, file_id: str, token: str) -> dict[str, Any]: ...

    async def fetch_metadata(self, file_id: str, token: str) -> dict[str, Any]: ...

    async def fetch_components(self, file_id: str, token: str) -> Any: ...

    async def fetch_styles(self, file_id: str, token: str) -> Any: ...


@runtime_checkable
class MarkupTransformer(Protocol):
    async def transform(self, markup: str, options: TransformOptions) -> str: ...


@runtime_checkable
class CodeGenerationEngine(Protocol):
    async def extract_vector_markup(self, document: dict[str, Any]) -> str: ...

    async def generate(
        self,
        document: Optional[dict[str, Any]],
        config: GenerationConfig,
        on_progress: ProgressCallback,
    ) -> str: ...


@dataclass
class Collaborators:
    """The three services one orchestrator talks to."""

    document_source: DocumentSource
    transformer: MarkupTransformer
    engine: CodeGenerationEngine
