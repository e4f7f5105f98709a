"""Stage orchestrator — runs the four pipeline steps against the collaborators.

Steps:
1. connect   — validate the Figma URL and fetch file, metadata, components, styles.
2. convert   — extract SVG from the file and transform it to TSX.
3. style     — save the user's CSS (local only).
4. finalize  — run the code-generation engine and combine all fragments.

Only step 1 -> step 2 advances automatically. Every step catches its own
errors, writes them to ``ui_state.errors[stepN]`` and marks the step
``error``. Only StageBusyError reaches the caller, and only from the step
that was invoked directly; a busy step 2 during the step 1 chain is recorded
as a step 2 error instead.
"""

from __future__ import annotations

import logging
import pathlib
from typing import Optional, Union

from figma_steps.collaborators import GENERATION_CONFIG, TRANSFORM_OPTIONS, Collaborators
from figma_steps.combiner import combine_markup, combine_styles
from figma_steps.errors import (
    CollaboratorError,
    ErrorKind,
    StageBusyError,
    ValidationError,
    conversion_error_message,
    wrap_connection_error,
)
from figma_steps.export import ExportedFile, build_exports, write_exports
from figma_steps.models import DocumentBundle, PipelineState
from figma_steps.store import PipelineStore
from figma_steps.utils import utc_timestamp

logger = logging.getLogger(__name__)

SVG_ELEMENT_TAGS = ("<svg", "<path", "<rect", "<circle")


def _require_text(value: object, operation: str) -> str:
    if not isinstance(value, str):
        raise CollaboratorError(
            f"{operation} returned {type(value).__name__}, expected text", ErrorKind.GENERIC
        )
    return value


class StepsOrchestrator:
    """Sequences the pipeline steps and records every transition in the store."""

    def __init__(
        self,
        store: PipelineStore,
        collaborators: Collaborators,
        export_dir: Optional[Union[str, pathlib.Path]] = None,
    ) -> None:
        self.store = store
        self.collaborators = collaborators
        self.export_dir = export_dir

    @property
    def state(self) -> PipelineState:
        return self.store.state

    # -- transitions -----------------------------------------------------------

    def _begin(self, step: str, current: int, message: str) -> None:
        """Move ``step`` to loading, clear errors and report progress.

        A step that already succeeded goes back to idle first, so loading is
        only ever entered from idle or error.
        """
        status = getattr(self.state.step_status, step)
        if status == "loading":
            raise StageBusyError(step)
        if status == "success":
            self.store.set_step_status(**{step: "idle"})
        self.store.set_step_status(**{step: "loading"})
        self.store.clear_errors()
        self.store.set_progress(current=current, message=message)

    def _succeed(self, step: str, message: str) -> None:
        self.store.set_step_status(**{step: "success"})
        self.store.set_progress(message=message)

    def _fail(self, step: str, error: str, message: str) -> None:
        self.store.set_error(step, error)
        self.store.set_step_status(**{step: "error"})
        self.store.set_progress(message=message)

    # -- step 1 ----------------------------------------------------------------

    async def connect_to_figma(self) -> None:
        data = self.state.step_data
        url, token = data.figma_url, data.access_token

        if not url.strip() or not token.strip():
            logger.warning("[step1] Missing Figma URL or access token")
            self.store.set_error("step1", "Please provide both Figma URL and Access Token")
            return

        self._begin("step1", 1, "Connecting to Figma...")
        source = self.collaborators.document_source

        try:
            validation = await source.validate_reference(url)
            if not validation.valid or not validation.file_id:
                raise ValidationError(validation.error or "Invalid Figma URL", step="step1")
            file_id = validation.file_id

            self.store.set_progress(message="Fetching Figma file data...")
            document = await source.fetch_document(file_id, token)

            self.store.set_progress(message="Getting metadata...")
            metadata = await source.fetch_metadata(file_id, token)
            components = await source.fetch_components(file_id, token)
            styles = await source.fetch_styles(file_id, token)

            bundle = DocumentBundle(
                file=document or {},
                metadata=metadata or {},
                components=components,
                styles=styles,
                file_id=file_id,
                extracted_at=utc_timestamp(),
            )
            self.store.set_step_data(figma_data=bundle)
        except Exception as e:
            error = wrap_connection_error(e)
            logger.exception("[step1] Connection error (%s)", error.kind.value)
            self._fail("step1", str(error), "Connection failed")
            return

        self._succeed("step1", "Connection successful!")
        logger.info("[step1] Connected to Figma file %s (%s)", bundle.file_id, bundle.name)

        try:
            await self._auto_generate_svg(bundle)
        except StageBusyError as e:
            # A manual step 2 run is still in flight; leave it alone.
            logger.warning("[step2] Skipping automatic conversion: %s", e)
            self.store.set_error("step2", str(e))

    # -- step 2 ----------------------------------------------------------------

    async def _auto_generate_svg(self, bundle: DocumentBundle) -> None:
        """Chained from step 1: extract SVG from the fetched file, then convert it."""
        self._begin("step2", 2, "Extracting SVG from Figma...")

        try:
            svg = _require_text(
                await self.collaborators.engine.extract_vector_markup(bundle.file),
                "SVG extraction",
            )
            self.store.set_step_data(svg_code=svg)
        except Exception as e:
            logger.exception("[step2] SVG extraction error")
            self._fail("step2", str(e) or "SVG generation failed", "SVG generation failed")
            return

        self.store.set_progress(message="Converting SVG to TSX...")

        if not svg.strip():
            logger.warning("[step2] Extraction produced no SVG for file %s", bundle.file_id)
            self._fail("step2", "Please provide SVG code", "SVG generation failed")
            return

        self.store.clear_errors()
        await self._convert_svg(svg)

    async def generate_svg_code(self, svg_content: Optional[str] = None) -> None:
        """Convert SVG to TSX. ``svg_content`` overrides the stored ``svg_code``."""
        svg = svg_content or self.state.step_data.svg_code

        if not svg.strip():
            logger.warning("[step2] No SVG code provided")
            self.store.set_error("step2", "Please provide SVG code")
            return

        self._begin("step2", 2, "Converting SVG to TSX...")
        await self._convert_svg(svg)

    async def _convert_svg(self, svg: str) -> None:
        try:
            if not any(tag in svg for tag in SVG_ELEMENT_TAGS):
                raise ValidationError(
                    "Invalid SVG: No SVG elements found in the provided code", step="step2"
                )

            self.store.set_progress(message="Parsing SVG structure...")
            tsx = _require_text(
                await self.collaborators.transformer.transform(svg, TRANSFORM_OPTIONS),
                "SVG to TSX conversion",
            )
            self.store.set_step_data(svg_code=svg, generated_tsx_code=tsx)
        except ValidationError as e:
            logger.warning("[step2] %s", e)
            self._fail("step2", conversion_error_message(str(e)), "SVG conversion failed")
            return
        except Exception as e:
            logger.exception("[step2] SVG to TSX conversion error")
            self._fail("step2", conversion_error_message(str(e)), "SVG conversion failed")
            return

        self._succeed("step2", "TSX code generated successfully!")
        logger.info("[step2] Generated %d chars of TSX", len(tsx))

    # -- step 3 ----------------------------------------------------------------

    def save_css_code(self) -> None:
        if not self.state.step_data.css_code.strip():
            logger.warning("[step3] No CSS code provided")
            self.store.set_error("step3", "Please provide CSS code")
            return

        self._begin("step3", 3, "Saving CSS code...")
        self._succeed("step3", "CSS code saved successfully!")

    # -- step 4 ----------------------------------------------------------------

    def _on_generation_progress(self, percent: float, status: str) -> None:
        logger.debug("[step4] %.0f%% %s", percent, status)
        self.store.set_progress(message=status)

    async def generate_final_code(self) -> None:
        data = self.state.step_data

        if not data.jsx_code.strip() and not data.more_css_code.strip():
            logger.warning("[step4] No JSX or additional CSS provided")
            self.store.set_error("step4", "Please provide JSX or additional CSS code")
            return

        self._begin("step4", 4, "Generating final code...")

        try:
            self.store.set_progress(message="Optimizing code...")
            bundle = data.figma_data
            generated = await self.collaborators.engine.generate(
                bundle.file if bundle else None,
                GENERATION_CONFIG,
                self._on_generation_progress,
            )
            logger.debug("[step4] Engine returned %d chars", len(generated or ""))

            self.store.set_progress(message="Combining code pieces...")
            final_tsx = combine_markup(data.generated_tsx_code, data.jsx_code, bundle)
            final_css = combine_styles(data.css_code, data.more_css_code, bundle)
            self.store.set_step_data(final_tsx_code=final_tsx, final_css_code=final_css)
        except Exception as e:
            logger.exception("[step4] Final generation error")
            self._fail("step4", str(e) or "Generation failed", "Generation failed")
            return

        self._succeed("step4", "Final code generated successfully!")
        logger.info("[step4] Final code generated (%d TSX, %d CSS chars)", len(final_tsx), len(final_css))

    # -- export ----------------------------------------------------------------

    def download_code(
        self, directory: Optional[Union[str, pathlib.Path]] = None
    ) -> list[ExportedFile]:
        """Build the export files and write them when a directory is configured.

        Returns an empty list (and writes nothing) until both final blobs exist.
        """
        data = self.state.step_data
        exports = build_exports(data.final_tsx_code, data.final_css_code)
        if not exports:
            logger.debug("[export] Nothing to export yet")
            return exports

        target = directory or self.export_dir
        if target:
            write_exports(exports, target)
        return exports
