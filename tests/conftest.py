"""Shared pytest fixtures for all test layers."""

import os

# Force development mode for tests; must be set before figma_steps.services is
# imported, otherwise load_dotenv() may read ENVIRONMENT=production from .env.
os.environ.setdefault("ENVIRONMENT", "development")

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402

from figma_steps.collaborators import Collaborators, ReferenceValidation  # noqa: E402

SAMPLE_SVG = (
    '<svg width="24" height="24" viewBox="0 0 24 24">'
    '<path d="M0 0h24v24H0z" fill="#0D99FF"/></svg>'
)

SAMPLE_TSX = """import React from 'react';

const GeneratedComponent = (props: React.SVGProps<SVGSVGElement>) => {
  return (
    <svg width={24} height={24} viewBox="0 0 24 24" {...props}>
      <path d="M0 0h24v24H0z" fill="#0D99FF" />
    </svg>
  );
};

export default GeneratedComponent;
"""

FIGMA_FILE = {"name": "Landing Page", "document": {"id": "0:0", "children": []}}

FIGMA_METADATA = {"componentCount": 3, "styleCount": 2}


def _make_collaborators() -> Collaborators:
    source = MagicMock()
    source.validate_reference = AsyncMock(
        return_value=ReferenceValidation(valid=True, file_id="abc123")
    )
    source.fetch_document = AsyncMock(return_value=dict(FIGMA_FILE))
    source.fetch_metadata = AsyncMock(return_value=dict(FIGMA_METADATA))
    source.fetch_components = AsyncMock(return_value={"meta": {"components": []}})
    source.fetch_styles = AsyncMock(return_value={"meta": {"styles": []}})

    transformer = MagicMock()
    transformer.transform = AsyncMock(return_value=SAMPLE_TSX)

    async def generate(document, config, on_progress):
        on_progress(50, "Generating components...")
        on_progress(100, "Done")
        return "export default function Page() { return null; }"

    engine = MagicMock()
    engine.extract_vector_markup = AsyncMock(return_value=SAMPLE_SVG)
    engine.generate = AsyncMock(side_effect=generate)

    return Collaborators(document_source=source, transformer=transformer, engine=engine)


@pytest.fixture
def collaborators() -> Collaborators:
    """Mocked Figma client, SVG transformer and code-generation engine."""
    return _make_collaborators()


@pytest.fixture
def sample_svg() -> str:
    return SAMPLE_SVG


@pytest.fixture
def sample_tsx() -> str:
    return SAMPLE_TSX
