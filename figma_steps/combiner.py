"""Artifact combiner — merges generated and user-authored code into final output.

Pure text transforms. ``splice_markup`` is the fallible core; ``combine_markup``
keeps the historical behaviour of leaving the markup untouched when the
generated source has no ``return ( ... );`` expression, and logs it.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Optional

from figma_steps.errors import MarkupPatternError
from figma_steps.models import DocumentBundle
from figma_steps.utils import utc_timestamp

logger = logging.getLogger(__name__)

RETURN_PATTERN = re.compile(r"return\s*\(\s*(.*?)\s*\);", re.DOTALL)

ADDITIONAL_JSX_MARKER = "{/* Additional JSX */}"

RESPONSIVE_UTILITIES = """/* Responsive Utilities */
@media (max-width: 768px) {
  .figma-component {
    padding: 1rem;
  }
}

@media (max-width: 480px) {
  .figma-component {
    padding: 0.5rem;
  }
}"""


def splice_markup(generated: str, user_markup: str) -> str:
    """Splice ``user_markup`` into the first ``return ( ... );`` of ``generated``.

    An ``<svg`` root is wrapped together with the user markup in a
    ``React.Fragment``; any other root gets the user markup appended as a
    sibling.

    Raises:
        MarkupPatternError: If ``generated`` has no return expression.
    """
    match = RETURN_PATTERN.search(generated)
    if not match:
        raise MarkupPatternError("No 'return ( ... );' expression found in generated source")

    original = match.group(1).strip()
    if original.startswith("<svg"):
        merged = (
            "\n    <React.Fragment>"
            f"\n      {original}"
            f"\n      {ADDITIONAL_JSX_MARKER}"
            f"\n      {user_markup}"
            "\n    </React.Fragment>"
        )
        replacement = f"return ({merged}\n  );"
    else:
        merged = f"{original}\n      {ADDITIONAL_JSX_MARKER}\n      {user_markup}"
        replacement = f"return (\n    {merged}\n  );"

    return generated[: match.start()] + replacement + generated[match.end() :]


def markup_header(bundle: DocumentBundle, now: Optional[datetime] = None) -> str:
    metadata = bundle.metadata or {}
    return (
        "/*\n"
        " * Generated from Figma Design\n"
        f" * File: {bundle.name}\n"
        f" * Generated: {utc_timestamp(now)}\n"
        f" * Components: {metadata.get('componentCount') or 0}\n"
        f" * Styles: {metadata.get('styleCount') or 0}\n"
        " */\n\n"
    )


def combine_markup(
    generated: str,
    user_markup: str,
    bundle: Optional[DocumentBundle],
    now: Optional[datetime] = None,
) -> str:
    """Build the final TSX from the step 2 output and the user's extra JSX."""
    final = generated

    if user_markup.strip():
        try:
            final = splice_markup(generated, user_markup)
        except MarkupPatternError as e:
            logger.warning("[combine] %s; user markup was not merged", e)

    if bundle is not None:
        final = markup_header(bundle, now) + final

    return final


def combine_styles(
    base_css: str,
    additional_css: str,
    bundle: Optional[DocumentBundle],
    now: Optional[datetime] = None,
) -> str:
    """Build the final CSS: header, base, additional, then responsive rules."""
    sections = []

    if bundle is not None:
        sections.append(
            "/*\n"
            f" * Styles for Figma Component: {bundle.name}\n"
            f" * Generated: {utc_timestamp(now)}\n"
            " */\n\n"
        )

    if base_css.strip():
        sections.append(f"/* Base Styles */\n{base_css}\n\n")

    if additional_css.strip():
        sections.append(f"/* Additional Styles */\n{additional_css}\n\n")

    sections.append(RESPONSIVE_UTILITIES)
    return "".join(sections)
