"""Export of the final TSX/CSS as downloadable files."""

from __future__ import annotations

import logging
import pathlib
from dataclasses import dataclass
from typing import Union

logger = logging.getLogger(__name__)

TSX_FILENAME = "GeneratedComponent.tsx"
CSS_FILENAME = "GeneratedComponent.css"
EXPORT_FILENAMES = (TSX_FILENAME, CSS_FILENAME)
EXPORT_MEDIA_TYPE = "text/plain"


@dataclass(frozen=True)
class ExportedFile:
    filename: str
    content: str
    media_type: str = EXPORT_MEDIA_TYPE

    def as_bytes(self) -> bytes:
        return self.content.encode("utf-8")


def build_exports(final_tsx: str, final_css: str) -> list[ExportedFile]:
    """Return the two export files, or nothing if either blob is empty."""
    if not final_tsx or not final_css:
        return []
    return [
        ExportedFile(filename=TSX_FILENAME, content=final_tsx),
        ExportedFile(filename=CSS_FILENAME, content=final_css),
    ]


def write_exports(
    exports: list[ExportedFile], directory: Union[str, pathlib.Path]
) -> list[pathlib.Path]:
    """Write ``exports`` into ``directory`` (created if missing)."""
    target = pathlib.Path(directory)
    target.mkdir(parents=True, exist_ok=True)

    paths = []
    for item in exports:
        path = target / item.filename
        path.write_text(item.content, encoding="utf-8")
        paths.append(path)

    logger.info("Exported %d files to %s", len(paths), target)
    return paths
