# src/batch/scanner.py — v1
"""Batch scanner — directory scanning and image discovery.

Turns a directory (the CLI counterpart of a folder picker) into the list
of InputFile the pipeline consumes. Only accepted image types are kept;
everything else is skipped silently.
"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import TYPE_CHECKING

from examextractor.batch.models import InputFile

if TYPE_CHECKING:
    from examextractor.config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_ACCEPTED_MIME_TYPES: tuple[str, ...] = ("image/png", "image/jpeg")


def filter_images(
    files: list[InputFile], accepted: tuple[str, ...] | list[str] = DEFAULT_ACCEPTED_MIME_TYPES
) -> list[InputFile]:
    """Keep files whose MIME type starts with an accepted type."""
    return [f for f in files if any(f.mime_type.startswith(m) for m in accepted)]


class BatchScanner:
    """Discover question images under a directory.

    Workflow:
        1. List files (recursive if enabled), sorted by path
        2. Keep accepted MIME types
        3. Read each into an InputFile relative to the scan root's parent
    """

    def __init__(self, settings: Settings | None = None) -> None:
        if settings is not None:
            self._accepted = tuple(settings.accepted_mime_types_list)
        else:
            self._accepted = DEFAULT_ACCEPTED_MIME_TYPES

    @property
    def accepted_mime_types(self) -> tuple[str, ...]:
        return self._accepted

    def scan(self, scan_root: Path, recursive: bool = True) -> list[Path]:
        """List accepted image paths under ``scan_root``.

        Raises:
            ValueError: If ``scan_root`` is not a directory.
        """
        if not scan_root.is_dir():
            msg = f"Scan root is not a directory: {scan_root}"
            raise ValueError(msg)

        pattern_fn = scan_root.rglob if recursive else scan_root.glob
        paths: list[Path] = []
        for path in sorted(pattern_fn("*")):
            if not path.is_file():
                continue
            mime, _ = mimetypes.guess_type(path.name)
            if mime is None or not any(mime.startswith(m) for m in self._accepted):
                continue
            paths.append(path)

        logger.info(
            "Scanned %s: found %d image(s) (recursive=%s)",
            scan_root, len(paths), recursive,
        )
        return paths

    def load(self, scan_root: Path, recursive: bool = True) -> list[InputFile]:
        """Scan and read every accepted image into memory."""
        return [InputFile.from_path(p, root=scan_root) for p in self.scan(scan_root, recursive)]
