"""Atomic artifact writes."""

import contextlib
import logging
import tempfile
from pathlib import Path

from ..errors import ArtifactWriteError

logger = logging.getLogger(__name__)


def atomic_write_text(path: Path, content: str) -> Path:
    """Write ``content`` to ``path`` through a temporary file and rename.

    Raises:
        ArtifactWriteError: If the directory or file cannot be written. Files
            written by earlier calls are left in place.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w", encoding="utf-8", dir=path.parent, prefix=f".{path.name}_", suffix=".tmp", delete=False
        ) as tmp_file:
            temp_path = Path(tmp_file.name)
            try:
                tmp_file.write(content)
                tmp_file.flush()
            except OSError:
                with contextlib.suppress(OSError):
                    temp_path.unlink()
                raise
        try:
            temp_path.replace(path)
        except OSError:
            with contextlib.suppress(OSError):
                temp_path.unlink()
            raise
    except OSError as e:
        raise ArtifactWriteError(path, e) from e

    logger.debug(f"Wrote {path} ({len(content)} bytes)")
    return path
