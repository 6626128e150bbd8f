from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from eventflow.schema.documents import EventLibrary


logger = logging.getLogger(__name__)


def _write_text_atomic(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Atomically write text to `path` (POSIX rename semantics)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    except Exception:
        try:
            tmp_path.unlink(missing_ok=True)
        except Exception:
            logger.debug("Failed to clean up temp library file %s", tmp_path, exc_info=True)
        raise


class EventStore:
    """JSON file holding the whole Event library.

    Reads never fail: a missing or broken file comes back as an empty library.
    Writes replace the file atomically and raise on failure.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> EventLibrary:
        if not self.exists():
            return EventLibrary()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return EventLibrary.from_dict(raw)
        except Exception:
            logger.warning("Could not read event library %s; starting empty", self.path, exc_info=True)
            return EventLibrary()

    def save(self, library: EventLibrary) -> None:
        try:
            _write_text_atomic(self.path, json.dumps(library.to_dict(), ensure_ascii=False, indent=2))
        except Exception as e:
            logger.exception("Failed to save event library %s: %s", self.path, e)
            raise
        logger.info("Saved %d event(s) to %s", len(library.events), self.path)
