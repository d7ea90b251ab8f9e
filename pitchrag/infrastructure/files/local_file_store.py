import re
import time
from pathlib import Path
from typing import Optional, Union

import structlog

from pitchrag.core.config import settings

log = structlog.get_logger(__name__)

_UNSAFE_FILENAME_CHARS_RE = re.compile(r"[^a-zA-Z0-9.-]")


def make_stored_filename(original_name: str, timestamp_ms: Optional[int] = None) -> str:
    """'<epoch-ms>-<name>' with every character outside [A-Za-z0-9.-] replaced by '_'."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{timestamp_ms}-{_UNSAFE_FILENAME_CHARS_RE.sub('_', original_name)}"


class LocalFileStore:
    """Keeps uploaded files on the local filesystem under a single directory."""

    def __init__(self, base_dir: Union[str, Path, None] = None):
        self.base_dir = Path(base_dir or settings.UPLOAD_DIR)

    def _path_for(self, stored_name: str) -> Path:
        # Stored names never contain a separator; reject anything that would escape base_dir
        if Path(stored_name).name != stored_name or stored_name in ("", ".", ".."):
            raise ValueError(f"Invalid stored filename: {stored_name!r}")
        return self.base_dir / stored_name

    def save(self, file_bytes: bytes, original_name: str) -> str:
        """Writes the file and returns its stored name."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        stored_name = make_stored_filename(original_name)
        self._path_for(stored_name).write_bytes(file_bytes)
        log.info("Uploaded file stored", stored_name=stored_name, size=len(file_bytes))
        return stored_name

    def read(self, stored_name: str) -> bytes:
        return self._path_for(stored_name).read_bytes()

    def delete(self, stored_name: str) -> None:
        """Removes a stored file. A file that is already gone is not an error."""
        try:
            self._path_for(stored_name).unlink()
            log.info("Stored file deleted", stored_name=stored_name)
        except FileNotFoundError:
            log.debug("Stored file already absent", stored_name=stored_name)
