import secrets
import time
from pathlib import Path

from labreport.logging.logger import Log


def unique_name(label: str, suffix: str = ".pdf") -> str:
    """Build a collision-free file name from a millisecond timestamp and random suffix."""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}-{label}{suffix}"


class TempResourceManager:
    """Tracks every intermediate file of one request and removes them all at the end.

    release_all() is idempotent and ignores files that are already gone.
    """

    def __init__(self, temp_dir: Path) -> None:
        self._temp_dir = temp_dir
        self._paths: list[Path] = []

    @property
    def tracked(self) -> list[Path]:
        return list(self._paths)

    def track(self, path: Path) -> Path:
        if path not in self._paths:
            self._paths.append(path)
        return path

    def write(self, data: bytes, label: str, suffix: str = ".pdf") -> Path:
        """Write bytes to a fresh temp file and track it."""
        path = self.reserve(label, suffix)
        path.write_bytes(data)
        return path

    def reserve(self, label: str, suffix: str = ".pdf") -> Path:
        """Track a fresh path for a file some other tool will create."""
        self._temp_dir.mkdir(parents=True, exist_ok=True)
        return self.track(self._temp_dir / unique_name(label, suffix))

    def release_all(self) -> None:
        removed = 0
        for path in self._paths:
            try:
                path.unlink(missing_ok=True)
                removed += 1
            except OSError as exc:
                Log.warning(f"Could not remove temp file {path}: {exc}")
        if removed:
            Log.debug(f"Released {removed} temp file(s)")
        self._paths.clear()
