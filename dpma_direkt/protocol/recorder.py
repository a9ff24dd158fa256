import re
from pathlib import Path

from dpma_direkt.core.config import Settings
from dpma_direkt.core.logging import get_logger

logger = get_logger(__name__)


def _safe_name(label: str) -> str:
    return re.sub(r"[^a-zA-Z0-9._-]", "_", label)[:120] or "response"


class DebugRecorder:
    def __init__(self, settings: Settings, run_id: str) -> None:
        self.enabled = bool(settings.debug_capture)
        self.directory = Path(settings.debug_dir) / run_id
        self._counter = 0

    def capture(self, label: str, body: str | bytes) -> Path | None:
        if not self.enabled:
            return None
        self._counter += 1
        path = self.directory / f"{self._counter:03d}_{_safe_name(label)}.xml"
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            if isinstance(body, bytes):
                path.write_bytes(body)
            else:
                path.write_text(body or "", encoding="utf-8")
        except OSError as exc:
            logger.warning("debug capture failed", extra={"extra": {"path": str(path), "error": str(exc)}})
            return None
        return path
