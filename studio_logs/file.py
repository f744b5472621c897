from studio_logs.base import Logger
from datetime import datetime, timezone
from pathlib import Path
import json
import os

LOG_DIR = os.getenv("CARD_STUDIO_LOG_DIR", "logs")

class FileLogger(Logger):
    """Appends one JSON object per event to ``<base_path>/<log_type>.log``."""

    def __init__(self, log_type="server", base_path=None):
        self.log_type = log_type
        self.path = Path(base_path or LOG_DIR) / f"{log_type}.log"
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _write(self, level, event, data):
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "log_type": self.log_type,
            "level": level,
            "event": event,
            **data
        }
        with open(self.path, "a") as f:
            # default=str keeps odd values (paths, exceptions) from breaking a write
            f.write(json.dumps(record, default=str) + "\n")

    def info(self, event, **data):
        self._write("INFO", event, data)

    def debug(self, event, **data):
        self._write("DEBUG", event, data)

    def warning(self, event, **data):
        self._write("WARN", event, data)

    def error(self, event, **data):
        self._write("ERROR", event, data)
