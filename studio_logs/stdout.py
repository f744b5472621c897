from studio_logs.base import Logger
from datetime import datetime, timezone

class StdoutLogger(Logger):

    def __init__(self, log_type="server"):
        self.log_type = log_type

    def _log(self, level, event, data):
        ts = datetime.now(timezone.utc).isoformat()
        fields = " ".join(f"{k}={v!r}" for k, v in data.items())
        print(f"[{ts}] [{self.log_type}] {level} {event} {fields}".rstrip())

    def info(self, event, **data):
        self._log("INFO", event, data)

    def debug(self, event, **data):
        self._log("DEBUG", event, data)

    def warning(self, event, **data):
        self._log("WARN", event, data)

    def error(self, event, **data):
        self._log("ERROR", event, data)
