from studio_logs.base import Logger
from datetime import datetime, timezone
import json

class JSONLogger(Logger):
    def __init__(self, log_type="server"):
        self.log_type = log_type

    def _log(self, level, event, data):
        print(json.dumps({
            "ts": datetime.now(timezone.utc).isoformat(),
            "log_type": self.log_type,
            "level": level,
            "event": event,
            "data": data
        }, default=str))

    def info(self, event, **data):
        self._log("INFO", event, data)

    def debug(self, event, **data):
        self._log("DEBUG", event, data)

    def warning(self, event, **data):
        self._log("WARN", event, data)

    def error(self, event, **data):
        self._log("ERROR", event, data)
