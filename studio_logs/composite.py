from studio_logs.base import Logger

class CompositeLogger(Logger):
    """Fans every event out to each wrapped logger."""

    def __init__(self, *loggers: Logger):
        self.loggers = loggers

    def info(self, event, **data):
        for l in self.loggers:
            l.info(event, **data)

    def debug(self, event, **data):
        for l in self.loggers:
            l.debug(event, **data)

    def warning(self, event, **data):
        for l in self.loggers:
            l.warning(event, **data)

    def error(self, event, **data):
        for l in self.loggers:
            l.error(event, **data)
