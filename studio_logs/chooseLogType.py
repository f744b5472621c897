from studio_logs.stdout import StdoutLogger
from studio_logs.file import FileLogger
from studio_logs.json_logger import JSONLogger
from studio_logs.composite import CompositeLogger

def get_logger(mode="dev", log_type="server"):
    if mode == "prod":
        return CompositeLogger(
            FileLogger(log_type=log_type),
            JSONLogger(log_type=log_type)
        )
    if mode == "test":
        return FileLogger(log_type=log_type)
    return StdoutLogger(log_type=log_type)
